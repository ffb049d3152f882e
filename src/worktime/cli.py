"""Command-line interface for the work time estimator."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import typer

from .config import EstimatorSettings
from .errors import WorkTimeError
from .estimator import WorkTimeEstimator
from .eventlog import WindowsEventLog
from .identity import current_user_sid, is_elevated
from .models import AnalysisWindow
from .paths import get_log_path
from .reporting import ResultPrinter

app = typer.Typer(help="Estimate time worked from Windows logon, lock and unlock events.")

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


@app.callback(no_args_is_help=True)
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
    save_log: bool = typer.Option(
        False, "--save-log", help="Also write logs to the application data directory."
    ),
) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if save_log:
        handlers.append(logging.FileHandler(get_log_path(), encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


@app.command()
def estimate(
    start: Optional[datetime] = typer.Option(
        None, "--start", formats=["%Y-%m-%d"], help="First day (YYYY-MM-DD) to include."
    ),
    end: Optional[datetime] = typer.Option(
        None, "--end", formats=["%Y-%m-%d"], help="Last day (YYYY-MM-DD) to include."
    ),
    days: Optional[int] = typer.Option(
        None, "--days", min=1, help="Number of days to include, counting today."
    ),
    show_sessions: bool = typer.Option(
        False, "--sessions", help="List every reconstructed session."
    ),
    sid: Optional[str] = typer.Option(
        None, "--sid", help="Security identifier to analyse instead of the current user."
    ),
    lookback: Optional[int] = typer.Option(
        None,
        "--lookback",
        min=1,
        help="Records to scan before the window for a session that was already open.",
    ),
) -> None:
    """Print the estimated active time for a window (defaults to today)."""
    window = resolve_window(start, end, days, datetime.now().astimezone())

    if not is_elevated():
        logger.warning(
            "Reading the Security event log requires administrator rights; "
            "re-run from an elevated prompt."
        )
        raise typer.Exit()

    settings = EstimatorSettings.from_options(lookback_records=lookback)
    try:
        identity = sid or current_user_sid()
        estimator = WorkTimeEstimator(WindowsEventLog(settings), settings)
        result = estimator.estimate(identity, window)
    except WorkTimeError as exc:
        typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    ResultPrinter(show_sessions=show_sessions).print_result(result)


def resolve_window(
    start: Optional[datetime],
    end: Optional[datetime],
    days: Optional[int],
    now: datetime,
) -> AnalysisWindow:
    """Build the analysis window from the mutually exclusive CLI options."""
    if days is not None and (start is not None or end is not None):
        raise typer.BadParameter("--days cannot be combined with --start/--end.")
    if (start is None) != (end is None):
        raise typer.BadParameter("--start and --end must be given together.")

    if days is not None:
        return AnalysisWindow.last_days(days, now)
    if start is not None and end is not None:
        if start > end:
            raise typer.BadParameter("--start must not be after --end.")
        return AnalysisWindow.from_dates(start.date(), end.date(), now)
    return AnalysisWindow.today(now)
