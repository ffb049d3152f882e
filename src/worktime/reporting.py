"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Iterable

from .models import Session, WorkTimeResult

TIME_FMT = "%Y-%m-%d %H:%M:%S"


class ResultPrinter:
    """Render human-readable work time estimates in the console."""

    def __init__(self, show_sessions: bool = False) -> None:
        self.show_sessions = show_sessions

    def print_result(self, result: WorkTimeResult) -> None:
        window = result.window
        print(
            f"Work time from {window.start.strftime(TIME_FMT)} "
            f"to {window.end.strftime(TIME_FMT)}"
        )
        print("-" * 48)
        print(f"Total active time: {format_duration(result.total_seconds)}")

        if not result.sessions:
            print("No active sessions found in the selected window.")
            return

        days = daily_totals(result.sessions)
        if len(days) > 1:
            print()
            print("Per day:")
            for day, seconds in days:
                print(f"  {day.isoformat()}  {format_duration(seconds)}")

        if self.show_sessions:
            print()
            print("Sessions:")
            for session in result.sessions:
                end = "(open)" if session.open else session.end.strftime(TIME_FMT)
                print(
                    f"  {session.start.strftime(TIME_FMT)}  ->  {end:<19}  "
                    f"{format_duration(session.duration.total_seconds())}"
                )


def daily_totals(sessions: Iterable[Session]) -> list[tuple[date, float]]:
    """Split sessions at midnight and sum the seconds worked per calendar day."""
    totals: defaultdict[date, float] = defaultdict(float)
    for session in sessions:
        cursor = session.start
        while cursor < session.end:
            day = _local_date(cursor)
            chunk_end = min(_next_local_midnight(cursor), session.end)
            totals[day] += (chunk_end - cursor).total_seconds()
            cursor = chunk_end
    return sorted(totals.items())


def _local_date(moment: datetime) -> date:
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone().date()


def _next_local_midnight(moment: datetime) -> datetime:
    # Aware times carry the fixed offset they were recorded with; resolve the
    # next midnight in the local zone so DST changes land on the right day.
    midnight = datetime.combine(_local_date(moment) + timedelta(days=1), time.min)
    if moment.tzinfo is None:
        return midnight
    return midnight.astimezone()


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
