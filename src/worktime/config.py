"""Configuration models for the work time estimator."""

from __future__ import annotations

from dataclasses import dataclass, field


LOGON_EVENT_ID = 4624
UNLOCK_EVENT_ID = 4801
LOGOFF_EVENT_ID = 4647
LOCK_EVENT_ID = 4800
SCREENSAVER_EVENT_ID = 4802

# Interactive (2), unlock (7) and cached interactive (11) logons.
WORK_LOGON_TYPES = frozenset({2, 7, 11})


@dataclass(slots=True)
class EstimatorSettings:
    """Event identifiers and query limits used when estimating work time."""

    log_name: str = "Security"
    logon_event_id: int = LOGON_EVENT_ID
    start_event_ids: frozenset[int] = field(
        default_factory=lambda: frozenset({LOGON_EVENT_ID, UNLOCK_EVENT_ID})
    )
    stop_event_ids: frozenset[int] = field(
        default_factory=lambda: frozenset(
            {LOGOFF_EVENT_ID, LOCK_EVENT_ID, SCREENSAVER_EVENT_ID}
        )
    )
    work_logon_types: frozenset[int] = WORK_LOGON_TYPES
    lookback_records: int = 50
    query_batch_size: int = 100

    @property
    def event_ids(self) -> frozenset[int]:
        return self.start_event_ids | self.stop_event_ids

    @classmethod
    def from_options(
        cls,
        lookback_records: int | None = None,
        log_name: str | None = None,
    ) -> "EstimatorSettings":
        settings = cls()
        if lookback_records is not None:
            settings.lookback_records = lookback_records
        if log_name:
            settings.log_name = log_name
        return settings
