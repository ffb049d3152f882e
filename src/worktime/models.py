"""Domain models for session events and reconstructed work time."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Mapping, Optional


@dataclass(frozen=True, slots=True)
class RawEvent:
    """A single audit-log record as read from the event log."""

    event_id: int
    timestamp: datetime
    data: Mapping[str, str] = field(default_factory=dict)
    user_id: Optional[str] = None
    record_id: Optional[int] = None


class EventKind(Enum):
    START_WORK = "start"
    STOP_WORK = "stop"


@dataclass(frozen=True, slots=True)
class ClassifiedEvent:
    """A session-state change attributed to the target identity."""

    timestamp: datetime
    kind: EventKind


@dataclass(frozen=True, slots=True)
class AnalysisWindow:
    """The ``[start, end]`` range being evaluated."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @classmethod
    def today(cls, now: datetime) -> "AnalysisWindow":
        return cls(start=_midnight(now.date(), now), end=now)

    @classmethod
    def last_days(cls, days: int, now: datetime) -> "AnalysisWindow":
        """Window covering today and the ``days - 1`` days before it."""
        if days < 1:
            raise ValueError("days must be at least 1")
        first_day = now.date() - timedelta(days=days - 1)
        return cls(start=_midnight(first_day, now), end=now)

    @classmethod
    def from_dates(cls, start_date: date, end_date: date, now: datetime) -> "AnalysisWindow":
        """Window from midnight of ``start_date`` through the end of ``end_date``.

        The end is capped at ``now`` so that a window covering today does not
        credit an open session with time that has not happened yet.
        """
        end = _midnight(end_date + timedelta(days=1), now)
        return cls(start=_midnight(start_date, now), end=min(end, now))


@dataclass(frozen=True, slots=True)
class PriorState:
    """Whether a session was already open at the window start."""

    was_open: bool = False

    @classmethod
    def from_last_event(cls, event: Optional[ClassifiedEvent]) -> "PriorState":
        return cls(was_open=event is not None and event.kind is EventKind.START_WORK)


@dataclass(frozen=True, slots=True)
class Session:
    """A contiguous block of time the user is considered to be working.

    ``open`` marks the session still active when the window ended; its ``end``
    is then the window end rather than an observed stop event.
    """

    start: datetime
    end: datetime
    open: bool = False

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(slots=True)
class WorkTimeResult:
    total: timedelta
    sessions: list[Session]
    window: AnalysisWindow

    @property
    def total_seconds(self) -> float:
        return self.total.total_seconds()


def _midnight(day: date, reference: datetime) -> datetime:
    return datetime.combine(day, time.min, tzinfo=reference.tzinfo)
