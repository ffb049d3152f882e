from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import pytest

from worktime.models import AnalysisWindow, ClassifiedEvent, EventKind, RawEvent

USER_SID = "S-1-5-21-1004336348-1177238915-682003330-1001"
OTHER_SID = "S-1-5-21-1004336348-1177238915-682003330-1002"

T0 = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


def start(at: datetime) -> ClassifiedEvent:
    return ClassifiedEvent(timestamp=at, kind=EventKind.START_WORK)


def stop(at: datetime) -> ClassifiedEvent:
    return ClassifiedEvent(timestamp=at, kind=EventKind.STOP_WORK)


def hours(value: float) -> timedelta:
    return timedelta(hours=value)


def raw(
    event_id: int,
    at: datetime,
    *,
    sid: Optional[str] = USER_SID,
    logon_type: Optional[str] = None,
    user_id: Optional[str] = None,
) -> RawEvent:
    data: dict[str, str] = {}
    if sid is not None:
        data["TargetUserSid"] = sid
    if logon_type is not None:
        data["LogonType"] = logon_type
    return RawEvent(event_id=event_id, timestamp=at, data=data, user_id=user_id)


class FakeEventSource:
    """Serves canned records and remembers the queries made against it."""

    def __init__(self, events: Iterable[RawEvent] = (), error: Optional[Exception] = None) -> None:
        self.events = list(events)
        self.error = error
        self.queries: list[tuple[frozenset[int], Optional[datetime], datetime, Optional[int]]] = []

    def query_events(self, event_ids, start, end, max_count=None):
        self.queries.append((frozenset(event_ids), start, end, max_count))
        if self.error is not None:
            raise self.error
        matches = [
            event
            for event in self.events
            if event.event_id in event_ids
            and (start is None or event.timestamp >= start)
            and event.timestamp <= end
        ]
        if max_count is not None:
            matches = sorted(matches, key=lambda event: event.timestamp, reverse=True)[:max_count]
        return matches


@pytest.fixture
def window() -> AnalysisWindow:
    return AnalysisWindow(start=T0, end=T0 + hours(4))
