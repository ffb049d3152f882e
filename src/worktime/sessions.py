"""Reconstruct active work sessions from classified start/stop events.

The reconstruction is a two-field state machine: whether the user is working,
and when the current session started. Each event applies exactly one
transition:

========== =========== ==============================================
working    event       transition
========== =========== ==============================================
no         start       open a session at the event time
yes        stop        close the session; keep it if its duration > 0
yes        start       ignored, the session keeps its original start
no         stop        ignored
========== =========== ==============================================

A session open when the events run out is closed at the window end. A session
already open when the window started is credited from the window start only.
Events before the window only decide whether a session is open at its start;
events after the window end are ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from .models import (
    AnalysisWindow,
    ClassifiedEvent,
    EventKind,
    PriorState,
    Session,
    WorkTimeResult,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconstructionState:
    working: bool = False
    session_start: Optional[datetime] = None

    @classmethod
    def initial(cls, window: AnalysisWindow, prior: PriorState) -> "ReconstructionState":
        if prior.was_open:
            return cls(working=True, session_start=window.start)
        return cls()


def step(
    state: ReconstructionState, event: ClassifiedEvent
) -> tuple[ReconstructionState, Optional[Session]]:
    """Apply one event and return the new state plus any completed session."""
    if event.kind is EventKind.START_WORK:
        if state.working:
            return state, None
        return ReconstructionState(working=True, session_start=event.timestamp), None

    if not state.working or state.session_start is None:
        return state, None
    return ReconstructionState(), _close(state.session_start, event.timestamp, open_=False)


def finish(state: ReconstructionState, window: AnalysisWindow) -> Optional[Session]:
    """Truncate a still-open session at the window end."""
    if not state.working or state.session_start is None:
        return None
    return _close(state.session_start, window.end, open_=True)


def reconstruct(
    events: Iterable[ClassifiedEvent],
    window: AnalysisWindow,
    prior_state: Optional[PriorState] = None,
) -> WorkTimeResult:
    """Rebuild the work sessions of one identity within ``window``."""
    prior_state = prior_state or PriorState()
    state = ReconstructionState.initial(window, prior_state)
    sessions: list[Session] = []

    # sorted() is stable, so equal timestamps keep their retrieval order.
    for event in sorted(events, key=lambda item: item.timestamp):
        if event.timestamp > window.end:
            break
        state, session = step(state, event)
        session = _clip(session, window)
        if session:
            sessions.append(session)

    last = _clip(finish(state, window), window)
    if last:
        sessions.append(last)

    total = sum((session.duration for session in sessions), timedelta())
    return WorkTimeResult(total=total, sessions=sessions, window=window)


def _clip(session: Optional[Session], window: AnalysisWindow) -> Optional[Session]:
    """Cut a session opened before the window back to the window start."""
    if session is None or session.start >= window.start:
        return session
    return _close(window.start, session.end, open_=session.open)


def _close(start: datetime, end: datetime, *, open_: bool) -> Optional[Session]:
    session = Session(start=start, end=end, open=open_)
    if session.duration <= timedelta():
        logger.debug(
            "Discarding non-positive session %s -> %s.", session.start, session.end
        )
        return None
    return session
