"""Tie the event log, normalizer and session reconstruction together."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Protocol

from .config import EstimatorSettings
from .errors import QueryFailed
from .models import AnalysisWindow, ClassifiedEvent, PriorState, RawEvent, WorkTimeResult
from .normalization import normalize
from .sessions import reconstruct

logger = logging.getLogger(__name__)


class EventSource(Protocol):
    def query_events(
        self,
        event_ids: Iterable[int],
        start: Optional[datetime],
        end: datetime,
        max_count: Optional[int] = None,
    ) -> list[RawEvent]:
        ...


class LastEventLookup(Protocol):
    def last_event_before(self, identity: str, instant: datetime) -> Optional[ClassifiedEvent]:
        ...


class EventLogLookback:
    """Find the last start/stop event of an identity at or before an instant."""

    def __init__(self, source: EventSource, settings: Optional[EstimatorSettings] = None) -> None:
        self._source = source
        self.settings = settings or EstimatorSettings()

    def last_event_before(self, identity: str, instant: datetime) -> Optional[ClassifiedEvent]:
        try:
            raw_events = self._source.query_events(
                self.settings.event_ids,
                None,
                instant,
                max_count=self.settings.lookback_records,
            )
        except QueryFailed as exc:
            logger.warning("Lookback query failed, assuming no open session: %s", exc)
            return None

        # Bounded queries come back newest first; restore log order so that the
        # stable sort keeps the later-written record last among equal timestamps.
        events = sorted(
            normalize(reversed(raw_events), identity, self.settings),
            key=lambda event: event.timestamp,
        )
        if not events:
            logger.debug("No events for %s in the last %d records.", identity, self.settings.lookback_records)
            return None
        return events[-1]


class WorkTimeEstimator:
    """Estimate the active work time of one identity within a window."""

    def __init__(
        self,
        source: EventSource,
        settings: Optional[EstimatorSettings] = None,
        lookback: Optional[LastEventLookup] = None,
    ) -> None:
        self._source = source
        self.settings = settings or EstimatorSettings()
        self._lookback = lookback or EventLogLookback(source, self.settings)

    def estimate(self, identity: str, window: AnalysisWindow) -> WorkTimeResult:
        logger.info("Estimating work time for %s from %s to %s", identity, window.start, window.end)
        raw_events = self._source.query_events(self.settings.event_ids, window.start, window.end)
        events = normalize(raw_events, identity, self.settings)

        prior_event = self._lookback.last_event_before(identity, window.start)
        prior_state = PriorState.from_last_event(prior_event)
        if prior_state.was_open:
            logger.info("Session already open at %s (since %s).", window.start, prior_event.timestamp)

        result = reconstruct(events, window, prior_state)
        logger.info("Reconstructed %d sessions totalling %s", len(result.sessions), result.total)
        return result
