"""Classify raw audit records into work start/stop events."""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Iterable, Optional

from .config import EstimatorSettings
from .models import ClassifiedEvent, EventKind, RawEvent

logger = logging.getLogger(__name__)

# Bump when the lookup locations below change.
FIELD_EXTRACTION_VERSION = 1

# EventData names searched for the subject identity, in order. The record's
# System/Security/@UserID is consulted after these.
IDENTITY_FIELDS: tuple[str, ...] = ("TargetUserSid",)
LOGON_TYPE_FIELD = "LogonType"

_SID_PATTERN = re.compile(r"^S-1-\d+(-\d+)+$", re.IGNORECASE)


def normalize(
    raw_events: Iterable[RawEvent],
    target_identity: str,
    settings: Optional[EstimatorSettings] = None,
) -> list[ClassifiedEvent]:
    """Keep the events that start or stop work for ``target_identity``.

    The output keeps the input order; records that cannot be attributed or
    classified are dropped and counted in the debug log.
    """
    settings = settings or EstimatorSettings()
    target = target_identity.upper()
    skipped: Counter[str] = Counter()
    classified: list[ClassifiedEvent] = []

    for raw in raw_events:
        kind = _kind_for(raw.event_id, settings)
        if kind is None:
            skipped["unrecognized event id"] += 1
            continue

        identity = extract_identity(raw)
        if identity is None:
            logger.debug(
                "Skipping event %s (record %s): no identity found.",
                raw.event_id,
                raw.record_id,
            )
            skipped["no identity"] += 1
            continue
        if identity.upper() != target:
            skipped["other identity"] += 1
            continue

        if raw.event_id == settings.logon_event_id:
            logon_type = extract_logon_type(raw)
            if logon_type is None:
                logger.warning(
                    "Skipping logon event (record %s): %s missing or not numeric.",
                    raw.record_id,
                    LOGON_TYPE_FIELD,
                )
                skipped["bad logon type"] += 1
                continue
            if logon_type not in settings.work_logon_types:
                skipped["non-interactive logon"] += 1
                continue

        classified.append(ClassifiedEvent(timestamp=raw.timestamp, kind=kind))

    if skipped:
        logger.debug("Normalizer kept %d events, skipped %s", len(classified), dict(skipped))
    return classified


def extract_identity(raw: RawEvent) -> Optional[str]:
    """Return the first well-formed SID found for the record, if any."""
    candidates = [raw.data.get(name) for name in IDENTITY_FIELDS]
    candidates.append(raw.user_id)
    for value in candidates:
        if value and _SID_PATTERN.match(value.strip()):
            return value.strip()
    return None


def extract_logon_type(raw: RawEvent) -> Optional[int]:
    value = raw.data.get(LOGON_TYPE_FIELD)
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _kind_for(event_id: int, settings: EstimatorSettings) -> Optional[EventKind]:
    if event_id in settings.start_event_ids:
        return EventKind.START_WORK
    if event_id in settings.stop_event_ids:
        return EventKind.STOP_WORK
    return None
