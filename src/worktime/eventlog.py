"""Read session events from the Windows Security event log."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Iterable, Optional

from .config import EstimatorSettings
from .errors import PermissionDenied, QueryFailed, WorkTimeError
from .models import RawEvent

logger = logging.getLogger(__name__)

EVENT_NAMESPACE = {"e": "http://schemas.microsoft.com/win/2004/08/events/event"}

ERROR_ACCESS_DENIED = 5
ERROR_NO_MORE_ITEMS = 259

_FRACTION_PATTERN = re.compile(r"\.(\d+)")


class WindowsEventLog:
    """Query interface over a Windows event log channel."""

    def __init__(self, settings: Optional[EstimatorSettings] = None) -> None:
        self.settings = settings or EstimatorSettings()

    def query_events(
        self,
        event_ids: Iterable[int],
        start: Optional[datetime],
        end: datetime,
        max_count: Optional[int] = None,
    ) -> list[RawEvent]:
        """Return records with the given ids created in ``[start, end]``.

        With ``max_count`` the log is read newest first and at most that many
        records are returned.
        """
        win32evtlog, pywintypes = _load_win32()
        query = build_xpath(event_ids, start, end)
        flags = win32evtlog.EvtQueryChannelPath
        if max_count is not None:
            flags |= win32evtlog.EvtQueryReverseDirection

        logger.debug("Querying %s with %s", self.settings.log_name, query)
        events: list[RawEvent] = []
        retrieved = 0
        handle = None
        try:
            handle = win32evtlog.EvtQuery(self.settings.log_name, flags, query)
            while max_count is None or retrieved < max_count:
                batch_size = self.settings.query_batch_size
                if max_count is not None:
                    batch_size = min(batch_size, max_count - retrieved)
                batch = win32evtlog.EvtNext(handle, batch_size)
                if not batch:
                    break
                retrieved += len(batch)
                for record in batch:
                    try:
                        xml_text = win32evtlog.EvtRender(record, win32evtlog.EvtRenderEventXml)
                    finally:
                        record.Close()
                    raw = parse_event_xml(xml_text)
                    if raw is not None:
                        events.append(raw)
        except pywintypes.error as exc:
            if exc.winerror != ERROR_NO_MORE_ITEMS:
                raise translate_error(exc.winerror, exc.strerror) from exc
        finally:
            if handle is not None:
                handle.Close()

        logger.debug("Retrieved %d records, parsed %d.", retrieved, len(events))
        return events


def build_xpath(event_ids: Iterable[int], start: Optional[datetime], end: datetime) -> str:
    """Build an XPath filter over event ids and creation time."""
    ids = " or ".join(f"EventID={event_id}" for event_id in sorted(set(event_ids)))
    time_filter = f"@SystemTime<='{format_system_time(end)}'"
    if start is not None:
        time_filter = f"@SystemTime>='{format_system_time(start)}' and {time_filter}"
    return f"*[System[({ids}) and TimeCreated[{time_filter}]]]"


def format_system_time(value: datetime) -> str:
    """Render ``value`` as the UTC timestamp format the event log uses."""
    utc = value.astimezone(timezone.utc).replace(tzinfo=None)
    return utc.isoformat(timespec="milliseconds") + "Z"


def parse_system_time(value: str) -> datetime:
    """Parse an event ``SystemTime`` into an aware local datetime."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # The log records 100ns ticks; datetime holds microseconds.
    text = _FRACTION_PATTERN.sub(lambda match: "." + match.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone()


def parse_event_xml(xml_text: str) -> Optional[RawEvent]:
    """Convert a rendered event into a :class:`RawEvent`.

    Records missing an event id or creation time are dropped.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        logger.warning("Skipping unparseable event record: %s", exc)
        return None

    system = root.find("e:System", EVENT_NAMESPACE)
    if system is None:
        logger.warning("Skipping event record without a System element.")
        return None

    time_created = system.find("e:TimeCreated", EVENT_NAMESPACE)
    security = system.find("e:Security", EVENT_NAMESPACE)
    record_id = system.findtext("e:EventRecordID", namespaces=EVENT_NAMESPACE)
    try:
        event_id = int(system.findtext("e:EventID", default="", namespaces=EVENT_NAMESPACE))
        timestamp = parse_system_time(time_created.get("SystemTime", "") if time_created is not None else "")
    except ValueError as exc:
        logger.warning("Skipping malformed event record %s: %s", record_id, exc)
        return None

    data = {
        name: (item.text or "")
        for item in root.iterfind("e:EventData/e:Data", EVENT_NAMESPACE)
        if (name := item.get("Name"))
    }
    return RawEvent(
        event_id=event_id,
        timestamp=timestamp,
        data=data,
        user_id=security.get("UserID") if security is not None else None,
        record_id=int(record_id) if record_id and record_id.isdigit() else None,
    )


def translate_error(winerror: int, message: str) -> WorkTimeError:
    if winerror == ERROR_ACCESS_DENIED:
        return PermissionDenied(
            "Access to the Security event log was denied; run as administrator."
        )
    return QueryFailed(f"Event log query failed ({winerror}): {message}")


def _load_win32():
    try:
        import pywintypes
        import win32evtlog
    except ImportError as exc:
        raise QueryFailed("The Windows event log API (pywin32) is not available.") from exc
    return win32evtlog, pywintypes
