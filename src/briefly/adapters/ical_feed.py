"""iCalendar feed adapter - fetches ICS URLs and normalizes their VEVENTs."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import requests
from icalendar import Calendar

from briefly.core.calendar import UNTITLED_EVENT, CalendarEvent, filter_events_in_window, filter_today_events
from briefly.core.civil import as_instant, now_in_target
from briefly.core.recurrence import OccurrenceOverride, SeriesDefinition, expand_series
from briefly.errors import CalendarFetchError, MalformedRecord, SourceUnavailable

logger = logging.getLogger(__name__)

WINDOW_DAYS = 30


def _text(component, name: str) -> str | None:
    value = component.get(name)
    if value is None:
        return None
    return str(value) or None


def _date_values(component, name: str) -> list[datetime]:
    """Flatten a (possibly repeated) EXDATE/RDATE property into aware datetimes."""
    prop = component.get(name)
    if prop is None:
        return []
    props = prop if isinstance(prop, list) else [prop]
    values = []
    for p in props:
        for item in p.dts:
            dt = item.dt
            # RDATE;VALUE=PERIOD yields (start, end|duration)
            if isinstance(dt, tuple):
                dt = dt[0]
            values.append(as_instant(dt))
    return values


def _rrules(component) -> tuple[str, ...]:
    prop = component.get("RRULE")
    if prop is None:
        return ()
    props = prop if isinstance(prop, list) else [prop]
    return tuple(p.to_ical().decode() for p in props)


def _event_times(component) -> tuple[datetime, datetime, bool]:
    """(start, end, all_day) with defaults from RFC 5545 when DTEND is absent."""
    dtstart = component.get("DTSTART")
    if dtstart is None:
        raise MalformedRecord(f"VEVENT {_text(component, 'UID')!r} has no DTSTART")

    raw_start = dtstart.dt
    all_day = not isinstance(raw_start, datetime)
    start = as_instant(raw_start)

    if component.get("DTEND") is not None:
        end = as_instant(component.get("DTEND").dt)
    elif component.get("DURATION") is not None:
        end = start + component.get("DURATION").dt
    elif all_day:
        end = start + timedelta(days=1)
    else:
        end = start
    return start, end, all_day


def _is_cancelled(component) -> bool:
    return (_text(component, "STATUS") or "").upper() == "CANCELLED"


def component_to_event(component) -> CalendarEvent:
    """Map a single (non-recurring) VEVENT to a CalendarEvent."""
    uid = _text(component, "UID")
    if not uid:
        raise MalformedRecord("VEVENT without UID")
    start, end, all_day = _event_times(component)
    return CalendarEvent(
        id=uid,
        summary=_text(component, "SUMMARY") or UNTITLED_EVENT,
        description=_text(component, "DESCRIPTION"),
        location=_text(component, "LOCATION"),
        start_time=start,
        end_time=end,
        is_all_day=all_day,
    )


def build_series(master, exceptions: list) -> SeriesDefinition:
    """
    Build a SeriesDefinition from a master VEVENT and its RECURRENCE-ID exceptions.

    EXDATEs and cancelled exceptions become cancellations; every other
    exception overrides the occurrence it names.
    """
    uid = _text(master, "UID")
    start, end, all_day = _event_times(master)

    cancellations = set(_date_values(master, "EXDATE"))
    overrides: dict[datetime, OccurrenceOverride] = {}
    for exception in exceptions:
        try:
            recurrence_id = as_instant(exception.get("RECURRENCE-ID").dt)
            if _is_cancelled(exception):
                cancellations.add(recurrence_id)
                continue
            ex_start, ex_end, _ = _event_times(exception)
            overrides[recurrence_id] = OccurrenceOverride(
                start=ex_start,
                end=ex_end,
                summary=_text(exception, "SUMMARY"),
                description=_text(exception, "DESCRIPTION"),
                location=_text(exception, "LOCATION"),
            )
        except (MalformedRecord, AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed exception for series {uid}: {e}")

    return SeriesDefinition(
        uid=uid,
        start=start,
        end=end,
        rrules=_rrules(master),
        summary=_text(master, "SUMMARY"),
        description=_text(master, "DESCRIPTION"),
        location=_text(master, "LOCATION"),
        is_all_day=all_day,
        rdates=tuple(_date_values(master, "RDATE")),
        cancellations=frozenset(cancellations),
        overrides=overrides,
    )


def parse_calendar(
    ics_text: str,
    range_start: datetime,
    range_end: datetime,
) -> list[CalendarEvent]:
    """
    Parse one ICS document and expand it into occurrences within the window.

    A malformed event or series is logged and skipped; the rest of the
    document is still processed.
    """
    try:
        calendar = Calendar.from_ical(ics_text)
    except ValueError as e:
        raise MalformedRecord(f"Unparseable calendar document: {e}") from e

    vevents = calendar.walk("VEVENT")
    logger.debug(f"Found {len(vevents)} VEVENT components in calendar")

    masters = []
    exceptions: dict[str, list] = {}
    for component in vevents:
        if component.get("RECURRENCE-ID") is not None:
            # Applied by the master's occurrence iterator, never emitted on its own.
            exceptions.setdefault(_text(component, "UID") or "", []).append(component)
        else:
            masters.append(component)

    master_uids = {_text(m, "UID") for m in masters}
    for uid in exceptions.keys() - master_uids:
        logger.debug(f"Skipping recurrence exception(s) for UID {uid}: master not in feed")

    events: list[CalendarEvent] = []
    singles: list[CalendarEvent] = []
    for component in masters:
        summary = _text(component, "SUMMARY") or UNTITLED_EVENT
        try:
            if component.get("RRULE") is not None or component.get("RDATE") is not None:
                series = build_series(component, exceptions.get(_text(component, "UID") or "", []))
                events.extend(expand_series(series, range_start, range_end))
                continue

            singles.append(component_to_event(component))
        except (MalformedRecord, AttributeError, TypeError, ValueError) as e:
            logger.warning(f'Failed to process event component "{summary}": {e}')

    for event in filter_events_in_window(singles, range_start, range_end):
        logger.debug(f"Created single event: {event.summary} on {event.start_time.isoformat()}")
        events.append(event)

    return events


class ICalFeedAdapter:
    """
    Calendar adapter over one or more public ICS URLs.

    Implements CalendarSource protocol. Sources are fetched concurrently, each
    with its own timeout; a failing source is skipped, and only a cycle in
    which every source fails is reported as an error.
    """

    def __init__(
        self,
        urls: list[str],
        timeout: float = 15,
        max_workers: int = 4,
        session: requests.Session | None = None,
    ):
        self.urls = urls
        self.timeout = timeout
        self.max_workers = max_workers
        self._session = session or requests.Session()

    def _fetch_source(self, url: str) -> str:
        logger.debug(f"Fetching calendar from: {url}")
        try:
            resp = self._session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.Timeout as e:
            raise SourceUnavailable(url, f"timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise SourceUnavailable(url, str(e)) from e
        return resp.text

    def _load_source(self, url: str, range_start: datetime, range_end: datetime) -> list[CalendarEvent]:
        events = parse_calendar(self._fetch_source(url), range_start, range_end)
        logger.debug(f"Processed {len(events)} events from {url}")
        return events

    def fetch_events(self, now: datetime | None = None) -> list[CalendarEvent]:
        """Fetch and expand every source over [now - 30d, now + 30d]."""
        if not self.urls:
            logger.warning("No iCal URLs configured")
            return []

        now = now_in_target(now)
        range_start = now - timedelta(days=WINDOW_DAYS)
        range_end = now + timedelta(days=WINDOW_DAYS)

        events: list[CalendarEvent] = []
        failures = 0
        workers = max(1, min(self.max_workers, len(self.urls)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {url: pool.submit(self._load_source, url, range_start, range_end) for url in self.urls}
            for url, future in futures.items():
                try:
                    events.extend(future.result())
                except (SourceUnavailable, MalformedRecord) as e:
                    failures += 1
                    logger.error(f"Failed to fetch iCal data from {url}: {e}")

        if failures == len(self.urls):
            raise CalendarFetchError(f"All {failures} calendar source(s) failed")

        logger.info(f"Fetched {len(events)} total calendar events")
        return events

    def get_today_events(self, now: datetime | None = None) -> list[CalendarEvent]:
        """Events relevant to today in the target zone, sorted by start."""
        now = now_in_target(now)
        return filter_today_events(self.fetch_events(now), now)
