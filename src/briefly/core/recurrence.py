"""Recurring-event expansion - no I/O dependencies.

A series is expanded by pulling occurrences from an OccurrenceIterator, which
owns the RFC 5545 rule semantics (RRULE/RDATE/EXDATE) as well as exception and
cancellation handling. The expander only windows the stream and bounds it.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterator, Protocol

from dateutil.rrule import rruleset, rrulestr

from .calendar import UNTITLED_EVENT, CalendarEvent
from .civil import day_start, to_target

logger = logging.getLogger(__name__)

MAX_EXPANSION_ITERATIONS = 1000

_UNTIL = re.compile(r"UNTIL=([0-9TZ]+)", re.IGNORECASE)


@dataclass(frozen=True)
class OccurrenceOverride:
    """Replacement fields for one occurrence (a RECURRENCE-ID exception)."""

    start: datetime
    end: datetime | None = None
    summary: str | None = None
    description: str | None = None
    location: str | None = None


@dataclass(frozen=True)
class SeriesDefinition:
    """A recurring event as defined by its master record.

    All datetimes are timezone-aware. `overrides` and `cancellations` are keyed
    by recurrence id, i.e. the start the occurrence would have had without the
    exception.
    """

    uid: str
    start: datetime
    end: datetime
    rrules: tuple[str, ...] = ()
    summary: str | None = None
    description: str | None = None
    location: str | None = None
    is_all_day: bool = False
    rdates: tuple[datetime, ...] = ()
    cancellations: frozenset[datetime] = frozenset()
    overrides: dict[datetime, OccurrenceOverride] = field(default_factory=dict)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class Occurrence:
    """One resolved occurrence, with any exception already applied."""

    recurrence_id: datetime
    start: datetime
    end: datetime
    summary: str | None
    description: str | None
    location: str | None


class OccurrenceIterator(Protocol):
    """Yields a series' occurrences in ascending recurrence-id order."""

    def __iter__(self) -> Iterator[Occurrence]:
        ...


class RRuleOccurrenceIterator:
    """
    OccurrenceIterator backed by dateutil's rruleset.

    Seeded at the series' own start. Cancelled occurrences are excluded from the
    set; overridden ones are yielded with their replacement fields, so an
    exception is never seen twice.
    """

    def __init__(self, series: SeriesDefinition):
        self.series = series

    def _build_ruleset(self) -> rruleset:
        series = self.series
        rules = rruleset()
        # DTSTART is always the first instance, whether or not a rule generates it
        rules.rdate(series.start)
        for rule in series.rrules:
            rules.rrule(rrulestr(_coerce_until(rule, series.start), dtstart=series.start))
        for rdate in series.rdates:
            rules.rdate(rdate)
        for cancelled in series.cancellations:
            rules.exdate(cancelled)
        return rules

    def __iter__(self) -> Iterator[Occurrence]:
        series = self.series
        for recurrence_id in self._build_ruleset():
            override = series.overrides.get(recurrence_id)
            if override is None:
                yield Occurrence(
                    recurrence_id=recurrence_id,
                    start=recurrence_id,
                    end=recurrence_id + series.duration,
                    summary=series.summary,
                    description=series.description,
                    location=series.location,
                )
                continue

            yield Occurrence(
                recurrence_id=recurrence_id,
                start=override.start,
                end=override.end or override.start + series.duration,
                summary=override.summary or series.summary,
                description=override.description or series.description,
                location=override.location or series.location,
            )


def _coerce_until(rule: str, dtstart: datetime) -> str:
    """
    Rewrite a floating or date-valued UNTIL as UTC.

    dateutil refuses an aware DTSTART paired with a naive UNTIL; RFC 5545 says
    such an UNTIL is wall-clock time in DTSTART's zone.
    """
    match = _UNTIL.search(rule)
    if not match or match.group(1).upper().endswith("Z") or dtstart.tzinfo is None:
        return rule

    raw = match.group(1)
    if "T" in raw.upper():
        local = datetime.strptime(raw.upper(), "%Y%m%dT%H%M%S").replace(tzinfo=dtstart.tzinfo)
    else:
        local = day_start(datetime.strptime(raw, "%Y%m%d").date())
    utc_until = local.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return rule[: match.start(1)] + utc_until + rule[match.end(1) :]


def format_recurrence_id(recurrence_id: datetime, is_all_day: bool) -> str:
    if is_all_day:
        return to_target(recurrence_id).date().isoformat()
    return recurrence_id.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def occurrence_to_event(series: SeriesDefinition, occurrence: Occurrence) -> CalendarEvent:
    """Materialize one occurrence as a CalendarEvent."""
    return CalendarEvent(
        id=f"{series.uid}-{format_recurrence_id(occurrence.recurrence_id, series.is_all_day)}",
        summary=occurrence.summary or UNTITLED_EVENT,
        description=occurrence.description,
        location=occurrence.location,
        start_time=occurrence.start,
        end_time=occurrence.end,
        is_all_day=series.is_all_day,
    )


def expand_series(
    series: SeriesDefinition,
    range_start: datetime,
    range_end: datetime,
    max_iterations: int = MAX_EXPANSION_ITERATIONS,
    occurrences: OccurrenceIterator | None = None,
) -> list[CalendarEvent]:
    """
    Expand a series into the occurrences starting within [range_start, range_end].

    Iteration stops at the first occurrence past range_end (the stream is
    monotonic) or after max_iterations pulls, whichever comes first. Hitting
    the ceiling is logged and the partial result is returned.

    Pure function - no I/O.
    """
    source = occurrences if occurrences is not None else RRuleOccurrenceIterator(series)
    events: list[CalendarEvent] = []
    iterations = 0

    for occurrence in source:
        if iterations >= max_iterations:
            logger.warning(
                f'Recurring event expansion hit iteration limit ({max_iterations}) for: '
                f'{series.summary or UNTITLED_EVENT} ({series.uid})'
            )
            break
        iterations += 1

        if occurrence.recurrence_id > range_end:
            break
        if range_start <= occurrence.start <= range_end:
            events.append(occurrence_to_event(series, occurrence))

    logger.debug(f'Expanded recurring event "{series.summary}" into {len(events)} occurrences')
    return events
