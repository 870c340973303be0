"""Pure calendar domain logic - no I/O dependencies."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from .civil import civil_date, day_start, now_in_target, start_of_civil_day, to_target

logger = logging.getLogger(__name__)

UNTITLED_EVENT = "Untitled Event"


@dataclass(frozen=True)
class CalendarEvent:
    """One concrete calendar occurrence.

    Occurrences of a recurring series carry a synthesized id of the form
    `<series uid>-<recurrence id>` so each one stays addressable.
    """

    id: str
    summary: str
    start_time: datetime
    end_time: datetime
    description: str | None = None
    location: str | None = None
    is_all_day: bool = False

    def format_time_range(self) -> str:
        """Format the event time range for display, in the target zone."""
        if self.is_all_day:
            return "All day"
        start = to_target(self.start_time).strftime("%H:%M")
        end = to_target(self.end_time).strftime("%H:%M")
        return f"{start}–{end}"

    def format_for_message(self, include_location: bool = False) -> str:
        base = f"{self.format_time_range()} | {self.summary}"
        if include_location and self.location:
            return f"{base} ({self.location})"
        return base


def sort_events_by_start(events: list[CalendarEvent]) -> list[CalendarEvent]:
    """Sort events by start time."""
    return sorted(events, key=lambda e: e.start_time)


def is_relevant_today(event: CalendarEvent, now: datetime | None = None) -> bool:
    """
    Whether an event belongs to today's civil day in the target zone.

    All-day events compare by date only; their stored instants are
    midnight-to-midnight and would straddle days under instant comparison.
    Timed events are relevant when they overlap today at all, so an event
    crossing midnight shows up on both days.
    """
    now = now_in_target(now)

    if event.is_all_day:
        relevant = civil_date(event.start_time) == now.date()
        logger.debug(
            f'All-day event "{event.summary}": date={civil_date(event.start_time)}, '
            f"today={now.date()}, relevant={relevant}"
        )
        return relevant

    today_start = start_of_civil_day(now)
    tomorrow_start = day_start(now.date() + timedelta(days=1))
    start = to_target(event.start_time)
    end = to_target(event.end_time)

    if start == end:
        relevant = today_start <= start < tomorrow_start
    else:
        relevant = start < tomorrow_start and end > today_start

    logger.debug(
        f'Timed event "{event.summary}": {start:%m/%d %H:%M} - {end:%m/%d %H:%M}, relevant={relevant}'
    )
    return relevant


def filter_today_events(events: list[CalendarEvent], now: datetime | None = None) -> list[CalendarEvent]:
    """
    Select the events relevant to today, ordered by start time.

    Pure function - no I/O.
    """
    now = now_in_target(now)
    for event in events:
        logger.debug(f'Event before filter: "{event.summary}" on {event.start_time.isoformat()}')

    relevant = [e for e in events if is_relevant_today(e, now)]
    logger.info(f"After filtering: {len(relevant)} of {len(events)} events are relevant for today")
    return sort_events_by_start(relevant)


def filter_events_in_window(
    events: list[CalendarEvent],
    range_start: datetime,
    range_end: datetime,
) -> list[CalendarEvent]:
    """Events whose start falls within [range_start, range_end]."""
    return [e for e in events if range_start <= e.start_time <= range_end]
