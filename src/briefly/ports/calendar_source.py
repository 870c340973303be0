"""Calendar source interface."""

from datetime import datetime
from typing import Protocol

from briefly.core.calendar import CalendarEvent


class CalendarSource(Protocol):
    """Interface for fetching calendar events from any backend."""

    def fetch_events(self, now: datetime | None = None) -> list[CalendarEvent]:
        """Fetch every occurrence in the lookback/lookahead window around now."""
        ...

    def get_today_events(self, now: datetime | None = None) -> list[CalendarEvent]:
        """Fetch the events relevant to today, ordered by start.

        Raises CalendarFetchError when no source could be read at all.
        """
        ...
