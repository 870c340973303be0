"""Functional core - pure business logic with no I/O."""

from .civil import (
    TARGET_TIMEZONE,
    civil_date,
    end_of_civil_day,
    is_same_civil_day,
    start_of_civil_day,
    to_target_civil_datetime,
)
from .tasks import Task, filter_relevant, filter_overdue, sort_by_priority, identify_new_tasks
from .calendar import CalendarEvent, filter_today_events, is_relevant_today
from .recurrence import (
    MAX_EXPANSION_ITERATIONS,
    OccurrenceOverride,
    RRuleOccurrenceIterator,
    SeriesDefinition,
    expand_series,
)

__all__ = [
    # Civil time
    "TARGET_TIMEZONE",
    "civil_date",
    "end_of_civil_day",
    "is_same_civil_day",
    "start_of_civil_day",
    "to_target_civil_datetime",
    # Tasks
    "Task",
    "filter_relevant",
    "filter_overdue",
    "sort_by_priority",
    "identify_new_tasks",
    # Calendar
    "CalendarEvent",
    "filter_today_events",
    "is_relevant_today",
    # Recurrence
    "MAX_EXPANSION_ITERATIONS",
    "OccurrenceOverride",
    "RRuleOccurrenceIterator",
    "SeriesDefinition",
    "expand_series",
]
