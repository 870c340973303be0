"""Pure task domain logic - no I/O dependencies."""

import re
from dataclasses import dataclass
from datetime import date, datetime, time

from briefly.errors import MalformedRecord

from .civil import as_instant, civil_date, day_start, now_in_target, target_zone, to_target

PRIORITY_INDICATORS = {
    4: "🟥 ",
    3: "🟧 ",
    2: "🟦 ",
    1: "⬜ ",
}

_TIME_IN_TEXT = re.compile(r"(\d{1,2}):(\d{2})")


@dataclass(frozen=True)
class Task:
    """A task snapshot from the task tracker.

    Rebuilt from scratch on every fetch; never updated in place. A naive
    `due_date` is read as target-zone wall clock. Date-only due values are
    anchored at the start of their civil day in the target zone.
    """

    id: str
    content: str
    project_id: str | None = None
    is_completed: bool = False
    url: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
    due_date: datetime | None = None
    priority: int = 1

    def is_in_inbox(self) -> bool:
        return self.project_id is None

    def is_due_today(self, now: datetime | None = None) -> bool:
        """Due on the current civil day in the target zone."""
        if self.due_date is None:
            return False
        now = now_in_target(now)
        return civil_date(self.due_date) == now.date()

    def is_overdue(self, now: datetime | None = None) -> bool:
        """
        Overdue if due on an earlier civil day, or earlier today.

        A same-day due time that has already passed counts as overdue.
        """
        if self.due_date is None:
            return False
        now = now_in_target(now)
        due_day = civil_date(self.due_date)
        today = now.date()
        if due_day < today:
            return True
        return due_day == today and as_instant(self.due_date) < now

    def is_relevant(self, now: datetime | None = None) -> bool:
        """Due today or overdue."""
        return self.is_due_today(now) or self.is_overdue(now)

    def get_priority_indicator(self) -> str:
        """Colored square for the priority (4 = highest); empty if out of range."""
        return PRIORITY_INDICATORS.get(self.priority, "")

    def with_deep_link(self) -> str:
        if not self.url:
            return self.content
        return f"{self.content} [View Task]({self.url})"

    @classmethod
    def from_api(cls, data: dict) -> "Task":
        """Create Task from a Todoist API record.

        Raises MalformedRecord when the record cannot be normalized.
        """
        try:
            task_id = data["id"]
            priority = data.get("priority") or 1
            if not isinstance(priority, int) or priority not in PRIORITY_INDICATORS:
                raise MalformedRecord(f"Task {task_id}: invalid priority {priority!r}")
            return cls(
                id=str(task_id),
                content=data.get("content") or "",
                project_id=data.get("project_id"),
                is_completed=bool(data.get("is_completed", False)),
                url=data.get("url"),
                created_at=parse_instant(data.get("created_at")),
                completed_at=parse_instant(data.get("completed_at")),
                due_date=parse_due(data.get("due")),
                priority=priority,
            )
        except MalformedRecord:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedRecord(f"Cannot parse task record {data.get('id', '<no id>')!r}: {e}") from e


def parse_instant(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are floating target-zone times."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_target(datetime.fromisoformat(value))


def parse_due(due: dict | None) -> datetime | None:
    """
    Normalize the due specification of a task record.

    Handles three shapes:
      {"datetime": "2025-01-15T14:00:00Z"}     explicit instant
      {"date": "2025-01-15T14:00:00"}          date field carrying a time
      {"date": "2025-01-15", "string": "..."}  date only, time maybe in free text
    """
    if not due:
        return None

    if due.get("datetime"):
        return parse_instant(due["datetime"])

    raw_date = due.get("date")
    if not raw_date:
        return None
    if "T" in raw_date:
        return parse_instant(raw_date)

    day = date.fromisoformat(raw_date)
    match = _TIME_IN_TEXT.search(due.get("string") or "")
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        return datetime.combine(day, time(hour, minute), tzinfo=target_zone())
    return day_start(day)


def filter_relevant(tasks: list[Task], now: datetime | None = None) -> list[Task]:
    """Tasks due today or overdue."""
    return [t for t in tasks if t.is_relevant(now)]


def filter_overdue(tasks: list[Task], now: datetime | None = None) -> list[Task]:
    return [t for t in tasks if t.is_overdue(now)]


def filter_inbox(tasks: list[Task]) -> list[Task]:
    return [t for t in tasks if t.is_in_inbox()]


def sort_by_priority(tasks: list[Task]) -> list[Task]:
    """
    Sort tasks by priority (descending) then due date (ascending).

    Tasks without a due date go last within their priority.
    """

    def sort_key(t: Task) -> tuple[int, bool, datetime]:
        return (-t.priority, t.due_date is None, t.due_date or datetime.min.replace(tzinfo=target_zone()))

    return sorted(tasks, key=sort_key)


def identify_new_tasks(tasks: list[Task], reference: datetime) -> list[Task]:
    """Tasks created after the reference instant; tasks without a creation time are skipped."""
    return [t for t in tasks if t.created_at is not None and t.created_at > reference]
