"""Task repository interface."""

from datetime import datetime
from typing import Protocol

from briefly.core.tasks import Task


class TaskRepository(Protocol):
    """Interface for fetching tasks from any backend."""

    def fetch_all(self) -> list[Task]:
        """Fetch all active tasks."""
        ...

    def fetch_relevant(self) -> list[Task]:
        """Fetch tasks due today or overdue."""
        ...

    def fetch_inbox_without_due_dates(self) -> list[Task]:
        """Fetch inbox tasks that still need triage."""
        ...

    def fetch_remaining_for_afternoon(self) -> list[Task]:
        """Fetch due/overdue tasks outside the inbox."""
        ...

    def fetch_completed_since(self, since: datetime) -> list[Task]:
        """Fetch tasks completed at or after `since`."""
        ...
