"""Shared workflow layer between CLI, Telegram commands and the scheduler.

Each build_* method fetches what one digest needs, groups it and returns the
Markdown text; the matching send_* coroutine delivers it.
"""

import asyncio
import logging
from datetime import datetime, time
from pathlib import Path
from typing import Callable

from .adapters.claude_cli import ClaudeCLIService
from .adapters.ical_feed import ICalFeedAdapter
from .adapters.openai_grouping import OpenAIGroupingService
from .adapters.todoist_api import TodoistAdapter
from .config import Config
from .core.civil import now_in_target, start_of_civil_day, target_zone
from .core.digest import format_afternoon_message, format_evening_message, format_morning_message
from .core.tasks import Task, sort_by_priority
from .errors import BrieflyError
from .ports import CalendarSource, MessageSender, Reflector, TaskGrouper, TaskRepository

logger = logging.getLogger(__name__)

FALLBACK_GROUP = "Tasks"
AFTERNOON_COMPLETED_FROM = time(7, 0)


class MessagingService:
    """
    Composes and delivers the three daily digests.

    Every collaborator is passed in at construction. `now` is a clock returning
    the current instant; it defaults to the wall clock in the target zone.
    """

    def __init__(
        self,
        calendar: CalendarSource,
        tasks: TaskRepository,
        grouper: TaskGrouper,
        reflector: Reflector,
        sender: MessageSender,
        now: Callable[[], datetime] | None = None,
    ):
        self.calendar = calendar
        self.tasks = tasks
        self.grouper = grouper
        self.reflector = reflector
        self.sender = sender
        self._now = now or now_in_target
        # Ids shown in the last morning digest; advisory only.
        self.morning_task_ids: set[str] = set()

    def now(self) -> datetime:
        return now_in_target(self._now())

    def group(self, tasks: list[Task]) -> dict[str, list[Task]]:
        """Group tasks through the LLM, falling back to a single group."""
        if not tasks:
            return {}
        try:
            grouped = self.grouper.group_tasks(tasks)
        except BrieflyError as e:
            logger.warning(f"Task grouping failed, using a single group: {e}")
            return {FALLBACK_GROUP: list(tasks)}
        if not any(grouped.values()):
            return {FALLBACK_GROUP: list(tasks)}
        return grouped

    def build_morning_message(self) -> str:
        """Today's calendar plus relevant tasks."""
        now = self.now()
        logger.debug("Fetching calendar events for today...")
        events = self.calendar.get_today_events(now)

        logger.debug("Fetching relevant tasks for today...")
        tasks = sort_by_priority(self.tasks.fetch_relevant())
        for task in tasks:
            due = task.due_date.isoformat() if task.due_date else "No date"
            logger.debug(f'Task: "{task.content}" with priority {task.priority} due: {due}')

        self.morning_task_ids = {t.id for t in tasks}
        return format_morning_message(events, self.group(tasks))

    def build_afternoon_message(self) -> str:
        """Completed since 07:00 today and what remains outside the inbox."""
        now = self.now()
        since = datetime.combine(now.date(), AFTERNOON_COMPLETED_FROM, tzinfo=target_zone())

        completed = self.tasks.fetch_completed_since(since)
        remaining = sort_by_priority(self.tasks.fetch_remaining_for_afternoon())
        if self.morning_task_ids:
            carried = sum(1 for t in remaining if t.id in self.morning_task_ids)
            logger.debug(f"{carried} of {len(remaining)} remaining tasks were in the morning digest")

        motivation = self.reflector.generate_motivation(completed)
        return format_afternoon_message(completed, self.group(remaining), motivation)

    def build_evening_message(self) -> str:
        """Completed since midnight and the inbox awaiting triage."""
        now = self.now()
        completed = self.tasks.fetch_completed_since(start_of_civil_day(now))
        inbox = self.tasks.fetch_inbox_without_due_dates()
        if not completed and not inbox:
            logger.info("No tasks to report in evening message - inbox is empty and no tasks completed")

        reflection = self.reflector.generate_evening_reflection(completed, inbox)
        return format_evening_message(completed, self.group(inbox), reflection)

    async def _deliver(self, name: str, build: Callable[[], str]) -> str:
        logger.info(f"Generating {name} message...")
        text = await asyncio.to_thread(build)
        await self.sender.send(text)
        logger.info(f"{name.capitalize()} message sent successfully")
        return text

    async def send_morning_message(self) -> str:
        return await self._deliver("morning", self.build_morning_message)

    async def send_afternoon_message(self) -> str:
        return await self._deliver("afternoon", self.build_afternoon_message)

    async def send_evening_message(self) -> str:
        return await self._deliver("evening", self.build_evening_message)


def build_messaging(config: Config, sender: MessageSender) -> MessagingService:
    """Wire the production adapters from configuration."""
    grouping = OpenAIGroupingService(config.require("openai_api_key"), model=config.openai_model)
    return MessagingService(
        calendar=ICalFeedAdapter(config.ical_urls, timeout=config.fetch_timeout),
        tasks=TodoistAdapter(config.require("todoist_api_token")),
        grouper=grouping,
        reflector=grouping,
        sender=sender,
    )


def build_claude(config: Config) -> ClaudeCLIService:
    workdir = Path(config.claude_workdir).expanduser() if config.claude_workdir else None
    return ClaudeCLIService(cwd=workdir, timeout=config.claude_timeout)
