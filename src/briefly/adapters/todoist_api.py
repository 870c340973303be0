"""Todoist API adapter - HTTP client for task fetching."""

import logging
from datetime import datetime, timezone

import requests

from briefly.core.tasks import Task
from briefly.errors import AuthenticationError, MalformedRecord, SourceUnavailable

logger = logging.getLogger(__name__)

API_BASE = "https://api.todoist.com/rest/v2"
COMPLETED_URL = "https://api.todoist.com/sync/v9/completed/get_all"
TASK_URL = "https://todoist.com/app/task/{id}"

FILTER_RELEVANT = "today | overdue"
FILTER_INBOX = "#Inbox"
FILTER_INBOX_NO_DATE = "#Inbox & no date"


def _extract_results(payload, *keys: str) -> list[dict]:
    """Accept both a bare list and an object wrapping it under one of `keys`."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            if isinstance(payload.get(key), list):
                return payload[key]
    return []


class TodoistAdapter:
    """
    Todoist API adapter.

    Implements TaskRepository protocol. Filtering happens server side through
    Todoist's filter language. No business logic - just I/O.
    """

    def __init__(self, token: str, timeout: float = 15, session: requests.Session | None = None):
        if not token:
            raise AuthenticationError("No Todoist API token. Set TODOIST_API_TOKEN.")
        self.token = token
        self.timeout = timeout
        self._session = session or requests.Session()

    def _get(self, url: str, params: dict | None = None) -> dict | list:
        """Make authenticated API request."""
        try:
            resp = self._session.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SourceUnavailable(url, str(e)) from e

        if resp.status_code in (401, 403):
            raise AuthenticationError(f"Todoist rejected the API token ({resp.status_code})")
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            raise SourceUnavailable(url, str(e)) from e
        return resp.json()

    def _to_tasks(self, records: list[dict], **overrides) -> list[Task]:
        tasks = []
        for record in records:
            record = {**record, **overrides}
            if not record.get("url") and record.get("id") is not None:
                record["url"] = TASK_URL.format(id=record["id"])
            try:
                tasks.append(Task.from_api(record))
            except MalformedRecord as e:
                logger.warning(f"Skipping malformed task record: {e}")
        return tasks

    def fetch_all(self) -> list[Task]:
        """Fetch all active tasks."""
        payload = self._get(f"{API_BASE}/tasks")
        tasks = self._to_tasks(_extract_results(payload, "results"))
        logger.info(f"Retrieved {len(tasks)} tasks from Todoist")
        return tasks

    def fetch_by_filter(self, query: str) -> list[Task]:
        """Fetch active tasks matching a Todoist filter query."""
        logger.debug(f'Fetching tasks with filter: "{query}"')
        payload = self._get(f"{API_BASE}/tasks", params={"filter": query})
        tasks = self._to_tasks(_extract_results(payload, "results"))
        logger.info(f'Retrieved {len(tasks)} tasks with filter "{query}"')
        return tasks

    def fetch_relevant(self) -> list[Task]:
        return self.fetch_by_filter(FILTER_RELEVANT)

    def fetch_inbox(self) -> list[Task]:
        return self.fetch_by_filter(FILTER_INBOX)

    def fetch_inbox_without_due_dates(self) -> list[Task]:
        return self.fetch_by_filter(FILTER_INBOX_NO_DATE)

    def fetch_remaining_for_afternoon(self) -> list[Task]:
        """
        Due/overdue tasks outside the inbox.

        Exclusion filters are unreliable server side, so the inbox is fetched
        separately and subtracted here.
        """
        due = self.fetch_relevant()
        inbox_ids = {t.id for t in self.fetch_inbox()}
        remaining = [t for t in due if t.id not in inbox_ids]
        logger.info(
            f"Filtered {len(due)} due tasks -> {len(remaining)} remaining tasks "
            f"(excluding {len(inbox_ids)} inbox tasks)"
        )
        return remaining

    def fetch_completed_since(self, since: datetime) -> list[Task]:
        """Fetch tasks completed at or after `since`."""
        since_utc = since.astimezone(timezone.utc)
        payload = self._get(COMPLETED_URL, params={"since": since_utc.strftime("%Y-%m-%dT%H:%M:%S")})
        records = _extract_results(payload, "items", "tasks")

        # Completed items carry their own id; the task's id is under task_id.
        normalized = [{**r, "id": r.get("task_id") or r.get("id")} for r in records]
        tasks = self._to_tasks(normalized, is_completed=True)
        completed = [t for t in tasks if t.completed_at is None or t.completed_at >= since]
        logger.info(f"Retrieved {len(completed)} tasks completed since {since.isoformat()}")
        return completed
