"""Adapters - I/O implementations of ports."""

from .ical_feed import ICalFeedAdapter
from .todoist_api import TodoistAdapter
from .openai_grouping import OpenAIGroupingService
from .claude_cli import ClaudeCLIService

__all__ = [
    "ICalFeedAdapter",
    "TodoistAdapter",
    "OpenAIGroupingService",
    "ClaudeCLIService",
]
