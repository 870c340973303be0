"""Ports - interfaces/protocols for external dependencies."""

from .calendar_source import CalendarSource
from .task_repo import TaskRepository
from .llm_service import LLMService, Reflector, TaskGrouper
from .message_sender import MessageSender

__all__ = [
    "CalendarSource",
    "TaskRepository",
    "LLMService",
    "Reflector",
    "TaskGrouper",
    "MessageSender",
]
