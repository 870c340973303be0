"""LLM service interfaces."""

from typing import Protocol

from briefly.core.tasks import Task


class LLMService(Protocol):
    """Interface for free-form LLM text generation."""

    def generate(self, prompt: str) -> str:
        """Generate text from a prompt. Returns complete response."""
        ...

    def respond(self, request: str, history: list[str] | None = None) -> str:
        """Answer a chat request given the chat's recent history."""
        ...


class TaskGrouper(Protocol):
    """Interface for grouping tasks into named categories."""

    def group_tasks(self, tasks: list[Task]) -> dict[str, list[Task]]:
        ...


class Reflector(Protocol):
    """Interface for the one-line notes closing afternoon and evening digests."""

    def generate_motivation(self, completed: list[Task]) -> str:
        ...

    def generate_evening_reflection(self, completed: list[Task], inbox: list[Task]) -> str:
        ...
