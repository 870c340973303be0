"""Message delivery interface."""

from typing import Protocol


class MessageSender(Protocol):
    """Interface for delivering a Markdown digest to the chat channel."""

    async def send(self, text: str) -> None:
        ...
