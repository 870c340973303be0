"""Per-chat conversation history with TTL eviction."""

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600
DEFAULT_MAX_ENTRIES = 10


@dataclass
class Session:
    """Recent exchanges for one chat."""

    entries: deque = field(default_factory=deque)
    last_seen: float = 0.0


class ConversationStore:
    """
    Explicit session store keyed by chat id.

    A chat's history expires `ttl` seconds after its last activity and holds
    at most `max_entries` lines, oldest dropped first.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._sessions: dict[int, Session] = {}

    def _expired(self, session: Session, now: float) -> bool:
        return now - session.last_seen > self.ttl

    def evict_expired(self) -> int:
        """Drop every expired session. Returns the number dropped."""
        now = self._clock()
        expired = [chat_id for chat_id, s in self._sessions.items() if self._expired(s, now)]
        for chat_id in expired:
            del self._sessions[chat_id]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired conversation(s)")
        return len(expired)

    def append(self, chat_id: int, entry: str) -> None:
        now = self._clock()
        session = self._sessions.get(chat_id)
        if session is None or self._expired(session, now):
            session = Session(entries=deque(maxlen=self.max_entries))
            self._sessions[chat_id] = session
        session.entries.append(entry)
        session.last_seen = now

    def history(self, chat_id: int) -> list[str]:
        """Entries for a chat, oldest first; empty once the session expired."""
        session = self._sessions.get(chat_id)
        if session is None:
            return []
        if self._expired(session, self._clock()):
            del self._sessions[chat_id]
            return []
        return list(session.entries)

    def clear(self, chat_id: int) -> None:
        self._sessions.pop(chat_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
