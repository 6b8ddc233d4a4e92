"""Conversation store abstractions and bounded in-memory implementation."""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .models import ConversationHistory, ConversationTurn

logger = logging.getLogger("rentbot.memory")


class ConversationStore(ABC):
    """Abstract interface for reading and appending conversation history."""

    @abstractmethod
    def append(self, conversation_id: str, turn: ConversationTurn) -> None:
        """Append a turn to the end of a conversation."""

    @abstractmethod
    def get(self, conversation_id: str) -> ConversationHistory:
        """Return the ordered history; unknown ids yield an empty history."""

    @abstractmethod
    def iter_conversations(self) -> Iterable[str]:
        """Iterate over known conversation identifiers."""


@dataclass
class _Entry:
    turns: list[ConversationTurn] = field(default_factory=list)
    last_seen: float = 0.0


class InMemoryConversationStore(ConversationStore):
    """LRU-bounded history map with idle expiry.

    Histories live only for the process lifetime. A conversation is dropped
    when it has been idle for ``max_idle_seconds`` or when it is the least
    recently used one and the store holds more than ``max_conversations``.
    """

    def __init__(
        self,
        *,
        max_conversations: int = 1000,
        max_idle_seconds: float = 6 * 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_conversations = max(1, int(max_conversations))
        self._max_idle_seconds = float(max_idle_seconds)
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    def append(self, conversation_id: str, turn: ConversationTurn) -> None:
        now = self._clock()
        with self._lock:
            self._expire_idle(now)
            entry = self._entries.pop(conversation_id, None) or _Entry()
            entry.turns.append(turn)
            entry.last_seen = now
            self._entries[conversation_id] = entry
            while len(self._entries) > self._max_conversations:
                evicted, _ = self._entries.popitem(last=False)
                logger.info("conversation_evict reason=capacity conversation_id=%s", evicted)

    def get(self, conversation_id: str) -> ConversationHistory:
        now = self._clock()
        with self._lock:
            self._expire_idle(now)
            entry = self._entries.get(conversation_id)
            if entry is None:
                return ()
            entry.last_seen = now
            self._entries.move_to_end(conversation_id)
            return tuple(entry.turns)

    def iter_conversations(self) -> Iterable[str]:
        with self._lock:
            self._expire_idle(self._clock())
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expire_idle(self, now: float) -> None:
        # Entries are ordered by last access, so the stale ones sit at the front.
        while self._entries:
            conversation_id, entry = next(iter(self._entries.items()))
            if now - entry.last_seen <= self._max_idle_seconds:
                break
            self._entries.popitem(last=False)
            logger.info("conversation_evict reason=idle conversation_id=%s", conversation_id)
