"""Intent classifier abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from rentbot.memory.models import ConversationHistory
from rentbot.planner.types import Classification
from rentbot.quoting.models import CatalogEntry


class IntentClassifier(ABC):
    """Decides the next action given the conversation so far."""

    @abstractmethod
    async def classify(
        self,
        history: ConversationHistory,
        catalog: Sequence[CatalogEntry],
    ) -> Classification:
        """Return the classification for the latest turn. Must not raise."""

    @abstractmethod
    def describe(self) -> str:
        """Human-readable summary of classifier strategy."""
