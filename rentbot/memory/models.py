"""Dataclasses representing conversation turns."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Author of a conversational turn."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class ConversationTurn:
    """Single conversational turn stored in memory."""

    role: Role
    text: str


ConversationHistory = tuple[ConversationTurn, ...]
