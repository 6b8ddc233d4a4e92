"""Classifier-related enums and data structures."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class Action(str, Enum):
    """Actions the classifier may decide on."""

    QUOTE = "QUOTE"
    CLARIFY = "CLARIFY"
    CATALOG_GAP = "CATALOG_GAP"
    GENERAL = "GENERAL"
    ERROR = "ERROR"


@dataclass(frozen=True, slots=True)
class IntentAnalysis:
    """Structured judgment of what the user wants."""

    action: Action
    machine_name: str | None = None
    duration_text: str | None = None
    rental_start: date | None = None
    rental_end: date | None = None


@dataclass(frozen=True, slots=True)
class Classification:
    """Intent analysis paired with the reply to send the user."""

    analysis: IntentAnalysis
    reply: str

    @property
    def action(self) -> Action:
        return self.analysis.action


SAFE_ERROR_REPLY = (
    "Sorry, I'm having trouble processing your request right now. "
    "Please try again in a moment."
)


def degraded_classification() -> Classification:
    return Classification(analysis=IntentAnalysis(action=Action.ERROR), reply=SAFE_ERROR_REPLY)
