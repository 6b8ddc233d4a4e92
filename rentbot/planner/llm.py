"""Intent classifier backed by an external reasoning service."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Callable, Sequence
from zoneinfo import ZoneInfo

from rentbot.core.errors import ClassificationParseError, ReasoningServiceError
from rentbot.integrations.reasoning import ReasoningService
from rentbot.memory.models import ConversationHistory
from rentbot.planner.base import IntentClassifier
from rentbot.planner.parsing import parse_response
from rentbot.planner.prompt import build_policy_prompt
from rentbot.planner.types import Classification, degraded_classification
from rentbot.quoting.models import CatalogEntry

logger = logging.getLogger("rentbot.classifier")


def today_in(timezone: str) -> Callable[[], date]:
    zone = ZoneInfo(timezone)
    return lambda: datetime.now(zone).date()


class LLMIntentClassifier(IntentClassifier):
    """Ask the reasoning service for an analysis and validate what comes back.

    Any failure, whether the service errors, times out, or answers with
    something that does not pass validation, turns into the degraded ``ERROR``
    classification so the caller can always reply.
    """

    def __init__(
        self,
        service: ReasoningService,
        *,
        assistant_name: str = "Maquinaria Pro",
        timeout: float = 30.0,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._service = service
        self._assistant_name = assistant_name
        self._timeout = timeout
        self._today = today

    def describe(self) -> str:
        return f"LLM classifier via {type(self._service).__name__}"

    async def classify(
        self,
        history: ConversationHistory,
        catalog: Sequence[CatalogEntry],
    ) -> Classification:
        policy = build_policy_prompt(catalog, self._today(), self._assistant_name)

        try:
            raw = await asyncio.wait_for(self._service.complete(policy, history), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error("Reasoning service timed out after %.1fs", self._timeout)
            return degraded_classification()
        except ReasoningServiceError as exc:
            logger.error("Reasoning service failed: %s", exc)
            return degraded_classification()
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected reasoning service failure")
            return degraded_classification()

        try:
            classification = parse_response(raw)
        except ClassificationParseError as exc:
            logger.warning("Discarding classifier output: %s | raw=%r", exc, raw[:500] if isinstance(raw, str) else raw)
            return degraded_classification()

        logger.info(
            "Classified action=%s machine=%s start=%s end=%s",
            classification.action.value,
            classification.analysis.machine_name,
            classification.analysis.rental_start,
            classification.analysis.rental_end,
        )
        return classification
