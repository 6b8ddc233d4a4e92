"""Entry point coordinating one inbound turn end to end."""

from __future__ import annotations

import asyncio
import logging

from rentbot.core.metrics import MetricsCollector
from rentbot.integrations.catalog import CatalogGateway
from rentbot.integrations.telegram import DeliveryChannel
from rentbot.memory.locks import KeyedLock
from rentbot.memory.models import ConversationTurn, Role
from rentbot.memory.store import ConversationStore
from rentbot.planner.base import IntentClassifier
from rentbot.quoting.models import CatalogEntry
from rentbot.quoting.pipeline import FulfillmentPipeline, PipelineReport

logger = logging.getLogger("rentbot.orchestrator")

CATALOG_UNAVAILABLE_MESSAGE = "⚠️ Sorry, I can't access our catalog right now. Please try again in a few minutes."
UNEXPECTED_ERROR_MESSAGE = "⚠️ Oops, something went wrong while processing your request. Please try again."


class Orchestrator:
    """Handle inbound turns, one at a time per conversation."""

    def __init__(
        self,
        *,
        store: ConversationStore,
        catalog: CatalogGateway,
        classifier: IntentClassifier,
        pipeline: FulfillmentPipeline,
        channel: DeliveryChannel,
        locks: KeyedLock | None = None,
        catalog_timeout: float = 20.0,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._classifier = classifier
        self._pipeline = pipeline
        self._channel = channel
        self._locks = locks or KeyedLock()
        self._catalog_timeout = catalog_timeout
        self._metrics = metrics or MetricsCollector()

    async def handle_turn(self, conversation_id: str, text: str) -> PipelineReport | None:
        """Process one user message and reply at least once.

        Returns the pipeline report, or ``None`` when the turn ended before the
        pipeline ran (catalog unavailable or unexpected failure).
        """

        async with self._locks.hold(conversation_id):
            try:
                return await self._process(conversation_id, text)
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Unhandled failure processing turn for chat %s: %r",
                    conversation_id,
                    text,
                )
                self._metrics.record_unexpected_error()
                await self._notify(conversation_id, UNEXPECTED_ERROR_MESSAGE)
                return None

    async def _process(self, conversation_id: str, text: str) -> PipelineReport | None:
        self._store.append(conversation_id, ConversationTurn(role=Role.USER, text=text))

        catalog = await self._load_catalog(conversation_id)
        if not catalog:
            await self._notify(conversation_id, CATALOG_UNAVAILABLE_MESSAGE)
            return None

        history = self._store.get(conversation_id)
        classification = await self._classifier.classify(history, catalog)
        self._store.append(conversation_id, ConversationTurn(role=Role.ASSISTANT, text=classification.reply))
        self._metrics.record_turn(classification.action.value)

        report = await self._pipeline.run(conversation_id, classification)
        logger.info(
            "[chat %s] turn finished action=%s state=%s document=%s booking=%s",
            conversation_id,
            report.action.value,
            report.state.value,
            report.document_sent,
            report.booking_created,
        )
        return report

    async def _load_catalog(self, conversation_id: str) -> list[CatalogEntry]:
        try:
            return await asyncio.wait_for(self._catalog.list_all(), timeout=self._catalog_timeout)
        except Exception:  # noqa: BLE001
            logger.exception("[chat %s] Could not load the catalog", conversation_id)
            return []

    async def _notify(self, conversation_id: str, text: str) -> None:
        try:
            await self._channel.send_text(conversation_id, text)
        except Exception:  # noqa: BLE001
            logger.exception("[chat %s] Could not deliver notice %r", conversation_id, text)
