"""Fulfillment pipeline driving replies and side effects for one turn."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from rentbot.core.errors import CollaboratorUnavailableError, DeliveryError, InvalidPriceError
from rentbot.core.metrics import MetricsCollector
from rentbot.integrations.calendar import CalendarCollaborator
from rentbot.integrations.catalog import CatalogGateway
from rentbot.integrations.documents import DocumentGenerator
from rentbot.integrations.telegram import DeliveryChannel
from rentbot.planner.types import Action, Classification
from rentbot.quoting.formatting import format_breakdown
from rentbot.quoting.models import Quote
from rentbot.quoting.pricing import build_quote

logger = logging.getLogger("rentbot.pipeline")

T = TypeVar("T")

LOOKUP_MISS_MESSAGE = (
    "I ran into a problem looking up that machine's details. "
    "An advisor will contact you shortly."
)
CATALOG_LOOKUP_FAILED_MESSAGE = (
    "I couldn't reach our catalog to look up that machine. "
    "An advisor will contact you shortly with the quote."
)
PRICING_FAILED_MESSAGE = (
    "I couldn't calculate a price for that machine right now. "
    "An advisor will contact you with the quote."
)
DOCUMENT_PROGRESS_MESSAGE = "📄 Generating your quote PDF, one moment please..."
DOCUMENT_RENDER_FAILED_MESSAGE = (
    "I had a problem generating the PDF document, but an advisor has your details "
    "and will follow up."
)
DOCUMENT_DELIVERY_FAILED_MESSAGE = (
    "The PDF was generated but I couldn't send it here. "
    "An advisor will share it with you."
)
BOOKING_PROGRESS_MESSAGE = "🗓️ Scheduling the reminder in our calendar..."
BOOKING_FAILED_MESSAGE = (
    "I had a problem scheduling the rental reminder in our calendar. "
    "An advisor will contact you shortly to confirm the dates."
)
DONE_ALL_MESSAGE = (
    "✅ All set! Your quote PDF has been sent and the rental reminder is booked. "
    "Thanks for your interest!"
)
DONE_BOOKING_ONLY_MESSAGE = (
    "✅ Your rental reminder is booked. A human advisor will follow up with the "
    "formal PDF quote."
)
DONE_DOCUMENT_ONLY_MESSAGE = (
    "✅ Your quote has been sent. We couldn't book the reminder, but an advisor "
    "will contact you shortly."
)
DONE_NEITHER_MESSAGE = (
    "Your quote breakdown is above. A human advisor will follow up with the "
    "formal PDF and confirm the rental dates."
)


class PipelineState(str, Enum):
    STARTED = "STARTED"
    REPLIED = "REPLIED"
    MACHINE_RESOLVED = "MACHINE_RESOLVED"
    PRICED = "PRICED"
    QUOTE_SENT = "QUOTE_SENT"
    DOCUMENT_ATTEMPTED = "DOCUMENT_ATTEMPTED"
    BOOKING_ATTEMPTED = "BOOKING_ATTEMPTED"
    DONE = "DONE"


@dataclass
class PipelineReport:
    """What happened while fulfilling one turn."""

    conversation_id: str
    action: Action
    states: list[PipelineState] = field(default_factory=list)
    quote: Quote | None = None
    document_sent: bool | None = None
    booking_created: bool | None = None
    failed_deliveries: int = 0

    @property
    def state(self) -> PipelineState:
        return self.states[-1]

    def advance(self, state: PipelineState) -> None:
        self.states.append(state)


class FulfillmentPipeline:
    """Sequence the reply and, for quotes, the pricing and side effects.

    Every step contains its own failures: a broken delivery, document or
    calendar call is logged and reported to the user with a message specific
    to that step, and the pipeline carries on to the next one.
    """

    def __init__(
        self,
        *,
        catalog: CatalogGateway,
        documents: DocumentGenerator,
        calendar: CalendarCollaborator,
        channel: DeliveryChannel,
        currency: str = "MXN",
        quote_filename: str = "Rental_Quote.pdf",
        collaborator_timeout: float = 20.0,
        delivery_timeout: float = 10.0,
        side_effect_attempts: int = 1,
        side_effect_backoff: float = 0.0,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._catalog = catalog
        self._documents = documents
        self._calendar = calendar
        self._channel = channel
        self._currency = currency
        self._quote_filename = quote_filename
        self._collaborator_timeout = collaborator_timeout
        self._delivery_timeout = delivery_timeout
        self._attempts = max(1, side_effect_attempts)
        self._backoff = side_effect_backoff
        self._metrics = metrics or MetricsCollector()

    async def run(self, conversation_id: str, classification: Classification) -> PipelineReport:
        report = PipelineReport(conversation_id=conversation_id, action=classification.action)
        report.advance(PipelineState.STARTED)

        await self._send(report, classification.reply)
        report.advance(PipelineState.REPLIED)

        if classification.action is not Action.QUOTE:
            report.advance(PipelineState.DONE)
            return report

        analysis = classification.analysis
        try:
            machine = await self._with_timeout(self._catalog.find_by_name(analysis.machine_name or ""))
        except Exception:  # noqa: BLE001
            logger.exception("[chat %s] Catalog lookup for %r failed", conversation_id, analysis.machine_name)
            self._metrics.record_step("lookup", False)
            await self._send(report, CATALOG_LOOKUP_FAILED_MESSAGE)
            report.advance(PipelineState.DONE)
            return report
        if machine is None:
            logger.warning("[chat %s] Classifier named unknown machine %r", conversation_id, analysis.machine_name)
            self._metrics.record_step("lookup", False)
            await self._send(report, LOOKUP_MISS_MESSAGE)
            report.advance(PipelineState.DONE)
            return report
        self._metrics.record_step("lookup", True)
        report.advance(PipelineState.MACHINE_RESOLVED)

        try:
            quote = build_quote(machine, analysis)
        except (InvalidPriceError, ValueError) as exc:
            logger.error("[chat %s] Cannot price %r: %s", conversation_id, machine.model_name, exc)
            self._metrics.record_step("pricing", False)
            await self._send(report, PRICING_FAILED_MESSAGE)
            report.advance(PipelineState.DONE)
            return report
        report.quote = quote
        report.advance(PipelineState.PRICED)

        await self._send(report, format_breakdown(quote, self._currency), parse_mode="Markdown")
        report.advance(PipelineState.QUOTE_SENT)

        report.document_sent = await self._deliver_document(report, quote)
        self._metrics.record_step("document", report.document_sent)
        report.advance(PipelineState.DOCUMENT_ATTEMPTED)

        report.booking_created = await self._book_reminder(report, quote)
        self._metrics.record_step("booking", report.booking_created)
        report.advance(PipelineState.BOOKING_ATTEMPTED)

        await self._send(report, self._summary(report.document_sent, report.booking_created))
        report.advance(PipelineState.DONE)
        return report

    async def _deliver_document(self, report: PipelineReport, quote: Quote) -> bool:
        conversation_id = report.conversation_id
        await self._send(report, DOCUMENT_PROGRESS_MESSAGE)

        try:
            blob = await self._retry("document", lambda: self._documents.render(quote))
        except Exception:  # noqa: BLE001
            logger.exception("[chat %s] Quote document rendering failed", conversation_id)
            await self._send(report, DOCUMENT_RENDER_FAILED_MESSAGE)
            return False

        try:
            await asyncio.wait_for(
                self._channel.send_file(conversation_id, blob, self._quote_filename),
                timeout=self._delivery_timeout,
            )
        except Exception:  # noqa: BLE001
            logger.exception("[chat %s] Quote document delivery failed", conversation_id)
            report.failed_deliveries += 1
            await self._send(report, DOCUMENT_DELIVERY_FAILED_MESSAGE)
            return False
        return True

    async def _book_reminder(self, report: PipelineReport, quote: Quote) -> bool:
        conversation_id = report.conversation_id
        await self._send(report, BOOKING_PROGRESS_MESSAGE)

        try:
            # Retry only calls that never reached the calendar.
            created = await self._retry(
                "booking",
                lambda: self._calendar.create_reminder(quote, conversation_id, quote.rental_start, quote.rental_end),
                retry_on=(CollaboratorUnavailableError,),
            )
        except Exception:  # noqa: BLE001
            logger.exception("[chat %s] Rental reminder booking failed", conversation_id)
            created = False
        else:
            if not created:
                logger.error("[chat %s] Calendar declined the rental reminder", conversation_id)

        if not created:
            await self._send(report, BOOKING_FAILED_MESSAGE)
            return False
        return True

    async def _retry(
        self,
        step: str,
        operation: Callable[[], Awaitable[T]],
        retry_on: tuple[type[BaseException], ...] = (Exception,),
    ) -> T:
        for attempt in range(1, self._attempts + 1):
            try:
                return await self._with_timeout(operation())
            except retry_on as exc:
                if attempt == self._attempts:
                    raise
                logger.warning("%s attempt %d/%d failed: %s", step, attempt, self._attempts, exc)
                await asyncio.sleep(self._backoff * attempt)
        raise AssertionError("unreachable")

    async def _with_timeout(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self._collaborator_timeout)

    async def _send(self, report: PipelineReport, text: str, parse_mode: str | None = None) -> bool:
        try:
            await asyncio.wait_for(
                self._channel.send_text(report.conversation_id, text, parse_mode),
                timeout=self._delivery_timeout,
            )
        except DeliveryError as exc:
            if parse_mode:
                # Unparseable markup; resend as plain text.
                logger.warning("[chat %s] Formatted delivery failed, retrying as plain text: %s", report.conversation_id, exc)
                return await self._send(report, text)
            logger.error("[chat %s] Message delivery failed: %s", report.conversation_id, exc)
        except asyncio.TimeoutError as exc:
            logger.error("[chat %s] Message delivery timed out: %s", report.conversation_id, exc)
        except Exception:  # noqa: BLE001
            logger.exception("[chat %s] Message delivery failed", report.conversation_id)
        else:
            return True
        report.failed_deliveries += 1
        self._metrics.record_step("delivery", False)
        return False

    @staticmethod
    def _summary(document_sent: bool, booking_created: bool) -> str:
        if document_sent and booking_created:
            return DONE_ALL_MESSAGE
        if booking_created:
            return DONE_BOOKING_ONLY_MESSAGE
        if document_sent:
            return DONE_DOCUMENT_ONLY_MESSAGE
        return DONE_NEITHER_MESSAGE
