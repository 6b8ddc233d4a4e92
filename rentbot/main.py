"""FastAPI application entry point for the rental quote assistant."""

import logging
from typing import Any

from fastapi import Depends, FastAPI, HTTPException

from rentbot.api.telegram import create_telegram_router
from rentbot.core.config import get_settings
from rentbot.core.errors import unhandled_exception_handler
from rentbot.core.logging import configure_logging, request_id_middleware
from rentbot.core.metrics import MetricsCollector
from rentbot.integrations.calendar import GoogleCalendarCollaborator
from rentbot.integrations.catalog import SQLiteCatalogGateway
from rentbot.integrations.documents import PdfQuoteRenderer
from rentbot.integrations.reasoning import OpenRouterReasoningService
from rentbot.integrations.telegram import TelegramDeliveryChannel
from rentbot.memory.store import InMemoryConversationStore
from rentbot.orchestrator import Orchestrator
from rentbot.planner.llm import LLMIntentClassifier, today_in
from rentbot.quoting.pipeline import FulfillmentPipeline

settings = get_settings()
logger = logging.getLogger("rentbot.app")

metrics = MetricsCollector()
conversation_store = InMemoryConversationStore(
    max_conversations=settings.conversation_max_entries,
    max_idle_seconds=settings.conversation_max_idle_seconds,
)
catalog = SQLiteCatalogGateway(settings.catalog_db_path)
channel = TelegramDeliveryChannel(settings.telegram_bot_token, timeout=settings.delivery_timeout_seconds)
reasoning = OpenRouterReasoningService(
    settings.openrouter_api_key,
    model=settings.openrouter_model,
    referer=settings.openrouter_referer,
    title=settings.openrouter_title,
    rate_limit_per_sec=settings.openrouter_rate_limit_per_sec,
    timeout=settings.classification_timeout_seconds,
)
today = today_in(settings.timezone)
classifier = LLMIntentClassifier(
    reasoning,
    assistant_name=settings.assistant_name,
    timeout=settings.classification_timeout_seconds,
    today=today,
)
pipeline = FulfillmentPipeline(
    catalog=catalog,
    documents=PdfQuoteRenderer(currency=settings.currency, today=today),
    calendar=GoogleCalendarCollaborator(
        settings.google_calendar_id,
        settings.google_calendar_access_token,
        currency=settings.currency,
        timezone=settings.calendar_timezone,
        timeout=settings.collaborator_timeout_seconds,
    ),
    channel=channel,
    currency=settings.currency,
    quote_filename=settings.quote_filename,
    collaborator_timeout=settings.collaborator_timeout_seconds,
    delivery_timeout=settings.delivery_timeout_seconds,
    side_effect_attempts=settings.side_effect_attempts,
    side_effect_backoff=settings.side_effect_backoff_seconds,
    metrics=metrics,
)
orchestrator = Orchestrator(
    store=conversation_store,
    catalog=catalog,
    classifier=classifier,
    pipeline=pipeline,
    channel=channel,
    catalog_timeout=settings.collaborator_timeout_seconds,
    metrics=metrics,
)

app = FastAPI(title=settings.app_name, version="0.1.0", docs_url="/docs")
app.middleware("http")(request_id_middleware)
app.include_router(create_telegram_router(orchestrator, channel))


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Return basic service status for monitoring."""

    return {"status": "ok"}


@app.get("/ready", tags=["health"])
async def readiness_probe() -> dict[str, Any]:
    """Readiness endpoint that verifies critical dependencies.

    Checks:
    - Catalog database reachable and non-empty.
    - Reasoning service and delivery channel configured.
    - Calendar configured (optional; degrades only).
    """

    components: dict[str, dict[str, Any]] = {}

    catalog_error: str | None = None
    machine_count = 0
    try:
        machine_count = len(await catalog.list_all())
        if machine_count == 0:
            catalog_error = "catalog is empty or missing"
    except Exception as exc:  # noqa: BLE001
        catalog_error = str(exc)
    components["catalog"] = {
        "path": str(settings.catalog_db_path),
        "machines": machine_count,
        "ok": catalog_error is None,
        **({"error": catalog_error} if catalog_error else {}),
    }
    components["reasoning"] = {"model": settings.openrouter_model, "ok": settings.openrouter_enabled}
    components["delivery"] = {"ok": bool(settings.telegram_bot_token)}
    components["calendar"] = {"ok": settings.calendar_enabled}

    required = ("catalog", "reasoning", "delivery")
    if all(components[name]["ok"] for name in required):
        overall = "ok" if components["calendar"]["ok"] else "degraded"
    else:
        overall = "fail"

    return {
        "status": overall,
        "environment": settings.environment,
        "components": components,
    }


def get_conversation_store() -> InMemoryConversationStore:
    """Dependency injector for the conversation store."""

    return conversation_store


@app.get("/conversations", tags=["conversations"])
async def list_conversations(store: InMemoryConversationStore = Depends(get_conversation_store)) -> list[str]:
    """List known conversation identifiers (development helper)."""

    return list(store.iter_conversations())


@app.get("/conversations/{conversation_id}", tags=["conversations"])
async def get_conversation(
    conversation_id: str,
    store: InMemoryConversationStore = Depends(get_conversation_store),
) -> dict[str, Any]:
    history = store.get(conversation_id)
    if not history:
        raise HTTPException(status_code=404, detail="conversation not found")
    return {
        "conversation_id": conversation_id,
        "turns": [{"role": turn.role.value, "text": turn.text} for turn in history],
    }


@app.on_event("startup")
async def on_startup() -> None:
    level = configure_logging(settings.log_level)
    logger.info("Logging configured at %s level for %s environment", logging.getLevelName(level), settings.environment)
    logger.info("Classifier: %s", classifier.describe())


app.add_exception_handler(Exception, unhandled_exception_handler)


@app.get("/metrics", tags=["metrics"])
async def metrics_endpoint() -> dict:
    snapshot = metrics.snapshot()
    return {
        "total_turns": snapshot.total_turns,
        "actions": snapshot.actions,
        "step_outcomes": snapshot.step_outcomes,
        "unexpected_errors": snapshot.unexpected_errors,
    }
