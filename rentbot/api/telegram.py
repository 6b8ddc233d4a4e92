"""Telegram webhook routes."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request

from rentbot.core.errors import DeliveryError
from rentbot.integrations.telegram import TelegramDeliveryChannel
from rentbot.orchestrator import Orchestrator

logger = logging.getLogger("rentbot.webhook")

UNSUPPORTED_MESSAGE = "For now I can only read text messages. Could you type your request?"


def parse_update(update: dict[str, Any]) -> tuple[str, str | None] | None:
    """Return ``(chat_id, text)`` for updates worth answering.

    ``text`` is ``None`` for non-text messages such as voice notes or photos.
    Updates without a message and slash commands yield ``None``.
    """

    message = update.get("message")
    if not isinstance(message, dict):
        return None
    chat = message.get("chat") or {}
    chat_id = chat.get("id")
    if chat_id is None:
        return None

    text = message.get("text")
    if isinstance(text, str):
        text = text.strip()
        if not text or text.startswith("/"):
            return None
        return str(chat_id), text
    return str(chat_id), None


def create_telegram_router(orchestrator: Orchestrator, channel: TelegramDeliveryChannel) -> APIRouter:
    router = APIRouter(prefix="/telegram", tags=["telegram"])

    async def _send_unsupported(chat_id: str) -> None:
        try:
            await channel.send_text(chat_id, UNSUPPORTED_MESSAGE)
        except DeliveryError as exc:
            logger.error("[chat %s] Could not send unsupported-message notice: %s", chat_id, exc)

    @router.post("/webhook")
    async def webhook(update: dict, background_tasks: BackgroundTasks) -> dict:
        """Acknowledge immediately; the turn is processed after the response."""

        parsed = parse_update(update)
        if parsed is None:
            return {"ok": True, "queued": False}

        chat_id, text = parsed
        if text is None:
            background_tasks.add_task(_send_unsupported, chat_id)
            return {"ok": True, "queued": False}

        logger.info("[chat %s] Received text message", chat_id)
        background_tasks.add_task(orchestrator.handle_turn, chat_id, text)
        return {"ok": True, "queued": True}

    @router.get("/set-webhook")
    async def set_webhook(request: Request) -> dict:
        webhook_url = str(request.url_for("webhook"))
        try:
            return await channel.set_webhook(webhook_url)
        except DeliveryError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc

    return router
