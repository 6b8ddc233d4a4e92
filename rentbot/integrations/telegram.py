"""Delivery channel contract and Telegram Bot API client."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from rentbot.core.errors import DeliveryError

TELEGRAM_API = "https://api.telegram.org/bot{token}/{method}"

logger = logging.getLogger("rentbot.telegram")


class DeliveryChannel(ABC):
    """Outbound messaging to the customer."""

    @abstractmethod
    async def send_text(self, conversation_id: str, text: str, parse_mode: str | None = None) -> None:
        """Send a text message. Raises ``DeliveryError`` on failure."""

    @abstractmethod
    async def send_file(self, conversation_id: str, blob: bytes, filename: str) -> None:
        """Send a document. Raises ``DeliveryError`` on failure."""


class TelegramDeliveryChannel(DeliveryChannel):
    """Send messages and documents through the Telegram Bot API."""

    def __init__(
        self,
        bot_token: str | None,
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._bot_token = bot_token
        self._timeout = timeout
        self._transport = transport

    def _url(self, method: str) -> str:
        if not self._bot_token:
            raise DeliveryError("Telegram bot token is not configured")
        return TELEGRAM_API.format(token=self._bot_token, method=method)

    async def _call(self, method: str, **kwargs: Any) -> Any:
        url = self._url(method)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, **kwargs)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise DeliveryError(f"Telegram {method} failed: {exc}") from exc

        if not data.get("ok"):
            raise DeliveryError(f"Telegram {method} rejected: {data.get('description')}")
        return data.get("result")

    async def send_text(self, conversation_id: str, text: str, parse_mode: str | None = None) -> None:
        payload: dict[str, Any] = {"chat_id": conversation_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        await self._call("sendMessage", json=payload)

    async def send_file(self, conversation_id: str, blob: bytes, filename: str) -> None:
        await self._call(
            "sendDocument",
            data={"chat_id": conversation_id},
            files={"document": (filename, blob, "application/pdf")},
        )

    async def set_webhook(self, url: str) -> dict[str, Any]:
        logger.info("Registering Telegram webhook at %s", url)
        result = await self._call("setWebhook", json={"url": url})
        return {"url": url, "result": result}
