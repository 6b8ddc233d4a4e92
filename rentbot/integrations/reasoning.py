"""Reasoning service contract and OpenRouter chat-completions client."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Sequence

import httpx

from rentbot.core.errors import ReasoningServiceError
from rentbot.memory.models import ConversationTurn, Role

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


class ReasoningService(ABC):
    """Language model completing a conversation under a system policy."""

    @abstractmethod
    async def complete(self, system_policy: str, history: Sequence[ConversationTurn]) -> str:
        """Return the raw model text for the next assistant message."""


def to_chat_messages(system_policy: str, history: Sequence[ConversationTurn]) -> list[dict[str, str]]:
    messages = [{"role": "system", "content": system_policy}]
    for turn in history:
        role = "assistant" if turn.role is Role.ASSISTANT else "user"
        messages.append({"role": role, "content": turn.text})
    return messages


class OpenRouterReasoningService(ReasoningService):
    """Send the conversation to an OpenRouter-hosted model."""

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str,
        referer: str | None = None,
        title: str | None = None,
        rate_limit_per_sec: float = 1.0,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._referer = referer
        self._title = title
        self._min_interval = max(0.1, rate_limit_per_sec)
        self._timeout = timeout
        self._transport = transport
        self._last_call = 0.0
        self._rate_lock = asyncio.Lock()
        self._logger = logging.getLogger("rentbot.reasoning")

    async def _throttle(self) -> None:
        async with self._rate_lock:
            now = time.monotonic()
            wait_for = self._min_interval - (now - self._last_call)
            if wait_for > 0:
                await asyncio.sleep(wait_for)
            self._last_call = time.monotonic()

    async def complete(self, system_policy: str, history: Sequence[ConversationTurn]) -> str:
        if not self._api_key:
            raise ReasoningServiceError("OpenRouter API key is not configured")

        await self._throttle()

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if self._referer:
            headers["HTTP-Referer"] = self._referer
        if self._title:
            headers["X-Title"] = self._title

        payload: dict[str, Any] = {
            "model": self._model,
            "messages": to_chat_messages(system_policy, history),
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(OPENROUTER_URL, headers=headers, json=payload)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ReasoningServiceError(f"OpenRouter request failed: {exc}") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ReasoningServiceError("OpenRouter response has no message content") from exc

        if not isinstance(content, str) or not content.strip():
            raise ReasoningServiceError("OpenRouter returned an empty message")
        self._logger.debug("OpenRouter returned %d characters", len(content))
        return content
