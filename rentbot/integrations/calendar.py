"""Calendar reminders for the end of a rental."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import Any
from urllib.parse import quote as url_quote

import httpx

from rentbot.core.errors import CollaboratorUnavailableError
from rentbot.quoting.formatting import format_money
from rentbot.quoting.models import Quote

GOOGLE_CALENDAR_URL = "https://www.googleapis.com/calendar/v3/calendars/{calendar_id}/events"

logger = logging.getLogger("rentbot.calendar")


class CalendarCollaborator(ABC):
    """Books a reminder for a quoted rental."""

    @abstractmethod
    async def create_reminder(self, quote: Quote, conversation_id: str, start: date, end: date) -> bool:
        """Return ``True`` when the reminder was created.

        Raises ``CollaboratorUnavailableError`` only when the request was never
        delivered, so the caller may safely try again.
        """


def build_rental_end_event(
    quote: Quote,
    conversation_id: str,
    start: date,
    end: date,
    *,
    currency: str,
    timezone: str,
) -> dict[str, Any]:
    """All-day event on the rental end date."""

    description = "\n".join(
        [
            "The rental period ends today. Coordinate equipment pickup.",
            "",
            f"Customer (chat id): {conversation_id}",
            f"Machine: {quote.machine.model_name}",
            f"Rental start: {start.isoformat()}",
            f"Rental end: {end.isoformat()}",
            f"Total: {format_money(quote.total, currency)}",
        ]
    )
    return {
        "summary": f"RENTAL END: {quote.machine.model_name}",
        "description": description,
        # All-day events end on the following day (exclusive).
        "start": {"date": end.isoformat(), "timeZone": timezone},
        "end": {"date": (end + timedelta(days=1)).isoformat(), "timeZone": timezone},
        "colorId": "2",
    }


class GoogleCalendarCollaborator(CalendarCollaborator):
    """Insert reminder events through the Google Calendar REST API."""

    def __init__(
        self,
        calendar_id: str | None,
        access_token: str | None,
        *,
        currency: str = "MXN",
        timezone: str = "America/Caracas",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._calendar_id = calendar_id
        self._access_token = access_token
        self._currency = currency
        self._timezone = timezone
        self._timeout = timeout
        self._transport = transport

    async def create_reminder(self, quote: Quote, conversation_id: str, start: date, end: date) -> bool:
        if not self._calendar_id or not self._access_token:
            logger.error("[chat %s] Calendar is not configured; reminder skipped", conversation_id)
            return False
        if start is None or end is None:
            logger.error("[chat %s] No rental dates available for the reminder", conversation_id)
            return False

        event = build_rental_end_event(
            quote,
            conversation_id,
            start,
            end,
            currency=self._currency,
            timezone=self._timezone,
        )
        url = GOOGLE_CALENDAR_URL.format(calendar_id=url_quote(self._calendar_id, safe=""))
        headers = {"Authorization": f"Bearer {self._access_token}"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, headers=headers, json=event)
                response.raise_for_status()
                link = response.json().get("htmlLink")
        except httpx.ConnectError as exc:
            raise CollaboratorUnavailableError(f"Calendar API unreachable: {exc}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("[chat %s] Calendar event creation failed: %s", conversation_id, exc)
            return False

        logger.info("[chat %s] Rental end event created: %s", conversation_id, link)
        return True
