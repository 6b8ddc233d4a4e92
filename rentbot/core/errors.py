"""Domain exceptions and HTTP exception handling utilities."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("rentbot.errors")


class RentbotError(Exception):
    """Base class for errors raised by the quote assistant."""


class InvalidPriceError(RentbotError, ValueError):
    """Raised when a unit price is not a positive finite number."""


class ClassificationParseError(RentbotError):
    """Raised when the reasoning service output cannot be trusted."""


class ReasoningServiceError(RentbotError):
    """Raised when the reasoning service call itself fails."""


class DeliveryError(RentbotError):
    """Raised when an outbound message or file could not be delivered."""


class CollaboratorUnavailableError(RentbotError):
    """Raised when a collaborator could not be reached and the call never landed."""


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    """Return a generic JSON error response while logging the exception."""

    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "Something unexpected happened. Please try again later.",
        },
    )
