"""Collaborator package exports."""

from .calendar import CalendarCollaborator, GoogleCalendarCollaborator
from .catalog import CatalogGateway, SQLiteCatalogGateway, StaticCatalogGateway
from .documents import DocumentGenerator, PdfQuoteRenderer
from .reasoning import OpenRouterReasoningService, ReasoningService
from .telegram import DeliveryChannel, TelegramDeliveryChannel

__all__ = [
    "CalendarCollaborator",
    "GoogleCalendarCollaborator",
    "CatalogGateway",
    "SQLiteCatalogGateway",
    "StaticCatalogGateway",
    "DocumentGenerator",
    "PdfQuoteRenderer",
    "OpenRouterReasoningService",
    "ReasoningService",
    "DeliveryChannel",
    "TelegramDeliveryChannel",
]
