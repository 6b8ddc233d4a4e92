"""Catalog and quote data structures."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """Rentable machine as listed in the catalog."""

    model_name: str
    description: str
    weekly_price: Decimal


@dataclass(frozen=True, slots=True)
class PriceBreakdown:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


@dataclass(frozen=True, slots=True)
class Quote:
    """Price breakdown for one machine and rental period."""

    machine: CatalogEntry
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    duration_text: str | None
    rental_start: date
    rental_end: date
