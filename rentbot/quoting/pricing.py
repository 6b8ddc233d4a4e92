"""Deterministic quote pricing."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from numbers import Number

from rentbot.core.errors import InvalidPriceError
from rentbot.planner.types import IntentAnalysis
from rentbot.quoting.models import CatalogEntry, PriceBreakdown, Quote

TAX_RATE = Decimal("0.16")
CENTS = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _to_decimal(unit_price: object) -> Decimal:
    if isinstance(unit_price, bool):
        raise InvalidPriceError(f"Unit price must be numeric, got {unit_price!r}")
    if isinstance(unit_price, Decimal):
        value = unit_price
    elif isinstance(unit_price, (Number, str)):
        # str() keeps floats like 0.1 from dragging their binary expansion in.
        try:
            value = Decimal(str(unit_price).strip())
        except InvalidOperation as exc:
            raise InvalidPriceError(f"Unit price is not a number: {unit_price!r}") from exc
    else:
        raise InvalidPriceError(f"Unit price must be numeric, got {type(unit_price).__name__}")

    if not value.is_finite():
        raise InvalidPriceError(f"Unit price must be finite, got {unit_price!r}")
    if value <= 0:
        raise InvalidPriceError(f"Unit price must be positive, got {unit_price!r}")
    return value


def _price(value: Decimal) -> PriceBreakdown:
    # Large prices need more than the default 28 digits once cents are added.
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 8)
        try:
            subtotal = round2(value)
            tax = round2(subtotal * TAX_RATE)
        except InvalidOperation as exc:
            raise InvalidPriceError(f"Unit price is out of range: {value!r}") from exc
        return PriceBreakdown(subtotal=subtotal, tax=tax, total=subtotal + tax)


def compute_quote(unit_price: object) -> PriceBreakdown:
    """Return subtotal, tax and total for exactly one rental-period unit.

    The subtotal is the unit price itself, tax is 16% of it rounded half-up
    to cents, and the total is their sum.

    Raises:
        InvalidPriceError: if ``unit_price`` is not a positive finite number
            or rounds to zero cents.
    """

    prices = _price(_to_decimal(unit_price))
    if prices.subtotal == 0:
        raise InvalidPriceError(f"Unit price rounds to zero cents: {unit_price!r}")
    return prices


def build_quote(machine: CatalogEntry, analysis: IntentAnalysis) -> Quote:
    if analysis.rental_start is None or analysis.rental_end is None:
        raise ValueError("Quote requires resolved rental dates")

    prices = compute_quote(machine.weekly_price)
    return Quote(
        machine=machine,
        subtotal=prices.subtotal,
        tax=prices.tax,
        total=prices.total,
        duration_text=analysis.duration_text,
        rental_start=analysis.rental_start,
        rental_end=analysis.rental_end,
    )
