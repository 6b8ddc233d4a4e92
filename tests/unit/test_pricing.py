from datetime import date
from decimal import Decimal

import pytest

from rentbot.core.errors import InvalidPriceError
from rentbot.planner.types import Action, IntentAnalysis
from rentbot.quoting.formatting import format_breakdown
from rentbot.quoting.models import CatalogEntry
from rentbot.quoting.pricing import build_quote, compute_quote


def test_one_week_loader_quote():
    prices = compute_quote(Decimal("1000.00"))

    assert prices.subtotal == Decimal("1000.00")
    assert prices.tax == Decimal("160.00")
    assert prices.total == Decimal("1160.00")


@pytest.mark.parametrize(
    "unit_price, tax, total",
    [
        ("899.99", "144.00", "1043.99"),
        ("0.03", "0.00", "0.03"),
        ("0.04", "0.01", "0.05"),
        ("2450.50", "392.08", "2842.58"),
    ],
)
def test_tax_is_rounded_half_up(unit_price, tax, total):
    prices = compute_quote(unit_price)

    assert prices.tax == Decimal(tax)
    assert prices.total == Decimal(total)
    assert prices.total == prices.subtotal + prices.tax


def test_repeated_computation_is_identical():
    results = {compute_quote(0.1 + 0.2) for _ in range(20)}

    assert len(results) == 1
    (prices,) = results
    assert str(prices.subtotal) == "0.30"


def test_accepts_int_and_float():
    assert compute_quote(1000) == compute_quote(1000.0) == compute_quote("1000.00")


@pytest.mark.parametrize("bad", [0, -5, "0.00", float("nan"), float("inf"), "abc", None, True, [100]])
def test_rejects_invalid_prices(bad):
    with pytest.raises(InvalidPriceError):
        compute_quote(bad)


def test_build_quote_and_breakdown_message():
    machine = CatalogEntry("Loader X", "Compact wheel loader", Decimal("1000.00"))
    analysis = IntentAnalysis(
        action=Action.QUOTE,
        machine_name="Loader X",
        duration_text="one week",
        rental_start=date(2026, 10, 19),
        rental_end=date(2026, 10, 26),
    )

    quote = build_quote(machine, analysis)
    message = format_breakdown(quote, "MXN")

    assert quote.total == Decimal("1160.00")
    for fragment in ("Loader X", "Compact wheel loader", "one week", "$1000.00", "$160.00", "$1160.00"):
        assert fragment in message


def test_very_large_price_is_priced_exactly():
    prices = compute_quote(Decimal("1e27"))

    assert prices.subtotal == Decimal("1000000000000000000000000000.00")
    assert prices.tax == Decimal("160000000000000000000000000.00")
    assert prices.total == Decimal("1160000000000000000000000000.00")


@pytest.mark.parametrize("tiny", ["0.001", "0.0049", Decimal("1e-30")])
def test_price_rounding_to_zero_cents_is_rejected(tiny):
    with pytest.raises(InvalidPriceError):
        compute_quote(tiny)
