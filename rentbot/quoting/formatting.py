"""User-facing rendering of quotes."""

from __future__ import annotations

from decimal import Decimal

from rentbot.quoting.models import Quote


def format_money(amount: Decimal, currency: str) -> str:
    return f"${amount:.2f} {currency}".rstrip()


def format_breakdown(quote: Quote, currency: str) -> str:
    """Markdown breakdown sent before the quote document."""

    machine = quote.machine
    lines = [
        "✅ Here is your quote breakdown!",
        "",
        f"*Machine:* {machine.model_name}",
        f"*Description:* {machine.description or 'N/A'}",
        f"*Requested duration:* {quote.duration_text or 'N/A'}",
        f"*Rental period:* {quote.rental_start.isoformat()} to {quote.rental_end.isoformat()}",
        "---",
        f"*Subtotal:* {format_money(quote.subtotal, currency)}",
        f"*VAT (16%):* {format_money(quote.tax, currency)}",
        f"*Total:* *{format_money(quote.total, currency)}*",
        "",
        "_This is a preliminary price. Next I'll generate the formal PDF and "
        "book the end of the rental in our calendar._",
    ]
    return "\n".join(lines)
