"""Quote document generation."""

from __future__ import annotations

import asyncio
import io
from abc import ABC, abstractmethod
from datetime import date
from typing import Callable

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from rentbot.quoting.formatting import format_money
from rentbot.quoting.models import Quote


class DocumentGenerator(ABC):
    """Renders a quote into a shareable document."""

    @abstractmethod
    async def render(self, quote: Quote) -> bytes:
        """Return the document bytes."""


class PdfQuoteRenderer(DocumentGenerator):
    """A4 quote sheet rendered with ReportLab."""

    def __init__(self, *, currency: str = "MXN", today: Callable[[], date] = date.today) -> None:
        self._currency = currency
        self._today = today

    async def render(self, quote: Quote) -> bytes:
        return await asyncio.to_thread(self._build, quote)

    def _build(self, quote: Quote) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=60,
            leftMargin=60,
            topMargin=72,
            bottomMargin=72,
            title="Equipment rental quote",
        )

        styles = getSampleStyleSheet()
        styles.add(ParagraphStyle(
            name="QuoteTitle",
            parent=styles["Heading1"],
            fontSize=18,
            spaceAfter=6,
            textColor=colors.HexColor("#1a1a1a"),
        ))
        styles.add(ParagraphStyle(
            name="Footnote",
            parent=styles["Normal"],
            fontSize=9,
            textColor=colors.grey,
        ))

        money = lambda amount: format_money(amount, self._currency)  # noqa: E731
        details = [
            ["Machine:", quote.machine.model_name],
            ["Description:", Paragraph(quote.machine.description or "N/A", styles["Normal"])],
            ["Requested duration:", quote.duration_text or "N/A"],
            ["Rental start:", quote.rental_start.isoformat()],
            ["Rental end:", quote.rental_end.isoformat()],
        ]
        costs = [
            ["Subtotal:", money(quote.subtotal)],
            ["VAT (16%):", money(quote.tax)],
            ["Total due:", money(quote.total)],
        ]

        details_table = Table(details, colWidths=[1.8 * inch, 4.2 * inch])
        details_table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
        ]))

        costs_table = Table(costs, colWidths=[1.8 * inch, 4.2 * inch])
        costs_table.setStyle(TableStyle([
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("FONTSIZE", (0, -1), (-1, -1), 13),
            ("TEXTCOLOR", (1, -1), (1, -1), colors.HexColor("#00801a")),
            ("LINEABOVE", (0, -1), (-1, -1), 0.5, colors.grey),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
        ]))

        story = [
            Paragraph("EQUIPMENT RENTAL QUOTE", styles["QuoteTitle"]),
            Paragraph(f"Date: {self._today().isoformat()}", styles["Normal"]),
            Spacer(1, 0.3 * inch),
            details_table,
            Spacer(1, 0.3 * inch),
            costs_table,
            Spacer(1, 0.5 * inch),
            Paragraph(
                "This quote is preliminary and subject to confirmation of equipment availability.",
                styles["Footnote"],
            ),
        ]
        doc.build(story)
        return buffer.getvalue()
