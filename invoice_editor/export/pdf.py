"""PDF rendering of the invoice document (A4 portrait) with ReportLab.

Text is set in the bundled DejaVu Sans so every currency symbol has a glyph.
"""

import html
import logging
from functools import lru_cache
from io import BytesIO
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.fonts import addMapping
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from invoice_editor.export.preview import format_quantity
from invoice_editor.model.calculations import compute_totals, format_money
from invoice_editor.model.schema import InvoiceData, PartyDetails
from invoice_editor.shared.errors import ExportError

logger = logging.getLogger(__name__)

PAGE_MARGIN = 20 * mm
CONTENT_WIDTH = A4[0] - 2 * PAGE_MARGIN

FONT_DIR = Path(__file__).parent / "fonts"
FONT_REGULAR = "DejaVuSans"
FONT_BOLD = "DejaVuSans-Bold"


@lru_cache(maxsize=None)
def register_fonts() -> None:
    """Register the bundled TrueType fonts with ReportLab (once per process)."""
    pdfmetrics.registerFont(TTFont(FONT_REGULAR, str(FONT_DIR / "DejaVuSans.ttf")))
    pdfmetrics.registerFont(TTFont(FONT_BOLD, str(FONT_DIR / "DejaVuSans-Bold.ttf")))
    # No oblique face is bundled; <i> falls back to the upright one
    addMapping(FONT_REGULAR, 0, 0, FONT_REGULAR)
    addMapping(FONT_REGULAR, 1, 0, FONT_BOLD)
    addMapping(FONT_REGULAR, 0, 1, FONT_REGULAR)
    addMapping(FONT_REGULAR, 1, 1, FONT_BOLD)
    logger.debug(f"Registered PDF fonts from {FONT_DIR}")


def _text(value: str) -> str:
    return html.escape(value).replace("\n", "<br/>")


def _party_block(label: str, party: PartyDetails, placeholder: str, style: ParagraphStyle) -> list:
    lines = [
        Paragraph(f'<font color="#6b7280">{label.upper()}</font>', style),
        Paragraph(f"<b>{_text(party.name or placeholder)}</b>", style),
    ]
    lines.extend(Paragraph(_text(v), style) for v in (party.email, party.phone, party.address) if v)
    return lines


def build_invoice_pdf(invoice: InvoiceData) -> bytes:
    """Render ``invoice`` to PDF bytes.

    Raises:
        ExportError: If the fonts cannot be loaded or ReportLab fails to build the document
    """
    try:
        register_fonts()
        return _build(invoice)
    except Exception as e:
        raise ExportError(f"PDF generation failed: {e}") from e


def _build(invoice: InvoiceData) -> bytes:
    totals = compute_totals(invoice)
    symbol = totals.currency_symbol

    styles = getSampleStyleSheet()
    style_n = ParagraphStyle("body", parent=styles["Normal"], fontName=FONT_REGULAR, leading=14)
    style_r = ParagraphStyle("right", parent=style_n, alignment=TA_RIGHT)
    style_title = ParagraphStyle(
        "title", parent=styles["Title"], fontName=FONT_BOLD, alignment=0, fontSize=28
    )

    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        topMargin=PAGE_MARGIN,
        bottomMargin=PAGE_MARGIN,
        title=f"Invoice {invoice.invoice_number}",
    )
    story: list = []

    dates = [Paragraph(f"Date<br/><b>{_text(invoice.date)}</b>", style_r)]
    if invoice.due_date:
        dates.append(
            Paragraph(
                f'Due Date<br/><font color="#dc2626"><b>{_text(invoice.due_date)}</b></font>',
                style_r,
            )
        )
    title = [
        Paragraph("INVOICE", style_title),
        Paragraph(f"#{_text(invoice.invoice_number)}", style_n),
    ]
    header = Table([[title, dates]], colWidths=[CONTENT_WIDTH * 0.6, CONTENT_WIDTH * 0.4])
    header.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    story.extend([header, Spacer(1, 12 * mm)])

    parties = Table(
        [[
            _party_block("From", invoice.sender, "Sender Name", style_n),
            _party_block("Bill To", invoice.recipient, "Recipient Name", style_r),
        ]],
        colWidths=[CONTENT_WIDTH / 2, CONTENT_WIDTH / 2],
    )
    parties.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    story.extend([parties, Spacer(1, 10 * mm)])

    rows: list[list] = [["Description", "Quantity", "Unit Price", "Total"]]
    for item in invoice.items:
        rows.append([
            Paragraph(_text(item.description), style_n),
            format_quantity(item.quantity),
            f"{symbol}{format_money(item.price)}",
            f"{symbol}{format_money(item.quantity * item.price)}",
        ])
    if not invoice.items:
        rows.append(["No items added yet.", "", "", ""])
    table = Table(
        rows,
        repeatRows=1,
        colWidths=[w * CONTENT_WIDTH for w in (0.5, 0.14, 0.18, 0.18)],
    )
    table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, -1), FONT_REGULAR),
        ("FONTNAME", (0, 0), (-1, 0), FONT_BOLD),
        ("LINEBELOW", (0, 0), (-1, 0), 1.5, colors.black),
        ("LINEBELOW", (0, 1), (-1, -1), 0.25, colors.lightgrey),
        ("ALIGN", (1, 0), (1, -1), "CENTER"),
        ("ALIGN", (2, 0), (3, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    story.extend([table, Spacer(1, 8 * mm)])

    totals_rows = [["Subtotal", f"{symbol}{format_money(totals.subtotal)}"]]
    if totals.show_tax:
        totals_rows.append([
            f"Tax ({format_quantity(invoice.tax_rate)}%)",
            f"{symbol}{format_money(totals.tax_amount)}",
        ])
    totals_rows.append(["TOTAL", f"{symbol}{format_money(totals.total)}"])
    totals_tbl = Table(totals_rows, colWidths=[35 * mm, 40 * mm], hAlign="RIGHT")
    totals_tbl.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, -1), FONT_REGULAR),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("FONTNAME", (0, -1), (-1, -1), FONT_BOLD),
        ("FONTSIZE", (0, -1), (-1, -1), 13),
        ("TOPPADDING", (0, -1), (-1, -1), 8),
    ]))
    story.append(totals_tbl)

    if invoice.payment_terms or invoice.notes:
        story.append(Spacer(1, 10 * mm))
        if invoice.payment_terms:
            story.append(Paragraph("<b>Payment Instructions:</b>", style_n))
            story.append(Paragraph(_text(invoice.payment_terms), style_n))
            story.append(Spacer(1, 4 * mm))
        if invoice.notes:
            story.append(Paragraph("<b>Notes:</b>", style_n))
            story.append(Paragraph(f"<i>{_text(invoice.notes)}</i>", style_n))

    logger.debug(f"Rendering PDF with {len(invoice.items)} item(s)")
    doc.build(story)
    return buf.getvalue()
