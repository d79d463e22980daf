"""Document export with print fallback.

A PDF is produced when possible. If PDF generation fails, the export
falls back to the print path: an HTML document that opens the browser
print dialog when loaded.
"""

import logging

from pydantic import BaseModel

from invoice_editor.export.pdf import build_invoice_pdf
from invoice_editor.export.preview import render_invoice_html
from invoice_editor.model.schema import InvoiceData
from invoice_editor.shared.errors import ExportError

logger = logging.getLogger(__name__)


class ExportedDocument(BaseModel):
    """Result of an export.

    Attributes:
        filename: Download name, ``Invoice_<number or draft>.<ext>``
        media_type: MIME type of ``content``
        content: Document bytes
        fallback: True when the print-ready HTML was produced instead of a PDF
        error: PDF failure message when ``fallback`` is set
    """

    filename: str
    media_type: str
    content: bytes
    fallback: bool = False
    error: str | None = None


def export_filename(invoice: InvoiceData, extension: str) -> str:
    """Build the download name ``Invoice_<invoiceNumber or "draft">.<extension>``.

    Path separators in the invoice number are replaced with ``-``.
    """
    number = invoice.invoice_number.strip() or "draft"
    number = number.replace("/", "-").replace("\\", "-")
    return f"Invoice_{number}.{extension}"


def export_invoice(invoice: InvoiceData) -> ExportedDocument:
    """Export ``invoice`` as PDF, falling back to a print-ready HTML document."""
    try:
        content = build_invoice_pdf(invoice)
    except ExportError as e:
        logger.warning(f"PDF export failed, falling back to print: {e}")
        return ExportedDocument(
            filename=export_filename(invoice, "html"),
            media_type="text/html",
            content=render_invoice_html(invoice, print_on_load=True).encode("utf-8"),
            fallback=True,
            error=e.message,
        )

    return ExportedDocument(
        filename=export_filename(invoice, "pdf"),
        media_type="application/pdf",
        content=content,
    )
