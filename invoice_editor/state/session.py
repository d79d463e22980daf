"""Editing session: owner of the current invoice value.

The session replaces its ``invoice`` wholesale after each operation and
never mutates it. Auto-fill merges only on success; on failure the
invoice is left exactly as it was.
"""

import logging
from typing import Any

from invoice_editor.extraction.base import ExtractionProvider, ExtractionResult
from invoice_editor.extraction.task import ExtractionTask
from invoice_editor.model.calculations import InvoiceTotals, compute_totals
from invoice_editor.model.schema import InvoiceData, initial_invoice
from invoice_editor.shared.config import Settings
from invoice_editor.state import controller

logger = logging.getLogger(__name__)


class FormSession:
    """Holds one in-memory invoice and the auto-fill request state.

    Attributes:
        invoice: Current invoice value
        prompt: Pending auto-fill text; cleared after a successful merge
        extraction: Single-flight auto-fill task
    """

    def __init__(
        self,
        provider: ExtractionProvider,
        settings: Settings,
        invoice: InvoiceData | None = None,
    ) -> None:
        self.settings = settings
        self.invoice = invoice if invoice is not None else self._seed()
        self.prompt = ""
        self.extraction = ExtractionTask(provider)

    def _seed(self) -> InvoiceData:
        return initial_invoice(
            currency=self.settings.default_currency,
            payment_terms=self.settings.default_payment_terms,
        )

    @property
    def totals(self) -> InvoiceTotals:
        return compute_totals(self.invoice)

    def reset(self) -> InvoiceData:
        self.invoice = self._seed()
        self.prompt = ""
        return self.invoice

    def set_field(self, section: str, field: str, value: Any) -> InvoiceData:
        self.invoice = controller.set_field(self.invoice, section, field, value)
        return self.invoice

    def add_item(self) -> InvoiceData:
        self.invoice = controller.add_item(self.invoice)
        return self.invoice

    def remove_item(self, item_id: str) -> InvoiceData:
        self.invoice = controller.remove_item(self.invoice, item_id)
        return self.invoice

    def update_item(self, item_id: str, field: str, value: Any) -> InvoiceData:
        self.invoice = controller.update_item(self.invoice, item_id, field, value)
        return self.invoice

    async def aclose(self) -> None:
        await self.extraction.provider.aclose()

    async def autofill(self, text: str | None = None) -> ExtractionResult:
        """Extract invoice data from ``text`` (or the stored prompt) and merge it.

        A blank prompt is refused without contacting the provider.

        Returns:
            The ExtractionResult; the invoice is replaced only when it succeeded
        """
        if text is not None:
            self.prompt = text
        if not self.prompt.strip():
            return ExtractionResult(
                success=False,
                error="Describe the invoice to auto-fill",
                error_kind="empty_prompt",
                provider=self.extraction.provider.provider_name,
            )

        result = await self.extraction.run(self.prompt)
        if result.success:
            self.invoice = controller.merge_extracted(self.invoice, result.fragment)
            self.prompt = ""
        return result
