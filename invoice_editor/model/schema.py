"""Invoice data models for the editing session.

Python attributes are snake_case; JSON uses the camelCase names the
editor front end and the auto-fill service speak (``invoiceNumber``,
``dueDate``, ``taxRate``...). Both spellings are accepted on input.

The full ``InvoiceData`` value is immutable. Every edit produces a new
value (see ``invoice_editor.state.controller``). ``InvoiceFragment`` is
the separate, all-optional shape returned by auto-fill extraction.
"""

from datetime import date as date_type

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Fixed, exhaustive mapping; order is the order offered in the currency selector
CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "PKR": "Rs",
    "INR": "₹",
    "AED": "AED",
}


class _InvoiceModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class PartyDetails(_InvoiceModel):
    """Issuing (sender) or billed (recipient) party. All fields may be blank."""

    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""


class InvoiceItem(_InvoiceModel):
    """A single line item.

    ``id`` is a session-scoped token used only to target updates and removals.
    Negative quantity/price are accepted as-is.
    """

    id: str
    description: str = ""
    quantity: float = 0.0
    price: float = 0.0


class InvoiceData(_InvoiceModel):
    """Complete state of one invoice editing session."""

    invoice_number: str = ""
    date: str = Field("", description="Issue date, YYYY-MM-DD")
    due_date: str = Field("", description="Due date, YYYY-MM-DD; empty means not set")
    currency: str = "USD"
    tax_rate: float = Field(0.0, description="Tax percentage; 0 means no tax line")
    sender: PartyDetails = Field(default_factory=PartyDetails)
    recipient: PartyDetails = Field(default_factory=PartyDetails)
    items: tuple[InvoiceItem, ...] = ()
    notes: str = ""
    payment_terms: str = ""


class PartyFragment(_InvoiceModel):
    """Party details as extracted; ``None`` means not extracted."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None


class ItemFragment(_InvoiceModel):
    """Line item as extracted. Any id supplied by the service is discarded on merge."""

    id: str | None = None
    description: str | None = None
    quantity: float | None = None
    price: float | None = None


class InvoiceFragment(_InvoiceModel):
    """Partial invoice returned by auto-fill extraction; every key is optional."""

    invoice_number: str | None = None
    date: str | None = None
    due_date: str | None = None
    sender: PartyFragment | None = None
    recipient: PartyFragment | None = None
    items: list[ItemFragment] | None = None
    notes: str | None = None

    def is_empty(self) -> bool:
        """True when no field carries extracted information."""
        return not self.model_dump(exclude_none=True)


def initial_invoice(
    currency: str = "PKR",
    payment_terms: str = "",
    today: date_type | None = None,
) -> InvoiceData:
    """Seed value for a new editing session.

    Args:
        currency: Currency code of the new invoice
        payment_terms: Default payment instructions
        today: Issue date (defaults to the current date)

    Returns:
        InvoiceData with two pre-populated items and no tax
    """
    issued = today or date_type.today()
    return InvoiceData(
        invoice_number="00001",
        date=issued.isoformat(),
        due_date="",
        currency=currency,
        tax_rate=0.0,
        items=(
            InvoiceItem(id="1", description="WordPress Maintenance", quantity=1, price=100000),
            InvoiceItem(id="2", description="WordPress Website Fixes", quantity=1, price=73318),
        ),
        notes="",
        payment_terms=payment_terms,
    )
