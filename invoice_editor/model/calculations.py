"""Pure invoice computations: totals, currency symbols and money formatting."""

import math
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel

from invoice_editor.model.schema import CURRENCY_SYMBOLS, InvoiceData, InvoiceItem


class InvoiceTotals(BaseModel):
    """Computed totals for one invoice value.

    Attributes:
        subtotal: Sum of quantity * price over all items
        tax_amount: subtotal * tax_rate / 100
        total: subtotal + tax_amount
        currency_symbol: Display symbol for the invoice currency
        show_tax: Whether a tax line is rendered (tax_rate > 0)
    """

    subtotal: float
    tax_amount: float
    total: float
    currency_symbol: str
    show_tax: bool


def subtotal(items: Iterable[InvoiceItem]) -> float:
    """Sum of ``quantity * price`` over ``items``; 0 for no items."""
    return sum((item.quantity * item.price for item in items), 0.0)


def tax_amount(subtotal: float, tax_rate: float) -> float:
    return subtotal * tax_rate / 100


def total(subtotal: float, tax_amount: float) -> float:
    return subtotal + tax_amount


def currency_symbol(code: str) -> str:
    """Look up the display symbol for ``code``; unknown codes display as themselves."""
    return CURRENCY_SYMBOLS.get(code, code)


def format_money(amount: float) -> str:
    """Render ``amount`` with thousands separators and exactly two decimals.

    Example:
        >>> format_money(73318)
        '73,318.00'
    """
    return f"{amount:,.2f}"


def compute_totals(invoice: InvoiceData) -> InvoiceTotals:
    """Compute subtotal, tax and total for ``invoice``."""
    sub = subtotal(invoice.items)
    tax = tax_amount(sub, invoice.tax_rate)
    return InvoiceTotals(
        subtotal=sub,
        tax_amount=tax,
        total=total(sub, tax),
        currency_symbol=currency_symbol(invoice.currency),
        show_tax=invoice.tax_rate > 0,
    )


def parse_number(value: Any) -> float:
    """Parse numeric form input, clamping unparseable input to 0.

    Empty strings, non-numeric text, NaN and infinities all become 0.
    Negative numbers are returned unchanged.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number
