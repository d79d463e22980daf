"""Copy-on-write operations over an ``InvoiceData`` value.

Every function takes the current value plus a delta and returns a new
value; the input is never modified and may still be held by the caller.
Targeting an item id that does not exist is a no-op, not an error.
"""

import logging
import uuid
from collections.abc import Collection, Mapping
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter, ValidationError
from pydantic.alias_generators import to_snake

from invoice_editor.model.schema import (
    InvoiceData,
    InvoiceFragment,
    InvoiceItem,
    PartyDetails,
    PartyFragment,
)

logger = logging.getLogger(__name__)

SCALAR_FIELDS = frozenset(
    {"invoice_number", "date", "due_date", "currency", "tax_rate", "notes", "payment_terms"}
)
PARTY_SECTIONS = frozenset({"sender", "recipient"})
PARTY_FIELDS = frozenset({"name", "email", "phone", "address"})
ITEM_FIELDS = frozenset({"description", "quantity", "price"})

NEW_ITEM_DESCRIPTION = "New Item"
EXTRACTED_ITEM_DESCRIPTION = "Item"


def new_item_id(taken: Collection[str] = ()) -> str:
    """Generate an item id not present in ``taken``."""
    while True:
        candidate = uuid.uuid4().hex[:12]
        if candidate not in taken:
            return candidate


@lru_cache(maxsize=None)
def _adapter(model: type, field: str) -> TypeAdapter[Any]:
    return TypeAdapter(model.model_fields[field].annotation)


def _resolve(name: str, allowed: frozenset[str], kind: str) -> str:
    field = to_snake(name)
    if field not in allowed:
        raise ValueError(f"Unknown {kind} field: '{name}'. Expected one of: {sorted(allowed)}")
    return field


def set_field(invoice: InvoiceData, section: str, field: str, value: Any) -> InvoiceData:
    """Replace one top-level scalar field or one field of a party.

    Args:
        invoice: Current value
        section: Top-level field name (``taxRate``/``tax_rate``...) or ``sender``/``recipient``
        field: Party field name when ``section`` is a party, otherwise ignored (pass ``""``)
        value: New value, validated against the field type

    Returns:
        New InvoiceData differing only in the targeted field

    Raises:
        ValueError: If the field name is unknown or the value has the wrong type
    """
    name = to_snake(section)
    if name in PARTY_SECTIONS:
        party_field = _resolve(field, PARTY_FIELDS, "party")
        party: PartyDetails = getattr(invoice, name)
        new_value = _adapter(PartyDetails, party_field).validate_python(value)
        updated_party = party.model_copy(update={party_field: new_value})
        return invoice.model_copy(update={name: updated_party})

    name = _resolve(section, SCALAR_FIELDS, "invoice")
    new_value = _adapter(InvoiceData, name).validate_python(value)
    return invoice.model_copy(update={name: new_value})


def add_item(invoice: InvoiceData) -> InvoiceData:
    """Append a ``New Item`` (quantity 1, price 0) with a fresh id."""
    taken = {item.id for item in invoice.items}
    item = InvoiceItem(id=new_item_id(taken), description=NEW_ITEM_DESCRIPTION, quantity=1, price=0)
    return invoice.model_copy(update={"items": (*invoice.items, item)})


def remove_item(invoice: InvoiceData, item_id: str) -> InvoiceData:
    items = tuple(item for item in invoice.items if item.id != item_id)
    return invoice.model_copy(update={"items": items})


def update_item(invoice: InvoiceData, item_id: str, field: str, value: Any) -> InvoiceData:
    """Replace one field of the item with ``item_id``; other items are untouched.

    Raises:
        ValueError: If the field name is unknown or the value has the wrong type
    """
    name = _resolve(field, ITEM_FIELDS, "item")
    new_value = _adapter(InvoiceItem, name).validate_python(value)
    items = tuple(
        item.model_copy(update={name: new_value}) if item.id == item_id else item
        for item in invoice.items
    )
    return invoice.model_copy(update={"items": items})


def _merge_party(current: PartyDetails, extracted: PartyFragment | None) -> PartyDetails:
    if extracted is None:
        return current
    return current.model_copy(update=extracted.model_dump(exclude_none=True))


def merge_extracted(
    invoice: InvoiceData, fragment: InvoiceFragment | Mapping[str, Any] | None
) -> InvoiceData:
    """Fold an auto-fill fragment into ``invoice`` field by field.

    - invoice number, dates and notes overwrite only when non-empty
    - sender/recipient are shallow-merged, keeping fields the fragment lacks
    - extracted items get fresh ids and defaults, and are appended

    A malformed fragment is logged and treated as empty.
    """
    if fragment is None:
        return invoice.model_copy()
    if not isinstance(fragment, InvoiceFragment):
        try:
            fragment = InvoiceFragment.model_validate(fragment)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed extraction fragment: {e}")
            return invoice.model_copy()

    update: dict[str, Any] = {}
    for name in ("invoice_number", "date", "due_date", "notes"):
        extracted = getattr(fragment, name)
        if extracted:
            update[name] = extracted

    update["sender"] = _merge_party(invoice.sender, fragment.sender)
    update["recipient"] = _merge_party(invoice.recipient, fragment.recipient)

    if fragment.items:
        taken = {item.id for item in invoice.items}
        new_items = []
        for extracted_item in fragment.items:
            item_id = new_item_id(taken)
            taken.add(item_id)
            new_items.append(
                InvoiceItem(
                    id=item_id,
                    description=extracted_item.description or EXTRACTED_ITEM_DESCRIPTION,
                    quantity=extracted_item.quantity or 1,
                    price=extracted_item.price or 0,
                )
            )
        update["items"] = (*invoice.items, *new_items)
        logger.info(f"Merged {len(new_items)} extracted item(s) into invoice")

    return invoice.model_copy(update=update)
