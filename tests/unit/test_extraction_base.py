"""Unit tests for extraction base classes and helpers.

Tests cover:
- Abstract base class enforcement
- ExtractionResult model validation
- Parsing structured JSON responses into fragments
"""

import pytest

from invoice_editor.extraction.base import (
    FRAGMENT_JSON_SCHEMA,
    ExtractionProvider,
    ExtractionResult,
    build_user_prompt,
    parse_fragment_json,
)
from invoice_editor.model.schema import InvoiceFragment
from invoice_editor.shared.config import Settings
from invoice_editor.shared.errors import ExtractionError


def test_extraction_result_with_success() -> None:
    """Test ExtractionResult with successful extraction."""
    result = ExtractionResult(
        fragment=InvoiceFragment(invoice_number="INV-001"), success=True, provider="test"
    )

    assert result.success is True
    assert result.fragment is not None
    assert result.fragment.invoice_number == "INV-001"
    assert result.error is None
    assert result.error_kind is None


def test_extraction_result_with_failure() -> None:
    """Test ExtractionResult with failed extraction."""
    result = ExtractionResult(
        success=False, error="Test error", error_kind="extraction", provider="test"
    )

    assert result.success is False
    assert result.fragment is None
    assert result.error == "Test error"


def test_extraction_provider_is_abstract() -> None:
    """Test that ExtractionProvider cannot be instantiated directly."""
    with pytest.raises(TypeError, match="Can't instantiate abstract class"):
        ExtractionProvider(Settings(_env_file=None))  # type: ignore[abstract]


def test_extraction_provider_requires_implementation() -> None:
    """Test that concrete providers must implement all abstract methods."""

    class IncompleteProvider(ExtractionProvider):
        async def extract(self, text: str) -> InvoiceFragment:
            return InvoiceFragment()

        def is_available(self) -> bool:
            return True

        # Missing: provider_name property

    with pytest.raises(TypeError, match="Can't instantiate abstract class"):
        IncompleteProvider(Settings(_env_file=None))  # type: ignore[abstract]


def test_fragment_schema_covers_fragment_fields() -> None:
    """Test the response schema names every fragment key in camelCase."""
    assert set(FRAGMENT_JSON_SCHEMA["properties"]) == {
        "invoiceNumber",
        "date",
        "dueDate",
        "sender",
        "recipient",
        "items",
        "notes",
    }


def test_build_user_prompt_quotes_text() -> None:
    """Test the user prompt embeds the free text."""
    prompt = build_user_prompt("Bill Acme $500")

    assert prompt == 'Extract invoice data from this text: "Bill Acme $500"'


class TestParseFragmentJson:
    """Test parse_fragment_json."""

    @pytest.mark.parametrize("raw", [None, "", "   \n"])
    def test_empty_body_is_empty_fragment(self, raw: str | None) -> None:
        """An empty response body is not an error."""
        assert parse_fragment_json(raw) == InvoiceFragment()

    def test_valid_json(self) -> None:
        """A JSON object is parsed into a fragment."""
        fragment = parse_fragment_json(
            '{"invoiceNumber": "INV-7", "items": [{"description": "Design", "price": 500}]}'
        )

        assert fragment.invoice_number == "INV-7"
        assert fragment.items is not None
        assert fragment.items[0].price == 500
        assert fragment.items[0].quantity is None

    def test_markdown_code_block(self) -> None:
        """JSON wrapped in a markdown fence is unwrapped."""
        fragment = parse_fragment_json('```json\n{"notes": "Thanks"}\n```')

        assert fragment.notes == "Thanks"

    def test_invalid_json(self) -> None:
        """Non-JSON output is an extraction error."""
        with pytest.raises(ExtractionError, match="JSON parsing failed"):
            parse_fragment_json("Sorry, I cannot help with that.")

    def test_non_object_json(self) -> None:
        """A JSON array is not a fragment."""
        with pytest.raises(ExtractionError, match="not a JSON object"):
            parse_fragment_json("[1, 2, 3]")

    def test_wrong_shape(self) -> None:
        """Fields of the wrong type are an extraction error."""
        with pytest.raises(ExtractionError, match="does not match invoice shape"):
            parse_fragment_json('{"items": [{"quantity": "lots"}]}')
