"""Exception hierarchy for the invoice editor.

    InvoiceEditorError (base)
    ├── ConfigurationError
    ├── ExtractionError
    │   └── ExtractionInProgressError
    └── ExportError

The pure model computations and state operations never raise these;
they only come out of the auto-fill call and the document export.
"""

from typing import Any


class InvoiceEditorError(Exception):
    """Base exception for all invoice editor errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(InvoiceEditorError):
    """Raised when the extraction provider is not configured (e.g., missing API key)."""


class ExtractionError(InvoiceEditorError):
    """Raised on transport, authentication or parse failure of an extraction call."""


class ExtractionInProgressError(ExtractionError):
    """Raised when a second extraction is requested while one is still pending."""

    def __init__(self) -> None:
        super().__init__("An auto-fill request is already in progress")


class ExportError(InvoiceEditorError):
    """Raised when the PDF document cannot be generated."""
