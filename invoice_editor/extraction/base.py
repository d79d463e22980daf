"""Abstract base class for auto-fill extraction providers.

Enables switching between extraction backends (OpenAI, Ollama) while
keeping one contract: free text in, ``InvoiceFragment`` out.

Providers make exactly one request per call and never retry; the user
re-invokes auto-fill on failure.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

from invoice_editor.model.schema import InvoiceFragment
from invoice_editor.shared.config import Settings
from invoice_editor.shared.errors import ExtractionError

EXTRACTION_INSTRUCTIONS = """You are an intelligent invoice assistant. \
Your task is to extract structured invoice data from the user's natural language input.
The user might provide details about the sender, recipient, items, or general terms.
Return a JSON object that matches the provided schema.
If specific fields (like dates or invoice numbers) are missing, generate reasonable defaults \
(e.g., today's date, invoice #0001).
Ensure monetary values are numbers."""

_PARTY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "email": {"type": "string"},
        "phone": {"type": "string"},
        "address": {"type": "string"},
    },
}

FRAGMENT_JSON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "invoiceNumber": {"type": "string"},
        "date": {"type": "string", "description": "YYYY-MM-DD"},
        "dueDate": {"type": "string", "description": "YYYY-MM-DD"},
        "sender": _PARTY_SCHEMA,
        "recipient": _PARTY_SCHEMA,
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "description": {"type": "string"},
                    "quantity": {"type": "number"},
                    "price": {"type": "number"},
                },
            },
        },
        "notes": {"type": "string"},
    },
}

ErrorKind = Literal["configuration", "extraction", "busy", "empty_prompt"]


class ExtractionResult(BaseModel):
    """Result of one auto-fill attempt.

    Attributes:
        fragment: Extracted fragment, or None if extraction failed
        success: Whether operation succeeded
        error: User-facing error message if operation failed
        error_kind: Failure category (configuration, extraction, busy, empty_prompt)
        provider: Name of provider that performed extraction (e.g., 'openai', 'ollama')
    """

    fragment: InvoiceFragment | None = None
    success: bool
    error: str | None = None
    error_kind: ErrorKind | None = None
    provider: str


def build_user_prompt(text: str) -> str:
    return f'Extract invoice data from this text: "{text}"'


def parse_fragment_json(raw: str | None) -> InvoiceFragment:
    """Parse a structured JSON response body into a fragment.

    Handles markdown code fences some models wrap around JSON.
    An empty body is an empty fragment, not an error.

    Raises:
        ExtractionError: If the body is not a JSON object of the fragment shape
    """
    if raw is None or not raw.strip():
        return InvoiceFragment()

    body = raw.strip()
    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", body)
    if fenced:
        body = fenced.group(1).strip()

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"JSON parsing failed: {e}") from e

    if not isinstance(payload, dict):
        raise ExtractionError(
            "Extraction response is not a JSON object", {"type": type(payload).__name__}
        )

    try:
        return InvoiceFragment.model_validate(payload)
    except ValidationError as e:
        raise ExtractionError(f"Extraction response does not match invoice shape: {e}") from e


class ExtractionProvider(ABC):
    """Abstract base class for auto-fill extraction providers.

    Example implementations:
    - OpenAIExtractionProvider: Uses OpenAI API (cloud-based)
    - OllamaExtractionProvider: Uses a self-hosted Ollama server
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize provider with settings.

        Args:
            settings: Application settings
        """
        self.settings = settings

    @abstractmethod
    async def extract(self, text: str) -> InvoiceFragment:
        """Extract a partial invoice from free text.

        Args:
            text: User's natural-language description of the invoice

        Returns:
            InvoiceFragment (empty if the service returned an empty body)

        Raises:
            ConfigurationError: If the provider is not configured; raised before any I/O
            ExtractionError: On transport, authentication or parse failure
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is configured (e.g., API key, server URL).

        Returns:
            True if provider can be used, False otherwise
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get provider name for logging/metrics."""

    async def aclose(self) -> None:
        """Release network clients held by the provider."""
        return None
