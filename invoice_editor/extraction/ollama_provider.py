"""Ollama-based auto-fill extraction provider for self-hosted LLM inference.

Uses a local Ollama server's structured outputs (the ``format`` field
accepts a JSON schema) to extract an invoice fragment from free text.

Requires Ollama server running on the configured base URL.
See: https://ollama.ai/
"""

import logging

import httpx

from invoice_editor.extraction.base import (
    EXTRACTION_INSTRUCTIONS,
    FRAGMENT_JSON_SCHEMA,
    ExtractionProvider,
    build_user_prompt,
    parse_fragment_json,
)
from invoice_editor.model.schema import InvoiceFragment
from invoice_editor.shared.config import Settings
from invoice_editor.shared.errors import ConfigurationError, ExtractionError

logger = logging.getLogger(__name__)


class OllamaExtractionProvider(ExtractionProvider):
    """Ollama-based extraction provider.

    Supports models like Qwen2.5, Llama3, Mistral.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        """Initialize Ollama extraction provider.

        Args:
            settings: Application settings
            client: Optional HTTP client (a default one is created otherwise)
        """
        super().__init__(settings)
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._model = settings.ollama_model
        self._client = client or httpx.AsyncClient(timeout=settings.ollama_timeout_seconds)

    @property
    def provider_name(self) -> str:
        return "ollama"

    def is_available(self) -> bool:
        """Check that a server URL and model are configured."""
        return bool(self._base_url and self._model)

    async def extract(self, text: str) -> InvoiceFragment:
        """Extract an invoice fragment from free text using Ollama.

        Raises:
            ConfigurationError: If base URL or model is not configured
            ExtractionError: If the text is empty, or the HTTP call or parsing fails
        """
        if not self.is_available():
            raise ConfigurationError(
                "Ollama base URL and model must be configured",
                {"base_url": self._base_url, "model": self._model},
            )

        if not text or not text.strip():
            raise ExtractionError("Empty text provided")

        try:
            response = await self._client.post(
                f"{self._base_url}/api/generate",
                json={
                    "model": self._model,
                    "system": EXTRACTION_INSTRUCTIONS,
                    "prompt": build_user_prompt(text),
                    "format": FRAGMENT_JSON_SCHEMA,
                    "stream": False,
                    "options": {"temperature": 0},
                },
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Ollama extraction failed: {e}")
            raise ExtractionError(f"Extraction failed: {str(e)}") from e

        if not isinstance(payload, dict):
            logger.error(f"Unexpected Ollama response type: {type(payload).__name__}")
            raise ExtractionError(
                "Extraction failed: Ollama response is not a JSON object",
                {"type": type(payload).__name__},
            )
        body = payload.get("response") or ""
        if not isinstance(body, str):
            raise ExtractionError(
                "Extraction failed: Ollama response field is not text",
                {"type": type(body).__name__},
            )

        return parse_fragment_json(body)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
