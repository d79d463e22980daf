"""OpenAI-based auto-fill extraction provider.

Uses the OpenAI chat completions API with a JSON-schema response format so
the model answers with an invoice fragment. The API key is read from
OPENAI_API_KEY on every call.

The SDK's built-in retries are disabled: one attempt per invocation.
"""

import logging
import os

from openai import AsyncOpenAI

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


class OpenAIExtractionProvider(ExtractionProvider):
    """OpenAI-based extraction provider.

    Requires OPENAI_API_KEY environment variable.
    """

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self._client: AsyncOpenAI | None = None

    @property
    def provider_name(self) -> str:
        return "openai"

    def is_available(self) -> bool:
        """Check if OpenAI API key is configured.

        Returns:
            True if OPENAI_API_KEY environment variable is set and non-empty
        """
        return bool(os.getenv("OPENAI_API_KEY"))

    async def extract(self, text: str) -> InvoiceFragment:
        """Extract an invoice fragment from free text using OpenAI.

        Args:
            text: User's description of the invoice

        Returns:
            Parsed InvoiceFragment

        Raises:
            ConfigurationError: If OPENAI_API_KEY is not set
            ExtractionError: If the text is empty, or the API call or parsing fails
        """
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY environment variable not set")

        if not text or not text.strip():
            raise ExtractionError("Empty text provided")

        if self._client is None or self._client.api_key != api_key:
            self._client = AsyncOpenAI(api_key=api_key, max_retries=0)

        try:
            response = await self._client.chat.completions.create(
                model=self.settings.openai_model,
                messages=[
                    {"role": "system", "content": EXTRACTION_INSTRUCTIONS},
                    {"role": "user", "content": build_user_prompt(text)},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "invoice_fragment",
                        "schema": FRAGMENT_JSON_SCHEMA,
                    },
                },
                temperature=0,
            )
            content = response.choices[0].message.content
        except Exception as e:
            logger.error(f"OpenAI extraction failed: {e}")
            raise ExtractionError(f"Extraction failed: {str(e)}") from e

        return parse_fragment_json(content)

    async def aclose(self) -> None:
        """Close the SDK client, if one was created."""
        if self._client is not None:
            await self._client.close()
            self._client = None
