"""Unit tests for OllamaExtractionProvider.

Tests the Ollama-based extraction provider with mocked HTTP calls.
"""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from invoice_editor.extraction.ollama_provider import OllamaExtractionProvider
from invoice_editor.extraction.task import EXTRACTION_FAILED_MESSAGE, ExtractionTask
from invoice_editor.shared.config import Settings
from invoice_editor.shared.errors import ConfigurationError, ExtractionError

GENERATE_URL = "http://localhost:11434/api/generate"


@pytest.fixture
def settings() -> Settings:
    """Create test settings with Ollama provider."""
    return Settings(
        _env_file=None,
        extraction_provider="ollama",
        ollama_base_url="http://localhost:11434/",
        ollama_model="qwen2.5:7b",
    )


@pytest.fixture
def provider(settings: Settings) -> OllamaExtractionProvider:
    """Create Ollama provider instance."""
    return OllamaExtractionProvider(settings)


def _response(status_code: int, payload: dict) -> httpx.Response:
    return httpx.Response(
        status_code, json=payload, request=httpx.Request("POST", GENERATE_URL)
    )


class TestOllamaExtractionProviderProperties:
    """Test provider properties and availability."""

    def test_provider_name(self, provider: OllamaExtractionProvider) -> None:
        """Provider name should be 'ollama'."""
        assert provider.provider_name == "ollama"

    def test_is_available_when_configured(self, provider: OllamaExtractionProvider) -> None:
        """Configured URL and model make the provider available."""
        assert provider.is_available() is True

    def test_not_available_without_model(self) -> None:
        """A blank model name is a configuration gap."""
        provider = OllamaExtractionProvider(Settings(_env_file=None, ollama_model=""))
        assert provider.is_available() is False


class TestOllamaExtraction:
    """Test fragment extraction."""

    @pytest.mark.asyncio
    async def test_extract_success(self, provider: OllamaExtractionProvider) -> None:
        """Should parse the structured JSON in Ollama's response field."""
        body = {"invoiceNumber": "INV-9", "items": [{"description": "Design", "price": 500}]}
        mock_post = AsyncMock(return_value=_response(200, {"response": json.dumps(body)}))

        with patch.object(provider._client, "post", mock_post):
            fragment = await provider.extract("Bill Acme $500 for Design")

        assert fragment.invoice_number == "INV-9"
        assert fragment.items is not None
        assert fragment.items[0].description == "Design"

        mock_post.assert_awaited_once()
        url = mock_post.call_args.args[0]
        payload = mock_post.call_args.kwargs["json"]
        assert url == GENERATE_URL
        assert payload["model"] == "qwen2.5:7b"
        assert payload["stream"] is False
        assert payload["format"]["type"] == "object"

    @pytest.mark.asyncio
    async def test_extract_empty_response(self, provider: OllamaExtractionProvider) -> None:
        """An empty response field is an empty fragment."""
        mock_post = AsyncMock(return_value=_response(200, {"response": ""}))

        with patch.object(provider._client, "post", mock_post):
            fragment = await provider.extract("anything")

        assert fragment.is_empty()

    @pytest.mark.asyncio
    async def test_extract_http_error(self, provider: OllamaExtractionProvider) -> None:
        """HTTP error statuses become extraction errors, attempted once."""
        mock_post = AsyncMock(return_value=_response(500, {"error": "model crashed"}))

        with patch.object(provider._client, "post", mock_post):
            with pytest.raises(ExtractionError, match="Extraction failed"):
                await provider.extract("anything")

        assert mock_post.await_count == 1

    @pytest.mark.asyncio
    async def test_extract_connection_error(self, provider: OllamaExtractionProvider) -> None:
        """Transport failures become extraction errors."""
        mock_post = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))

        with patch.object(provider._client, "post", mock_post):
            with pytest.raises(ExtractionError, match="Connection refused"):
                await provider.extract("anything")

    @pytest.mark.asyncio
    async def test_extract_invalid_json(self, provider: OllamaExtractionProvider) -> None:
        """Non-JSON model output is an extraction error."""
        mock_post = AsyncMock(return_value=_response(200, {"response": "I think it's INV-9"}))

        with patch.object(provider._client, "post", mock_post):
            with pytest.raises(ExtractionError, match="JSON parsing failed"):
                await provider.extract("anything")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [["x"], "text", 42])
    async def test_extract_non_object_body(
        self, provider: OllamaExtractionProvider, payload: object
    ) -> None:
        """Valid JSON that is not an object is an extraction error."""
        mock_post = AsyncMock(
            return_value=httpx.Response(
                200, json=payload, request=httpx.Request("POST", GENERATE_URL)
            )
        )

        with patch.object(provider._client, "post", mock_post):
            with pytest.raises(ExtractionError, match="not a JSON object"):
                await provider.extract("anything")

    @pytest.mark.asyncio
    async def test_extract_non_text_response_field(
        self, provider: OllamaExtractionProvider
    ) -> None:
        """A structured response field instead of text is an extraction error."""
        mock_post = AsyncMock(return_value=_response(200, {"response": {"invoiceNumber": "1"}}))

        with patch.object(provider._client, "post", mock_post):
            with pytest.raises(ExtractionError, match="not text"):
                await provider.extract("anything")

    @pytest.mark.asyncio
    async def test_extract_not_configured(self) -> None:
        """Missing configuration fails before any HTTP call."""
        provider = OllamaExtractionProvider(Settings(_env_file=None, ollama_base_url=""))
        mock_post = AsyncMock()

        with patch.object(provider._client, "post", mock_post):
            with pytest.raises(ConfigurationError):
                await provider.extract("anything")

        mock_post.assert_not_called()

    @pytest.mark.asyncio
    async def test_extract_empty_text(self, provider: OllamaExtractionProvider) -> None:
        """Whitespace-only text is rejected."""
        with pytest.raises(ExtractionError, match="Empty text"):
            await provider.extract("   \n\t  ")

    @pytest.mark.asyncio
    async def test_extract_with_transport(self, settings: Settings) -> None:
        """An injected client is used for requests."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content)["model"] == "qwen2.5:7b"
            return httpx.Response(200, json={"response": '{"notes": "Thanks"}'})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        provider = OllamaExtractionProvider(settings, client=client)

        fragment = await provider.extract("anything")
        await provider.aclose()

        assert fragment.notes == "Thanks"


@pytest.mark.asyncio
async def test_task_reports_non_object_body_as_failure(settings: Settings) -> None:
    """A list body from Ollama yields a failed auto-fill result, not an exception."""
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=["x"]))
    )
    task = ExtractionTask(OllamaExtractionProvider(settings, client=client))

    result = await task.run("bill acme")
    await task.provider.aclose()

    assert result.success is False
    assert result.error_kind == "extraction"
    assert result.error == EXTRACTION_FAILED_MESSAGE
