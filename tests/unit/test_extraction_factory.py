"""Unit tests for extraction provider factory.

Tests cover:
- Provider registry lookups
- Factory function provider creation
- Configuration-based selection
- Error handling for unknown providers
"""

import logging
from unittest.mock import patch

import pytest

from invoice_editor.extraction.base import ExtractionProvider
from invoice_editor.extraction.factory import ProviderRegistry, create_extraction_service
from invoice_editor.extraction.ollama_provider import OllamaExtractionProvider
from invoice_editor.extraction.openai_provider import OpenAIExtractionProvider
from invoice_editor.model.schema import InvoiceFragment
from invoice_editor.shared.config import Settings


def test_provider_registry_default_providers() -> None:
    """Test that registry contains default providers."""
    providers = ProviderRegistry.list_providers()

    assert "openai" in providers
    assert "ollama" in providers


def test_provider_registry_get_openai() -> None:
    """Test getting OpenAI provider from registry."""
    assert ProviderRegistry.get_provider_class("openai") == OpenAIExtractionProvider


def test_provider_registry_unknown_provider() -> None:
    """Test that unknown provider raises ValueError listing the available ones."""
    with pytest.raises(ValueError, match="Available providers: openai"):
        ProviderRegistry.get_provider_class("nonexistent")


def test_provider_registry_register_new_provider() -> None:
    """Test registering a new provider."""

    class TestProvider(ExtractionProvider):
        async def extract(self, text: str) -> InvoiceFragment:
            return InvoiceFragment()

        def is_available(self) -> bool:
            return True

        @property
        def provider_name(self) -> str:
            return "test"

    ProviderRegistry.register("test", TestProvider)
    try:
        assert "test" in ProviderRegistry.list_providers()
        assert ProviderRegistry.get_provider_class("test") == TestProvider
    finally:
        del ProviderRegistry._providers["test"]


def test_create_extraction_service_default() -> None:
    """Test factory creates OpenAI provider by default."""
    provider = create_extraction_service(Settings(_env_file=None))

    assert isinstance(provider, OpenAIExtractionProvider)


def test_create_extraction_service_ollama() -> None:
    """Test factory honours the configured provider."""
    provider = create_extraction_service(Settings(_env_file=None, extraction_provider="ollama"))

    assert isinstance(provider, OllamaExtractionProvider)


def test_create_extraction_service_logs_creation(caplog: pytest.LogCaptureFixture) -> None:
    """Test that factory logs provider creation."""
    with caplog.at_level(logging.INFO):
        create_extraction_service(Settings(_env_file=None))

    assert "Created extraction provider: openai" in caplog.text


@patch.dict("os.environ", {}, clear=True)
def test_create_extraction_service_warns_if_unavailable(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Test that factory warns if the API key is missing."""
    with caplog.at_level(logging.WARNING):
        create_extraction_service(Settings(_env_file=None))

    assert "not fully available" in caplog.text
