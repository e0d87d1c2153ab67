# tests/unit/llm/test_unit_client_factory.py — v1
"""Tests for llm/client_factory.py — provider registry."""

from __future__ import annotations

import pytest

from vibecode.config.settings import Settings
from vibecode.llm.adapters.anthropic_adapter import AnthropicAdapter
from vibecode.llm.adapters.ollama_adapter import OllamaAdapter
from vibecode.llm.adapters.openai_adapter import OpenAIAdapter
from vibecode.llm.client_factory import (
    UnsupportedProviderError,
    available_providers,
    create_llm_client,
)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        anthropic_api_key="sk-ant",
        openrouter_api_key="sk-or",
        lmstudio_base_url="http://127.0.0.1:1234/v1",
        ollama_base_url="http://ollama:11434",
    )


class TestCreateClient:
    def test_unsupported(self):
        with pytest.raises(UnsupportedProviderError, match="Available"):
            create_llm_client("nope", "m")

    def test_anthropic(self, settings):
        client = create_llm_client("anthropic", "claude-x", settings)
        assert isinstance(client, AnthropicAdapter)
        assert client.provider_name == "anthropic"

    def test_lmstudio_uses_openai_adapter(self, settings):
        client = create_llm_client("lmstudio", "local-model", settings)
        assert isinstance(client, OpenAIAdapter)
        assert client.provider_name == "lmstudio"
        assert client._base_url == "http://127.0.0.1:1234/v1"

    def test_openrouter_key(self, settings):
        client = create_llm_client("openrouter", "deepseek/deepseek-chat", settings)
        assert client.provider_name == "openrouter"
        assert client._api_key == "sk-or"

    def test_ollama_host(self, settings):
        client = create_llm_client("ollama", "llama3", settings)
        assert isinstance(client, OllamaAdapter)
        assert client._host == "http://ollama:11434"

    def test_available_providers(self):
        assert {"anthropic", "openai", "lmstudio", "openrouter", "ollama"} <= set(
            available_providers()
        )
