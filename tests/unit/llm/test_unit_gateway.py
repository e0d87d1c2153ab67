# tests/unit/llm/test_unit_gateway.py — v1
"""Tests for llm/gateway.py — send(), option resolution and error mapping."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from vibecode.config.settings import Settings
from vibecode.core.errors import ModelGatewayError
from vibecode.llm.gateway import ModelGateway
from vibecode.llm.models import GatewayOptions, LLMResponse
from vibecode.llm.retry import RetryConfig


def _client(content: str = "reply", side_effect=None) -> MagicMock:
    client = MagicMock()
    client.complete = AsyncMock(
        return_value=LLMResponse(content=content, model="m", provider="p"),
        side_effect=side_effect,
    )
    return client


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, llm_default_provider="ollama", llm_default_model="llama3")


class TestSend:
    @pytest.mark.asyncio
    async def test_returns_content_with_defaults(self, settings):
        client = _client("hello")
        factory = MagicMock(return_value=client)
        gateway = ModelGateway(settings, client_factory=factory)

        assert await gateway.send("prompt") == "hello"
        assert factory.call_args.args[:2] == ("ollama", "llama3")
        kwargs = client.complete.call_args.kwargs
        assert kwargs["temperature"] == settings.llm_temperature
        assert kwargs["max_tokens"] == settings.llm_max_tokens

    @pytest.mark.asyncio
    async def test_options_override(self, settings):
        client = _client()
        factory = MagicMock(return_value=client)
        gateway = ModelGateway(settings, client_factory=factory)

        opts = GatewayOptions(
            provider="openrouter", model="gpt-4o", temperature=0.1, max_tokens=50, system="sys"
        )
        await gateway.send("prompt", opts)
        assert factory.call_args.args[:2] == ("openrouter", "gpt-4o")
        kwargs = client.complete.call_args.kwargs
        assert kwargs == {"system": "sys", "max_tokens": 50, "temperature": 0.1}

    @pytest.mark.asyncio
    async def test_client_reused(self, settings):
        factory = MagicMock(return_value=_client())
        gateway = ModelGateway(settings, client_factory=factory)
        await gateway.send("a")
        await gateway.send("b")
        assert factory.call_count == 1

    @pytest.mark.asyncio
    async def test_empty_reply_raises(self, settings):
        gateway = ModelGateway(settings, client_factory=MagicMock(return_value=_client("  ")))
        with pytest.raises(ModelGatewayError, match="empty"):
            await gateway.send("prompt")

    @pytest.mark.asyncio
    async def test_provider_error_after_retries(self, settings):
        client = _client(side_effect=Exception("503 server error"))
        gateway = ModelGateway(
            settings,
            client_factory=MagicMock(return_value=client),
            retry_configs={"server_error": RetryConfig(max_retries=1, base_delay_s=0.0, jitter=False)},
        )
        with pytest.raises(ModelGatewayError) as exc_info:
            await gateway.send("prompt")
        assert exc_info.value.provider == "ollama"
        assert client.complete.await_count == 2

    @pytest.mark.asyncio
    async def test_retry_disabled_by_settings(self):
        settings = Settings(_env_file=None, llm_retry_enabled=False)
        client = _client(side_effect=Exception("429"))
        gateway = ModelGateway(settings, client_factory=MagicMock(return_value=client))
        with pytest.raises(ModelGatewayError):
            await gateway.send("prompt")
        client.complete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_provider(self, settings):
        gateway = ModelGateway(settings)
        with pytest.raises(ModelGatewayError, match="Unsupported"):
            await gateway.send("prompt", GatewayOptions(provider="nope"))
