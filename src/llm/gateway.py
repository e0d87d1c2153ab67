# src/llm/gateway.py — v1
"""Model Gateway: the single ``send(prompt, options) -> str`` capability.

Resolves provider and model from options or settings, reuses one adapter
per (provider, model), applies the retry policy and a per-attempt timeout.
Every failure surfaces as ModelGatewayError, as does an empty reply.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from vibecode.config.settings import Settings
from vibecode.core.errors import ModelGatewayError
from vibecode.llm.base_client import BaseLLMClient
from vibecode.llm.client_factory import UnsupportedProviderError, create_llm_client
from vibecode.llm.models import GatewayOptions, LLMResponse, Message
from vibecode.llm.retry import DEFAULT_RETRY_CONFIGS, LLMRetryExhausted, RetryConfig, with_retry
from vibecode.logging.logger import get_logger

ClientFactory = Callable[..., BaseLLMClient]


class ModelGateway:
    """Send one prompt to one model and return its text reply."""

    def __init__(
        self,
        settings: Settings,
        client_factory: ClientFactory = create_llm_client,
        retry_configs: dict[str, RetryConfig] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings = settings
        self._factory = client_factory
        if retry_configs is not None:
            self._retry_configs = retry_configs
        elif settings.llm_retry_enabled:
            self._retry_configs = DEFAULT_RETRY_CONFIGS
        else:
            self._retry_configs = {}
        self._logger = logger or get_logger("gateway")
        self._clients: dict[tuple[str, str], BaseLLMClient] = {}

    def client_for(self, provider: str, model: str) -> BaseLLMClient:
        key = (provider, model)
        if key not in self._clients:
            self._clients[key] = self._factory(
                provider, model, self._settings, timeout=self._settings.llm_timeout_seconds
            )
        return self._clients[key]

    async def send(self, prompt: str, options: GatewayOptions | None = None) -> str:
        """Return the model's reply text.

        Raises:
            ModelGatewayError: Provider error after retries, timeout or empty reply.
        """
        opts = options or GatewayOptions()
        provider = opts.provider or self._settings.llm_default_provider
        model = opts.model or self._settings.llm_default_model
        temperature = (
            opts.temperature if opts.temperature is not None else self._settings.llm_temperature
        )
        max_tokens = opts.max_tokens or self._settings.llm_max_tokens

        try:
            client = self.client_for(provider, model)
        except (UnsupportedProviderError, ImportError) as exc:
            raise ModelGatewayError(str(exc), provider=provider, model=model) from exc

        self._logger.info(
            "Sending prompt to %s/%s (%d chars)", provider, model, len(prompt)
        )
        try:
            response: LLMResponse = await with_retry(
                self._complete_once,
                client,
                [Message(role="user", content=prompt)],
                opts.system,
                max_tokens,
                temperature,
                operation=f"{provider}/{model}",
                retry_configs=self._retry_configs,
            )
        except LLMRetryExhausted as exc:
            raise ModelGatewayError(
                f"Model call failed ({exc.error_type}): {exc.last_error}",
                provider=provider,
                model=model,
            ) from exc

        if not response.content or not response.content.strip():
            raise ModelGatewayError("Model returned an empty response", provider, model)

        self._logger.info(
            "Received %d chars from %s/%s in %dms",
            len(response.content), provider, model, response.latency_ms,
        )
        return response.content

    async def _complete_once(
        self,
        client: BaseLLMClient,
        messages: list[Message],
        system: str | None,
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse:
        return await asyncio.wait_for(
            client.complete(
                messages, system=system, max_tokens=max_tokens, temperature=temperature
            ),
            timeout=self._settings.llm_timeout_seconds,
        )
