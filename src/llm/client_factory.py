# src/llm/client_factory.py — v3
"""Factory: instantiate LLM client from provider name.

LM Studio and OpenRouter speak the OpenAI chat API and reuse the OpenAI
adapter with their own base URL.
"""

from __future__ import annotations

import importlib
import logging

from vibecode.config.settings import Settings
from vibecode.llm.base_client import BaseLLMClient

logger = logging.getLogger("vibecode.llm.client_factory")

# Registry of provider name → adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "anthropic": "vibecode.llm.adapters.anthropic_adapter.AnthropicAdapter",
    "openai": "vibecode.llm.adapters.openai_adapter.OpenAIAdapter",
    "lmstudio": "vibecode.llm.adapters.openai_adapter.OpenAIAdapter",
    "openrouter": "vibecode.llm.adapters.openai_adapter.OpenAIAdapter",
    "ollama": "vibecode.llm.adapters.ollama_adapter.OllamaAdapter",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def available_providers() -> list[str]:
    return sorted(_PROVIDER_REGISTRY)


def create_llm_client(
    provider: str,
    model: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseLLMClient:
    """Instantiate the correct adapter from provider name.

    Args:
        provider: Provider identifier (see ``available_providers``).
        model: Model name (e.g. claude-sonnet-4-20250514).
        settings: Application settings (for API keys and endpoints).
        **kwargs: Additional provider-specific arguments.

    Raises:
        UnsupportedProviderError: If provider is not registered.
    """
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. "
            f"Available: {', '.join(available_providers())}"
        )

    adapter_cls = _import_class(_PROVIDER_REGISTRY[provider])

    init_kwargs = dict(kwargs)
    init_kwargs["model"] = model

    if settings is not None:
        if provider == "anthropic":
            init_kwargs.setdefault("api_key", settings.anthropic_api_key)
        elif provider == "openai":
            init_kwargs.setdefault("api_key", settings.openai_api_key)
            if settings.openai_base_url:
                init_kwargs.setdefault("base_url", settings.openai_base_url)
        elif provider == "lmstudio":
            init_kwargs.setdefault("api_key", "lm-studio")
            init_kwargs.setdefault("base_url", settings.lmstudio_base_url)
        elif provider == "openrouter":
            init_kwargs.setdefault("api_key", settings.openrouter_api_key)
            init_kwargs.setdefault("base_url", settings.openrouter_base_url)
        elif provider == "ollama":
            init_kwargs.setdefault("host", settings.ollama_base_url)
    if provider in ("lmstudio", "openrouter"):
        init_kwargs.setdefault("provider", provider)

    logger.debug("Creating LLM client: provider=%s, model=%s", provider, model)
    return adapter_cls(**init_kwargs)


def register_provider(name: str, class_path: str) -> None:
    """Register a custom provider adapter.

    Args:
        name: Provider identifier.
        class_path: Fully qualified class path implementing BaseLLMClient.
    """
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered LLM provider: %s → %s", name, class_path)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
