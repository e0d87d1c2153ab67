# src/llm/base_client.py — v2
"""Abstract LLM client interface implemented by every provider adapter."""

from __future__ import annotations

from abc import ABC, abstractmethod

from vibecode.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all LLM providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4000,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Text completion."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (anthropic, openai, lmstudio, openrouter, ollama)."""
