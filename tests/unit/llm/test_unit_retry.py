# tests/unit/llm/test_unit_retry.py — v1
"""Tests for llm/retry.py — error classification and backoff loop."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from vibecode.llm.retry import LLMRetryExhausted, RetryConfig, classify_error, with_retry

FAST = {
    "rate_limit": RetryConfig(max_retries=2, base_delay_s=0.0, jitter=False),
    "timeout": RetryConfig(max_retries=1, base_delay_s=0.0, jitter=False),
}


class TestClassifyError:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (Exception("HTTP 429 Too Many Requests"), "rate_limit"),
            (TimeoutError(), "timeout"),
            (Exception("502 Bad Gateway"), "server_error"),
            (ConnectionRefusedError("refused"), "connection"),
            (Exception("maximum token limit exceeded"), "token_limit"),
            (ValueError("bad input"), "unknown"),
        ],
    )
    def test_classification(self, error, expected):
        assert classify_error(error) == expected


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self):
        fn = AsyncMock(return_value="ok")
        assert await with_retry(fn, 1, retry_configs=FAST) == "ok"
        fn.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        fn = AsyncMock(side_effect=[Exception("429"), Exception("429"), "ok"])
        sleep = AsyncMock()
        assert await with_retry(fn, retry_configs=FAST, sleep=sleep) == "ok"
        assert fn.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted(self):
        fn = AsyncMock(side_effect=TimeoutError())
        with pytest.raises(LLMRetryExhausted) as exc_info:
            await with_retry(fn, operation="demo", retry_configs=FAST, sleep=AsyncMock())
        assert exc_info.value.error_type == "timeout"
        assert exc_info.value.attempts == 2

    @pytest.mark.asyncio
    async def test_unknown_not_retried(self):
        fn = AsyncMock(side_effect=ValueError("nope"))
        with pytest.raises(LLMRetryExhausted):
            await with_retry(fn, retry_configs=FAST, sleep=AsyncMock())
        fn.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_config_disables_retry(self):
        fn = AsyncMock(side_effect=Exception("429"))
        with pytest.raises(LLMRetryExhausted):
            await with_retry(fn, retry_configs={}, sleep=AsyncMock())
        fn.assert_awaited_once()
