"""
Tests for Generation Executor
=============================

Tests result normalization, typed failures, timeouts and attempt events.
"""

import asyncio

import pytest

from multimodel.llm import (
    EmptyResponseError,
    GenerationExecutor,
    GenerationOptions,
    ProviderInvocationError,
    ProviderName,
    ProviderTimeoutError,
    ProviderUnavailableError,
    RoutingMetrics,
)


class ApiError(Exception):
    def __init__(self, message, status_code):
        super().__init__(message)
        self.status_code = status_code


class TestInvoke:
    """Test GenerationExecutor.invoke()."""

    @pytest.mark.asyncio
    async def test_success(self, fake_provider, make_registry):
        provider = fake_provider(ProviderName.CLAUDE, ["A bold headline"])
        executor = GenerationExecutor(make_registry(provider))

        result = await executor.invoke("claude", "headline", GenerationOptions(max_tokens=50))

        assert result.text == "A bold headline"
        assert result.provider == ProviderName.CLAUDE
        assert result.model == "claude-3-5-sonnet-20241022"
        assert result.latency_ms >= 0
        assert result.fallback_used is False
        assert provider.last_options.max_tokens == 50

    @pytest.mark.asyncio
    async def test_default_options(self, fake_provider, make_registry):
        provider = fake_provider(ProviderName.OPENAI)
        executor = GenerationExecutor(make_registry(provider))

        await executor.invoke(ProviderName.OPENAI, "hi")

        assert provider.last_options.max_tokens == 4096
        assert provider.last_options.temperature == 0.7

    @pytest.mark.asyncio
    async def test_unregistered(self, fake_provider, make_registry):
        executor = GenerationExecutor(make_registry(fake_provider(ProviderName.OPENAI)))
        with pytest.raises(ProviderUnavailableError):
            await executor.invoke("gemini", "hi")

    @pytest.mark.asyncio
    async def test_unconfigured(self, fake_provider, make_registry):
        provider = fake_provider(ProviderName.OPENAI, configured=False)
        executor = GenerationExecutor(make_registry(provider))
        with pytest.raises(ProviderUnavailableError):
            await executor.invoke("openai", "hi")
        assert provider.call_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", [None, "", "   \n"])
    async def test_empty_response(self, fake_provider, make_registry, reply):
        executor = GenerationExecutor(make_registry(fake_provider(ProviderName.GEMINI, [reply])))
        with pytest.raises(EmptyResponseError):
            await executor.invoke("gemini", "hi")

    @pytest.mark.asyncio
    async def test_sdk_error_normalized(self, fake_provider, make_registry):
        provider = fake_provider(ProviderName.OPENAI, [ApiError("rate limited", 429)])
        executor = GenerationExecutor(make_registry(provider))

        with pytest.raises(ProviderInvocationError) as exc_info:
            await executor.invoke("openai", "hi")

        assert exc_info.value.status_code == 429
        assert exc_info.value.provider == "openai"
        assert isinstance(exc_info.value.__cause__, ApiError)

    @pytest.mark.asyncio
    async def test_provider_error_passes_through(self, fake_provider, make_registry):
        original = ProviderInvocationError("gemini", "API error: 500", status_code=500)
        executor = GenerationExecutor(make_registry(fake_provider(ProviderName.GEMINI, [original])))

        with pytest.raises(ProviderInvocationError) as exc_info:
            await executor.invoke("gemini", "hi")
        assert exc_info.value is original

    @pytest.mark.asyncio
    async def test_timeout(self, fake_provider, make_registry):
        provider = fake_provider(ProviderName.CLAUDE, delay=1.0)
        executor = GenerationExecutor(make_registry(provider), timeout_seconds=0.05)

        with pytest.raises(ProviderTimeoutError) as exc_info:
            await executor.invoke("claude", "hi")

        assert isinstance(exc_info.value, ProviderInvocationError)
        assert provider.cancelled == 1

    @pytest.mark.asyncio
    async def test_timeout_disabled(self, fake_provider, make_registry):
        provider = fake_provider(ProviderName.CLAUDE, delay=0.05)
        executor = GenerationExecutor(make_registry(provider), timeout_seconds=None)
        result = await executor.invoke("claude", "hi")
        assert result.provider == ProviderName.CLAUDE

    @pytest.mark.asyncio
    async def test_client_timeout_before_deadline(self, fake_provider, make_registry):
        provider = fake_provider(ProviderName.OPENAI, [TimeoutError("read timed out")])
        executor = GenerationExecutor(make_registry(provider), timeout_seconds=5.0)

        with pytest.raises(ProviderInvocationError) as exc_info:
            await executor.invoke("openai", "hi")

        assert not isinstance(exc_info.value, ProviderTimeoutError)
        assert "read timed out" in exc_info.value.message


class TestAttempt:
    """Test GenerationExecutor.attempt()."""

    @pytest.mark.asyncio
    async def test_success_value(self, fake_provider, make_registry):
        executor = GenerationExecutor(make_registry(fake_provider(ProviderName.OPENAI)))
        attempt = await executor.attempt("openai", "hi")

        assert attempt.succeeded
        assert attempt.error is None
        assert attempt.result.provider == ProviderName.OPENAI

    @pytest.mark.asyncio
    async def test_failure_value(self, fake_provider, make_registry):
        provider = fake_provider(ProviderName.OPENAI, [RuntimeError("connection reset")])
        executor = GenerationExecutor(make_registry(provider))

        attempt = await executor.attempt("openai", "hi")

        assert not attempt.succeeded
        assert attempt.error_type == "ProviderInvocationError"
        assert "connection reset" in attempt.error.message

    @pytest.mark.asyncio
    async def test_events_recorded(self, fake_provider, make_registry):
        metrics = RoutingMetrics()
        registry = make_registry(
            fake_provider(ProviderName.OPENAI),
            fake_provider(ProviderName.CLAUDE, [""]),
        )
        executor = GenerationExecutor(registry, metrics=metrics)

        await executor.attempt("openai", "hi", task="seo", strategy="fallback")
        await executor.attempt("claude", "hi", task="seo", strategy="fallback")

        events = metrics.recent()
        assert [e.provider for e in events] == ["openai", "claude"]
        assert events[0].success and events[0].model == "gpt-4o"
        assert not events[1].success
        assert events[1].error_type == "EmptyResponseError"
        assert events[1].task == "seo"
        assert metrics.get_summary()["provider_failures"] == {"claude": 1}

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, fake_provider, make_registry):
        provider = fake_provider(ProviderName.CLAUDE, delay=1.0)
        executor = GenerationExecutor(make_registry(provider), timeout_seconds=None)

        task = asyncio.ensure_future(executor.attempt("claude", "hi"))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert provider.cancelled == 1
