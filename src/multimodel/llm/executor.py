"""
Generation Executor
===================

One uniform call shape for every provider:

    (provider, prompt, options) -> GenerationResult | typed ProviderError

The executor times each call, enforces the per-call deadline, and turns
whatever a binding raises into one of the ProviderError types. It never
retries; retry policy belongs to the controllers.

Usage:
    executor = GenerationExecutor(registry, timeout_seconds=30)

    # Raises on failure
    result = await executor.invoke(ProviderName.CLAUDE, "Write a tagline")

    # Never raises; failure comes back as a value
    attempt = await executor.attempt(ProviderName.CLAUDE, "Write a tagline")
    if not attempt.succeeded:
        print(attempt.error_type, attempt.error)
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Union

from .metrics import AttemptEvent, RoutingMetrics
from .providers import (
    EmptyResponseError,
    GenerationOptions,
    ProviderError,
    ProviderInvocationError,
    ProviderName,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from .registry import ProviderRegistry
from .types import GenerationResult, ProviderAttempt

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT_SECONDS = 60.0


class GenerationExecutor:
    """
    Normalizes provider calls into GenerationResults or typed failures.

    Args:
        registry: Source of provider bindings and availability
        timeout_seconds: Per-call deadline (None disables it)
        metrics: Optional sink for one AttemptEvent per call
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
        metrics: Optional[RoutingMetrics] = None,
    ):
        self.registry = registry
        self.timeout_seconds = timeout_seconds
        self.metrics = metrics

    async def invoke(
        self,
        provider: Union[str, ProviderName],
        prompt: str,
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        """
        Generate text with one provider.

        Raises:
            ProviderUnavailableError: Provider not registered or not initialized
            ProviderTimeoutError: Call exceeded the per-call deadline
            ProviderInvocationError: Network or remote-service error
            EmptyResponseError: Response contained no usable text
        """
        name = ProviderName.parse(provider)
        binding = self.registry.get(name)
        if binding is None or not self.registry.is_available(name):
            raise ProviderUnavailableError(name.value, "not initialized")

        options = options or GenerationOptions()
        start = time.perf_counter()

        try:
            call = binding.generate(prompt, options)
            if self.timeout_seconds is not None:
                text = await asyncio.wait_for(call, timeout=self.timeout_seconds)
            else:
                text = await call
        except asyncio.TimeoutError as e:
            # Also the builtin TimeoutError on 3.11+, which SDKs raise on their own
            elapsed = time.perf_counter() - start
            if self.timeout_seconds is None or elapsed < self.timeout_seconds:
                raise ProviderInvocationError(name.value, f"TimeoutError: {e}") from e
            raise ProviderTimeoutError(name.value, self.timeout_seconds) from None
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderInvocationError(
                name.value,
                f"{type(e).__name__}: {e}",
                status_code=getattr(e, "status_code", None),
            ) from e

        latency_ms = (time.perf_counter() - start) * 1000

        if not text or not text.strip():
            raise EmptyResponseError(name.value)

        return GenerationResult(
            text=text,
            provider=name,
            latency_ms=latency_ms,
            model=binding.model,
        )

    async def attempt(
        self,
        provider: Union[str, ProviderName],
        prompt: str,
        options: Optional[GenerationOptions] = None,
        task: Optional[str] = None,
        strategy: Optional[str] = None,
    ) -> ProviderAttempt:
        """
        Like invoke(), but failures are returned as values.

        Only cancellation propagates.
        """
        name = ProviderName.parse(provider)
        start = time.perf_counter()
        result: Optional[GenerationResult] = None
        error: Optional[ProviderError] = None

        try:
            result = await self.invoke(name, prompt, options)
        except ProviderError as e:
            error = e

        latency_ms = result.latency_ms if result else (time.perf_counter() - start) * 1000

        if result:
            logger.debug(f"{name.value} succeeded in {latency_ms:.0f}ms")
        else:
            logger.warning(f"{name.value} failed after {latency_ms:.0f}ms: {error.message}")

        self._record(name, latency_ms, result, error, task, strategy)
        return ProviderAttempt(provider=name, latency_ms=latency_ms, result=result, error=error)

    def _record(
        self,
        name: ProviderName,
        latency_ms: float,
        result: Optional[GenerationResult],
        error: Optional[ProviderError],
        task: Optional[str],
        strategy: Optional[str],
    ) -> None:
        if self.metrics is None:
            return
        binding = self.registry.get(name)
        self.metrics.log(AttemptEvent(
            provider=name.value,
            success=result is not None,
            latency_ms=latency_ms,
            task=task,
            strategy=strategy,
            model=binding.model if binding else None,
            error_type=type(error).__name__ if error else None,
            error_message=error.message[:200] if error else None,
        ))


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "GenerationExecutor",
]
