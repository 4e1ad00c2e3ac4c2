"""
Generation Controllers
======================

The three ways of spending a route on one request:

- FallbackChainController: one provider at a time, in route order, until
  one succeeds. Maximizes the chance of success at the cost of latency.
- ParallelRaceController: every provider at once, first success wins.
- ConsensusAggregator: every provider at once, wait for all, score how
  much the answers agree.

Controllers never see raw provider exceptions. They work on the
ProviderAttempt values returned by GenerationExecutor.attempt() and raise
exactly one AllProvidersFailedError when nothing usable came back.

Usage:
    executor = GenerationExecutor(registry)
    route = router.route("content")

    result = await FallbackChainController(executor).run(route, prompt)
    result = await ParallelRaceController(executor).run(route, prompt)
    consensus = await ConsensusAggregator(executor).run(route, prompt)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Set, Union

from .agreement import agreement_score
from .executor import GenerationExecutor
from .providers import AllProvidersFailedError, GenerationOptions, ProviderName
from .task_router import TaskCategory
from .types import ConsensusResult, GenerationResult, ProviderAttempt

logger = logging.getLogger(__name__)


def _task_label(task: Optional[Union[str, TaskCategory]]) -> str:
    if task is None:
        return "unspecified"
    return task.value if isinstance(task, TaskCategory) else str(task)


# =============================================================================
# Fallback Chain
# =============================================================================

class FallbackChainController:
    """
    Sequential fallback over a route.

    Providers are tried strictly in order; a later provider is never
    called once an earlier one has succeeded. The reported latency is the
    sum over every attempt made, failed ones included.
    """

    strategy_name = "fallback"

    def __init__(self, executor: GenerationExecutor):
        self.executor = executor

    async def run(
        self,
        providers: Sequence[ProviderName],
        prompt: str,
        options: Optional[GenerationOptions] = None,
        task: Optional[Union[str, TaskCategory]] = None,
        primary: Optional[ProviderName] = None,
    ) -> GenerationResult:
        """
        Generate with the first provider that succeeds.

        Args:
            providers: Route order (available providers only)
            prompt: Prompt text
            options: Generation options
            task: Task category, for logging and errors
            primary: Provider the caller intended to use; a success from
                any other provider is reported as a fallback

        Raises:
            AllProvidersFailedError: Route empty or every provider failed
        """
        label = _task_label(task)
        attempts: List[ProviderAttempt] = []

        for i, provider in enumerate(providers):
            attempt = await self.executor.attempt(
                provider, prompt, options, task=label, strategy=self.strategy_name
            )
            attempts.append(attempt)

            if attempt.succeeded:
                result = attempt.result
                result.attempts = len(attempts)
                result.latency_ms = sum(a.latency_ms for a in attempts)
                result.fallback_used = i > 0 or (primary is not None and provider != primary)
                if result.fallback_used:
                    logger.info(f"Fallback to {provider.value} for {label} after {i} failed attempt(s)")
                return result

            logger.info(f"{provider.value} failed for {label}, trying next provider")

        raise AllProvidersFailedError(label, attempts, strategy=self.strategy_name)


# =============================================================================
# Parallel Race
# =============================================================================

class ParallelRaceController:
    """
    Concurrent race over a route.

    The first success in completion order wins; attempts finishing in the
    same loop iteration are ordered by route position. A failed attempt
    never ends the race. Failure is only reported after every attempt has
    settled.
    """

    strategy_name = "race"

    def __init__(self, executor: GenerationExecutor, cancel_losers: bool = True):
        """
        Args:
            executor: Executor used for every attempt
            cancel_losers: Cancel attempts still running after a winner is
                found; when False they run to completion and are discarded
        """
        self.executor = executor
        self.cancel_losers = cancel_losers
        self._background: Set[asyncio.Task] = set()

    async def run(
        self,
        providers: Sequence[ProviderName],
        prompt: str,
        options: Optional[GenerationOptions] = None,
        task: Optional[Union[str, TaskCategory]] = None,
        primary: Optional[ProviderName] = None,
    ) -> GenerationResult:
        """
        Generate with every provider concurrently, return the first success.

        Raises:
            AllProvidersFailedError: Route empty or every provider failed
        """
        label = _task_label(task)
        if not providers:
            raise AllProvidersFailedError(label, [], strategy=self.strategy_name)

        order: Dict[asyncio.Task, int] = {}
        for i, provider in enumerate(providers):
            coro = self.executor.attempt(
                provider, prompt, options, task=label, strategy=self.strategy_name
            )
            order[asyncio.ensure_future(coro)] = i

        pending: Set[asyncio.Task] = set(order)
        attempts: List[ProviderAttempt] = []
        winner: Optional[ProviderAttempt] = None

        try:
            while pending and winner is None:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for finished in sorted(done, key=order.__getitem__):
                    attempt = finished.result()
                    attempts.append(attempt)
                    if winner is None and attempt.succeeded:
                        winner = attempt
        except BaseException:
            # Cancelled, or an attempt raised past the executor
            for running in pending:
                running.cancel()
            raise

        if pending:
            self._release_losers(pending)

        if winner is None:
            raise AllProvidersFailedError(label, attempts, strategy=self.strategy_name)

        result = winner.result
        result.attempts = len(attempts)
        result.fallback_used = primary is not None and result.provider != primary
        logger.info(
            f"Race for {label} won by {result.provider.value} in {result.latency_ms:.0f}ms "
            f"({len(pending)} still running)"
        )
        return result

    def _release_losers(self, pending: Set[asyncio.Task]) -> None:
        if self.cancel_losers:
            for loser in pending:
                loser.cancel()
            return

        for loser in pending:
            self._background.add(loser)
            loser.add_done_callback(self._background.discard)

    @property
    def running_losers(self) -> int:
        """Loser attempts still in flight (only when cancel_losers is False)."""
        return len(self._background)


# =============================================================================
# Consensus
# =============================================================================

class ConsensusAggregator:
    """
    Concurrent fan-out that waits for every provider and scores agreement.

    The representative text is the first success in route order.
    """

    strategy_name = "consensus"

    def __init__(self, executor: GenerationExecutor, min_responses: int = 2):
        self.executor = executor
        self.min_responses = min_responses

    async def run(
        self,
        providers: Sequence[ProviderName],
        prompt: str,
        options: Optional[GenerationOptions] = None,
        task: Optional[Union[str, TaskCategory]] = None,
    ) -> ConsensusResult:
        """
        Generate with every provider and combine the successes.

        Raises:
            AllProvidersFailedError: Route empty or every provider failed
        """
        label = _task_label(task)
        if not providers:
            raise AllProvidersFailedError(label, [], strategy=self.strategy_name)

        attempts = await asyncio.gather(*(
            self.executor.attempt(p, prompt, options, task=label, strategy=self.strategy_name)
            for p in providers
        ))

        successes = [a.result for a in attempts if a.succeeded]
        failures = [a for a in attempts if not a.succeeded]

        if not successes:
            raise AllProvidersFailedError(label, list(attempts), strategy=self.strategy_name)

        if len(successes) < self.min_responses:
            logger.warning(
                f"Only got {len(successes)} consensus responses for {label}, "
                f"need {self.min_responses}"
            )

        score = agreement_score([r.text for r in successes])
        logger.info(
            f"Consensus for {label}: {len(successes)}/{len(attempts)} providers, "
            f"agreement={score:.2f}"
        )

        return ConsensusResult(
            text=successes[0].text,
            providers=[r.provider for r in successes],
            agreement_score=score,
            results=successes,
            failures=failures,
        )


__all__ = [
    "FallbackChainController",
    "ParallelRaceController",
    "ConsensusAggregator",
]
