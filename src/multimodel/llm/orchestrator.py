"""
Model Orchestrator
==================

Single entry point for generating text across multiple providers.

The orchestrator routes each request to an ordered list of available
providers and hands that route to one of three controllers:

- Fallback chain for ordinary tasks
- Parallel race for latency-sensitive tasks (design, creative), with the
  fallback chain as a safety net
- Consensus for high-criticality tasks (analysis) or on request

Callers get a non-empty GenerationResult/ConsensusResult or exactly one
AllProvidersFailedError.

Usage:
    from multimodel.llm import get_orchestrator

    orch = get_orchestrator()

    # Task-aware dispatch
    result = await orch.dispatch(GenerationRequest(task="content", prompt="..."))
    print(result.text, result.provider, result.fallback_used)

    # Explicit strategies
    result = await orch.generate("seo", "Write a meta description for ...")
    result = await orch.generate_parallel("design", "Suggest a palette for ...")
    consensus = await orch.generate_consensus("analysis", "Review this layout ...")
    print(consensus.agreement_score)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .controllers import ConsensusAggregator, FallbackChainController, ParallelRaceController
from .executor import GenerationExecutor
from .metrics import RoutingMetrics
from .providers import AllProvidersFailedError, ProviderDescriptor, ProviderName
from .registry import ProviderRegistry
from .strategies import Strategy, StrategyConfig, get_preset, load_profile
from .task_router import TaskCategory, TaskRouter
from .types import ConsensusResult, GenerationRequest, GenerationResult

logger = logging.getLogger(__name__)

# Debug routing logger (separate from main logger for filtering)
routing_logger = logging.getLogger("multimodel.routing")


# =============================================================================
# Usage Statistics
# =============================================================================

@dataclass
class UsageStats:
    """Aggregated usage statistics."""
    total_requests: int = 0
    total_latency_ms: float = 0.0
    fallbacks_used: int = 0
    errors: int = 0
    strategy_counts: Dict[str, int] = field(default_factory=dict)
    provider_counts: Dict[str, int] = field(default_factory=dict)

    def add(self, strategy: Strategy, response: Union[GenerationResult, ConsensusResult]):
        """Update stats with a response."""
        self.total_requests += 1
        self.total_latency_ms += response.latency_ms
        self.strategy_counts[strategy.value] = self.strategy_counts.get(strategy.value, 0) + 1

        if isinstance(response, ConsensusResult):
            providers = response.providers
        else:
            providers = [response.provider]
            if response.fallback_used:
                self.fallbacks_used += 1

        for provider in providers:
            self.provider_counts[provider.value] = self.provider_counts.get(provider.value, 0) + 1

    def add_failure(self, strategy: Strategy):
        self.total_requests += 1
        self.errors += 1
        self.strategy_counts[strategy.value] = self.strategy_counts.get(strategy.value, 0) + 1

    @property
    def average_latency_ms(self) -> float:
        succeeded = self.total_requests - self.errors
        return self.total_latency_ms / succeeded if succeeded else 0.0


# =============================================================================
# Model Orchestrator
# =============================================================================

class ModelOrchestrator:
    """
    Central orchestrator for multi-provider text generation.

    Features:
    - Task-aware provider routing with caller preference
    - Sequential fallback, parallel race and consensus strategies
    - Per-call timeouts and typed provider failures
    - Attempt metrics and routing logs

    Example:
        orch = ModelOrchestrator()

        result = await orch.complete("Write a hero headline", task="content")
        print(f"Used: {result.provider.value} ({result.model})")

        # Force a strategy for every request
        orch = ModelOrchestrator(strategy=Strategy.RACE)

        # Use a profile
        orch = ModelOrchestrator(profile="critical")
    """

    def __init__(
        self,
        strategy: Strategy = Strategy.AUTO,
        config: Optional[StrategyConfig] = None,
        profile: Optional[str] = None,
        registry: Optional[ProviderRegistry] = None,
        metrics: Optional[RoutingMetrics] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            strategy: Primary routing strategy
            config: Detailed configuration (overrides strategy if provided)
            profile: Load config from named profile (e.g., 'fast')
            registry: Provider registry (default: providers from environment)
            metrics: Attempt metrics sink (default: built from config)
        """
        if profile:
            self.config = load_profile(profile)
            logger.info(f"Loaded profile: {profile}")
        elif config:
            self.config = config
        else:
            self.config = StrategyConfig(strategy=strategy)

        self.registry = registry if registry is not None else ProviderRegistry()

        if metrics is None:
            metrics = RoutingMetrics(
                log_file=self.config.metrics_log_file,
                enabled=self.config.metrics_enabled,
            )
        self.metrics = metrics

        self.stats = UsageStats()
        self._build_components()

        profile_name = self.config.profile_name or "default"
        logger.info(f"ModelOrchestrator initialized: strategy={self.strategy.value}, profile={profile_name}")

    def _build_components(self) -> None:
        self.router = TaskRouter(self.registry, preferences=self.config.task_preferences)
        self.executor = GenerationExecutor(
            self.registry,
            timeout_seconds=self.config.timeout_seconds,
            metrics=self.metrics,
        )
        self.fallback = FallbackChainController(self.executor)
        self.race = ParallelRaceController(
            self.executor, cancel_losers=self.config.cancel_race_losers
        )
        self.consensus = ConsensusAggregator(
            self.executor, min_responses=self.config.min_consensus_responses
        )

    @property
    def strategy(self) -> Strategy:
        return self.config.strategy

    # =========================================================================
    # Strategy Switching
    # =========================================================================

    def switch_strategy(self, profile_or_strategy: Union[str, Strategy, StrategyConfig]) -> None:
        """
        Switch to a different strategy at runtime.

        Args:
            profile_or_strategy: One of:
                - Profile name (str): e.g., 'fast', 'critical'
                - Strategy enum: Strategy.RACE
                - StrategyConfig: Full configuration object
        """
        if isinstance(profile_or_strategy, StrategyConfig):
            new_config = profile_or_strategy
        elif isinstance(profile_or_strategy, Strategy):
            new_config = StrategyConfig(strategy=profile_or_strategy)
        else:
            new_config = load_profile(profile_or_strategy)

        old_profile = self.config.profile_name or "default"
        new_profile = new_config.profile_name or "default"

        self.config = new_config
        self._build_components()

        logger.info(f"Switched strategy: {old_profile} -> {new_profile} (strategy={self.strategy.value})")

    def get_current_profile(self) -> str:
        """Get the name of the current strategy profile."""
        return self.config.profile_name or "default"

    # =========================================================================
    # Dispatch
    # =========================================================================

    def select_strategy(self, request: GenerationRequest) -> Strategy:
        """Concrete strategy this request would run under."""
        return self.config.strategy_for(request.task, request.use_consensus)

    async def dispatch(
        self,
        request: GenerationRequest,
    ) -> Union[GenerationResult, ConsensusResult]:
        """
        Generate text for a request using the strategy its task calls for.

        Raises:
            AllProvidersFailedError: No provider available or every one failed
        """
        strategy = self.select_strategy(request)
        route = self.router.route(request.task, request.preferred_provider)
        primary = self.router.primary(request.task, request.preferred_provider)
        options = request.options(self.config.max_tokens, self.config.temperature)

        logger.debug(
            f"Dispatching {request.task.value} via {strategy.value}: "
            f"route={[p.value for p in route]}"
        )

        try:
            if not route:
                raise AllProvidersFailedError(request.task.value, [], strategy=strategy.value)

            if strategy == Strategy.CONSENSUS:
                response = await self.consensus.run(route, request.prompt, options, request.task)
            elif strategy == Strategy.RACE:
                response = await self._race_with_safety_net(route, request, options, primary)
            else:
                response = await self.fallback.run(
                    route, request.prompt, options, request.task, primary
                )
        except AllProvidersFailedError as e:
            self.stats.add_failure(strategy)
            self._log_routing_decision(request, strategy, route, error=e)
            logger.error(f"Generation failed for {request.task.value}: {e.message}")
            raise

        self.stats.add(strategy, response)
        self._log_routing_decision(request, strategy, route, response=response)
        return response

    async def _race_with_safety_net(self, route, request, options, primary) -> GenerationResult:
        try:
            return await self.race.run(route, request.prompt, options, request.task, primary)
        except AllProvidersFailedError as e:
            if not self.config.race_fallback_enabled:
                raise
            logger.warning(f"Race failed for {request.task.value} ({e.message}), running fallback chain")
            race_attempts = e.attempts

        # Availability may have changed while the race ran
        route = self.router.route(request.task, request.preferred_provider)
        try:
            result = await self.fallback.run(route, request.prompt, options, request.task, primary)
        except AllProvidersFailedError as e:
            raise AllProvidersFailedError(
                request.task.value, race_attempts + e.attempts, strategy=e.strategy
            ) from e
        result.fallback_used = True
        return result

    # =========================================================================
    # Public API
    # =========================================================================

    async def generate(
        self,
        task: Union[str, TaskCategory],
        prompt: str,
        preferred_provider: Optional[Union[str, ProviderName]] = None,
        **options,
    ) -> GenerationResult:
        """Sequential fallback chain, regardless of task."""
        request = GenerationRequest(task, prompt, preferred_provider, **options)
        route = self.router.route(request.task, request.preferred_provider)
        primary = self.router.primary(request.task, request.preferred_provider)
        return await self._run_explicit(
            Strategy.FALLBACK,
            request,
            self.fallback.run(
                route, prompt, self._options(request), request.task, primary
            ),
        )

    async def generate_parallel(
        self,
        task: Union[str, TaskCategory],
        prompt: str,
        preferred_provider: Optional[Union[str, ProviderName]] = None,
        **options,
    ) -> GenerationResult:
        """Parallel race, regardless of task. No safety net."""
        request = GenerationRequest(task, prompt, preferred_provider, **options)
        route = self.router.route(request.task, request.preferred_provider)
        primary = self.router.primary(request.task, request.preferred_provider)
        return await self._run_explicit(
            Strategy.RACE,
            request,
            self.race.run(route, prompt, self._options(request), request.task, primary),
        )

    async def generate_consensus(
        self,
        task: Union[str, TaskCategory],
        prompt: str,
        **options,
    ) -> ConsensusResult:
        """Consensus across every available provider, regardless of task."""
        request = GenerationRequest(task, prompt, use_consensus=True, **options)
        route = self.router.route(request.task)
        return await self._run_explicit(
            Strategy.CONSENSUS,
            request,
            self.consensus.run(route, prompt, self._options(request), request.task),
        )

    async def complete(
        self,
        prompt: str,
        task: Union[str, TaskCategory] = TaskCategory.REASONING,
        preferred_provider: Optional[Union[str, ProviderName]] = None,
        use_consensus: bool = False,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Union[GenerationResult, ConsensusResult]:
        """
        Convenience wrapper around dispatch().

        Args:
            prompt: The prompt to complete
            task: Task category (default: reasoning)
            preferred_provider: Provider to try first
            use_consensus: Force consensus
            max_tokens: Override default max tokens
            temperature: Override default temperature
        """
        request = GenerationRequest(
            task=task,
            prompt=prompt,
            preferred_provider=preferred_provider,
            use_consensus=use_consensus,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        return await self.dispatch(request)

    def _options(self, request: GenerationRequest):
        return request.options(self.config.max_tokens, self.config.temperature)

    async def _run_explicit(self, strategy: Strategy, request: GenerationRequest, run):
        try:
            response = await run
        except AllProvidersFailedError as e:
            self.stats.add_failure(strategy)
            logger.error(f"Generation failed for {request.task.value}: {e.message}")
            raise
        self.stats.add(strategy, response)
        self._log_routing_decision(request, strategy, None, response=response)
        return response

    # =========================================================================
    # Providers
    # =========================================================================

    def get_available_providers(self) -> List[ProviderDescriptor]:
        """Descriptors of every currently available provider."""
        return self.registry.available_descriptors()

    def get_provider_status(self) -> Dict[str, Dict[str, Any]]:
        """Availability and configuration per provider, keyed by name."""
        return {
            name.value: status.to_dict()
            for name, status in self.registry.status().items()
        }

    def refresh_providers(self) -> Dict[ProviderName, bool]:
        """Re-probe provider availability."""
        return self.registry.refresh()

    def reset_stats(self):
        """Reset usage statistics."""
        self.stats = UsageStats()
        self.metrics.reset()

    # =========================================================================
    # Routing Logs
    # =========================================================================

    def _log_routing_decision(
        self,
        request: GenerationRequest,
        strategy: Strategy,
        route: Optional[List[ProviderName]],
        response: Optional[Union[GenerationResult, ConsensusResult]] = None,
        error: Optional[AllProvidersFailedError] = None,
    ) -> None:
        """
        Log the routing outcome of one request.

        Only logs when debug_routing is enabled in config.
        """
        if not self.config.debug_routing:
            return

        route_desc = ",".join(p.value for p in route) if route is not None else "-"

        if error is not None:
            routing_logger.info(
                f"ROUTING: {request.task.value} [{strategy.value}] route={route_desc} "
                f"-> FAILED ({error.message})"
            )
        elif isinstance(response, ConsensusResult):
            routing_logger.info(
                f"ROUTING: {request.task.value} [{strategy.value}] route={route_desc} "
                f"-> {','.join(p.value for p in response.providers)} "
                f"[{response.latency_ms:.0f}ms, agreement={response.agreement_score:.2f}]"
            )
        elif response is not None:
            routing_logger.info(
                f"ROUTING: {request.task.value} [{strategy.value}] route={route_desc} "
                f"-> {response.provider.value}/{response.model} "
                f"[{response.latency_ms:.0f}ms, fallback={response.fallback_used}]"
            )


# =============================================================================
# Module-level Convenience
# =============================================================================

_default_orchestrator: Optional[ModelOrchestrator] = None


def get_orchestrator(
    strategy: Strategy = Strategy.AUTO,
    preset: Optional[str] = None,
    profile: Optional[str] = None,
    load_secrets: bool = True,
    **kwargs,
) -> ModelOrchestrator:
    """
    Get or create the model orchestrator.

    Args:
        strategy: Orchestration strategy
        preset: Use a preset configuration (default, fast, critical, sequential)
        profile: Load from YAML profile
        load_secrets: Load .secrets/ key files into the environment first
        **kwargs: Additional arguments for ModelOrchestrator

    Returns:
        ModelOrchestrator instance

    Examples:
        orch = get_orchestrator()
        orch = get_orchestrator(profile="config/strategies/custom.yaml")
        orch = get_orchestrator(preset="fast")
    """
    global _default_orchestrator

    if load_secrets:
        from ..secrets import load_secrets as _load_secrets
        _load_secrets()

    if profile:
        return ModelOrchestrator(profile=profile, **kwargs)

    if preset:
        return ModelOrchestrator(config=get_preset(preset), **kwargs)

    if kwargs:
        return ModelOrchestrator(strategy=strategy, **kwargs)

    if _default_orchestrator is None or _default_orchestrator.strategy != strategy:
        _default_orchestrator = ModelOrchestrator(strategy=strategy)

    return _default_orchestrator


def reset_orchestrator():
    """Reset the default orchestrator."""
    global _default_orchestrator
    _default_orchestrator = None


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "ModelOrchestrator",
    "UsageStats",
    "routing_logger",
    "get_orchestrator",
    "reset_orchestrator",
]
