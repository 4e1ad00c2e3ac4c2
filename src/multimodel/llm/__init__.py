"""
Multi-Provider Generation Layer
===============================

Routes text-generation requests across several external providers:
- OpenAI (gpt-4o)
- Anthropic Claude (claude-3-5-sonnet)
- Google Gemini (gemini-2.0-flash)

Callers ask for "text for task X"; the orchestrator decides which
providers answer and how (fallback chain, parallel race, or consensus).

Usage:
    from multimodel.llm import get_orchestrator, GenerationRequest

    orch = get_orchestrator()

    # Task-aware dispatch
    result = await orch.dispatch(GenerationRequest(task="content", prompt="..."))
    print(f"Used: {result.provider.value}, fallback={result.fallback_used}")

    # Consensus for critical output
    consensus = await orch.generate_consensus("analysis", "Review ...")
    print(consensus.agreement_score)

    # Profiles
    orch = get_orchestrator(preset="fast")
"""

# === Orchestrator ===
from .orchestrator import (
    ModelOrchestrator,
    UsageStats,
    get_orchestrator,
    reset_orchestrator,
)

from .strategies import (
    Strategy,
    StrategyConfig,
    PRESETS,
    get_preset,
    load_profile,
)

# === Routing ===
from .registry import ProviderRegistry, ProviderStatus
from .task_router import TaskCategory, TaskRouter, TASK_PROVIDER_PREFERENCE

# === Execution ===
from .executor import GenerationExecutor
from .controllers import (
    FallbackChainController,
    ParallelRaceController,
    ConsensusAggregator,
)
from .agreement import agreement_score, jaccard_similarity, significant_words

# === Types ===
from .types import (
    GenerationRequest,
    GenerationResult,
    ProviderAttempt,
    ConsensusResult,
)

# === Metrics ===
from .metrics import AttemptEvent, RoutingMetrics

# === Providers ===
from .providers import (
    ProviderName,
    ProviderCapability,
    ProviderDescriptor,
    PROVIDER_DESCRIPTORS,
    GenerationOptions,
    BaseProvider,
    OpenAIProvider,
    ClaudeProvider,
    GeminiProvider,
    ProviderError,
    ProviderUnavailableError,
    ProviderInvocationError,
    ProviderTimeoutError,
    EmptyResponseError,
    AllProvidersFailedError,
)


__all__ = [
    # Orchestrator
    "ModelOrchestrator",
    "UsageStats",
    "get_orchestrator",
    "reset_orchestrator",
    "Strategy",
    "StrategyConfig",
    "PRESETS",
    "get_preset",
    "load_profile",

    # Routing
    "ProviderRegistry",
    "ProviderStatus",
    "TaskCategory",
    "TaskRouter",
    "TASK_PROVIDER_PREFERENCE",

    # Execution
    "GenerationExecutor",
    "FallbackChainController",
    "ParallelRaceController",
    "ConsensusAggregator",
    "agreement_score",
    "jaccard_similarity",
    "significant_words",

    # Types
    "GenerationRequest",
    "GenerationResult",
    "ProviderAttempt",
    "ConsensusResult",

    # Metrics
    "AttemptEvent",
    "RoutingMetrics",

    # Providers
    "ProviderName",
    "ProviderCapability",
    "ProviderDescriptor",
    "PROVIDER_DESCRIPTORS",
    "GenerationOptions",
    "BaseProvider",
    "OpenAIProvider",
    "ClaudeProvider",
    "GeminiProvider",
    "ProviderError",
    "ProviderUnavailableError",
    "ProviderInvocationError",
    "ProviderTimeoutError",
    "EmptyResponseError",
    "AllProvidersFailedError",
]
