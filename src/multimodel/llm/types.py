"""
Request and Result Types
========================

Per-request data passed between the orchestrator, its controllers and the
executor. Everything here is transient: created for one request and
discarded once the caller has the result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .providers import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    GenerationOptions,
    ProviderError,
    ProviderName,
)
from .task_router import TaskCategory


@dataclass
class GenerationRequest:
    """A caller's request for generated text."""
    task: Union[TaskCategory, str]
    prompt: str
    preferred_provider: Optional[Union[ProviderName, str]] = None
    use_consensus: bool = False
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None

    def __post_init__(self):
        self.task = TaskCategory.parse(self.task)
        if self.preferred_provider is not None:
            self.preferred_provider = ProviderName.parse(self.preferred_provider)

    def options(
        self,
        default_max_tokens: int = DEFAULT_MAX_TOKENS,
        default_temperature: float = DEFAULT_TEMPERATURE,
    ) -> GenerationOptions:
        return GenerationOptions(
            max_tokens=self.max_tokens if self.max_tokens is not None else default_max_tokens,
            temperature=self.temperature if self.temperature is not None else default_temperature,
        )


@dataclass
class GenerationResult:
    """Text produced by a single provider."""
    text: str
    provider: ProviderName
    latency_ms: float = 0.0
    fallback_used: bool = False
    model: str = ""
    attempts: int = 1

    def __post_init__(self):
        if not self.text or not self.text.strip():
            raise ValueError("GenerationResult requires non-empty text")

    def __str__(self) -> str:
        return self.text


@dataclass
class ProviderAttempt:
    """Outcome of one provider call: a result or the error that replaced it."""
    provider: ProviderName
    latency_ms: float = 0.0
    result: Optional[GenerationResult] = None
    error: Optional[ProviderError] = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None

    @property
    def error_type(self) -> Optional[str]:
        return type(self.error).__name__ if self.error is not None else None


@dataclass
class ConsensusResult:
    """Combined outcome of asking every available provider."""
    text: str
    providers: List[ProviderName]
    agreement_score: float
    results: List[GenerationResult]
    failures: List[ProviderAttempt] = field(default_factory=list)

    @property
    def provider(self) -> ProviderName:
        """Provider of the representative text."""
        return self.providers[0]

    @property
    def latency_ms(self) -> float:
        return max((r.latency_ms for r in self.results), default=0.0)

    def __str__(self) -> str:
        return self.text


__all__ = [
    "GenerationRequest",
    "GenerationResult",
    "ProviderAttempt",
    "ConsensusResult",
]
