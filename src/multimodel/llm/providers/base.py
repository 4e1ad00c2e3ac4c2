"""
Provider Base Types
===================

Shared types for the generation provider layer.

This module provides:
- ProviderName: The fixed set of external generation services
- ProviderDescriptor: Static cost/latency/strength metadata per provider
- GenerationOptions: Uniform per-call options (token bound, temperature)
- ProviderError hierarchy: Typed failures surfaced by every binding
- BaseProvider: Abstract binding with lazy client construction

Usage:
    class MyProvider(BaseProvider):
        name = ProviderName.OPENAI

        def _build_client(self):
            ...

        async def _generate(self, client, prompt, options) -> str:
            ...
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

if TYPE_CHECKING:
    from ..types import ProviderAttempt

logger = logging.getLogger(__name__)


DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7


# =============================================================================
# Enums
# =============================================================================

class ProviderName(Enum):
    """External generation services known to the orchestrator."""
    OPENAI = "openai"
    CLAUDE = "claude"
    GEMINI = "gemini"

    @classmethod
    def parse(cls, value: Union[str, "ProviderName"]) -> "ProviderName":
        """Accept an enum member or its (case-insensitive) string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            known = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown provider: {value!r}. Known: {known}") from None


class ProviderCapability(Enum):
    """Strength tags used to describe providers."""
    REASONING = "reasoning"
    CODE = "code"
    ANALYSIS = "analysis"
    COMPLEX_TASKS = "complex-tasks"
    CONTENT = "content"
    CREATIVE = "creative"
    NUANCED_WRITING = "nuanced-writing"
    SAFETY = "safety"
    SPEED = "speed"
    DESIGN = "design"
    QUICK_TASKS = "quick-tasks"
    COST_EFFECTIVE = "cost-effective"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class ProviderDescriptor:
    """Static metadata about a provider."""
    name: ProviderName
    model: str
    cost_per_token: float
    avg_latency_ms: float
    strengths: Tuple[ProviderCapability, ...] = ()

    def has_strength(self, capability: Union[str, ProviderCapability]) -> bool:
        if not isinstance(capability, ProviderCapability):
            capability = ProviderCapability(capability)
        return capability in self.strengths

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "model": self.model,
            "cost_per_token": self.cost_per_token,
            "avg_latency_ms": self.avg_latency_ms,
            "strengths": [s.value for s in self.strengths],
        }


PROVIDER_DESCRIPTORS: Dict[ProviderName, ProviderDescriptor] = {
    ProviderName.OPENAI: ProviderDescriptor(
        name=ProviderName.OPENAI,
        model="gpt-4o",
        cost_per_token=0.00001,
        avg_latency_ms=2000,
        strengths=(
            ProviderCapability.REASONING,
            ProviderCapability.CODE,
            ProviderCapability.ANALYSIS,
            ProviderCapability.COMPLEX_TASKS,
        ),
    ),
    ProviderName.CLAUDE: ProviderDescriptor(
        name=ProviderName.CLAUDE,
        model="claude-3-5-sonnet-20241022",
        cost_per_token=0.000003,
        avg_latency_ms=1500,
        strengths=(
            ProviderCapability.CONTENT,
            ProviderCapability.CREATIVE,
            ProviderCapability.NUANCED_WRITING,
            ProviderCapability.SAFETY,
        ),
    ),
    ProviderName.GEMINI: ProviderDescriptor(
        name=ProviderName.GEMINI,
        model="gemini-2.0-flash",
        cost_per_token=0.0000001,  # Free tier
        avg_latency_ms=800,
        strengths=(
            ProviderCapability.SPEED,
            ProviderCapability.DESIGN,
            ProviderCapability.QUICK_TASKS,
            ProviderCapability.COST_EFFECTIVE,
        ),
    ),
}


@dataclass
class GenerationOptions:
    """Provider-independent generation options."""
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE


# =============================================================================
# Exceptions
# =============================================================================

class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.recoverable = recoverable


class ProviderUnavailableError(ProviderError):
    """Provider has no valid configuration or was never initialized."""

    def __init__(self, provider: str, reason: str = ""):
        message = f"Provider '{provider}' is unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(message, provider=provider, recoverable=True)


class ProviderInvocationError(ProviderError):
    """Network or remote-service error during a single call."""

    def __init__(
        self,
        provider: str,
        reason: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(
            f"Provider '{provider}' call failed: {reason}",
            provider=provider,
            recoverable=True,
        )
        self.reason = reason
        self.status_code = status_code


class ProviderTimeoutError(ProviderInvocationError):
    """The call did not finish within the per-call deadline."""

    def __init__(self, provider: str, timeout_seconds: float):
        super().__init__(provider, f"timed out after {timeout_seconds:.1f}s")
        self.timeout_seconds = timeout_seconds


class EmptyResponseError(ProviderError):
    """The call succeeded transport-wise but returned no usable text."""

    def __init__(self, provider: str):
        super().__init__(
            f"Provider '{provider}' returned an empty response",
            provider=provider,
            recoverable=True,
        )


class AllProvidersFailedError(ProviderError):
    """
    Terminal aggregate failure.

    Raised once every attempt a strategy is allowed to make has failed, or
    when no provider is available for the task at all. Carries the
    individual attempts so callers can see why each provider was skipped.
    """

    def __init__(
        self,
        task: str,
        attempts: Optional[List["ProviderAttempt"]] = None,
        strategy: str = "",
    ):
        self.task = task
        self.attempts = list(attempts or [])
        self.strategy = strategy

        if not self.attempts:
            message = f"No providers available for task '{task}'"
        else:
            message = f"All {len(self.attempts)} providers failed for task '{task}'"
            if self.last_error is not None:
                message += f". Last error: {self.last_error.message}"
        super().__init__(message, provider="orchestrator", recoverable=False)

    @property
    def last_error(self) -> Optional[ProviderError]:
        for attempt in reversed(self.attempts):
            if attempt.error is not None:
                return attempt.error
        return None

    @property
    def errors(self) -> Dict[str, str]:
        """Provider name -> error message for every failed attempt."""
        return {
            a.provider.value: a.error.message
            for a in self.attempts
            if a.error is not None
        }


# =============================================================================
# Abstract Base Class
# =============================================================================

class BaseProvider(ABC):
    """
    Abstract binding for one external generation service.

    Subclasses translate the uniform (prompt, options) pair into the
    service's own request shape and pull plain text back out of the raw
    response. The client handle is built lazily on first use and cached;
    a failed construction is cached too so the provider stays unavailable
    until it is rebuilt with ``reset_client()``.
    """

    name: ProviderName

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key
        self._model = model or self.descriptor.model
        self._client: Any = None

    @property
    def descriptor(self) -> ProviderDescriptor:
        return PROVIDER_DESCRIPTORS[self.name]

    @property
    def model(self) -> str:
        return self._model

    @property
    def api_key(self) -> Optional[str]:
        """The key the next client will be built with."""
        return self._resolve_api_key()

    def _resolve_api_key(self) -> Optional[str]:
        return self._api_key

    def is_configured(self) -> bool:
        """Credentials are present."""
        return bool(self.api_key)

    @abstractmethod
    def _build_client(self) -> Any:
        """Construct the SDK/HTTP client handle. May raise."""

    @abstractmethod
    async def _generate(self, client: Any, prompt: str, options: GenerationOptions) -> Optional[str]:
        """Call the service and return its text (possibly empty)."""

    def get_client(self) -> Any:
        """Lazy load the client; returns None when it cannot be built."""
        if self._client is None and self.is_configured():
            try:
                self._client = self._build_client()
            except ImportError as e:
                logger.debug(f"{self.name.value} client library not installed: {e}")
                self._client = False
            except Exception as e:
                logger.warning(f"Failed to initialize {self.name.value} client: {e}")
                self._client = False
        return self._client if self._client else None

    def reset_client(self) -> None:
        self._client = None

    def is_available(self) -> bool:
        """Check if the provider can be called."""
        return self.is_configured() and self.get_client() is not None

    async def generate(
        self,
        prompt: str,
        options: Optional[GenerationOptions] = None,
    ) -> Optional[str]:
        """
        Generate text for a prompt.

        Raises:
            ProviderUnavailableError: If the client was never initialized
        """
        client = self.get_client()
        if client is None:
            raise ProviderUnavailableError(self.name.value, "client not initialized")
        return await self._generate(client, prompt, options or GenerationOptions())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name.value}, model={self.model})"


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",
    # Enums
    "ProviderName",
    "ProviderCapability",
    # Data classes
    "ProviderDescriptor",
    "PROVIDER_DESCRIPTORS",
    "GenerationOptions",
    # Exceptions
    "ProviderError",
    "ProviderUnavailableError",
    "ProviderInvocationError",
    "ProviderTimeoutError",
    "EmptyResponseError",
    "AllProvidersFailedError",
    # Base
    "BaseProvider",
]
