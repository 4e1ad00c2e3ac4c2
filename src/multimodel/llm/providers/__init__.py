"""
LLM Providers Package
=====================

Bindings to the external generation services.

This package provides:
- ProviderName / ProviderDescriptor: identity and static metadata
- OpenAIProvider, ClaudeProvider, GeminiProvider: service bindings
- ProviderError hierarchy: typed per-call failures

Usage:
    from multimodel.llm.providers import ClaudeProvider, GenerationOptions

    claude = ClaudeProvider()
    text = await claude.generate("Write a product blurb", GenerationOptions())
"""

from .base import (
    # Defaults
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,

    # Types
    ProviderName,
    ProviderCapability,
    ProviderDescriptor,
    PROVIDER_DESCRIPTORS,
    GenerationOptions,

    # Exceptions
    ProviderError,
    ProviderUnavailableError,
    ProviderInvocationError,
    ProviderTimeoutError,
    EmptyResponseError,
    AllProvidersFailedError,

    # Base Class
    BaseProvider,
)

from .cloud import (
    PROVIDER_API_KEYS,
    OPENAI_BASE_URL_ENV,
    get_api_key,
    OpenAIProvider,
    ClaudeProvider,
    GeminiProvider,
    PROVIDER_CLASSES,
    create_default_providers,
)


__all__ = [
    # Defaults
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",

    # Types
    "ProviderName",
    "ProviderCapability",
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

    # Bindings
    "PROVIDER_API_KEYS",
    "OPENAI_BASE_URL_ENV",
    "get_api_key",
    "OpenAIProvider",
    "ClaudeProvider",
    "GeminiProvider",
    "PROVIDER_CLASSES",
    "create_default_providers",
]
