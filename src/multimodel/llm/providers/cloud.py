"""
Cloud Provider Bindings
=======================

Bindings for the external generation services:
- OpenAI (chat completions, optional OpenAI-compatible base URL)
- Anthropic Claude (messages API)
- Google Gemini (google-genai SDK)

Each binding reads its credentials from the environment whenever it
builds a client, unless a key was passed explicitly. A key exported after
startup is picked up by the next registry refresh.

Usage:
    from multimodel.llm.providers import OpenAIProvider, GenerationOptions

    provider = OpenAIProvider()
    if provider.is_available():
        text = await provider.generate("Write a tagline", GenerationOptions(max_tokens=64))
"""

from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional

from .base import (
    BaseProvider,
    GenerationOptions,
    ProviderName,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Credential Lookup
# =============================================================================

# Checked in order; the first non-empty variable wins
PROVIDER_API_KEYS: Dict[ProviderName, List[str]] = {
    ProviderName.OPENAI: ["AI_INTEGRATIONS_OPENAI_API_KEY", "OPENAI_API_KEY"],
    ProviderName.CLAUDE: ["ANTHROPIC_API_KEY"],
    ProviderName.GEMINI: ["GOOGLE_GEMINI_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"],
}

OPENAI_BASE_URL_ENV = "AI_INTEGRATIONS_OPENAI_BASE_URL"


def get_api_key(provider: ProviderName) -> Optional[str]:
    """Get the configured API key for a provider, if any."""
    for var in PROVIDER_API_KEYS.get(provider, []):
        value = os.getenv(var)
        if value:
            return value
    return None


# =============================================================================
# OpenAI
# =============================================================================

class OpenAIProvider(BaseProvider):
    """OpenAI chat completions binding."""

    name = ProviderName.OPENAI

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        super().__init__(api_key, model)
        self._base_url = base_url

    def _resolve_api_key(self) -> Optional[str]:
        return self._api_key or get_api_key(self.name)

    @property
    def base_url(self) -> Optional[str]:
        return self._base_url or os.getenv(OPENAI_BASE_URL_ENV) or None

    def _build_client(self):
        from openai import AsyncOpenAI
        return AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)

    async def _generate(self, client, prompt: str, options: GenerationOptions) -> Optional[str]:
        response = await client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=options.max_tokens,
            temperature=options.temperature,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content


# =============================================================================
# Anthropic Claude
# =============================================================================

class ClaudeProvider(BaseProvider):
    """Anthropic messages binding."""

    name = ProviderName.CLAUDE

    def _resolve_api_key(self) -> Optional[str]:
        return self._api_key or get_api_key(self.name)

    def _build_client(self):
        from anthropic import AsyncAnthropic
        return AsyncAnthropic(api_key=self.api_key)

    async def _generate(self, client, prompt: str, options: GenerationOptions) -> Optional[str]:
        response = await client.messages.create(
            model=self.model,
            max_tokens=options.max_tokens,
            temperature=options.temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        # Responses may interleave non-text blocks; take the first text block
        for block in response.content or []:
            if getattr(block, "type", None) == "text":
                return block.text
        return None


# =============================================================================
# Google Gemini
# =============================================================================

class GeminiProvider(BaseProvider):
    """Google Gemini binding (google-genai SDK)."""

    name = ProviderName.GEMINI

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        super().__init__(api_key, model)
        self._base_url = base_url

    def _resolve_api_key(self) -> Optional[str]:
        return self._api_key or get_api_key(self.name)

    def _build_client(self):
        from google import genai
        if self._base_url:
            return genai.Client(api_key=self.api_key, http_options={"base_url": self._base_url})
        return genai.Client(api_key=self.api_key)

    async def _generate(self, client, prompt: str, options: GenerationOptions) -> Optional[str]:
        response = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config={
                "max_output_tokens": options.max_tokens,
                "temperature": options.temperature,
            },
        )
        # None when the response was blocked or has no text parts
        return response.text


# =============================================================================
# Factory
# =============================================================================

PROVIDER_CLASSES = {
    ProviderName.OPENAI: OpenAIProvider,
    ProviderName.CLAUDE: ClaudeProvider,
    ProviderName.GEMINI: GeminiProvider,
}


def create_default_providers() -> List[BaseProvider]:
    """One environment-configured binding per known provider."""
    return [cls() for cls in PROVIDER_CLASSES.values()]


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "PROVIDER_API_KEYS",
    "OPENAI_BASE_URL_ENV",
    "get_api_key",
    "OpenAIProvider",
    "ClaudeProvider",
    "GeminiProvider",
    "PROVIDER_CLASSES",
    "create_default_providers",
]
