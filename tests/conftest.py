"""
Shared test fixtures
====================

FakeProvider stands in for a real service binding. Each instance plays a
script of replies: text, an exception to raise, None/empty for an empty
response, optionally after a delay. The last reply repeats once the script
runs out.
"""

import asyncio
from typing import Any, List, Optional

import pytest

from multimodel.llm import (
    BaseProvider,
    GenerationOptions,
    ProviderName,
    ProviderRegistry,
)


class FakeProvider(BaseProvider):
    """Scripted provider binding for tests."""

    def __init__(
        self,
        name: ProviderName,
        replies: Optional[List[Any]] = None,
        delay: float = 0.0,
        configured: bool = True,
        build_error: Optional[Exception] = None,
    ):
        self.name = ProviderName.parse(name)
        super().__init__(api_key="test-key" if configured else None)
        self.replies = list(replies) if replies is not None else [f"response from {self.name.value}"]
        self.delay = delay
        self.build_error = build_error

        self.call_count = 0
        self.started = 0
        self.finished = 0
        self.cancelled = 0
        self.last_options: Optional[GenerationOptions] = None

    def _build_client(self):
        if self.build_error is not None:
            raise self.build_error
        return object()

    async def _generate(self, client, prompt, options):
        self.call_count += 1
        self.started += 1
        self.last_options = options
        reply = self.replies[min(self.call_count, len(self.replies)) - 1]

        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise

        self.finished += 1
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture
def fake_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider


@pytest.fixture
def make_registry():
    """Build a ProviderRegistry from FakeProviders."""

    def _make(*providers: FakeProvider) -> ProviderRegistry:
        return ProviderRegistry(providers=list(providers))

    return _make
