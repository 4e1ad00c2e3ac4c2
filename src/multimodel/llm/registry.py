"""
Provider Registry
=================

Tracks which generation providers are callable right now.

A provider is available when its credentials are configured and its client
handle can be constructed. Probing never touches the network and never
raises: a misconfigured provider is simply reported unavailable.

Design:
- One registry per process (or per test), passed explicitly to the router
  and executor rather than hidden in module globals
- Results cached after the first probe; re-probe with refresh()
- Client handles are read-only once built and shared freely

Usage:
    from multimodel.llm.registry import ProviderRegistry

    registry = ProviderRegistry()
    availability = registry.probe()

    if registry.is_available("claude"):
        print(registry.descriptor("claude").model)
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

from .providers import (
    PROVIDER_DESCRIPTORS,
    BaseProvider,
    ProviderDescriptor,
    ProviderName,
    create_default_providers,
)

logger = logging.getLogger(__name__)


@dataclass
class ProviderStatus:
    """Availability and configuration of one provider."""
    name: ProviderName
    available: bool
    configured: bool
    model: str
    descriptor: ProviderDescriptor

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available": self.available,
            "configured": self.configured,
            "model": self.model,
            "config": self.descriptor.to_dict(),
        }


class ProviderRegistry:
    """
    Registry of provider bindings with a cached availability probe.

    Thread-safe: the first probe runs under a lock, later reads only see
    the finished cache.
    """

    def __init__(self, providers: Optional[Iterable[BaseProvider]] = None):
        """
        Initialize registry.

        Args:
            providers: Bindings to register (default: one environment-
                configured binding per ProviderName)
        """
        if providers is None:
            providers = create_default_providers()

        self._providers: Dict[ProviderName, BaseProvider] = {}
        for provider in providers:
            if provider.name in self._providers:
                raise ValueError(f"Provider registered twice: {provider.name.value}")
            self._providers[provider.name] = provider

        self._availability: Optional[Dict[ProviderName, bool]] = None
        self._lock = threading.Lock()

    @property
    def names(self) -> List[ProviderName]:
        """Registered provider names, in registration order."""
        return list(self._providers)

    def get(self, name: Union[str, ProviderName]) -> Optional[BaseProvider]:
        return self._providers.get(ProviderName.parse(name))

    def descriptor(self, name: Union[str, ProviderName]) -> ProviderDescriptor:
        return PROVIDER_DESCRIPTORS[ProviderName.parse(name)]

    # =========================================================================
    # Probing
    # =========================================================================

    def probe(self, refresh: bool = False) -> Dict[ProviderName, bool]:
        """
        Availability of every known provider.

        Unregistered providers are reported unavailable.
        """
        if self._availability is None or refresh:
            with self._lock:
                if self._availability is None or refresh:
                    self._availability = self._probe_all()
        return dict(self._availability)

    def refresh(self) -> Dict[ProviderName, bool]:
        """Re-run the probe, rebuilding clients that previously failed."""
        cached = self._availability or {}
        for name, provider in self._providers.items():
            if not cached.get(name, False):
                provider.reset_client()
        return self.probe(refresh=True)

    def _probe_all(self) -> Dict[ProviderName, bool]:
        availability = {name: False for name in ProviderName}
        for name, provider in self._providers.items():
            availability[name] = self._probe_one(provider)

        ready = [n.value for n, ok in availability.items() if ok]
        logger.info(f"Provider probe: available={ready or 'none'}")
        return availability

    def _probe_one(self, provider: BaseProvider) -> bool:
        try:
            available = bool(provider.is_available())
        except Exception as e:
            logger.warning(f"Probe failed for {provider.name.value}: {e}")
            return False

        if available:
            logger.debug(f"{provider.name.value} initialized ({provider.model})")
        elif provider.is_configured():
            logger.warning(f"{provider.name.value} configured but client could not be built")
        return available

    def is_available(self, name: Union[str, ProviderName]) -> bool:
        return self.probe().get(ProviderName.parse(name), False)

    def available_providers(self) -> List[ProviderName]:
        availability = self.probe()
        return [name for name in ProviderName if availability.get(name, False)]

    def available_descriptors(self) -> List[ProviderDescriptor]:
        return [PROVIDER_DESCRIPTORS[name] for name in self.available_providers()]

    # =========================================================================
    # Status
    # =========================================================================

    def status(self) -> Dict[ProviderName, ProviderStatus]:
        """Per-provider availability plus static configuration."""
        availability = self.probe()
        report = {}
        for name in ProviderName:
            provider = self._providers.get(name)
            descriptor = PROVIDER_DESCRIPTORS[name]
            report[name] = ProviderStatus(
                name=name,
                available=availability.get(name, False),
                configured=provider.is_configured() if provider else False,
                model=provider.model if provider else descriptor.model,
                descriptor=descriptor,
            )
        return report

    def __repr__(self) -> str:
        return f"ProviderRegistry(providers={[n.value for n in self.names]})"


__all__ = [
    "ProviderRegistry",
    "ProviderStatus",
]
