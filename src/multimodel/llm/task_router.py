"""
Task Router
===========

Maps an abstract task category to an ordered provider preference list.

The default orders reflect known provider trade-offs:
- Reasoning/code/analysis prefer the highest-capability provider first
- Content/creative prefer the strongest writer first
- Design prefers the lowest-latency provider first

The table is plain data so it can be inspected and overridden.

Usage:
    from multimodel.llm import TaskRouter, TaskCategory

    router = TaskRouter(registry)
    order = router.route(TaskCategory.CONTENT, preferred="gemini")
    # -> [ProviderName.GEMINI, ProviderName.CLAUDE, ProviderName.OPENAI]
    #    (available providers only)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .providers import ProviderName

if TYPE_CHECKING:
    from .registry import ProviderRegistry

logger = logging.getLogger(__name__)


# =============================================================================
# Task Categories
# =============================================================================

class TaskCategory(Enum):
    """Abstract classification of a generation request."""

    REASONING = "reasoning"
    """Multi-step reasoning and planning."""

    CONTENT = "content"
    """Marketing or page copy."""

    SEO = "seo"
    """Structured metadata such as titles, descriptions and keywords."""

    CODE = "code"
    """Code generation."""

    ANALYSIS = "analysis"
    """Structural/analytical review. Treated as high-criticality."""

    CREATIVE = "creative"
    """Open-ended creative writing. Treated as latency-sensitive."""

    DESIGN = "design"
    """Design tokens: colours, typography, layout. Treated as latency-sensitive."""

    @classmethod
    def parse(cls, value: Union[str, "TaskCategory"]) -> "TaskCategory":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            known = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown task category: {value!r}. Known: {known}") from None


# =============================================================================
# Preference Table
# =============================================================================

TASK_PROVIDER_PREFERENCE: Dict[TaskCategory, Tuple[ProviderName, ...]] = {
    TaskCategory.REASONING: (ProviderName.OPENAI, ProviderName.CLAUDE, ProviderName.GEMINI),
    TaskCategory.CONTENT: (ProviderName.CLAUDE, ProviderName.OPENAI, ProviderName.GEMINI),
    TaskCategory.SEO: (ProviderName.OPENAI, ProviderName.GEMINI, ProviderName.CLAUDE),
    TaskCategory.CODE: (ProviderName.OPENAI, ProviderName.CLAUDE, ProviderName.GEMINI),
    TaskCategory.ANALYSIS: (ProviderName.OPENAI, ProviderName.CLAUDE, ProviderName.GEMINI),
    TaskCategory.CREATIVE: (ProviderName.CLAUDE, ProviderName.GEMINI, ProviderName.OPENAI),
    TaskCategory.DESIGN: (ProviderName.GEMINI, ProviderName.CLAUDE, ProviderName.OPENAI),
}


def _dedupe(providers: Iterable[ProviderName]) -> List[ProviderName]:
    seen = set()
    ordered = []
    for provider in providers:
        if provider not in seen:
            seen.add(provider)
            ordered.append(provider)
    return ordered


# =============================================================================
# Task Router
# =============================================================================

class TaskRouter:
    """
    Routes task categories to ordered provider lists.

    Example:
        router = TaskRouter(registry)

        router.preference_order("seo")       # full default order
        router.route("seo")                  # available providers only
        router.route("seo", preferred="claude")
    """

    def __init__(
        self,
        registry: "ProviderRegistry",
        preferences: Optional[Dict[Union[str, TaskCategory], Sequence[Union[str, ProviderName]]]] = None,
    ):
        """
        Initialize router.

        Args:
            registry: Source of provider availability
            preferences: Per-task overrides of the default order
        """
        self.registry = registry
        self.preferences: Dict[TaskCategory, Tuple[ProviderName, ...]] = dict(TASK_PROVIDER_PREFERENCE)

        for task, order in (preferences or {}).items():
            category = TaskCategory.parse(task)
            parsed = [ProviderName.parse(p) for p in order]
            if len(set(parsed)) != len(parsed):
                raise ValueError(f"Duplicate providers in preference order for '{category.value}'")
            self.preferences[category] = tuple(parsed)
            logger.debug(f"Preference override for {category.value}: {[p.value for p in parsed]}")

    def preference_order(
        self,
        task: Union[str, TaskCategory],
        preferred: Optional[Union[str, ProviderName]] = None,
    ) -> List[ProviderName]:
        """Preferred provider first, then the task's default order. Ignores availability."""
        category = TaskCategory.parse(task)
        order = list(self.preferences[category])
        if preferred is not None:
            order.insert(0, ProviderName.parse(preferred))
        return _dedupe(order)

    def primary(
        self,
        task: Union[str, TaskCategory],
        preferred: Optional[Union[str, ProviderName]] = None,
    ) -> Optional[ProviderName]:
        """The provider the caller intended to use first."""
        order = self.preference_order(task, preferred)
        return order[0] if order else None

    def route(
        self,
        task: Union[str, TaskCategory],
        preferred: Optional[Union[str, ProviderName]] = None,
    ) -> List[ProviderName]:
        """
        Ordered list of currently available providers for a task.

        Returns an empty list when nothing is available; callers must treat
        that as terminal before attempting generation.
        """
        availability = self.registry.probe()
        order = [
            provider
            for provider in self.preference_order(task, preferred)
            if availability.get(provider, False)
        ]

        if preferred is not None:
            wanted = ProviderName.parse(preferred)
            if not availability.get(wanted, False):
                logger.info(f"Preferred provider {wanted.value} unavailable, using default order")

        return order


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "TaskCategory",
    "TASK_PROVIDER_PREFERENCE",
    "TaskRouter",
]
