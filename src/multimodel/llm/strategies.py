"""
Orchestration Strategies
========================

Defines how the orchestrator spends a route on a request.

Strategies:
- AUTO: Pick per request from the task category (default)
- FALLBACK: Sequential chain, one provider at a time
- RACE: All providers concurrently, fastest success wins
- CONSENSUS: All providers concurrently, agreement scored

Under AUTO, high-criticality tasks (analysis, or any request asking for
consensus) go to CONSENSUS, latency-sensitive tasks (design, creative) go
to RACE with the fallback chain as a safety net, and everything else goes
to FALLBACK.

Strategy Profiles:
- Profiles are YAML files loaded at runtime from config/strategies/
- Built-in PRESETS cover the common cases
- Switch at runtime with ModelOrchestrator.switch_strategy()

Usage:
    from multimodel.llm.strategies import Strategy, StrategyConfig

    # Basic usage
    orchestrator = ModelOrchestrator(strategy=Strategy.FALLBACK)

    # Profile-based usage
    config = StrategyConfig.from_yaml("config/strategies/fast.yaml")
    orchestrator = ModelOrchestrator(config=config)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml

from .providers import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE
from .task_router import TaskCategory

logger = logging.getLogger(__name__)

PROFILE_DIR = Path("config/strategies")


class Strategy(Enum):
    """Primary orchestration strategy."""

    AUTO = "auto"
    """Select per request from task criticality and latency sensitivity."""

    FALLBACK = "fallback"
    """Try providers in route order until one succeeds."""

    RACE = "race"
    """Race every available provider, use the first success."""

    CONSENSUS = "consensus"
    """Ask every available provider and score their agreement."""


def _normalize_tasks(tasks: List[str]) -> List[str]:
    return [TaskCategory.parse(t).value for t in tasks]


@dataclass
class StrategyConfig:
    """
    Configuration for orchestration strategy.

    Invalid values raise ValueError at construction.
    """

    # === Core Strategy Settings ===
    strategy: Strategy = Strategy.AUTO
    """Primary strategy to use."""

    timeout_seconds: Optional[float] = 60.0
    """Per-provider-call deadline. None disables it."""

    # === Task Policy ===
    consensus_tasks: List[str] = field(default_factory=lambda: ["analysis"])
    """Tasks routed to consensus under AUTO."""

    race_tasks: List[str] = field(default_factory=lambda: ["design", "creative"])
    """Tasks routed to the race under AUTO."""

    task_preferences: Dict[str, List[str]] = field(default_factory=dict)
    """Per-task overrides of the provider preference order."""

    # === Race Settings ===
    cancel_race_losers: bool = True
    """Cancel attempts still running once a race has a winner."""

    race_fallback_enabled: bool = True
    """Run the fallback chain when a race fails outright."""

    # === Consensus Settings ===
    min_consensus_responses: int = 2
    """Successes below this are logged as degraded consensus."""

    # === Generation Defaults ===
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE

    # === Profile Settings ===
    profile_name: Optional[str] = None
    """Name of the loaded profile (e.g., 'fast', 'critical')."""

    profile_description: Optional[str] = None
    """Human-readable description of the profile."""

    # === Debugging ===
    debug_routing: bool = False
    """Enable verbose routing decision logging."""

    metrics_enabled: bool = True
    """Collect an AttemptEvent per provider call."""

    metrics_log_file: Optional[str] = None
    """JSONL file for attempt events (None = memory only)."""

    def __post_init__(self):
        if isinstance(self.strategy, str):
            self.strategy = Strategy(self.strategy)
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive or None, got {self.timeout_seconds}")
        if self.min_consensus_responses < 1:
            raise ValueError("min_consensus_responses must be at least 1")
        if self.max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")
        self.consensus_tasks = _normalize_tasks(self.consensus_tasks)
        self.race_tasks = _normalize_tasks(self.race_tasks)

    # === Methods ===

    def strategy_for(
        self,
        task: Union[str, TaskCategory],
        use_consensus: bool = False,
    ) -> Strategy:
        """
        Resolve the concrete strategy for one request.

        An explicit consensus request always wins; a non-AUTO strategy is
        applied to every other request.
        """
        if use_consensus:
            return Strategy.CONSENSUS
        if self.strategy != Strategy.AUTO:
            return self.strategy

        category = TaskCategory.parse(task).value
        if category in self.consensus_tasks:
            return Strategy.CONSENSUS
        if category in self.race_tasks:
            return Strategy.RACE
        return Strategy.FALLBACK

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "StrategyConfig":
        """
        Load strategy configuration from YAML file.

        Args:
            path: Path to YAML file (absolute or relative to config/strategies/)

        Returns:
            StrategyConfig instance

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If YAML is invalid
        """
        path = Path(path)

        # If not absolute, try config/strategies/
        if not path.is_absolute() and not path.exists():
            config_path = PROFILE_DIR / path
            if config_path.exists():
                path = config_path
            else:
                path = PROFILE_DIR / f"{path}.yaml"

        if not path.exists():
            raise FileNotFoundError(f"Strategy profile not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Invalid profile format: expected dict, got {type(data)}")

        config_data = {}

        simple_fields = [
            "profile_name", "profile_description", "timeout_seconds",
            "cancel_race_losers", "race_fallback_enabled",
            "min_consensus_responses", "max_tokens", "temperature",
            "debug_routing", "metrics_enabled", "metrics_log_file",
        ]
        for field_name in simple_fields:
            if field_name in data:
                config_data[field_name] = data[field_name]

        if "strategy" in data:
            try:
                config_data["strategy"] = Strategy(data["strategy"])
            except ValueError:
                raise ValueError(f"Unknown strategy in {path}: {data['strategy']!r}") from None

        # List fields
        for field_name in ("consensus_tasks", "race_tasks"):
            if field_name in data:
                config_data[field_name] = list(data[field_name] or [])

        # Dict fields
        if "task_preferences" in data:
            config_data["task_preferences"] = {
                task: list(order) for task, order in (data["task_preferences"] or {}).items()
            }

        return cls(**config_data)

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "profile_name": self.profile_name,
            "profile_description": self.profile_description,
            "strategy": self.strategy.value,
            "timeout_seconds": self.timeout_seconds,
            "consensus_tasks": self.consensus_tasks,
            "race_tasks": self.race_tasks,
            "cancel_race_losers": self.cancel_race_losers,
            "race_fallback_enabled": self.race_fallback_enabled,
            "min_consensus_responses": self.min_consensus_responses,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "debug_routing": self.debug_routing,
            "metrics_enabled": self.metrics_enabled,
        }

        # Only include optional fields if set
        if self.task_preferences:
            data["task_preferences"] = self.task_preferences
        if self.metrics_log_file is not None:
            data["metrics_log_file"] = self.metrics_log_file

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved strategy profile to {path}")


# Preset configurations for common scenarios
PRESETS = {
    "default": StrategyConfig(
        profile_name="default",
        profile_description="Per-task selection: consensus for analysis, race for design/creative",
        strategy=Strategy.AUTO,
    ),
    "fast": StrategyConfig(
        profile_name="fast",
        profile_description="Speed first - race every request, fastest wins",
        strategy=Strategy.RACE,
        timeout_seconds=30.0,
    ),
    "critical": StrategyConfig(
        profile_name="critical",
        profile_description="Critical tasks - consensus across all providers",
        strategy=Strategy.CONSENSUS,
        min_consensus_responses=3,
    ),
    "sequential": StrategyConfig(
        profile_name="sequential",
        profile_description="One provider at a time - lowest spend, highest latency",
        strategy=Strategy.FALLBACK,
    ),
}


def get_preset(name: str) -> StrategyConfig:
    """Get a copy of a preset configuration by name."""
    if name not in PRESETS:
        available = ", ".join(PRESETS.keys())
        raise ValueError(f"Unknown preset: {name}. Available: {available}")
    return replace(PRESETS[name])


def load_profile(name_or_path: Union[str, Path]) -> StrategyConfig:
    """
    Load a strategy profile by name or path.

    Tries in order:
    1. Built-in PRESETS (e.g., "fast", "critical")
    2. YAML file in config/strategies/ (e.g., "custom.yaml")
    3. Absolute path to YAML file
    """
    if isinstance(name_or_path, str) and name_or_path in PRESETS:
        logger.debug(f"Loading preset: {name_or_path}")
        return get_preset(name_or_path)

    logger.debug(f"Loading profile from file: {name_or_path}")
    return StrategyConfig.from_yaml(name_or_path)


__all__ = [
    "Strategy",
    "StrategyConfig",
    "PROFILE_DIR",
    "PRESETS",
    "get_preset",
    "load_profile",
]
