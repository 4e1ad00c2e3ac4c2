"""
Attempt Metrics
===============

Collects structured events about individual provider attempts.
Used for debugging, latency tracking and failure analysis.

Features:
- One AttemptEvent per provider call, success or failure
- Optional JSONL log file for offline analysis
- Summary statistics per provider, task and error type

Usage:
    from multimodel.llm.metrics import RoutingMetrics

    metrics = RoutingMetrics(log_file="logs/attempts.jsonl")
    orch = ModelOrchestrator(metrics=metrics)
    ...
    print(metrics.get_summary())
"""

import json
import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class AttemptEvent:
    """
    Full context of a single provider attempt.
    """

    provider: str
    """Provider name (e.g., 'openai', 'claude')."""

    success: bool
    """Whether the call produced usable text."""

    latency_ms: float = 0.0
    """Wall-clock duration of the call."""

    task: Optional[str] = None
    """Task category of the request."""

    strategy: Optional[str] = None
    """Strategy that made the attempt: 'fallback', 'race' or 'consensus'."""

    model: Optional[str] = None
    """Model id used by the provider."""

    error_type: Optional[str] = None
    """Exception class name if failed (e.g., 'ProviderTimeoutError')."""

    error_message: Optional[str] = None
    """Error message if failed."""

    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    """ISO timestamp of the event."""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


class RoutingMetrics:
    """
    Collects and summarizes attempt events.

    Thread-safe for concurrent usage.
    """

    def __init__(
        self,
        log_file: Optional[Union[str, Path]] = None,
        enabled: bool = True,
        buffer_size: int = 100,
        history_size: int = 500,
    ):
        """
        Initialize metrics collector.

        Args:
            log_file: Path to JSONL log file (None = keep in memory only)
            enabled: Whether to collect metrics
            buffer_size: Number of events to buffer before flush
            history_size: Number of recent events kept in memory
        """
        self.enabled = enabled
        self.buffer_size = buffer_size
        self._buffer: List[AttemptEvent] = []
        self._recent: Deque[AttemptEvent] = deque(maxlen=history_size)
        self._lock = threading.Lock()

        # Statistics
        self._total_attempts = 0
        self._successful_attempts = 0
        self._total_latency_ms = 0.0
        self._provider_attempts: Dict[str, int] = {}
        self._provider_failures: Dict[str, int] = {}
        self._task_counts: Dict[str, int] = {}
        self._error_counts: Dict[str, int] = {}

        self.log_file: Optional[Path] = None
        if log_file is not None:
            self.log_file = Path(log_file)
            self.log_file.parent.mkdir(parents=True, exist_ok=True)

    def log(self, event: AttemptEvent) -> None:
        """
        Record an attempt event.

        Thread-safe. Buffers events and flushes periodically.
        """
        if not self.enabled:
            return

        with self._lock:
            self._total_attempts += 1
            self._total_latency_ms += event.latency_ms

            provider = event.provider
            self._provider_attempts[provider] = self._provider_attempts.get(provider, 0) + 1

            if event.success:
                self._successful_attempts += 1
            else:
                self._provider_failures[provider] = self._provider_failures.get(provider, 0) + 1

            if event.task:
                self._task_counts[event.task] = self._task_counts.get(event.task, 0) + 1

            if event.error_type:
                self._error_counts[event.error_type] = (
                    self._error_counts.get(event.error_type, 0) + 1
                )

            self._recent.append(event)

            if self.log_file is not None:
                self._buffer.append(event)
                if len(self._buffer) >= self.buffer_size:
                    self._flush_buffer()

    def _flush_buffer(self) -> None:
        """Write buffered events to log file."""
        if not self._buffer or self.log_file is None:
            return

        try:
            with open(self.log_file, "a") as f:
                for event in self._buffer:
                    f.write(event.to_json() + "\n")
            self._buffer.clear()
        except OSError as e:
            logger.error(f"Failed to flush metrics: {e}")

    def flush(self) -> None:
        """Force flush of buffered events."""
        with self._lock:
            self._flush_buffer()

    def recent(self, limit: Optional[int] = None) -> List[AttemptEvent]:
        """Most recent events, oldest first."""
        with self._lock:
            events = list(self._recent)
        return events[-limit:] if limit else events

    def get_summary(self) -> Dict[str, Any]:
        """
        Get summary statistics.

        Returns:
            Dictionary with aggregated metrics.
        """
        with self._lock:
            avg_latency = (
                self._total_latency_ms / self._total_attempts
                if self._total_attempts > 0
                else 0.0
            )
            success_rate = (
                self._successful_attempts / self._total_attempts * 100
                if self._total_attempts > 0
                else 0.0
            )

            return {
                "total_attempts": self._total_attempts,
                "successful_attempts": self._successful_attempts,
                "success_rate_percent": round(success_rate, 2),
                "average_latency_ms": round(avg_latency, 2),
                "provider_attempts": dict(self._provider_attempts),
                "provider_failures": dict(self._provider_failures),
                "task_counts": dict(self._task_counts),
                "error_counts": dict(self._error_counts),
            }

    def reset(self) -> None:
        """Reset all statistics."""
        with self._lock:
            self._flush_buffer()
            self._recent.clear()
            self._total_attempts = 0
            self._successful_attempts = 0
            self._total_latency_ms = 0.0
            self._provider_attempts.clear()
            self._provider_failures.clear()
            self._task_counts.clear()
            self._error_counts.clear()


__all__ = [
    "AttemptEvent",
    "RoutingMetrics",
]
