"""
Tests for Attempt Metrics
=========================

Tests for:
- AttemptEvent serialization
- RoutingMetrics aggregation and JSONL output
- Metrics wiring through the orchestrator
"""

import json
import threading

import pytest

from multimodel.llm import (
    AttemptEvent,
    GenerationRequest,
    ModelOrchestrator,
    ProviderName,
    RoutingMetrics,
    StrategyConfig,
)


class TestAttemptEvent:
    """Tests for AttemptEvent dataclass."""

    def test_defaults(self):
        event = AttemptEvent(provider="claude", success=True)
        assert event.latency_ms == 0.0
        assert event.error_type is None
        assert event.timestamp

    def test_to_json(self):
        event = AttemptEvent(
            provider="gemini",
            success=False,
            latency_ms=12.5,
            task="design",
            strategy="race",
            error_type="ProviderTimeoutError",
            error_message="timed out",
        )
        data = json.loads(event.to_json())
        assert data["provider"] == "gemini"
        assert data["success"] is False
        assert data["strategy"] == "race"
        assert data["error_type"] == "ProviderTimeoutError"


class TestRoutingMetrics:
    """Tests for RoutingMetrics collector."""

    @pytest.fixture
    def metrics(self):
        return RoutingMetrics()

    def test_initial_summary(self, metrics):
        summary = metrics.get_summary()
        assert summary["total_attempts"] == 0
        assert summary["success_rate_percent"] == 0.0
        assert summary["average_latency_ms"] == 0.0

    def test_summary(self, metrics):
        metrics.log(AttemptEvent(provider="openai", success=True, latency_ms=100, task="seo"))
        metrics.log(AttemptEvent(provider="openai", success=False, latency_ms=50, task="seo",
                                 error_type="EmptyResponseError"))
        metrics.log(AttemptEvent(provider="claude", success=True, latency_ms=150, task="content"))

        summary = metrics.get_summary()

        assert summary["total_attempts"] == 3
        assert summary["successful_attempts"] == 2
        assert summary["success_rate_percent"] == pytest.approx(66.67)
        assert summary["average_latency_ms"] == pytest.approx(100.0)
        assert summary["provider_attempts"] == {"openai": 2, "claude": 1}
        assert summary["provider_failures"] == {"openai": 1}
        assert summary["task_counts"] == {"seo": 2, "content": 1}
        assert summary["error_counts"] == {"EmptyResponseError": 1}

    def test_disabled(self):
        metrics = RoutingMetrics(enabled=False)
        metrics.log(AttemptEvent(provider="openai", success=True))
        assert metrics.get_summary()["total_attempts"] == 0

    def test_recent_is_bounded(self):
        metrics = RoutingMetrics(history_size=3)
        for i in range(5):
            metrics.log(AttemptEvent(provider="openai", success=True, latency_ms=i))
        assert [e.latency_ms for e in metrics.recent()] == [2, 3, 4]
        assert [e.latency_ms for e in metrics.recent(limit=1)] == [4]

    def test_reset(self, metrics):
        metrics.log(AttemptEvent(provider="openai", success=True))
        metrics.reset()
        assert metrics.get_summary()["total_attempts"] == 0
        assert metrics.recent() == []

    def test_jsonl_output(self, tmp_path):
        log_file = tmp_path / "logs" / "attempts.jsonl"
        metrics = RoutingMetrics(log_file=log_file, buffer_size=2)

        metrics.log(AttemptEvent(provider="openai", success=True))
        assert not log_file.exists()

        metrics.log(AttemptEvent(provider="claude", success=False))
        lines = log_file.read_text().splitlines()
        assert [json.loads(line)["provider"] for line in lines] == ["openai", "claude"]

        metrics.log(AttemptEvent(provider="gemini", success=True))
        metrics.flush()
        assert len(log_file.read_text().splitlines()) == 3

    def test_no_file_without_log_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        metrics = RoutingMetrics(buffer_size=1)
        metrics.log(AttemptEvent(provider="openai", success=True))
        metrics.flush()
        assert list(tmp_path.iterdir()) == []

    def test_thread_safety(self, metrics):
        def worker():
            for _ in range(200):
                metrics.log(AttemptEvent(provider="openai", success=True, latency_ms=1.0))

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert metrics.get_summary()["total_attempts"] == 1000


class TestOrchestratorMetrics:
    """Tests for metrics emitted during dispatch."""

    @pytest.mark.asyncio
    async def test_one_event_per_attempt(self, fake_provider, make_registry):
        metrics = RoutingMetrics()
        registry = make_registry(
            fake_provider(ProviderName.OPENAI, [RuntimeError("down")]),
            fake_provider(ProviderName.CLAUDE),
        )
        orch = ModelOrchestrator(registry=registry, metrics=metrics)

        await orch.dispatch(GenerationRequest(task="code", prompt="p"))

        events = metrics.recent()
        assert [(e.provider, e.success) for e in events] == [("openai", False), ("claude", True)]
        assert all(e.strategy == "fallback" and e.task == "code" for e in events)
        assert events[0].error_type == "ProviderInvocationError"

    @pytest.mark.asyncio
    async def test_metrics_file_from_config(self, fake_provider, make_registry, tmp_path):
        log_file = tmp_path / "attempts.jsonl"
        config = StrategyConfig(metrics_log_file=str(log_file))
        orch = ModelOrchestrator(config=config, registry=make_registry(fake_provider(ProviderName.OPENAI)))

        await orch.dispatch(GenerationRequest(task="code", prompt="p"))
        orch.metrics.flush()

        assert json.loads(log_file.read_text().splitlines()[0])["model"] == "gpt-4o"

    def test_metrics_disabled_from_config(self, make_registry):
        orch = ModelOrchestrator(config=StrategyConfig(metrics_enabled=False), registry=make_registry())
        assert orch.metrics.enabled is False
