"""
Tests for Task Router
=====================

Tests task categories, the preference table and availability-aware routing.
"""

import pytest

from multimodel.llm import (
    TASK_PROVIDER_PREFERENCE,
    ProviderName,
    TaskCategory,
    TaskRouter,
)

OPENAI, CLAUDE, GEMINI = ProviderName.OPENAI, ProviderName.CLAUDE, ProviderName.GEMINI


@pytest.fixture
def all_available(fake_provider, make_registry):
    return make_registry(*(fake_provider(name) for name in ProviderName))


class TestTaskCategory:
    """Test TaskCategory enum."""

    def test_values(self):
        values = {t.value for t in TaskCategory}
        assert values == {"reasoning", "content", "seo", "code", "analysis", "creative", "design"}

    def test_parse(self):
        assert TaskCategory.parse("SEO") == TaskCategory.SEO
        assert TaskCategory.parse(TaskCategory.DESIGN) == TaskCategory.DESIGN

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown task category"):
            TaskCategory.parse("translation")


class TestPreferenceTable:
    """Test the default preference table."""

    def test_every_task_has_full_permutation(self):
        for task in TaskCategory:
            order = TASK_PROVIDER_PREFERENCE[task]
            assert sorted(p.value for p in order) == sorted(p.value for p in ProviderName)

    @pytest.mark.parametrize("task,expected", [
        ("design", (GEMINI, CLAUDE, OPENAI)),
        ("content", (CLAUDE, OPENAI, GEMINI)),
        ("seo", (OPENAI, GEMINI, CLAUDE)),
        ("code", (OPENAI, CLAUDE, GEMINI)),
        ("analysis", (OPENAI, CLAUDE, GEMINI)),
        ("creative", (CLAUDE, GEMINI, OPENAI)),
        ("reasoning", (OPENAI, CLAUDE, GEMINI)),
    ])
    def test_default_orders(self, task, expected):
        assert TASK_PROVIDER_PREFERENCE[TaskCategory(task)] == expected


class TestRoute:
    """Test availability-aware routing."""

    def test_default_order_when_all_available(self, all_available):
        router = TaskRouter(all_available)
        assert router.route("content") == [CLAUDE, OPENAI, GEMINI]

    def test_preferred_first_without_duplicates(self, all_available):
        router = TaskRouter(all_available)
        assert router.route("content", preferred="gemini") == [GEMINI, CLAUDE, OPENAI]
        assert router.route("content", preferred="claude") == [CLAUDE, OPENAI, GEMINI]

    def test_route_is_permutation_of_available(self, fake_provider, make_registry):
        registry = make_registry(fake_provider(OPENAI), fake_provider(GEMINI))
        router = TaskRouter(registry)

        for task in TaskCategory:
            for preferred in [None, *ProviderName]:
                route = router.route(task, preferred)
                assert sorted(p.value for p in route) == ["gemini", "openai"]
                if preferred in (OPENAI, GEMINI):
                    assert route[0] == preferred

    def test_unavailable_preferred_is_skipped(self, fake_provider, make_registry):
        registry = make_registry(fake_provider(CLAUDE), fake_provider(GEMINI))
        router = TaskRouter(registry)

        assert router.route("seo", preferred="openai") == [GEMINI, CLAUDE]
        assert router.primary("seo", preferred="openai") == OPENAI

    def test_empty_when_nothing_available(self, make_registry):
        router = TaskRouter(make_registry())
        for task in TaskCategory:
            assert router.route(task) == []

    def test_preference_order_ignores_availability(self, make_registry):
        router = TaskRouter(make_registry())
        assert router.preference_order("design") == [GEMINI, CLAUDE, OPENAI]
        assert router.primary("design") == GEMINI


class TestOverrides:
    """Test per-task preference overrides."""

    def test_override(self, all_available):
        router = TaskRouter(all_available, preferences={"seo": ["claude", "openai", "gemini"]})
        assert router.route("seo") == [CLAUDE, OPENAI, GEMINI]
        assert router.route("code") == [OPENAI, CLAUDE, GEMINI]

    def test_override_does_not_touch_defaults(self, all_available):
        TaskRouter(all_available, preferences={"seo": ["gemini"]})
        assert TASK_PROVIDER_PREFERENCE[TaskCategory.SEO] == (OPENAI, GEMINI, CLAUDE)

    def test_duplicate_override_rejected(self, all_available):
        with pytest.raises(ValueError, match="Duplicate"):
            TaskRouter(all_available, preferences={"seo": ["openai", "openai"]})

    def test_unknown_provider_rejected(self, all_available):
        with pytest.raises(ValueError):
            TaskRouter(all_available, preferences={"seo": ["mistral"]})

    def test_unknown_task_rejected(self, all_available):
        with pytest.raises(ValueError):
            TaskRouter(all_available, preferences={"poetry": ["openai"]})
