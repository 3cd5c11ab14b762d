"""Tests for studyflow/config.py"""

import pytest

from studyflow.config import (
    get_analytics_config, get_goal_config, get_config_summary, reload_config,
)


@pytest.fixture(autouse=True)
def fresh_config():
    reload_config()
    yield
    reload_config()


class TestConfig:
    def test_defaults(self):
        analytics = get_analytics_config()
        assert analytics.cache_ttl_seconds == 300
        assert analytics.heatmap_max_days == 365
        assert get_goal_config().daily_study_minutes == 120

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("ANALYTICS_CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("GOALS_TARGET_FOCUS_SCORE", "85")
        reload_config()

        assert get_analytics_config().cache_ttl_seconds == 60
        assert get_goal_config().target_focus_score == 85

    def test_getters_are_cached(self):
        assert get_analytics_config() is get_analytics_config()

    def test_summary(self):
        summary = get_config_summary()
        assert summary["goals"]["energy_band"] == "15-35"
        assert summary["logging"]["file"] is None
