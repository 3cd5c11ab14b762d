"""Tests for studyflow/summarizer.py"""

import pytest

from studyflow.summarizer import build_summary, energy_advisory, format_daily_target, format_hours


def summary(**overrides) -> str:
    args = dict(
        total_sessions=12,
        today_topic=None,
        study_objective=None,
        daily_goal_minutes=120,
        available_hours=16,
        calendar_blocked_hours=0,
    )
    args.update(overrides)
    return build_summary(**args)


class TestFormatting:
    @pytest.mark.parametrize("hours,expected", [(2, "2 h"), (2.0, "2 h"), (2.5, "2.5 h"), (0, "0 h")])
    def test_format_hours(self, hours, expected):
        assert format_hours(hours) == expected

    @pytest.mark.parametrize("minutes,expected", [(150, "2h 30m"), (120, "2h"), (45, "45m")])
    def test_format_daily_target(self, minutes, expected):
        assert format_daily_target(minutes) == expected


class TestEnergyAdvisory:
    def test_no_scores(self):
        assert energy_advisory(None) is None
        assert energy_advisory([]) is None

    def test_band(self):
        assert energy_advisory([10, 14], 15, 35) == "Low energy, schedule breaks."
        assert energy_advisory([40, 50], 15, 35) == "High energy, maximize focus."
        assert energy_advisory([15, 35], 15, 35) is None


class TestBuildSummary:
    def test_with_history(self):
        assert summary() == "Based on 12 sessions: Target: 2h. 16h available."

    def test_without_history(self):
        assert summary(total_sessions=0).startswith("Start tracking sessions")

    def test_topic_beats_objective(self):
        text = summary(today_topic="Math", study_objective="Calculus")
        assert "Studying Math today." in text
        assert "Calculus" not in text

    def test_objective_without_topic(self):
        assert "Focus on Calculus." in summary(study_objective="Calculus")

    def test_busy_day_and_calendar(self):
        text = summary(available_hours=5, calendar_blocked_hours=3)
        assert "5h free (busy day)." in text
        assert text.endswith("3h in calendar.")

    def test_zero_goal_is_omitted(self):
        assert "Target" not in summary(daily_goal_minutes=0)

    def test_high_energy(self):
        text = summary(recent_energy_scores=[40, 45], low_threshold=15, high_threshold=35)
        assert text.endswith("High energy, maximize focus.")
