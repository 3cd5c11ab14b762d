"""Tests for studyflow/goal_rings.py"""

import pytest

from studyflow.date_range import DateRange
from studyflow.goal_rings import calculate_goal_rings, daily_rings_history
from studyflow.models import GoalRing
from studyflow.preferences import Preferences

from conftest import NOW, TODAY, make_session, days_ago


class TestCalculateGoalRings:
    def test_no_sessions_uses_default_goal(self, preferences):
        time_ring, focus_ring, sessions_ring = calculate_goal_rings([], preferences=preferences, now=NOW)

        assert time_ring.title == "Study Time"
        assert time_ring.current_value == 0
        assert time_ring.target_value == preferences.personal_goals.daily_study_minutes
        assert time_ring.progress == 0.0
        assert focus_ring.target_value == preferences.personal_goals.target_focus_score
        assert sessions_ring.target_value >= 3

    def test_rings_for_todays_sessions(self, preferences):
        sessions = [make_session(TODAY, hour=8, duration=30, focus=80),
                    make_session(TODAY, hour=10, duration=30, focus=60)]
        time_ring, focus_ring, sessions_ring = calculate_goal_rings(
            sessions, daily_minutes_target=90, daily_focus_target=70, preferences=preferences, now=NOW)

        assert time_ring.title == "Math Time"
        assert time_ring.unit == "min"
        assert time_ring.progress == pytest.approx(60 / 90)
        assert time_ring.percent == 67
        assert focus_ring.current_value == pytest.approx(70.0)
        assert focus_ring.progress == pytest.approx(1.0)
        assert sessions_ring.current_value == 2
        assert sessions_ring.target_value == 3

    def test_goal_from_study_plan(self):
        prefs = Preferences.model_validate({"studyPlan": [{"day": "Wednesday", "hours": 4}]})
        time_ring, _, sessions_ring = calculate_goal_rings([], preferences=prefs, now=NOW)

        assert time_ring.target_value == 240
        assert sessions_ring.target_value == 4

    def test_zero_target_means_zero_progress(self):
        ring = GoalRing(title="Study Time", current_value=30, target_value=0, unit="min")
        assert ring.progress == 0.0


class TestDailyRingsHistory:
    def test_newest_first_with_today(self, preferences):
        sessions = [make_session(days_ago(2), tag="Physics"), make_session(TODAY)]
        history = daily_rings_history(sessions, DateRange.last_n_days(7, now=NOW),
                                      preferences=preferences, now=NOW)

        assert [h.day for h in history] == [TODAY, days_ago(2)]
        assert history[1].rings[0].title == "Physics Time"

    def test_today_always_present(self, preferences):
        history = daily_rings_history([], DateRange.last_n_days(7, now=NOW), preferences=preferences, now=NOW)

        assert len(history) == 1
        assert history[0].day == TODAY
        assert all(ring.current_value == 0 for ring in history[0].rings)

    def test_min_sessions_filters_past_days(self, preferences):
        sessions = [make_session(days_ago(1)),
                    make_session(days_ago(2), hour=8), make_session(days_ago(2), hour=10)]
        history = daily_rings_history(sessions, DateRange.last_n_days(7, now=NOW),
                                      min_sessions_for_ring=2, preferences=preferences, now=NOW)

        assert [h.day for h in history] == [TODAY, days_ago(2)]

    def test_all_time_is_capped(self, preferences):
        sessions = [make_session(days_ago(500)), make_session(days_ago(5))]
        history = daily_rings_history(sessions, DateRange.all_time(), preferences=preferences, now=NOW)

        assert days_ago(500) not in [h.day for h in history]
        assert days_ago(5) in [h.day for h in history]
