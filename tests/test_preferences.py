"""Tests for studyflow/preferences.py

A broken preferences file must never stop scheduling: bad sections fall
back to their defaults and the rest of the document is kept.
"""

import json
from datetime import date

import pytest

from studyflow.config import DEFAULT_DAILY_STUDY_MINUTES
from studyflow.preferences import DayKey, Preferences, load_preferences, parse_preferences


class TestDefaults:
    def test_everything_optional_is_disabled(self, preferences):
        assert preferences.sleep_schedule.bedtime.hour == 23
        assert preferences.sleep_schedule.wakeup_time.hour == 6
        assert preferences.meal_times.enabled_meals() == []
        assert not preferences.work_schedule.enabled
        assert not preferences.exercise_schedule.enabled
        assert not preferences.social_time.enabled
        assert not preferences.calendar_integration.enabled

    def test_default_work_days(self, preferences):
        assert preferences.work_schedule.work_days[0] == DayKey.MONDAY
        assert DayKey.SATURDAY not in preferences.work_schedule.work_days


class TestDayKey:
    def test_for_date(self):
        assert DayKey.for_date(date(2025, 6, 18)) == DayKey.WEDNESDAY
        assert DayKey.for_date(date(2025, 6, 22)) == DayKey.SUNDAY

    def test_from_index(self):
        assert DayKey.from_index(0) == DayKey.MONDAY
        assert DayKey.SUNDAY.index == 6
        with pytest.raises(ValueError):
            DayKey.from_index(7)


class TestDailyGoal:
    def test_study_plan_first(self):
        prefs = Preferences.model_validate({
            "studyPlan": [{"day": "WEDNESDAY", "hours": 2.5}],
            "personalGoals": {"dailyStudyMinutes": 45},
        })
        assert prefs.daily_study_minutes_goal(date(2025, 6, 18)) == 150
        assert prefs.daily_study_minutes_goal(date(2025, 6, 19)) == 45

    def test_builtin_default_last(self):
        prefs = Preferences.model_validate({"personalGoals": {"dailyStudyMinutes": 0}})
        assert prefs.daily_study_minutes_goal(date(2025, 6, 18)) == DEFAULT_DAILY_STUDY_MINUTES


class TestParsing:
    def test_camel_case_document(self):
        prefs = parse_preferences({
            "sleepSchedule": {"bedtime": {"hour": 22, "minute": 30}, "wakeupTime": {"hour": 7}},
            "workSchedule": {"enabled": True, "workDays": ["Monday", "TUESDAY"]},
            "socialTime": {"enabled": True, "preferredDays": ["Friday"], "preferredHours": [19]},
        })

        assert prefs.sleep_schedule.bedtime.hour == 22
        assert prefs.work_schedule.work_days == [DayKey.MONDAY, DayKey.TUESDAY]
        assert prefs.social_time.preferred_days == [DayKey.FRIDAY]

    def test_invalid_section_falls_back(self):
        prefs = parse_preferences({
            "sleepSchedule": {"bedtime": {"hour": 30}},
            "workSchedule": {"enabled": True},
        })

        assert prefs.sleep_schedule.bedtime.hour == 23
        assert prefs.work_schedule.enabled

    def test_non_object_document(self):
        assert parse_preferences(["not", "a", "dict"]) == Preferences()


class TestLoading:
    def test_missing_file(self, tmp_path):
        prefs = load_preferences(str(tmp_path / "missing.json"))
        assert prefs == Preferences()

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json", encoding="utf-8")

        assert load_preferences(str(path)) == Preferences()

    def test_reads_file(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text(json.dumps({"calendarIntegration": {"enabled": True, "bufferAfterEvent": 30}}),
                        encoding="utf-8")

        prefs = load_preferences(str(path))
        assert prefs.calendar_integration.enabled
        assert prefs.calendar_integration.buffer_after_event == 30
