"""
StudyFlow - User Schedule Preferences
Sleep, meals, work, exercise, social time, calendar integration and personal goals.
Loaded from a JSON file; anything missing or malformed falls back to built-in defaults.
"""

import json
import math
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .config import DEFAULT_DAILY_STUDY_MINUTES, get_goal_config, get_preferences_config
from .logger import logger


# ============================================
# ENUMS
# ============================================

class DayKey(str, Enum):
    """Days of the week, Monday=0 .. Sunday=6."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def index(self) -> int:
        return list(DayKey).index(self)

    @classmethod
    def from_index(cls, day_of_week: int) -> "DayKey":
        if not 0 <= day_of_week <= 6:
            raise ValueError(f"Invalid day of week: {day_of_week}")
        return list(cls)[day_of_week]

    @classmethod
    def for_date(cls, day: date) -> "DayKey":
        return cls.from_index(day.weekday())


def _normalize_days(value):
    if isinstance(value, list):
        return [v.lower() if isinstance(v, str) else v for v in value]
    return value


# ============================================
# PREFERENCE MODELS
# ============================================

class PreferenceModel(BaseModel):
    """Accepts both snake_case and the camelCase keys of the JSON file."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ClockTime(PreferenceModel):
    hour: int = Field(default=0, ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)


class SleepSchedule(PreferenceModel):
    bedtime: ClockTime = Field(default_factory=lambda: ClockTime(hour=23))
    wakeup_time: ClockTime = Field(default_factory=lambda: ClockTime(hour=6))
    target_sleep_hours: float = 7.5


class MealTime(PreferenceModel):
    hour: int = Field(default=12, ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)
    duration: int = Field(default=30, ge=0, description="Minutes")
    enabled: bool = False


class MealTimes(PreferenceModel):
    breakfast: MealTime = Field(default_factory=lambda: MealTime(hour=7, minute=30, duration=30))
    lunch: MealTime = Field(default_factory=lambda: MealTime(hour=12, minute=30, duration=45))
    dinner: MealTime = Field(default_factory=lambda: MealTime(hour=19, minute=0, duration=45))

    def enabled_meals(self) -> List[MealTime]:
        return [meal for meal in (self.breakfast, self.lunch, self.dinner) if meal.enabled]


class WorkSchedule(PreferenceModel):
    enabled: bool = False
    work_days: List[DayKey] = Field(default_factory=lambda: [
        DayKey.MONDAY, DayKey.TUESDAY, DayKey.WEDNESDAY, DayKey.THURSDAY, DayKey.FRIDAY
    ])
    start_time: ClockTime = Field(default_factory=lambda: ClockTime(hour=9))
    end_time: ClockTime = Field(default_factory=lambda: ClockTime(hour=17))
    allow_study_during_work: bool = False

    @field_validator("work_days", mode="before")
    @classmethod
    def _lower_work_days(cls, value):
        return _normalize_days(value)


class ExerciseBlock(PreferenceModel):
    hour: int = Field(ge=0, le=23)
    duration: int = Field(default=60, ge=0, description="Minutes")


class ExerciseSchedule(PreferenceModel):
    enabled: bool = False
    preferred_times: List[ExerciseBlock] = Field(default_factory=list)


class SocialTime(PreferenceModel):
    enabled: bool = False
    protect_from_study: bool = False
    preferred_days: List[DayKey] = Field(default_factory=list)
    preferred_hours: List[int] = Field(default_factory=list)

    @field_validator("preferred_days", mode="before")
    @classmethod
    def _lower_preferred_days(cls, value):
        return _normalize_days(value)


class CalendarIntegration(PreferenceModel):
    enabled: bool = False
    buffer_before_event: int = Field(default=0, ge=0, description="Minutes")
    buffer_after_event: int = Field(default=0, ge=0, description="Minutes")


class PersonalGoals(PreferenceModel):
    daily_study_minutes: int = Field(default_factory=lambda: get_goal_config().daily_study_minutes, ge=0)
    target_focus_score: int = Field(default_factory=lambda: get_goal_config().target_focus_score, ge=0, le=100)
    weekly_study_sessions: int = Field(default_factory=lambda: get_goal_config().weekly_study_sessions, ge=0)
    low_threshold: int = Field(default_factory=lambda: get_goal_config().energy_low_threshold)
    high_threshold: int = Field(default_factory=lambda: get_goal_config().energy_high_threshold)


class DayHours(PreferenceModel):
    """One study-plan entry: hours planned for a weekday."""
    day: DayKey
    hours: float = Field(ge=0, le=24)

    @field_validator("day", mode="before")
    @classmethod
    def _lower_day(cls, value):
        return value.lower() if isinstance(value, str) else value


class Preferences(PreferenceModel):
    sleep_schedule: SleepSchedule = Field(default_factory=SleepSchedule)
    meal_times: MealTimes = Field(default_factory=MealTimes)
    work_schedule: WorkSchedule = Field(default_factory=WorkSchedule)
    exercise_schedule: ExerciseSchedule = Field(default_factory=ExerciseSchedule)
    social_time: SocialTime = Field(default_factory=SocialTime)
    calendar_integration: CalendarIntegration = Field(default_factory=CalendarIntegration)
    personal_goals: PersonalGoals = Field(default_factory=PersonalGoals)
    study_plan: List[DayHours] = Field(default_factory=list)
    study_objective: Optional[str] = None

    def study_hours_for(self, day: date) -> float:
        """Planned study hours for the weekday of `day`, 0 when unplanned."""
        key = DayKey.for_date(day)
        for entry in self.study_plan:
            if entry.day == key:
                return entry.hours
        return 0.0

    def daily_study_minutes_goal(self, day: date) -> int:
        """
        Study minutes goal for a date.

        Study plan entry first, then the personal goal, then the built-in default.
        """
        planned = self.study_hours_for(day)
        if planned > 0:
            return int(math.floor(planned * 60))
        if self.personal_goals.daily_study_minutes > 0:
            return self.personal_goals.daily_study_minutes
        return DEFAULT_DAILY_STUDY_MINUTES


# ============================================
# LOADING
# ============================================

def parse_preferences(raw: Dict[str, Any]) -> Preferences:
    """
    Validate a raw preferences mapping section by section.

    A section that fails validation is replaced by its default instead of
    discarding the whole document.
    """
    if not isinstance(raw, dict):
        logger.warning("Preferences document is not an object, using defaults")
        return Preferences()

    sections: Dict[str, Any] = {}
    for name, field in Preferences.model_fields.items():
        key = field.alias if field.alias in raw else name
        if key not in raw:
            continue
        try:
            Preferences.model_validate({key: raw[key]})
        except ValidationError as e:
            logger.warning(f"Invalid preference section '{key}', using defaults: {e.error_count()} error(s)")
            continue
        sections[key] = raw[key]

    return Preferences.model_validate(sections)


def load_preferences(path: Optional[str] = None) -> Preferences:
    """Load preferences from JSON, falling back to defaults when unreadable."""
    prefs_path = Path(path or get_preferences_config().path)

    if not prefs_path.exists():
        logger.info(f"Preferences file not found at {prefs_path}, using defaults")
        return Preferences()

    try:
        raw = json.loads(prefs_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load preferences from {prefs_path}: {e}")
        return Preferences()

    prefs = parse_preferences(raw)
    logger.debug(f"Loaded preferences from {prefs_path}")
    return prefs
