"""
StudyFlow - Pydantic Models (v2 syntax)
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, computed_field


def format_hour_label(hour: int) -> str:
    """Format an hour of day as "9 AM" / "2 PM"."""
    hour = hour % 24
    if hour == 0:
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"


# ============================================
# ENUMS
# ============================================

class StreakStatus(str, Enum):
    NONE = "none"
    PARTIAL = "partial"
    HIT_TARGET = "hit_target"
    EXCEPTIONAL = "exceptional"


class ActivityType(str, Enum):
    DEEP_STUDY = "deep_study"
    LIGHT_STUDY = "light_study"
    WORK = "work"
    EXERCISE = "exercise"
    SOCIAL = "social"
    MEALS = "meals"
    BREAKS = "breaks"
    SLEEP = "sleep"
    CALENDAR_EVENT = "calendar_event"

    @property
    def display_name(self) -> str:
        return ACTIVITY_DISPLAY_NAMES[self]

    @property
    def is_protected(self) -> bool:
        """Protected activities are never relabeled by later scheduling layers."""
        return self in (ActivityType.SLEEP, ActivityType.CALENDAR_EVENT)

    @property
    def is_study(self) -> bool:
        return self in (ActivityType.DEEP_STUDY, ActivityType.LIGHT_STUDY)


ACTIVITY_DISPLAY_NAMES = {
    ActivityType.DEEP_STUDY: "Deep Study",
    ActivityType.LIGHT_STUDY: "Light Study",
    ActivityType.WORK: "Work",
    ActivityType.EXERCISE: "Exercise",
    ActivityType.SOCIAL: "Social Time",
    ActivityType.MEALS: "Meals",
    ActivityType.BREAKS: "Break",
    ActivityType.SLEEP: "Sleep",
    ActivityType.CALENDAR_EVENT: "Calendar Event",
}


class RecommendationKind(str, Enum):
    TIME_SLOTS = "time_slots"
    ADAPTIVE_SCHEDULE = "adaptive_schedule"


# ============================================
# SESSION MODELS
# ============================================

class SessionRecord(BaseModel):
    """A completed study session. Never mutated once recorded."""
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    start_timestamp: int = Field(description="Session start, epoch milliseconds")
    duration_minutes: int = Field(gt=0)
    tag_id: Optional[int] = None
    tag_title: Optional[str] = None
    tag_color: Optional[int] = None
    focus_score: float = Field(default=0.0, ge=0.0, le=100.0)
    avg_noise_level: float = 0.0
    avg_light_level: float = 0.0
    phone_pickup_count: int = Field(default=0, ge=0)
    notes: Optional[str] = None


class CalendarEvent(BaseModel):
    """A busy block supplied by the calendar integration."""
    model_config = ConfigDict(frozen=True)

    start_time: int = Field(description="Epoch milliseconds")
    end_time: int = Field(description="Epoch milliseconds")
    title: str = ""


# ============================================
# AGGREGATE MODELS
# ============================================

class HourlyBucket(BaseModel):
    """Statistics for one hour of the day across all sessions."""
    hour_of_day: int = Field(ge=0, le=23)
    total_minutes: int = 0
    session_count: int = 0
    avg_focus_score: float = 0.0
    avg_noise_level: float = 0.0
    avg_light_level: float = 0.0

    def add_session(self, minutes: int, focus_score: float,
                    noise_level: float, light_level: float) -> None:
        """Fold one session in, keeping the averages as running means."""
        n = self.session_count
        self.total_minutes += minutes
        self.avg_focus_score = (self.avg_focus_score * n + focus_score) / (n + 1)
        self.avg_noise_level = (self.avg_noise_level * n + noise_level) / (n + 1)
        self.avg_light_level = (self.avg_light_level * n + light_level) / (n + 1)
        self.session_count = n + 1

    @property
    def hour_label(self) -> str:
        return format_hour_label(self.hour_of_day)

    @property
    def time_range(self) -> str:
        return f"{self.hour_of_day:02d}:00-{(self.hour_of_day + 1) % 24:02d}:00"


class DayStats(BaseModel):
    day_index: int = Field(ge=0, le=6, description="Monday=0 .. Sunday=6")
    day_name: str
    minutes: int = Field(default=0, description="Average minutes per session on this weekday")
    focus_score: float = 0.0
    session_count: int = 0


WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class WeeklyStats(BaseModel):
    days: List[DayStats] = Field(
        default_factory=lambda: [DayStats(day_index=i, day_name=name) for i, name in enumerate(WEEKDAY_NAMES)]
    )
    total_minutes: int = 0
    total_sessions: int = 0
    average_focus_score: float = 0.0


class HeatmapCell(BaseModel):
    year: int
    month: int = Field(ge=1, le=12)
    day_of_month: int
    day_of_week: int = Field(ge=0, le=6)
    hour_of_day: int = Field(ge=0, le=23)
    timestamp: int = Field(description="Start of the hour, epoch milliseconds")
    session_count: int = 0
    avg_quality: float = 0.0
    total_minutes: int = 0


class HourlyQuality(BaseModel):
    """One point of the energy curve."""
    hour: int
    avg_quality: float = 0.0
    session_count: int = 0


class StreakDay(BaseModel):
    day_of_month: int
    month: int
    year: int
    total_minutes: int = 0
    avg_quality: float = 0.0
    session_count: int = 0
    status: StreakStatus = StreakStatus.NONE


class TagUsage(BaseModel):
    tag_title: str
    color: Optional[int] = None
    session_count: int = 0
    total_minutes: int = 0
    percentage: float = 0.0


class GoalRing(BaseModel):
    title: str
    current_value: float
    target_value: float
    unit: str

    @computed_field
    @property
    def progress(self) -> float:
        if self.target_value <= 0:
            return 0.0
        return self.current_value / self.target_value

    @property
    def percent(self) -> int:
        return int(round(self.progress * 100))


class DailyRings(BaseModel):
    day: date
    rings: List[GoalRing]


# ============================================
# RECOMMENDATION MODELS
# ============================================

class TimeSlot(BaseModel):
    start_time: str
    end_time: str
    productivity_score: int
    reason: str


class ActivityBlock(BaseModel):
    """A maximal run of hours sharing one activity."""
    activity_type: ActivityType
    start_hour: int = Field(ge=0, le=23)
    end_hour: int = Field(ge=1, le=24)
    confidence_score: int
    reason: str
    event_title: Optional[str] = None

    @computed_field
    @property
    def duration_hours(self) -> int:
        return self.end_hour - self.start_hour

    @property
    def time_range(self) -> str:
        return f"{format_hour_label(self.start_hour)} - {format_hour_label(self.end_hour)}"

    @property
    def display_name(self) -> str:
        if self.activity_type == ActivityType.CALENDAR_EVENT and self.event_title:
            return self.event_title
        return self.activity_type.display_name


class Recommendation(BaseModel):
    """
    Tagged recommendation result.

    TIME_SLOTS carries `time_slots` (best historical hours);
    ADAPTIVE_SCHEDULE carries `activity_blocks` covering the whole day.
    """
    kind: RecommendationKind
    summary: str = ""
    confidence_score: int = 0
    total_sessions: int = 0
    time_slots: List[TimeSlot] = Field(default_factory=list)
    activity_blocks: List[ActivityBlock] = Field(default_factory=list)

    def _hours_of(self, *types: ActivityType) -> int:
        return sum(b.duration_hours for b in self.activity_blocks if b.activity_type in types)

    @computed_field
    @property
    def calendar_blocked_hours(self) -> int:
        return self._hours_of(ActivityType.CALENDAR_EVENT)

    @computed_field
    @property
    def available_hours(self) -> int:
        if self.kind != RecommendationKind.ADAPTIVE_SCHEDULE:
            return 0
        return 24 - self._hours_of(ActivityType.SLEEP, ActivityType.CALENDAR_EVENT)

    @property
    def study_hours(self) -> int:
        return self._hours_of(ActivityType.DEEP_STUDY, ActivityType.LIGHT_STUDY)


class AnalyticsSnapshot(BaseModel):
    """Every aggregate for one date range, computed in a single pass."""
    range_name: str
    generated_at: datetime
    session_count: int = 0
    weekly: WeeklyStats
    hourly: List[HourlyBucket]
    heatmap: List[HeatmapCell]
    streak: List[StreakDay]
    tag_usage: List[TagUsage]
    goal_rings: List[GoalRing]
    energy_curve: List[HourlyQuality]


class HealthStatus(BaseModel):
    status: str = "healthy"
    version: str = "1.0.0"
    session_count: int = 0
    cache_entries: int = 0
