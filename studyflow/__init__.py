"""
StudyFlow - Study Analytics Package
Session aggregation, goal rings and adaptive daily scheduling
"""

__version__ = "1.0.0"

from .date_range import (
    DateRange,
    RangeType,
    UnsupportedRangeOperation,
    to_local_datetime,
    to_millis,
)

from .models import (
    # Enums
    ActivityType,
    StreakStatus,
    RecommendationKind,
    # Inputs
    SessionRecord,
    CalendarEvent,
    # Aggregates
    WeeklyStats,
    DayStats,
    HourlyBucket,
    HourlyQuality,
    HeatmapCell,
    StreakDay,
    TagUsage,
    GoalRing,
    DailyRings,
    # Recommendations
    TimeSlot,
    ActivityBlock,
    Recommendation,
    AnalyticsSnapshot,
)

from .preferences import (
    Preferences,
    DayKey,
    parse_preferences,
    load_preferences,
)

from .aggregator import (
    weekly_stats,
    hourly_distribution,
    energy_curve,
    quality_heatmap,
    classify_streak,
    streak_calendar,
    tag_usage,
    today_primary_tag,
    today_total_minutes,
    daily_recommendation,
)

from .goal_rings import (
    calculate_goal_rings,
    daily_rings_history,
)

from .scheduler import ScheduleAllocator
from .summarizer import build_summary, format_hours, format_daily_target
from .cache import ResultCache
from .sources import (
    SessionStore,
    PreferencesStore,
    CalendarSource,
    InMemorySessionStore,
    InMemoryPreferencesStore,
    InMemoryCalendarSource,
    JsonPreferencesStore,
)
from .service import AnalyticsService


__all__ = [
    # Date ranges
    "DateRange",
    "RangeType",
    "UnsupportedRangeOperation",
    "to_local_datetime",
    "to_millis",
    # Models
    "ActivityType",
    "StreakStatus",
    "RecommendationKind",
    "SessionRecord",
    "CalendarEvent",
    "WeeklyStats",
    "DayStats",
    "HourlyBucket",
    "HourlyQuality",
    "HeatmapCell",
    "StreakDay",
    "TagUsage",
    "GoalRing",
    "DailyRings",
    "TimeSlot",
    "ActivityBlock",
    "Recommendation",
    "AnalyticsSnapshot",
    # Preferences
    "Preferences",
    "DayKey",
    "parse_preferences",
    "load_preferences",
    # Aggregation
    "weekly_stats",
    "hourly_distribution",
    "energy_curve",
    "quality_heatmap",
    "classify_streak",
    "streak_calendar",
    "tag_usage",
    "today_primary_tag",
    "today_total_minutes",
    "daily_recommendation",
    # Goals
    "calculate_goal_rings",
    "daily_rings_history",
    # Scheduling
    "ScheduleAllocator",
    "build_summary",
    "format_hours",
    "format_daily_target",
    # Service
    "ResultCache",
    "SessionStore",
    "PreferencesStore",
    "CalendarSource",
    "InMemorySessionStore",
    "InMemoryPreferencesStore",
    "InMemoryCalendarSource",
    "JsonPreferencesStore",
    "AnalyticsService",
]
