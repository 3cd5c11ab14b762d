"""
StudyFlow - Configuration Management
Supports .env files and runtime configuration for analytics, goals, logging and preferences.
"""

from typing import Dict, Any
from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


# Built-in fallbacks used whenever a preference is absent or malformed
DEFAULT_DAILY_STUDY_MINUTES = 120
DEFAULT_TARGET_FOCUS_SCORE = 70
DEFAULT_WEEKLY_STUDY_SESSIONS = 20
DEFAULT_ENERGY_LOW_THRESHOLD = 15
DEFAULT_ENERGY_HIGH_THRESHOLD = 35


# ============================================
# ANALYTICS CONFIGURATION
# ============================================

class AnalyticsConfig(BaseSettings):
    """Aggregation and caching knobs."""

    cache_ttl_seconds: int = Field(
        default=300,
        ge=0,
        le=86400,
        description="How long a computed analytics result stays valid"
    )
    heatmap_max_days: int = Field(
        default=365,
        ge=1,
        le=3650,
        description="Oldest day (counted back from the range end) included in the heatmap"
    )
    default_top_tags: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Tags kept before the rest are merged into 'Other'"
    )
    min_sessions_for_ring: int = Field(
        default=1,
        ge=1,
        le=20,
        description="Sessions a past day needs to appear in the rings history"
    )

    model_config = {
        "env_prefix": "ANALYTICS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }


# ============================================
# GOAL CONFIGURATION
# ============================================

class GoalConfig(BaseSettings):
    """Default personal goals and energy advisory band."""

    daily_study_minutes: int = Field(
        default=DEFAULT_DAILY_STUDY_MINUTES,
        ge=0,
        le=24 * 60,
        description="Daily study goal when no study plan entry exists"
    )
    target_focus_score: int = Field(
        default=DEFAULT_TARGET_FOCUS_SCORE,
        ge=0,
        le=100,
        description="Focus score the focus ring aims for"
    )
    weekly_study_sessions: int = Field(
        default=DEFAULT_WEEKLY_STUDY_SESSIONS,
        ge=0,
        description="Weekly session count goal"
    )
    energy_low_threshold: int = Field(
        default=DEFAULT_ENERGY_LOW_THRESHOLD,
        description="Recent energy below this suggests more breaks"
    )
    energy_high_threshold: int = Field(
        default=DEFAULT_ENERGY_HIGH_THRESHOLD,
        description="Recent energy above this suggests maximizing focus"
    )

    model_config = {
        "env_prefix": "GOALS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }


# ============================================
# LOGGING CONFIGURATION
# ============================================

class LogConfig(BaseSettings):
    """Logger output settings."""

    level: str = Field(default="INFO", description="Root level for the StudyFlow logger")
    directory: str = Field(default="logs", description="Directory for rotating log files")
    file_name: str = Field(default="studyflow.log")
    file_enabled: bool = Field(default=True, description="Write logs to a rotating file")
    max_bytes: int = Field(default=5 * 1024 * 1024, gt=0, description="Rotate the file past this size")
    backup_count: int = Field(default=5, ge=0, description="Rotated files to keep")

    model_config = {
        "env_prefix": "LOG_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }


# ============================================
# PREFERENCES CONFIGURATION
# ============================================

class PreferencesConfig(BaseSettings):
    """Where user schedule preferences are read from."""

    path: str = Field(
        default="user_preferences.json",
        description="JSON file holding sleep, meals, work, exercise, social and calendar settings"
    )

    model_config = {
        "env_prefix": "PREFERENCES_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }


# ============================================
# CACHED CONFIGURATION INSTANCES
# ============================================

@lru_cache()
def get_analytics_config() -> AnalyticsConfig:
    """Get cached analytics configuration instance."""
    return AnalyticsConfig()


@lru_cache()
def get_goal_config() -> GoalConfig:
    """Get cached goal configuration instance."""
    return GoalConfig()


@lru_cache()
def get_log_config() -> LogConfig:
    """Get cached logging configuration instance."""
    return LogConfig()


@lru_cache()
def get_preferences_config() -> PreferencesConfig:
    """Get cached preferences configuration instance."""
    return PreferencesConfig()


def reload_config():
    """Clear configuration cache and reload from environment."""
    get_analytics_config.cache_clear()
    get_goal_config.cache_clear()
    get_log_config.cache_clear()
    get_preferences_config.cache_clear()


# ============================================
# CONFIGURATION SUMMARY
# ============================================

def get_config_summary() -> Dict[str, Any]:
    """
    Get a summary of all configuration values.
    Useful for debugging and the health endpoint.
    """
    analytics = get_analytics_config()
    goals = get_goal_config()
    log = get_log_config()
    preferences = get_preferences_config()

    return {
        "analytics": {
            "cache_ttl_seconds": analytics.cache_ttl_seconds,
            "heatmap_max_days": analytics.heatmap_max_days,
            "default_top_tags": analytics.default_top_tags,
            "min_sessions_for_ring": analytics.min_sessions_for_ring,
        },
        "goals": {
            "daily_study_minutes": goals.daily_study_minutes,
            "target_focus_score": goals.target_focus_score,
            "weekly_study_sessions": goals.weekly_study_sessions,
            "energy_band": f"{goals.energy_low_threshold}-{goals.energy_high_threshold}",
        },
        "logging": {
            "level": log.level,
            "file": f"{log.directory}/{log.file_name}" if log.file_enabled else None,
        },
        "preferences": {
            "path": preferences.path,
        },
    }
