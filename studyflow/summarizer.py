"""
StudyFlow - Recommendation Summary
Short human-readable rationale for a generated schedule.
"""

from typing import Optional, Sequence

from .config import get_goal_config


# Below this many free hours the day is reported as busy
BUSY_DAY_AVAILABLE_HOURS = 6


def format_hours(hours: float) -> str:
    """Format hours as "2 h" or "2.5 h"."""
    if hours == int(hours):
        return f"{int(hours)} h"
    return f"{hours:.1f} h"


def format_daily_target(minutes: int) -> str:
    """Format a minutes goal as "2h 30m", "2h" or "45m"."""
    hours, mins = divmod(minutes, 60)
    if hours > 0 and mins > 0:
        return f"{hours}h {mins}m"
    if hours > 0:
        return f"{hours}h"
    return f"{mins}m"


def energy_advisory(recent_scores: Optional[Sequence[float]],
                    low_threshold: Optional[float] = None,
                    high_threshold: Optional[float] = None) -> Optional[str]:
    """One-line advice from recent energy/mood scores, None inside the normal band."""
    if not recent_scores:
        return None

    goals = get_goal_config()
    low = goals.energy_low_threshold if low_threshold is None else low_threshold
    high = goals.energy_high_threshold if high_threshold is None else high_threshold

    average = sum(recent_scores) / len(recent_scores)
    if average < low:
        return "Low energy, schedule breaks."
    if average > high:
        return "High energy, maximize focus."
    return None


def build_summary(total_sessions: int,
                  today_topic: Optional[str],
                  study_objective: Optional[str],
                  daily_goal_minutes: int,
                  available_hours: int,
                  calendar_blocked_hours: int,
                  recent_energy_scores: Optional[Sequence[float]] = None,
                  low_threshold: Optional[float] = None,
                  high_threshold: Optional[float] = None) -> str:
    """
    Compose the schedule rationale.

    Covers history size, today's topic (or the long-term objective), the
    daily target, free and calendar-blocked hours, and an energy advisory
    when recent scores fall outside the configured band.
    """
    parts = []

    if total_sessions == 0:
        parts.append("Start tracking sessions to build personalized recommendations.")
    else:
        parts.append(f"Based on {total_sessions} sessions:")

    if today_topic:
        parts.append(f"Studying {today_topic} today.")
    elif study_objective:
        parts.append(f"Focus on {study_objective}.")

    if daily_goal_minutes > 0:
        parts.append(f"Target: {format_daily_target(daily_goal_minutes)}.")

    if available_hours < BUSY_DAY_AVAILABLE_HOURS:
        parts.append(f"{available_hours}h free (busy day).")
    else:
        parts.append(f"{available_hours}h available.")

    if calendar_blocked_hours > 0:
        parts.append(f"{calendar_blocked_hours}h in calendar.")

    advisory = energy_advisory(recent_energy_scores, low_threshold, high_threshold)
    if advisory:
        parts.append(advisory)

    return " ".join(parts)
