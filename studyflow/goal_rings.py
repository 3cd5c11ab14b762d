"""
StudyFlow - Goal Rings
Ratio-based daily progress indicators: study time, focus quality and session count.
"""

from datetime import datetime, date
from typing import Optional, List, Dict

from .aggregator import filter_in_range, today_primary_tag
from .config import get_analytics_config
from .date_range import DateRange, to_local_datetime
from .logger import logger
from .models import SessionRecord, GoalRing, DailyRings
from .preferences import Preferences


def calculate_goal_rings(sessions: List[SessionRecord],
                         daily_minutes_target: int = 0,
                         daily_focus_target: Optional[float] = None,
                         preferences: Optional[Preferences] = None,
                         now: Optional[datetime] = None) -> List[GoalRing]:
    """
    Build the three daily rings for an already-scoped set of sessions.

    Args:
        sessions: Sessions for the day (or any caller-chosen window)
        daily_minutes_target: Minutes goal; <= 0 means "take it from the study plan"
        daily_focus_target: Focus goal; defaults to the personal target focus score
        preferences: User preferences used for the fallbacks above
        now: Reference time deciding which day counts as "today"

    Returns:
        [time ring, focus ring, sessions ring]
    """
    now = now or datetime.now()
    preferences = preferences or Preferences()

    if daily_minutes_target <= 0:
        daily_minutes_target = preferences.daily_study_minutes_goal(now.date())
    if daily_focus_target is None:
        daily_focus_target = preferences.personal_goals.target_focus_score

    session_count = len(sessions)
    total_minutes = sum(s.duration_minutes for s in sessions)
    avg_focus = sum(s.focus_score for s in sessions) / session_count if session_count else 0.0

    topic = today_primary_tag(sessions, now)
    time_title = f"{topic} Time" if topic else "Study Time"

    return [
        GoalRing(title=time_title, current_value=total_minutes,
                 target_value=daily_minutes_target, unit="min"),
        GoalRing(title="Focus Quality", current_value=avg_focus,
                 target_value=daily_focus_target, unit="%"),
        GoalRing(title="Sessions", current_value=session_count,
                 target_value=max(3, daily_minutes_target // 60), unit="sessions"),
    ]


def daily_rings_history(sessions: List[SessionRecord],
                        date_range: DateRange,
                        daily_minutes_target: int = 0,
                        min_sessions_for_ring: Optional[int] = None,
                        preferences: Optional[Preferences] = None,
                        now: Optional[datetime] = None) -> List[DailyRings]:
    """
    Rings for every day in the range that has enough sessions, newest first.

    Today is always present, with zeroed rings when nothing was studied yet.
    """
    config = get_analytics_config()
    now = now or datetime.now()
    today = now.date()
    if min_sessions_for_ring is None:
        min_sessions_for_ring = config.min_sessions_for_ring

    capped_range = date_range.capped(config.heatmap_max_days, now=now)
    in_range = filter_in_range(sessions, capped_range)

    by_day: Dict[date, List[SessionRecord]] = {}
    for session in in_range:
        by_day.setdefault(to_local_datetime(session.start_timestamp).date(), []).append(session)

    result = []
    for day, day_sessions in by_day.items():
        if day != today and len(day_sessions) < min_sessions_for_ring:
            continue
        # Rings for a past day are titled against that day, not today
        reference = now if day == today else datetime(day.year, day.month, day.day, 12)
        rings = calculate_goal_rings(day_sessions, daily_minutes_target,
                                     preferences=preferences, now=reference)
        result.append(DailyRings(day=day, rings=rings))

    if today not in by_day:
        rings = calculate_goal_rings([], daily_minutes_target, preferences=preferences, now=now)
        result.append(DailyRings(day=today, rings=rings))

    result.sort(key=lambda r: r.day, reverse=True)
    logger.debug(f"Daily rings created: {len(result)} days")
    return result
