"""
StudyFlow - Session Aggregation
Turns raw session records into chart-ready statistics over a date range:
weekly stats, hourly distribution, quality heatmap, streak calendar, tag usage.

Every function is pure and returns a structurally complete, zero-valued
result for empty input.
"""

from datetime import datetime, date
from typing import Optional, List, Dict, Tuple, Iterable
import calendar

from .config import get_analytics_config
from .date_range import DateRange, to_local_datetime, to_millis, day_bounds
from .logger import logger
from .models import (
    SessionRecord, WeeklyStats, HourlyBucket, HourlyQuality, HeatmapCell,
    StreakDay, StreakStatus, TagUsage, TimeSlot, Recommendation, RecommendationKind,
)


NO_TAG = "No tag"
OTHER_TAG = "Other"
OTHER_TAG_COLOR = 0xFF808080  # Gray


# ============================================
# FILTERING
# ============================================

def filter_in_range(sessions: Optional[Iterable[SessionRecord]],
                    date_range: Optional[DateRange]) -> List[SessionRecord]:
    """Keep sessions whose start lies inside the range, preserving order."""
    if not sessions:
        return []
    if date_range is None:
        return list(sessions)
    return [s for s in sessions if date_range.contains(s.start_timestamp)]


def sessions_on_day(sessions: Iterable[SessionRecord], day: date) -> List[SessionRecord]:
    start, end = day_bounds(day)
    return [s for s in sessions if start <= s.start_timestamp <= end]


# ============================================
# WEEKLY STATS
# ============================================

def weekly_stats(sessions: List[SessionRecord], date_range: Optional[DateRange]) -> WeeklyStats:
    """
    Per-weekday statistics (Monday=0 .. Sunday=6).

    A weekday's `minutes` is the average minutes per session on that day,
    not the sum; `total_minutes` is the raw sum over all sessions.
    `average_focus_score` is the mean of the non-empty per-day averages.
    """
    stats = WeeklyStats()
    in_range = filter_in_range(sessions, date_range)
    if not in_range:
        return stats

    minutes_per_day = [0] * 7
    focus_sum = [0.0] * 7
    count_per_day = [0] * 7

    for session in in_range:
        day_index = to_local_datetime(session.start_timestamp).weekday()
        minutes_per_day[day_index] += session.duration_minutes
        focus_sum[day_index] += session.focus_score
        count_per_day[day_index] += 1

    total_focus = 0.0
    days_with_sessions = 0

    for day in stats.days:
        i = day.day_index
        day.session_count = count_per_day[i]
        if count_per_day[i] > 0:
            day.minutes = minutes_per_day[i] // count_per_day[i]
            day.focus_score = focus_sum[i] / count_per_day[i]

            stats.total_minutes += minutes_per_day[i]
            stats.total_sessions += count_per_day[i]
            total_focus += day.focus_score
            days_with_sessions += 1

    if days_with_sessions > 0:
        stats.average_focus_score = total_focus / days_with_sessions

    return stats


# ============================================
# HOURLY DISTRIBUTION & ENERGY CURVE
# ============================================

def hourly_distribution(sessions: List[SessionRecord], date_range: Optional[DateRange]) -> List[HourlyBucket]:
    """24 buckets by hour of day with minutes, counts and running-mean metrics."""
    buckets = [HourlyBucket(hour_of_day=hour) for hour in range(24)]

    for session in filter_in_range(sessions, date_range):
        hour = to_local_datetime(session.start_timestamp).hour
        buckets[hour].add_session(
            session.duration_minutes,
            session.focus_score,
            session.avg_noise_level,
            session.avg_light_level,
        )

    active_hours = sum(1 for b in buckets if b.session_count > 0)
    logger.debug(f"Hourly distribution: {active_hours} active hours")
    return buckets


def energy_curve(sessions: List[SessionRecord]) -> List[HourlyQuality]:
    """Mean focus per hour of day over every given session."""
    total_quality = [0.0] * 24
    counts = [0] * 24

    for session in sessions or []:
        hour = to_local_datetime(session.start_timestamp).hour
        total_quality[hour] += session.focus_score
        counts[hour] += 1

    return [
        HourlyQuality(
            hour=hour,
            avg_quality=total_quality[hour] / counts[hour] if counts[hour] else 0.0,
            session_count=counts[hour],
        )
        for hour in range(24)
    ]


# ============================================
# QUALITY HEATMAP
# ============================================

def quality_heatmap(sessions: List[SessionRecord],
                    date_range: DateRange,
                    max_days: Optional[int] = None,
                    now: Optional[datetime] = None) -> List[HeatmapCell]:
    """
    Sparse (day, hour) heatmap of session quality.

    Only hours with at least one session get a cell. The range is narrowed
    to the last `max_days` days (365 by default) to bound memory.
    """
    max_days = max_days or get_analytics_config().heatmap_max_days
    capped_range = date_range.capped(max_days, now=now)
    if capped_range is not date_range:
        logger.debug(f"Heatmap range capped to {max_days} days")

    in_range = filter_in_range(sessions, capped_range)
    if not in_range:
        return []

    cells: Dict[Tuple[int, int, int, int], HeatmapCell] = {}

    for session in in_range:
        started = to_local_datetime(session.start_timestamp)
        key = (started.year, started.month, started.day, started.hour)

        cell = cells.get(key)
        if cell is None:
            cell = HeatmapCell(
                year=started.year,
                month=started.month,
                day_of_month=started.day,
                day_of_week=started.weekday(),
                hour_of_day=started.hour,
                timestamp=to_millis(started.replace(minute=0, second=0, microsecond=0)),
            )
            cells[key] = cell

        # Sum now, divide once every session is in
        cell.session_count += 1
        cell.avg_quality += session.focus_score
        cell.total_minutes += session.duration_minutes

    result = list(cells.values())
    for cell in result:
        cell.avg_quality = cell.avg_quality / cell.session_count

    result.sort(key=lambda c: c.timestamp)
    logger.debug(f"Heatmap complete: {len(result)} hourly cells from {len(in_range)} sessions")
    return result


# ============================================
# STREAK CALENDAR
# ============================================

def classify_streak(total_minutes: int, target_minutes: int) -> StreakStatus:
    """Classify a day's study minutes against the daily target."""
    if total_minutes == 0:
        return StreakStatus.NONE
    if total_minutes < target_minutes * 0.5:
        return StreakStatus.PARTIAL
    if total_minutes >= target_minutes * 1.5:
        return StreakStatus.EXCEPTIONAL
    return StreakStatus.HIT_TARGET


def streak_calendar(sessions: List[SessionRecord], target_minutes: int,
                    month: int, year: int) -> List[StreakDay]:
    """One StreakDay for every day of the month (month is 1-12)."""
    days_in_month = calendar.monthrange(year, month)[1]
    days = {
        day: StreakDay(day_of_month=day, month=month, year=year)
        for day in range(1, days_in_month + 1)
    }

    for session in sessions or []:
        started = to_local_datetime(session.start_timestamp)
        if started.month != month or started.year != year:
            continue

        streak_day = days[started.day]
        streak_day.total_minutes += session.duration_minutes
        streak_day.avg_quality += session.focus_score
        streak_day.session_count += 1

    for streak_day in days.values():
        if streak_day.session_count > 0:
            streak_day.avg_quality = streak_day.avg_quality / streak_day.session_count
        streak_day.status = classify_streak(streak_day.total_minutes, target_minutes)

    return sorted(days.values(), key=lambda d: (d.year, d.month, d.day_of_month))


# ============================================
# TAG USAGE
# ============================================

def tag_usage(sessions: List[SessionRecord], date_range: Optional[DateRange],
              top_n: Optional[int] = None) -> List[TagUsage]:
    """
    Session share per tag, ranked by total minutes then session count.

    Entries past `top_n` are merged into a single gray "Other" entry.
    """
    if top_n is None:
        top_n = get_analytics_config().default_top_tags

    in_range = filter_in_range(sessions, date_range)
    if not in_range:
        return []

    usage: Dict[str, TagUsage] = {}
    for session in in_range:
        title = session.tag_title or NO_TAG
        entry = usage.get(title)
        if entry is None:
            entry = TagUsage(tag_title=title, color=session.tag_color)
            usage[title] = entry
        entry.session_count += 1
        entry.total_minutes += session.duration_minutes

    total_sessions = len(in_range)
    for entry in usage.values():
        entry.percentage = entry.session_count / total_sessions * 100

    ranked = sorted(usage.values(), key=lambda u: (-u.total_minutes, -u.session_count, u.tag_title))
    if len(ranked) <= top_n:
        return ranked

    tail = ranked[top_n:]
    other = TagUsage(
        tag_title=OTHER_TAG,
        color=OTHER_TAG_COLOR,
        session_count=sum(u.session_count for u in tail),
        total_minutes=sum(u.total_minutes for u in tail),
        percentage=sum(u.percentage for u in tail),
    )
    return ranked[:top_n] + [other]


# ============================================
# TODAY HELPERS
# ============================================

def today_primary_tag(sessions: List[SessionRecord], now: Optional[datetime] = None) -> Optional[str]:
    """Tag with the most sessions today; the first tag to reach the top count wins ties."""
    today = (now or datetime.now()).date()
    counts: Dict[str, int] = {}
    max_count = 0
    primary = None

    for session in sessions_on_day(sessions or [], today):
        title = session.tag_title
        if not title or title == NO_TAG:
            continue
        counts[title] = counts.get(title, 0) + 1
        if counts[title] > max_count:
            max_count = counts[title]
            primary = title

    return primary


def today_total_minutes(sessions: List[SessionRecord], now: Optional[datetime] = None) -> int:
    today = (now or datetime.now()).date()
    return sum(s.duration_minutes for s in sessions_on_day(sessions or [], today))


# ============================================
# BEST-HOURS RECOMMENDATION
# ============================================

def _format_clock(hour: int) -> str:
    hour = hour % 24
    if hour == 0:
        return "12:00 AM"
    if hour < 12:
        return f"{hour}:00 AM"
    if hour == 12:
        return "12:00 PM"
    return f"{hour - 12}:00 PM"


def _slot_reason(bucket: HourlyBucket) -> str:
    focus = bucket.avg_focus_score
    if focus >= 80:
        productivity = "excellent"
    elif focus >= 60:
        productivity = "good"
    else:
        productivity = "moderate"

    plural = "" if bucket.session_count == 1 else "s"
    return f"Based on {bucket.session_count} session{plural} with {productivity} focus ({focus:.0f}%)"


def daily_recommendation(sessions: List[SessionRecord], date_range: Optional[DateRange],
                         slots: int = 3) -> Recommendation:
    """Recommend the historically most focused hours of the day."""
    in_range = filter_in_range(sessions, date_range)
    if not in_range:
        return Recommendation(
            kind=RecommendationKind.TIME_SLOTS,
            summary="Not enough data yet. Complete more sessions to get personalized recommendations.",
            confidence_score=0,
        )

    ranked = sorted(
        (b for b in hourly_distribution(in_range, None) if b.session_count > 0),
        key=lambda b: (-b.avg_focus_score, b.hour_of_day),
    )

    time_slots = [
        TimeSlot(
            start_time=_format_clock(bucket.hour_of_day),
            end_time=_format_clock(bucket.hour_of_day + 1),
            productivity_score=int(bucket.avg_focus_score),
            reason=_slot_reason(bucket),
        )
        for bucket in ranked[:slots]
    ]

    best = ranked[0]
    summary = (
        f"Based on {len(in_range)} sessions, you're most productive around "
        f"{_format_clock(best.hour_of_day)} with {best.avg_focus_score:.0f}% focus."
    )

    return Recommendation(
        kind=RecommendationKind.TIME_SLOTS,
        summary=summary,
        confidence_score=min(100, len(in_range) * 10),
        total_sessions=len(in_range),
        time_slots=time_slots,
    )
