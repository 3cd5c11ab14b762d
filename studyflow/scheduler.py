"""
StudyFlow - Adaptive Scheduler
Builds a 24-hour schedule: fixed life constraints (calendar, sleep, meals,
work, exercise, social time) are layered onto hourly slots, then the free
hours are allocated to study by historical productivity.
"""

from datetime import datetime, date, timedelta
from typing import Optional, List, Dict, Sequence, Tuple
import math

from .aggregator import today_primary_tag
from .date_range import to_local_datetime, start_of_day
from .logger import logger
from .models import (
    ActivityType, ActivityBlock, CalendarEvent, SessionRecord,
    Recommendation, RecommendationKind,
)
from .preferences import Preferences, DayKey
from .summarizer import build_summary


HOURS_PER_DAY = 24

# A study hour becomes deep study with this much historical evidence
DEEP_STUDY_FOCUS_THRESHOLD = 75
DEEP_STUDY_MIN_SESSIONS = 3

ACTIVITY_CONFIDENCE = {
    ActivityType.SLEEP: 100,
    ActivityType.CALENDAR_EVENT: 100,
    ActivityType.MEALS: 95,
    ActivityType.EXERCISE: 95,
    ActivityType.DEEP_STUDY: 90,
    ActivityType.LIGHT_STUDY: 90,
    ActivityType.WORK: 80,
    ActivityType.SOCIAL: 80,
    ActivityType.BREAKS: 70,
}

ACTIVITY_REASONS = {
    ActivityType.DEEP_STUDY: "Optimal time for intensive focus work",
    ActivityType.LIGHT_STUDY: "Good for review, reading, practice",
    ActivityType.WORK: "Work hours",
    ActivityType.EXERCISE: "Exercise for energy and focus",
    ActivityType.SOCIAL: "Protected social time",
    ActivityType.MEALS: "Meal time",
    ActivityType.BREAKS: "Break to maintain energy",
    ActivityType.SLEEP: "Sleep for optimal rest",
    ActivityType.CALENDAR_EVENT: "Calendar commitment",
}


# ============================================
# UTILITY FUNCTIONS
# ============================================

def round_half_up(value: float) -> int:
    """Round to the nearest whole number, halves going up (1.5 -> 2, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def default_productivity(hour: int) -> float:
    """Expected focus for an hour with no history."""
    if 9 <= hour <= 11:
        return 85.0  # Morning peak
    if 14 <= hour <= 16:
        return 75.0  # Afternoon
    if 19 <= hour <= 21:
        return 70.0  # Evening
    if 6 <= hour <= 8:
        return 65.0  # Early morning
    return 50.0


def historical_productivity(sessions: Sequence[SessionRecord]) -> Tuple[List[float], List[int]]:
    """
    Mean focus score and session count per starting hour.

    Hours without history get the default productivity curve.
    """
    totals = [0.0] * HOURS_PER_DAY
    counts = [0] * HOURS_PER_DAY

    for session in sessions:
        hour = to_local_datetime(session.start_timestamp).hour
        totals[hour] += session.focus_score
        counts[hour] += 1

    scores = [
        totals[h] / counts[h] if counts[h] else default_productivity(h)
        for h in range(HOURS_PER_DAY)
    ]
    return scores, counts


def is_sleep_hour(hour: int, bedtime: int, wakeup: int) -> bool:
    """Whether an hour falls in the bedtime -> wakeup window, which may wrap midnight."""
    if bedtime == wakeup:
        return False
    if bedtime < wakeup:
        return bedtime <= hour < wakeup
    return hour >= bedtime or hour < wakeup


def event_hours(event: CalendarEvent, target_date: date) -> Tuple[int, int]:
    """
    Half-open [start, end) hour span an event covers on the target day.

    A partially used hour counts as busy; spans that leave the day are clamped.
    """
    day_start = start_of_day(target_date)
    day_end = day_start + timedelta(days=1)
    starts = to_local_datetime(event.start_time)
    ends = to_local_datetime(event.end_time)

    if ends <= day_start or starts >= day_end:
        return 0, 0

    start_hour = 0 if starts < day_start else starts.hour
    if ends >= day_end:
        end_hour = HOURS_PER_DAY
    else:
        end_hour = ends.hour + (1 if (ends.minute or ends.second or ends.microsecond) else 0)
    return start_hour, max(start_hour, end_hour)


# ============================================
# SCHEDULE ALLOCATOR
# ============================================

class ScheduleAllocator:
    """
    Allocates one day hour by hour.

    Layers run in priority order and only write hours that are still empty,
    so calendar events and sleep are never relabeled:

        calendar -> sleep -> meals -> work -> exercise -> social -> study -> breaks
    """

    def __init__(self, preferences: Optional[Preferences] = None):
        self.preferences = preferences or Preferences()

    # ---- layers ----

    def _apply_calendar_constraints(self, slots: List[Optional[ActivityType]],
                                    events: Sequence[CalendarEvent], target_date: date) -> None:
        integration = self.preferences.calendar_integration
        if not integration.enabled:
            return

        before = integration.buffer_before_event // 60
        after = integration.buffer_after_event // 60

        for event in events:
            start, end = event_hours(event, target_date)
            if start == end:
                continue
            start = max(0, start - before)
            end = min(HOURS_PER_DAY, end + after)
            for h in range(start, end):
                if slots[h] is None:
                    slots[h] = ActivityType.CALENDAR_EVENT

    def _apply_sleep_schedule(self, slots: List[Optional[ActivityType]]) -> None:
        sleep = self.preferences.sleep_schedule
        bedtime = sleep.bedtime.hour
        wakeup = sleep.wakeup_time.hour
        if bedtime == wakeup:
            logger.warning(f"Bedtime and wake-up are both {bedtime}:00, no sleep scheduled")

        for h in range(HOURS_PER_DAY):
            if slots[h] is None and is_sleep_hour(h, bedtime, wakeup):
                slots[h] = ActivityType.SLEEP

    def _apply_meal_times(self, slots: List[Optional[ActivityType]]) -> None:
        for meal in self.preferences.meal_times.enabled_meals():
            if slots[meal.hour] is None:
                slots[meal.hour] = ActivityType.MEALS

    def _apply_work_schedule(self, slots: List[Optional[ActivityType]], target_date: date) -> None:
        work = self.preferences.work_schedule
        if not work.enabled or work.allow_study_during_work:
            return
        if DayKey.for_date(target_date) not in work.work_days:
            return

        for h in range(work.start_time.hour, min(work.end_time.hour, HOURS_PER_DAY)):
            if slots[h] is None:
                slots[h] = ActivityType.WORK

    def _apply_exercise_schedule(self, slots: List[Optional[ActivityType]]) -> None:
        exercise = self.preferences.exercise_schedule
        if not exercise.enabled:
            return

        for block in exercise.preferred_times:
            for h in range(block.hour, min(block.hour + block.duration // 60, HOURS_PER_DAY)):
                if slots[h] is None:
                    slots[h] = ActivityType.EXERCISE

    def _apply_social_time(self, slots: List[Optional[ActivityType]], target_date: date) -> None:
        social = self.preferences.social_time
        if not social.enabled or not social.protect_from_study:
            return
        if DayKey.for_date(target_date) not in social.preferred_days:
            return

        for hour in social.preferred_hours:
            if 0 <= hour < HOURS_PER_DAY and slots[hour] is None:
                slots[hour] = ActivityType.SOCIAL

    def _allocate_study_hours(self, slots: List[Optional[ActivityType]],
                              sessions: Sequence[SessionRecord], target_study_hours: float) -> int:
        """Give the most productive free hours to study. Returns the hours allocated."""
        scores, counts = historical_productivity(sessions)

        free_hours = [h for h in range(HOURS_PER_DAY) if slots[h] is None]
        free_hours.sort(key=lambda h: (-scores[h], h))

        hours_to_allocate = max(0, round_half_up(target_study_hours))
        chosen = free_hours[:hours_to_allocate]

        for h in chosen:
            has_history = counts[h] > 0
            if (has_history and scores[h] >= DEEP_STUDY_FOCUS_THRESHOLD) or counts[h] >= DEEP_STUDY_MIN_SESSIONS:
                slots[h] = ActivityType.DEEP_STUDY
            else:
                slots[h] = ActivityType.LIGHT_STUDY

        logger.debug(f"Allocated {len(chosen)}/{hours_to_allocate} study hours")
        return len(chosen)

    @staticmethod
    def _fill_remaining_slots(slots: List[Optional[ActivityType]]) -> None:
        for h in range(HOURS_PER_DAY):
            if slots[h] is None:
                slots[h] = ActivityType.BREAKS

    # ---- public API ----

    def allocate(self, sessions: Sequence[SessionRecord],
                 target_date: date,
                 target_study_hours: float,
                 calendar_events: Sequence[CalendarEvent] = ()) -> List[ActivityType]:
        """Run every layer and return one activity per hour (index = hour of day)."""
        slots: List[Optional[ActivityType]] = [None] * HOURS_PER_DAY

        self._apply_calendar_constraints(slots, calendar_events, target_date)
        self._apply_sleep_schedule(slots)
        self._apply_meal_times(slots)
        self._apply_work_schedule(slots, target_date)
        self._apply_exercise_schedule(slots)
        self._apply_social_time(slots, target_date)
        self._allocate_study_hours(slots, sessions, target_study_hours)
        self._fill_remaining_slots(slots)

        return slots

    def calendar_titles_by_hour(self, calendar_events: Sequence[CalendarEvent],
                                target_date: date) -> Dict[int, List[str]]:
        titles: Dict[int, List[str]] = {}
        for event in calendar_events:
            if not event.title:
                continue
            start, end = event_hours(event, target_date)
            for h in range(start, end):
                if event.title not in titles.setdefault(h, []):
                    titles[h].append(event.title)
        return titles

    @staticmethod
    def build_activity_blocks(hourly: Sequence[ActivityType],
                              titles_by_hour: Optional[Dict[int, List[str]]] = None) -> List[ActivityBlock]:
        """Merge runs of equal hourly activities into contiguous blocks."""
        titles_by_hour = titles_by_hour or {}
        blocks = []

        block_start = 0
        for h in range(1, HOURS_PER_DAY + 1):
            if h < HOURS_PER_DAY and hourly[h] == hourly[block_start]:
                continue

            activity = hourly[block_start]
            event_title = None
            if activity == ActivityType.CALENDAR_EVENT:
                titles = []
                for hour in range(block_start, h):
                    titles.extend(t for t in titles_by_hour.get(hour, []) if t not in titles)
                event_title = " / ".join(titles) or None

            blocks.append(ActivityBlock(
                activity_type=activity,
                start_hour=block_start,
                end_hour=h,
                confidence_score=ACTIVITY_CONFIDENCE[activity],
                reason=ACTIVITY_REASONS[activity],
                event_title=event_title,
            ))
            block_start = h

        return blocks

    def generate_adaptive_schedule(self, sessions: Sequence[SessionRecord],
                                   target_date: Optional[date] = None,
                                   calendar_events: Sequence[CalendarEvent] = (),
                                   target_study_hours: Optional[float] = None,
                                   recent_energy_scores: Optional[Sequence[float]] = None,
                                   now: Optional[datetime] = None) -> Recommendation:
        """
        Produce the full schedule recommendation for a day.

        Args:
            sessions: Historical sessions used for productivity scores
            target_date: Day to plan (defaults to today)
            calendar_events: Busy blocks for that day
            target_study_hours: Study hours to place; defaults to the daily goal
            recent_energy_scores: Latest mood/energy scores for the advisory line
            now: Reference time deciding which sessions count as "today"
        """
        now = now or datetime.now()
        target_date = target_date or now.date()
        logger.info(f"Generating adaptive schedule for {target_date}")

        if target_study_hours is None:
            daily_goal_minutes = self.preferences.daily_study_minutes_goal(target_date)
            target_study_hours = daily_goal_minutes / 60.0
        else:
            daily_goal_minutes = round_half_up(target_study_hours * 60)

        hourly = self.allocate(sessions, target_date, target_study_hours, calendar_events)
        titles = self.calendar_titles_by_hour(calendar_events, target_date)

        recommendation = Recommendation(
            kind=RecommendationKind.ADAPTIVE_SCHEDULE,
            confidence_score=min(100, len(sessions) * 10),
            total_sessions=len(sessions),
            activity_blocks=self.build_activity_blocks(hourly, titles),
        )

        goals = self.preferences.personal_goals
        recommendation.summary = build_summary(
            total_sessions=len(sessions),
            today_topic=today_primary_tag(list(sessions), now),
            study_objective=self.preferences.study_objective,
            daily_goal_minutes=daily_goal_minutes,
            available_hours=recommendation.available_hours,
            calendar_blocked_hours=recommendation.calendar_blocked_hours,
            recent_energy_scores=recent_energy_scores,
            low_threshold=goals.low_threshold,
            high_threshold=goals.high_threshold,
        )

        logger.info(f"Schedule generated: {len(recommendation.activity_blocks)} blocks, "
                    f"{recommendation.study_hours}h of study allocated")
        return recommendation
