"""
StudyFlow - Analytics Service
Wires the stores, preferences and cache into the pure aggregation and
scheduling functions, and refreshes snapshots off the event loop.
"""

import asyncio
import inspect
from datetime import datetime, date
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from .aggregator import (
    filter_in_range, weekly_stats, hourly_distribution, energy_curve,
    quality_heatmap, streak_calendar, tag_usage, daily_recommendation,
)
from .cache import ResultCache
from .config import AnalyticsConfig, get_analytics_config
from .date_range import DateRange, RangeType, day_bounds
from .goal_rings import calculate_goal_rings, daily_rings_history
from .logger import logger
from .models import (
    SessionRecord, AnalyticsSnapshot, WeeklyStats, HourlyBucket, HeatmapCell, HourlyQuality,
    StreakDay, TagUsage, GoalRing, DailyRings, Recommendation,
)
from .preferences import Preferences
from .scheduler import ScheduleAllocator
from .sources import SessionStore, PreferencesStore, CalendarSource, InMemoryPreferencesStore


SnapshotCallback = Callable[[AnalyticsSnapshot], Union[None, Awaitable[None]]]


class AnalyticsService:
    """
    Entry point for every analytics query.

    All collaborators are passed in; nothing here reaches for a global store.
    """

    def __init__(self, session_store: SessionStore,
                 preferences_store: Optional[PreferencesStore] = None,
                 calendar_source: Optional[CalendarSource] = None,
                 cache: Optional[ResultCache] = None,
                 config: Optional[AnalyticsConfig] = None):
        self.session_store = session_store
        self.preferences_store = preferences_store or InMemoryPreferencesStore()
        self.calendar_source = calendar_source
        self.config = config or get_analytics_config()
        self.cache = cache if cache is not None else ResultCache(ttl_seconds=self.config.cache_ttl_seconds)

        self._generation = 0
        self._latest_snapshot: Optional[AnalyticsSnapshot] = None

    # ---- inputs ----

    def preferences(self) -> Preferences:
        return self.preferences_store.load()

    def sessions(self, date_range: Optional[DateRange] = None) -> List[SessionRecord]:
        """Sessions inside the range (everything when no range is given)."""
        if date_range is None:
            return self.session_store.sessions_since(0)
        return filter_in_range(self.session_store.sessions_since(date_range.start_timestamp), date_range)

    def _cached(self, kind: str, sessions: Sequence[SessionRecord],
                date_range: Optional[DateRange], compute: Callable[[], Any], *extra) -> Any:
        key = self.cache.make_key(kind, sessions, date_range, *extra)
        return self.cache.get_or_compute(key, compute)

    # ---- individual aggregates ----

    def weekly(self, date_range: DateRange) -> WeeklyStats:
        sessions = self.sessions(date_range)
        return self._cached("weekly", sessions, date_range, lambda: weekly_stats(sessions, date_range))

    def hourly(self, date_range: DateRange) -> List[HourlyBucket]:
        sessions = self.sessions(date_range)
        return self._cached("hourly", sessions, date_range, lambda: hourly_distribution(sessions, date_range))

    def heatmap(self, date_range: DateRange, now: Optional[datetime] = None) -> List[HeatmapCell]:
        sessions = self.sessions(date_range)
        return self._cached("heatmap", sessions, date_range,
                            lambda: quality_heatmap(sessions, date_range, self.config.heatmap_max_days, now))

    def tags(self, date_range: DateRange, top_n: Optional[int] = None) -> List[TagUsage]:
        top_n = top_n or self.config.default_top_tags
        sessions = self.sessions(date_range)
        return self._cached("tags", sessions, date_range, lambda: tag_usage(sessions, date_range, top_n), top_n)

    def energy(self, date_range: DateRange) -> List[HourlyQuality]:
        sessions = self.sessions(date_range)
        return self._cached("energy", sessions, date_range, lambda: energy_curve(sessions))

    def recommendation(self, date_range: DateRange, slots: int = 3) -> Recommendation:
        sessions = self.sessions(date_range)
        return self._cached("recommendation", sessions, date_range,
                            lambda: daily_recommendation(sessions, date_range, slots), slots)

    def streak(self, year: int, month: int, now: Optional[datetime] = None) -> List[StreakDay]:
        """Streak calendar for a month, judged against today's minutes goal."""
        now = now or datetime.now()
        month_range = DateRange.for_month(year, month)
        target = self.preferences().daily_study_minutes_goal(now.date())
        sessions = self.sessions(month_range)
        return self._cached("streak", sessions, month_range,
                            lambda: streak_calendar(sessions, target, month, year), target)

    def goal_rings(self, now: Optional[datetime] = None) -> List[GoalRing]:
        now = now or datetime.now()
        start, end = day_bounds(now.date())
        today = self.sessions(DateRange.custom(start, end))
        return calculate_goal_rings(today, preferences=self.preferences(), now=now)

    def rings_history(self, date_range: DateRange, now: Optional[datetime] = None) -> List[DailyRings]:
        return daily_rings_history(
            self.sessions(date_range.capped(self.config.heatmap_max_days, now=now)),
            date_range,
            min_sessions_for_ring=self.config.min_sessions_for_ring,
            preferences=self.preferences(),
            now=now,
        )

    # ---- snapshot ----

    def compute_snapshot(self, date_range: DateRange, now: Optional[datetime] = None) -> AnalyticsSnapshot:
        """
        Every aggregate for one range.

        The streak calendar covers the range's month for month ranges and the
        current month otherwise; goal rings are always for today.
        """
        now = now or datetime.now()
        logger.info(f"Computing analytics snapshot for {date_range.display_name()}")

        if date_range.range_type == RangeType.SPECIFIC_MONTH:
            streak_year, streak_month = date_range.year, date_range.month
        else:
            streak_year, streak_month = now.year, now.month

        snapshot = AnalyticsSnapshot(
            range_name=date_range.display_name(),
            generated_at=now,
            session_count=len(self.sessions(date_range)),
            weekly=self.weekly(date_range),
            hourly=self.hourly(date_range),
            heatmap=self.heatmap(date_range, now),
            streak=self.streak(streak_year, streak_month, now),
            tag_usage=self.tags(date_range),
            goal_rings=self.goal_rings(now),
            energy_curve=self.energy(date_range),
        )

        logger.debug(f"Snapshot ready: {snapshot.session_count} sessions, "
                     f"cache {self.cache.hits} hits / {self.cache.misses} misses")
        return snapshot

    @property
    def latest_snapshot(self) -> Optional[AnalyticsSnapshot]:
        return self._latest_snapshot

    async def refresh(self, date_range: DateRange,
                      callback: Optional[SnapshotCallback] = None,
                      now: Optional[datetime] = None) -> Optional[AnalyticsSnapshot]:
        """
        Recompute the snapshot in a worker thread.

        Only the most recent request wins: if another refresh starts before
        this one finishes, this result is discarded and None is returned.
        """
        self._generation += 1
        generation = self._generation

        snapshot = await asyncio.to_thread(self.compute_snapshot, date_range, now)

        if generation != self._generation:
            logger.debug(f"Discarding superseded snapshot (request {generation}, latest {self._generation})")
            return None

        self._latest_snapshot = snapshot
        if callback is not None:
            result = callback(snapshot)
            if inspect.isawaitable(result):
                await result
        return snapshot

    async def snapshot_for(self, date_range: DateRange,
                           now: Optional[datetime] = None) -> AnalyticsSnapshot:
        """
        Snapshot for exactly this range, for a request that needs an answer.

        A superseded refresh still yields this caller its own range, computed
        again off the event loop; it never receives another request's result.
        """
        snapshot = await self.refresh(date_range, now=now)
        if snapshot is None:
            snapshot = await asyncio.to_thread(self.compute_snapshot, date_range, now)
        return snapshot

    # ---- schedule ----

    def generate_schedule(self, target_date: Optional[date] = None,
                          target_study_hours: Optional[float] = None,
                          recent_energy_scores: Optional[Sequence[float]] = None,
                          now: Optional[datetime] = None) -> Recommendation:
        """Adaptive schedule for a day from the full session history."""
        now = now or datetime.now()
        target_date = target_date or now.date()

        events = self.calendar_source.events_for_day(target_date) if self.calendar_source else []
        allocator = ScheduleAllocator(self.preferences())

        return allocator.generate_adaptive_schedule(
            self.sessions(),
            target_date=target_date,
            calendar_events=events,
            target_study_hours=target_study_hours,
            recent_energy_scores=recent_energy_scores,
            now=now,
        )
