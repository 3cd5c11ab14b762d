"""
StudyFlow - FastAPI Backend
Serves analytics, goal rings and adaptive schedules to presentation code.
"""

from contextlib import asynccontextmanager
from datetime import datetime, date
from functools import lru_cache
from typing import Optional, List

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .cache import ResultCache
from .config import get_config_summary
from .date_range import DateRange, RangeType, UnsupportedRangeOperation
from .logger import logger
from .models import (
    SessionRecord, CalendarEvent, HealthStatus, WeeklyStats, HourlyBucket, HeatmapCell,
    HourlyQuality, StreakDay, TagUsage, GoalRing, DailyRings, Recommendation, AnalyticsSnapshot,
)
from .service import AnalyticsService
from .sources import InMemorySessionStore, InMemoryCalendarSource, JsonPreferencesStore


@lru_cache()
def get_service() -> AnalyticsService:
    """Process-wide service; tests override this dependency."""
    return AnalyticsService(
        session_store=InMemorySessionStore(),
        preferences_store=JsonPreferencesStore(),
        calendar_source=InMemoryCalendarSource(),
        cache=ResultCache(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info(f"StudyFlow {__version__} starting")
    logger.debug(f"Configuration: {get_config_summary()}")
    yield
    logger.info("StudyFlow shutting down")


app = FastAPI(
    title="StudyFlow",
    description="Study session analytics and adaptive daily scheduling",
    version=__version__,
    lifespan=lifespan
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_date_range(
    range_type: str = Query("last_n_days", alias="range"),
    days: int = Query(7),
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    start: Optional[int] = Query(None, description="Epoch milliseconds"),
    end: Optional[int] = Query(None, description="Epoch milliseconds"),
    step: int = Query(0, description="Months to move a month range by (negative = back)"),
) -> DateRange:
    """Build the DateRange named by the query string."""
    try:
        date_range = _parse_range(range_type, days, year, month, start, end)
        for _ in range(abs(step)):
            date_range = date_range.next_month() if step > 0 else date_range.previous_month()
        return date_range
    except (ValueError, UnsupportedRangeOperation) as e:
        raise HTTPException(status_code=400, detail=str(e))


def _parse_range(range_type: str, days: int, year: Optional[int], month: Optional[int],
                 start: Optional[int], end: Optional[int]) -> DateRange:
    if range_type == RangeType.LAST_N_DAYS.value:
        return DateRange.last_n_days(days)
    if range_type in ("month", RangeType.SPECIFIC_MONTH.value):
        if year is None or month is None:
            raise ValueError("Month ranges need both 'year' and 'month'")
        return DateRange.for_month(year, month)
    if range_type == RangeType.CUSTOM.value:
        if start is None or end is None:
            raise ValueError("Custom ranges need both 'start' and 'end'")
        return DateRange.custom(start, end)
    if range_type == RangeType.ALL_TIME.value:
        return DateRange.all_time()
    raise ValueError(f"Unknown range type: {range_type}")


# ============================================
# HEALTH & STATUS
# ============================================

@app.get("/health", response_model=HealthStatus)
@app.get("/api/health", response_model=HealthStatus)
async def health_check(service: AnalyticsService = Depends(get_service)):
    """Check API health."""
    return HealthStatus(
        status="healthy",
        version=__version__,
        session_count=len(service.sessions()),
        cache_entries=len(service.cache),
    )


# ============================================
# SESSIONS & CALENDAR
# ============================================

@app.post("/api/sessions", response_model=SessionRecord)
async def record_session(session: SessionRecord, service: AnalyticsService = Depends(get_service)):
    """Record a completed study session."""
    stored = service.session_store.add(session)
    logger.info(f"Session recorded: {stored.duration_minutes} min of {stored.tag_title or 'untagged'} study")
    return stored


@app.get("/api/sessions", response_model=List[SessionRecord])
async def list_sessions(date_range: DateRange = Depends(get_date_range),
                        service: AnalyticsService = Depends(get_service)):
    return service.sessions(date_range)


@app.post("/api/calendar/events", response_model=CalendarEvent)
async def add_calendar_event(event: CalendarEvent, service: AnalyticsService = Depends(get_service)):
    """Register a busy block for the scheduler."""
    if service.calendar_source is None:
        raise HTTPException(status_code=404, detail="Calendar integration not available")
    try:
        return service.calendar_source.add(event)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ============================================
# ANALYTICS
# ============================================

@app.get("/api/analytics/weekly", response_model=WeeklyStats)
async def get_weekly(date_range: DateRange = Depends(get_date_range),
                     service: AnalyticsService = Depends(get_service)):
    return service.weekly(date_range)


@app.get("/api/analytics/hourly", response_model=List[HourlyBucket])
async def get_hourly(date_range: DateRange = Depends(get_date_range),
                     service: AnalyticsService = Depends(get_service)):
    return service.hourly(date_range)


@app.get("/api/analytics/heatmap", response_model=List[HeatmapCell])
async def get_heatmap(date_range: DateRange = Depends(get_date_range),
                      service: AnalyticsService = Depends(get_service)):
    return service.heatmap(date_range)


@app.get("/api/analytics/tags", response_model=List[TagUsage])
async def get_tags(date_range: DateRange = Depends(get_date_range),
                   top_n: Optional[int] = Query(None, ge=1),
                   service: AnalyticsService = Depends(get_service)):
    return service.tags(date_range, top_n)


@app.get("/api/analytics/energy", response_model=List[HourlyQuality])
async def get_energy(date_range: DateRange = Depends(get_date_range),
                     service: AnalyticsService = Depends(get_service)):
    return service.energy(date_range)


@app.get("/api/analytics/recommendation", response_model=Recommendation)
async def get_recommendation(date_range: DateRange = Depends(get_date_range),
                             slots: int = Query(3, ge=1, le=24),
                             service: AnalyticsService = Depends(get_service)):
    """Best historical study hours."""
    return service.recommendation(date_range, slots)


@app.get("/api/analytics/snapshot", response_model=AnalyticsSnapshot)
async def get_snapshot(date_range: DateRange = Depends(get_date_range),
                       service: AnalyticsService = Depends(get_service)):
    """Every aggregate for the range, computed off the event loop."""
    return await service.snapshot_for(date_range)


@app.get("/api/analytics/streak", response_model=List[StreakDay])
async def get_streak(year: Optional[int] = Query(None),
                     month: Optional[int] = Query(None),
                     service: AnalyticsService = Depends(get_service)):
    """Streak calendar for a month (defaults to the current month)."""
    now = datetime.now()
    try:
        return service.streak(year or now.year, month or now.month, now)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ============================================
# GOALS
# ============================================

@app.get("/api/goals/rings", response_model=List[GoalRing])
async def get_goal_rings(service: AnalyticsService = Depends(get_service)):
    """Today's study time, focus quality and session rings."""
    return service.goal_rings()


@app.get("/api/goals/history", response_model=List[DailyRings])
async def get_goal_history(date_range: DateRange = Depends(get_date_range),
                           service: AnalyticsService = Depends(get_service)):
    return service.rings_history(date_range)


# ============================================
# SCHEDULE
# ============================================

@app.get("/api/schedule", response_model=Recommendation)
async def get_schedule(target_date: Optional[date] = Query(None, alias="date"),
                       target_hours: Optional[float] = Query(None, ge=0, le=24),
                       energy: List[float] = Query([]),
                       service: AnalyticsService = Depends(get_service)):
    """Adaptive 24-hour schedule for a day (defaults to today)."""
    return service.generate_schedule(
        target_date=target_date,
        target_study_hours=target_hours,
        recent_energy_scores=energy or None,
    )


# ============================================
# RUN SERVER
# ============================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
