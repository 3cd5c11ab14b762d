"""Shared test fixtures for StudyFlow tests.

- A fixed reference time (a mid-June Wednesday, clear of DST switches)
- A session factory building records from local wall-clock times
- An AnalyticsService wired to in-memory stores, and a TestClient over it
"""

import os
from datetime import datetime, timedelta
from typing import Optional

import pytest

# Keep test runs from writing log files
os.environ.setdefault("LOG_FILE_ENABLED", "false")

from studyflow.date_range import to_millis  # noqa: E402
from studyflow.models import SessionRecord  # noqa: E402
from studyflow.preferences import Preferences  # noqa: E402


# ─────────────────────────────────────────────────────────────────────────────
# Time Constants
# ─────────────────────────────────────────────────────────────────────────────

NOW = datetime(2025, 6, 18, 18, 0)  # Wednesday
TODAY = NOW.date()


def make_session(day=None, hour: int = 9, minute: int = 0, duration: int = 60,
                 focus: float = 80.0, tag: Optional[str] = "Math",
                 color: Optional[int] = 0xFF2196F3, **extra) -> SessionRecord:
    """Session starting at `hour:minute` local time on `day` (defaults to today)."""
    day = day or TODAY
    started = datetime(day.year, day.month, day.day, hour, minute)
    return SessionRecord(
        start_timestamp=to_millis(started),
        duration_minutes=duration,
        focus_score=focus,
        tag_title=tag,
        tag_color=color,
        **extra,
    )


def days_ago(n: int):
    return TODAY - timedelta(days=n)


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def preferences() -> Preferences:
    return Preferences()


@pytest.fixture
def service():
    from studyflow.cache import ResultCache
    from studyflow.service import AnalyticsService
    from studyflow.sources import InMemoryCalendarSource, InMemoryPreferencesStore, InMemorySessionStore

    return AnalyticsService(
        session_store=InMemorySessionStore(),
        preferences_store=InMemoryPreferencesStore(),
        calendar_source=InMemoryCalendarSource(),
        cache=ResultCache(ttl_seconds=300),
    )


@pytest.fixture
def client(service):
    from fastapi.testclient import TestClient
    from studyflow.main import app, get_service

    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
