"""
StudyFlow - Data Sources
Interfaces for where sessions, preferences and calendar events come from,
with in-memory and JSON-file implementations.
"""

import threading
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Iterable

from .date_range import day_bounds
from .logger import logger
from .models import SessionRecord, CalendarEvent
from .preferences import Preferences, load_preferences


# ============================================
# INTERFACES
# ============================================

class SessionStore(ABC):
    @abstractmethod
    def sessions_since(self, timestamp_ms: int) -> List[SessionRecord]:
        """Sessions starting at or after the timestamp, oldest first."""


class PreferencesStore(ABC):
    @abstractmethod
    def load(self) -> Preferences:
        ...


class CalendarSource(ABC):
    @abstractmethod
    def events_for_day(self, day: date) -> List[CalendarEvent]:
        """Events overlapping the local calendar day."""


# ============================================
# IN-MEMORY IMPLEMENTATIONS
# ============================================

class InMemorySessionStore(SessionStore):
    """Thread-safe list of sessions with auto-assigned ids."""

    def __init__(self, sessions: Optional[Iterable[SessionRecord]] = None):
        self._lock = threading.Lock()
        self._sessions: List[SessionRecord] = []
        self._next_id = 1
        for session in sessions or []:
            self.add(session)

    def add(self, session: SessionRecord) -> SessionRecord:
        with self._lock:
            if session.id is None:
                session = session.model_copy(update={"id": self._next_id})
            self._next_id = max(self._next_id, session.id) + 1
            self._sessions.append(session)
        logger.debug(f"Session {session.id} recorded ({session.duration_minutes} min)")
        return session

    def sessions_since(self, timestamp_ms: int) -> List[SessionRecord]:
        with self._lock:
            found = [s for s in self._sessions if s.start_timestamp >= timestamp_ms]
        return sorted(found, key=lambda s: s.start_timestamp)

    def all(self) -> List[SessionRecord]:
        return self.sessions_since(0)

    def __len__(self) -> int:
        return len(self._sessions)


class InMemoryPreferencesStore(PreferencesStore):
    def __init__(self, preferences: Optional[Preferences] = None):
        self.preferences = preferences or Preferences()

    def load(self) -> Preferences:
        return self.preferences


class JsonPreferencesStore(PreferencesStore):
    """Reads the preferences JSON file on every load so edits apply without a restart."""

    def __init__(self, path: Optional[str] = None):
        self.path = path

    def load(self) -> Preferences:
        return load_preferences(self.path)


class InMemoryCalendarSource(CalendarSource):
    def __init__(self, events: Optional[Iterable[CalendarEvent]] = None):
        self._lock = threading.Lock()
        self._events: List[CalendarEvent] = list(events or [])

    def add(self, event: CalendarEvent) -> CalendarEvent:
        if event.end_time < event.start_time:
            raise ValueError("Event end cannot be before its start")
        with self._lock:
            self._events.append(event)
        return event

    def events_for_day(self, day: date) -> List[CalendarEvent]:
        start, end = day_bounds(day)
        with self._lock:
            found = [e for e in self._events if e.start_time <= end and e.end_time > start]
        return sorted(found, key=lambda e: e.start_time)
