"""
StudyFlow - Result Cache
Memoizes analytics results per (session set, date range) for a short TTL.
"""

import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Sequence, Tuple

from .config import get_analytics_config
from .date_range import DateRange, RangeType
from .logger import logger
from .models import SessionRecord

MILLIS_PER_MINUTE = 60_000


def sessions_fingerprint(sessions: Sequence[SessionRecord]) -> int:
    """Hash of the fields every aggregate depends on."""
    return hash(tuple(
        (s.id, s.start_timestamp, s.duration_minutes, s.tag_title, s.focus_score)
        for s in sessions
    ))


def range_key(date_range: Optional[DateRange]) -> Optional[Tuple[Hashable, ...]]:
    """
    Cache identity of a range.

    A rolling LAST_N_DAYS range ends at the current millisecond, so its end
    is floored to the minute; otherwise no two requests would share a key.
    """
    if date_range is None:
        return None
    end = date_range.end_timestamp
    if date_range.range_type == RangeType.LAST_N_DAYS:
        end -= end % MILLIS_PER_MINUTE
    return (date_range.range_type, date_range.days_count, date_range.start_timestamp, end,
            date_range.year, date_range.month)


class ResultCache:
    """
    TTL memo keyed by a hash of the session set plus the date range.

    An entry is reused only while its key matches and it is younger than
    the TTL; a changed session set simply produces a different key.
    Expired entries are swept on every write.
    """

    def __init__(self, ttl_seconds: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = get_analytics_config().cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[Tuple[Hashable, ...], Tuple[float, Any]] = {}
        self.hits = 0
        self.misses = 0

    def make_key(self, kind: str, sessions: Sequence[SessionRecord],
                 date_range: Optional[DateRange], *extra: Hashable) -> Tuple[Hashable, ...]:
        return (kind, sessions_fingerprint(sessions), range_key(date_range)) + extra

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at >= self.ttl_seconds

    def get(self, key: Tuple[Hashable, ...]) -> Optional[Any]:
        with self._lock:
            return self._lookup(key)

    def _lookup(self, key: Tuple[Hashable, ...]) -> Optional[Any]:
        # Caller holds the lock
        entry = self._entries.get(key)
        if entry is None:
            return None

        stored_at, value = entry
        if self._expired(stored_at, self._clock()):
            del self._entries[key]
            return None
        return value

    def put(self, key: Tuple[Hashable, ...], value: Any) -> None:
        with self._lock:
            now = self._clock()
            stale = [k for k, (stored_at, _) in self._entries.items() if self._expired(stored_at, now)]
            for k in stale:
                del self._entries[k]
            self._entries[key] = (now, value)

    def get_or_compute(self, key: Tuple[Hashable, ...], compute: Callable[[], Any]) -> Any:
        """Return the cached value for `key`, computing and storing it on a miss."""
        with self._lock:
            value = self._lookup(key)
            if value is not None:
                self.hits += 1
                return value
            self.misses += 1

        value = compute()
        self.put(key, value)
        logger.debug(f"Cache miss for '{key[0]}', stored ({len(self)} entries)")
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
