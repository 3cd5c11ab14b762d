"""
StudyFlow - Date Ranges
Immutable time intervals that scope every analytics query.
"""

from dataclasses import dataclass
from datetime import datetime, date, timedelta
from enum import Enum
from typing import Optional
import calendar


MILLIS_PER_DAY = 24 * 60 * 60 * 1000
FAR_FUTURE = 2 ** 63 - 1  # ALL_TIME end sentinel

MIN_YEAR = 1900
MAX_YEAR = 2100


class RangeType(str, Enum):
    LAST_N_DAYS = "last_n_days"
    SPECIFIC_MONTH = "specific_month"
    CUSTOM = "custom"
    ALL_TIME = "all_time"


class UnsupportedRangeOperation(Exception):
    """Raised when an operation does not apply to the range's type."""


# ============================================
# TIMESTAMP HELPERS
# ============================================

def to_local_datetime(timestamp_ms: int) -> datetime:
    """Convert epoch milliseconds to a naive local datetime."""
    seconds, millis = divmod(timestamp_ms, 1000)
    return datetime.fromtimestamp(seconds) + timedelta(milliseconds=millis)


def to_millis(dt: datetime) -> int:
    """Convert a datetime (naive = local) to epoch milliseconds."""
    return int(round(dt.timestamp() * 1000))


def start_of_day(day: date) -> datetime:
    return datetime(day.year, day.month, day.day)


def day_bounds(day: date) -> tuple[int, int]:
    """First and last millisecond of a local calendar day."""
    start = start_of_day(day)
    end = start + timedelta(days=1) - timedelta(milliseconds=1)
    return to_millis(start), to_millis(end)


def _format_timestamp(timestamp_ms: int, fmt: str) -> str:
    try:
        return to_local_datetime(timestamp_ms).strftime(fmt)
    except (OverflowError, OSError, ValueError):
        return "..."


# ============================================
# DATE RANGE
# ============================================

@dataclass(frozen=True)
class DateRange:
    """
    Inclusive [start, end] interval in epoch milliseconds.

    Build ranges through the named constructors; `month`, `year` and
    `days_count` are metadata that only the matching range type sets.
    """
    start_timestamp: int
    end_timestamp: int
    range_type: RangeType
    month: Optional[int] = None       # SPECIFIC_MONTH: 1-12
    year: Optional[int] = None        # SPECIFIC_MONTH
    days_count: Optional[int] = None  # LAST_N_DAYS

    def __post_init__(self):
        if self.start_timestamp > self.end_timestamp:
            raise ValueError("Start timestamp cannot be after end timestamp")
        if self.range_type is None:
            raise ValueError("Range type cannot be None")

    # ---- constructors ----

    @classmethod
    def last_n_days(cls, days: int, now: Optional[datetime] = None) -> "DateRange":
        """From local midnight `days` days ago until now."""
        if days <= 0:
            raise ValueError(f"Days must be positive, got: {days}")

        now = now or datetime.now()
        start = (now - timedelta(days=days)).replace(hour=0, minute=0, second=0, microsecond=0)
        return cls(to_millis(start), to_millis(now), RangeType.LAST_N_DAYS, days_count=days)

    @classmethod
    def for_month(cls, year: int, month: int) -> "DateRange":
        """The whole calendar month, 1st 00:00:00.000 to last day 23:59:59.999."""
        if year < MIN_YEAR or year > MAX_YEAR:
            raise ValueError(f"Year out of reasonable range: {year}")
        if month < 1 or month > 12:
            raise ValueError(f"Month must be 1-12, got: {month}")

        last_day = calendar.monthrange(year, month)[1]
        start, _ = day_bounds(date(year, month, 1))
        _, end = day_bounds(date(year, month, last_day))
        return cls(start, end, RangeType.SPECIFIC_MONTH, month=month, year=year)

    @classmethod
    def custom(cls, start_timestamp: int, end_timestamp: int) -> "DateRange":
        return cls(start_timestamp, end_timestamp, RangeType.CUSTOM)

    @classmethod
    def all_time(cls) -> "DateRange":
        return cls(0, FAR_FUTURE, RangeType.ALL_TIME)

    @classmethod
    def current_month(cls, now: Optional[datetime] = None) -> "DateRange":
        now = now or datetime.now()
        return cls.for_month(now.year, now.month)

    # ---- predicates ----

    def contains(self, timestamp: int) -> bool:
        return self.start_timestamp <= timestamp <= self.end_timestamp

    def contains_session(self, session) -> bool:
        return session is not None and self.contains(session.start_timestamp)

    def is_in_future(self, now: Optional[datetime] = None) -> bool:
        return self.start_timestamp > to_millis(now or datetime.now())

    def duration_in_days(self) -> int:
        return max(1, (self.end_timestamp - self.start_timestamp) // MILLIS_PER_DAY)

    def capped(self, max_days: int, now: Optional[datetime] = None) -> "DateRange":
        """Narrow the range to the last `max_days` days before its end."""
        if self.range_type == RangeType.ALL_TIME:
            return DateRange.last_n_days(max_days, now=now)
        if self.duration_in_days() > max_days:
            return DateRange.custom(self.end_timestamp - max_days * MILLIS_PER_DAY, self.end_timestamp)
        return self

    # ---- month navigation ----

    def previous_month(self) -> "DateRange":
        if self.range_type != RangeType.SPECIFIC_MONTH:
            raise UnsupportedRangeOperation("previous_month() only works for SPECIFIC_MONTH ranges")
        if self.month == 1:
            return DateRange.for_month(self.year - 1, 12)
        return DateRange.for_month(self.year, self.month - 1)

    def next_month(self) -> "DateRange":
        if self.range_type != RangeType.SPECIFIC_MONTH:
            raise UnsupportedRangeOperation("next_month() only works for SPECIFIC_MONTH ranges")
        if self.month == 12:
            return DateRange.for_month(self.year + 1, 1)
        return DateRange.for_month(self.year, self.month + 1)

    # ---- presentation ----

    def display_name(self) -> str:
        if self.range_type == RangeType.LAST_N_DAYS:
            return f"Last {self.days_count} {'Day' if self.days_count == 1 else 'Days'}"
        if self.range_type == RangeType.SPECIFIC_MONTH:
            return date(self.year, self.month, 1).strftime("%B %Y")
        if self.range_type == RangeType.CUSTOM:
            start = _format_timestamp(self.start_timestamp, "%b %d, %Y")
            end = _format_timestamp(self.end_timestamp, "%b %d, %Y")
            return f"{start} - {end}"
        return "All Time"

    def short_display_name(self) -> str:
        if self.range_type == RangeType.LAST_N_DAYS:
            return f"{self.days_count}D"
        if self.range_type == RangeType.SPECIFIC_MONTH:
            return date(self.year, self.month, 1).strftime("%b '%y")
        if self.range_type == RangeType.CUSTOM:
            return "Custom"
        return "All"

    def __str__(self) -> str:
        return (f"DateRange(type={self.range_type.value}, display='{self.display_name()}', "
                f"start={self.start_timestamp}, end={self.end_timestamp})")
