"""Shared validation utilities"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to naive UTC for storage.

    Timezone-aware values are converted to UTC; naive values are assumed to be
    UTC already.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Start of ``day`` and start of the following day"""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def within_day(day: date, start: datetime, end: datetime) -> bool:
    """Interval lies inside the 24-hour span of ``day`` (ending exactly at midnight is allowed)"""
    day_start, day_end = day_bounds(day)
    return day_start <= start and end <= day_end


def utcnow() -> datetime:
    """Current time as naive UTC, matching stored timestamps"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
