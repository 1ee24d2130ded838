"""
Standardized Date/Time Handling Utilities

This module provides centralized functions for date/time operations to ensure:
1. All stored timestamps are timezone-aware (UTC)
2. Calendar days (streaks, daily windows) are cut in the configured timezone
3. Naive datetimes coming from callers are treated as UTC
4. Calendar month/year arithmetic is consistent across the engine

CRITICAL RULES:
- The engines never read the clock themselves; callers pass `now`
- Use now_local() only at the outer boundary to produce that `now`
- Never mix naive and aware datetimes
"""

import calendar
import logging
from datetime import datetime, date, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ecoprogress.config import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def get_default_timezone() -> ZoneInfo:
    """
    Get the configured timezone, falling back to UTC

    Returns:
        ZoneInfo object for DEFAULT_TIMEZONE
    """
    try:
        return ZoneInfo(DEFAULT_TIMEZONE)
    except Exception as e:
        logger.error(f"Invalid DEFAULT_TIMEZONE '{DEFAULT_TIMEZONE}': {e}")
        return ZoneInfo("UTC")


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def now_local() -> datetime:
    """Current datetime in the configured timezone"""
    return datetime.now(get_default_timezone())


def ensure_aware(dt: datetime) -> datetime:
    """
    Attach UTC to naive datetimes

    Args:
        dt: Datetime that may be naive

    Returns:
        Timezone-aware datetime
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_local_date(dt: datetime, tz) -> date:
    """
    Calendar day of an instant, as seen in timezone `tz`

    Args:
        dt: Instant (naive values are read as UTC)
        tz: tzinfo of the observer (usually `now.tzinfo`)

    Returns:
        Local calendar date
    """
    return ensure_aware(dt).astimezone(tz).date()


def start_of_day(now: datetime) -> datetime:
    """Local midnight of the day containing `now`, in `now`'s timezone"""
    now = ensure_aware(now)
    return datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)


def shift_months(dt: datetime, months: int) -> datetime:
    """
    Move a datetime by whole calendar months

    The day of month is clamped to the last day of the target month
    (March 31 minus one month is February 28/29).

    Args:
        dt: Starting datetime
        months: Number of months, negative to go back

    Returns:
        Shifted datetime with the same time of day and tzinfo
    """
    month_index = dt.year * 12 + (dt.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return dt.replace(year=year, month=month, day=min(dt.day, last_day))


def shift_years(dt: datetime, years: int) -> datetime:
    """Move a datetime by whole calendar years (Feb 29 clamps to Feb 28)"""
    return shift_months(dt, years * 12)


def days_until(end: datetime, now: datetime) -> float:
    """
    Fractional days from `now` until `end` (negative when `end` is past)
    """
    delta: timedelta = ensure_aware(end) - ensure_aware(now)
    return delta.total_seconds() / SECONDS_PER_DAY


def is_after(a: Optional[datetime], b: datetime) -> bool:
    """True when `a` is set and strictly later than `b`"""
    if a is None:
        return False
    return ensure_aware(a) > ensure_aware(b)
