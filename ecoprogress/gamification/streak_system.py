"""
Consecutive-Day Streak Calculation

A streak is the number of consecutive calendar days, ending today, that each
contain at least one active activity.

Rules:
- Scan starts at today and walks backward one calendar day at a time
- The first day without activity ends the scan (no activity today -> 0)
- Several activities on one day count once
- At most STREAK_MAX_DAYS days are scanned
"""

from typing import Iterable
from datetime import date, datetime, timedelta
import logging

from ecoprogress.config import STREAK_MAX_DAYS
from ecoprogress.models.activity import Activity
from ecoprogress.utils.datetime_helpers import ensure_aware, to_local_date

logger = logging.getLogger(__name__)


def calculate_streak(
    active_days: Iterable[date],
    today: date,
    max_days: int = STREAK_MAX_DAYS
) -> int:
    """
    Length of the unbroken run of active days ending today

    Args:
        active_days: Calendar days that had at least one matching activity
        today: Local calendar day the streak must end on
        max_days: Hard cap on days scanned

    Returns:
        Streak length, 0..max_days
    """
    days = set(active_days)

    streak = 0
    current_day = today
    while streak < max_days and current_day in days:
        streak += 1
        current_day -= timedelta(days=1)

    return streak


def activity_days(activities: Iterable[Activity], tz) -> set[date]:
    """
    Local calendar days covered by activities

    Args:
        activities: Activity records (only their dates are read)
        tz: Timezone the calendar days are cut in

    Returns:
        Set of distinct local dates
    """
    return {to_local_date(activity.date, tz) for activity in activities}


def streak_from_activities(activities: Iterable[Activity], now: datetime) -> int:
    """Streak ending on `now`'s local day, from activity records"""
    now = ensure_aware(now)
    days = activity_days(activities, now.tzinfo)
    streak = calculate_streak(days, now.date())
    logger.debug(f"Streak of {streak} days ending {now.date()} ({len(days)} active days scanned)")
    return streak
