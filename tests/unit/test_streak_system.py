"""Unit tests for Streak System (ecoprogress/gamification/streak_system.py)"""
import pytest
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from ecoprogress.gamification.streak_system import (
    activity_days,
    calculate_streak,
    streak_from_activities,
)


TODAY = date(2024, 6, 15)


def days_ago(*offsets):
    return {TODAY - timedelta(days=n) for n in offsets}


# ============================================================================
# calculate_streak Tests
# ============================================================================

def test_streak_stops_at_first_gap():
    """Activity today, -1, -2 and -4 (gap at -3) is a 3-day streak"""
    assert calculate_streak(days_ago(0, 1, 2, 4), TODAY) == 3


def test_no_activity_today_is_zero():
    """Past activity does not count without activity today"""
    assert calculate_streak(days_ago(1, 2, 3, 4, 5), TODAY) == 0


def test_empty_history_is_zero():
    assert calculate_streak(set(), TODAY) == 0


def test_single_day_streak():
    assert calculate_streak(days_ago(0), TODAY) == 1


def test_streak_is_capped():
    """Scan never goes beyond max_days"""
    assert calculate_streak(days_ago(*range(20)), TODAY, max_days=7) == 7


def test_future_days_are_ignored():
    days = days_ago(0, 1) | {TODAY + timedelta(days=1)}
    assert calculate_streak(days, TODAY) == 2


# ============================================================================
# Activity Record Tests
# ============================================================================

def test_multiple_activities_same_day_count_once(activity_factory, now):
    activities = [
        activity_factory(date=now.replace(hour=8)),
        activity_factory(date=now.replace(hour=9)),
        activity_factory(date=now.replace(hour=10)),
        activity_factory(days_ago=1),
    ]

    assert streak_from_activities(activities, now) == 2


def test_streak_from_activities_with_gap(activity_factory, now):
    activities = [activity_factory(days_ago=n) for n in (0, 1, 2, 4)]

    assert streak_from_activities(activities, now) == 3


def test_streak_from_activities_none_today(activity_factory, now):
    activities = [activity_factory(days_ago=n) for n in (1, 2)]

    assert streak_from_activities(activities, now) == 0


def test_naive_now_treated_as_utc(activity_factory, now):
    activities = [activity_factory(days_ago=0), activity_factory(days_ago=1)]

    assert streak_from_activities(activities, now.replace(tzinfo=None)) == 2


def test_activity_days_cut_in_observer_timezone(activity_factory):
    """23:30 UTC is already the next day in Tokyo"""
    late = datetime(2024, 6, 14, 23, 30, tzinfo=timezone.utc)
    activities = [activity_factory(date=late)]

    assert activity_days(activities, timezone.utc) == {date(2024, 6, 14)}
    assert activity_days(activities, ZoneInfo("Asia/Tokyo")) == {date(2024, 6, 15)}


def test_streak_uses_local_day_of_now(activity_factory):
    """Streak ends on now's local calendar day, not the UTC day"""
    tokyo = ZoneInfo("Asia/Tokyo")
    now = datetime(2024, 6, 15, 8, 0, tzinfo=tokyo)  # 2024-06-14 23:00 UTC
    activities = [
        activity_factory(date=datetime(2024, 6, 14, 23, 0, tzinfo=timezone.utc)),
        activity_factory(date=datetime(2024, 6, 14, 1, 0, tzinfo=timezone.utc)),
    ]

    assert streak_from_activities(activities, now) == 2
