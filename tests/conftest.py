"""Global test fixtures and utilities for ecoprogress tests"""
import pytest
from unittest.mock import AsyncMock
from datetime import datetime, timedelta, timezone

from ecoprogress.db.memory_store import InMemoryStore
from ecoprogress.models.activity import Activity, ActivityCategory, CarbonFootprint, CarbonUnit
from ecoprogress.models.achievement import (
    Achievement,
    AchievementCategory,
    AchievementCriteria,
    AchievementProgress,
    AchievementType,
    CriteriaUnit,
    MetricKind,
    Rarity,
    Timeframe,
)
from ecoprogress.models.goal import Goal, GoalCategory, GoalTarget, GoalTimeframe, GoalUnit, Milestone
from ecoprogress.models.user import UserFootprint


# ============================================================================
# Time Fixtures
# ============================================================================

@pytest.fixture
def now():
    """Fixed evaluation instant (mid-day so day boundaries are unambiguous)"""
    return datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# User & Store Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def other_user_id():
    return "user-456"


@pytest.fixture
def store():
    """Empty in-memory store"""
    return InMemoryStore()


@pytest.fixture
def mock_store():
    """Store double with every protocol method as an AsyncMock"""
    store = AsyncMock()
    store.count_active_activities = AsyncMock(return_value=0)
    store.list_active_activities = AsyncMock(return_value=[])
    store.count_goals = AsyncMock(return_value=0)
    store.get_user_goals = AsyncMock(return_value=[])
    store.get_goal = AsyncMock(return_value=None)
    store.save_goal_progress = AsyncMock()
    store.get_user_achievements = AsyncMock(return_value=[])
    store.get_achievement = AsyncMock(return_value=None)
    store.save_achievement_progress = AsyncMock()
    return store


# ============================================================================
# Record Factories
# ============================================================================

@pytest.fixture
def activity_factory(test_user_id, now):
    """Build activities; `days_ago` places them relative to the fixed now"""
    def _create(days_ago=0, user_id=None, category=ActivityCategory.TRANSPORTATION,
                value=10.0, unit=CarbonUnit.KG, **kwargs):
        return Activity(
            user_id=user_id or test_user_id,
            category=category,
            subcategory=kwargs.pop("subcategory", "car"),
            title=kwargs.pop("title", f"Activity {days_ago} days ago"),
            date=kwargs.pop("date", now - timedelta(days=days_ago)),
            carbon_footprint=CarbonFootprint(value=value, unit=unit),
            **kwargs
        )
    return _create


@pytest.fixture
def achievement_factory(test_user_id, now):
    def _create(metric=MetricKind.ACTIVITIES_COUNT, threshold=5, unit=CriteriaUnit.COUNT,
                timeframe=Timeframe.LIFETIME, rarity=Rarity.COMMON, user_id=None, **kwargs):
        return Achievement(
            user_id=user_id or test_user_id,
            title=kwargs.pop("title", f"{metric.value} x{threshold}"),
            description=kwargs.pop("description", "Test achievement"),
            category=kwargs.pop("category", AchievementCategory.MILESTONE),
            type=kwargs.pop("type", AchievementType.MILESTONE),
            criteria=AchievementCriteria(metric=metric, threshold=threshold, unit=unit, timeframe=timeframe),
            progress=kwargs.pop("progress", AchievementProgress(required=threshold)),
            rarity=rarity,
            created_at=kwargs.pop("created_at", now - timedelta(days=30)),
            **kwargs
        )
    return _create


@pytest.fixture
def goal_factory(test_user_id, now):
    def _create(target=100.0, milestones=None, user_id=None, **kwargs):
        return Goal(
            user_id=user_id or test_user_id,
            title=kwargs.pop("title", "Cut car trips"),
            category=kwargs.pop("category", GoalCategory.CARBON_REDUCTION),
            target=GoalTarget(value=target, unit=GoalUnit.KG, timeframe=GoalTimeframe.MONTHLY),
            start_date=kwargs.pop("start_date", now - timedelta(days=10)),
            end_date=kwargs.pop("end_date", now + timedelta(days=20)),
            milestones=milestones if milestones is not None else [],
            **kwargs
        )
    return _create


@pytest.fixture
def milestones():
    return [
        Milestone(title="Quarter", target_value=25),
        Milestone(title="Half", target_value=50),
        Milestone(title="Three quarters", target_value=75),
    ]


@pytest.fixture
def footprint(test_user_id):
    """Baseline 10 t, current 10 t"""
    return UserFootprint(user_id=test_user_id, baseline=10.0, total=10.0, target=8.0)
