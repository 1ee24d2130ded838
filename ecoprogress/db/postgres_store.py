"""
PostgreSQL store

Implements the ProgressStore protocol over the query modules, mapping rows
to the pydantic models and driver errors to the ecoprogress hierarchy.
"""

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, TypeVar

import psycopg
from pydantic import ValidationError as PydanticValidationError

from ecoprogress.db import queries
from ecoprogress.exceptions import RecordNotFoundError, ValidationError, wrap_external_exception
from ecoprogress.models.activity import (
    Activity,
    ActivityCategory,
    CarbonFootprint,
    CategoryFootprint,
    FootprintTotals,
    KG_PER_TON,
)
from ecoprogress.models.achievement import Achievement, AchievementProgress
from ecoprogress.models.goal import Goal, GoalCurrent, GoalStatus, GoalTarget
from ecoprogress.models.user import UserFootprint

logger = logging.getLogger(__name__)

T = TypeVar('T')


# ==========================================
# Row mapping
# ==========================================

def activity_from_row(row: dict) -> Activity:
    return Activity(
        id=str(row['id']),
        user_id=str(row['user_id']),
        category=row['category'],
        subcategory=row['subcategory'],
        title=row['title'],
        description=row.get('description'),
        date=row['date'],
        carbon_footprint=CarbonFootprint(
            value=row['carbon_value'],
            unit=row['carbon_unit'],
            calculation_method=row['calculation_method'],
        ),
        status=row['status'],
        tags=row.get('tags') or [],
        metadata=row.get('metadata') or {},
        created_at=row['created_at'],
    )


def goal_from_row(row: dict) -> Goal:
    return Goal(
        id=str(row['id']),
        user_id=str(row['user_id']),
        title=row['title'],
        description=row.get('description'),
        category=row['category'],
        target=GoalTarget(
            value=row['target_value'],
            unit=row['target_unit'],
            timeframe=row['target_timeframe'],
        ),
        current=GoalCurrent(
            value=row['current_value'],
            last_updated=row.get('current_updated_at'),
        ),
        start_date=row['start_date'],
        end_date=row['end_date'],
        status=row['status'],
        priority=row['priority'],
        difficulty=row['difficulty'],
        milestones=row.get('milestones') or [],
        tags=row.get('tags') or [],
        is_public=row.get('is_public', False),
        notes=row.get('notes'),
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )


def achievement_from_row(row: dict) -> Achievement:
    return Achievement(
        id=str(row['id']),
        user_id=str(row['user_id']),
        title=row['title'],
        description=row['description'],
        category=row['category'],
        type=row['type'],
        criteria=row['criteria'],
        icon=row.get('icon') or "🏆",
        badge=row.get('badge') or "",
        points=row.get('points', 0),
        rarity=row['rarity'],
        is_unlocked=row['is_unlocked'],
        unlocked_at=row.get('unlocked_at'),
        progress=AchievementProgress(
            current=row['progress_current'],
            required=row['progress_required'],
            last_updated=row.get('progress_updated_at'),
        ),
        metadata=row.get('metadata') or {},
        tags=row.get('tags') or [],
        is_hidden=row.get('is_hidden', False),
        expires_at=row.get('expires_at'),
        is_active=row.get('is_active', True),
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )


def _map(mapper: Callable[[dict], T], row: dict, record_type: str, user_id: str) -> T:
    try:
        return mapper(row)
    except PydanticValidationError as e:
        raise ValidationError(
            message=f"Stored {record_type} {row.get('id')} is malformed: {e.error_count()} invalid fields",
            field=record_type,
            value=row.get('id'),
            user_id=user_id,
            operation="map_row",
            cause=e
        ) from e


# ==========================================
# Store
# ==========================================

class PostgresStore:
    """ProgressStore backed by the shared connection pool"""

    async def _run(self, operation: str, user_id: str, query: Callable[..., Awaitable[Any]], *args) -> Any:
        try:
            return await query(*args)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation=operation, user_id=user_id) from e

    # Activities

    async def count_active_activities(
        self,
        user_id: str,
        category: Optional[ActivityCategory] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> int:
        category_value = ActivityCategory(category).value if category is not None else None
        return await self._run(
            "count_active_activities", user_id,
            queries.count_active_activities, user_id, category_value, since, until
        )

    async def list_active_activities(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[Activity]:
        rows = await self._run(
            "list_active_activities", user_id,
            queries.list_active_activities, user_id, since, until
        )
        return [_map(activity_from_row, row, "activity", user_id) for row in rows]

    async def aggregate_footprint(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> FootprintTotals:
        row = await self._run(
            "aggregate_footprint", user_id,
            queries.aggregate_footprint, user_id, since, until
        )
        return FootprintTotals(
            total_kg=row['total_kg'],
            total_tons=row['total_kg'] / KG_PER_TON,
            activity_count=row['activity_count'],
        )

    async def footprint_by_category(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[CategoryFootprint]:
        rows = await self._run(
            "footprint_by_category", user_id,
            queries.footprint_by_category, user_id, since, until
        )
        return [
            CategoryFootprint(
                category=row['category'],
                total_kg=row['total_kg'],
                total_tons=row['total_kg'] / KG_PER_TON,
                count=row['count'],
            )
            for row in rows
        ]

    # Users

    async def get_user_footprint(self, user_id: str) -> UserFootprint:
        row = await self._run("get_user_footprint", user_id, queries.get_user_footprint, user_id)
        if row is None:
            raise RecordNotFoundError(
                message=f"No footprint recorded for user {user_id}",
                record_type="User",
                record_id=user_id,
                user_id=user_id,
                operation="get_user_footprint"
            )
        return UserFootprint(
            user_id=str(row['user_id']),
            baseline=row.get('baseline') or 0.0,
            total=row.get('total') or 0.0,
            target=row.get('target') or 0.0,
            last_calculated=row.get('last_calculated'),
        )

    # Goals

    async def count_goals(
        self,
        user_id: str,
        status: GoalStatus,
        updated_since: Optional[datetime] = None,
    ) -> int:
        return await self._run(
            "count_goals", user_id,
            queries.count_goals, user_id, GoalStatus(status).value, updated_since
        )

    async def get_user_goals(self, user_id: str, status: Optional[GoalStatus] = None) -> list[Goal]:
        status_value = GoalStatus(status).value if status is not None else None
        rows = await self._run("get_user_goals", user_id, queries.get_user_goals, user_id, status_value)
        return [_map(goal_from_row, row, "goal", user_id) for row in rows]

    async def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]:
        row = await self._run("get_goal", user_id, queries.get_goal, user_id, goal_id)
        return _map(goal_from_row, row, "goal", user_id) if row else None

    async def save_goal_progress(self, goal: Goal) -> None:
        updated = await self._run(
            "save_goal_progress", goal.user_id,
            queries.update_goal_progress,
            goal.user_id,
            goal.id,
            goal.current.value,
            goal.current.last_updated,
            goal.status.value,
            [m.model_dump(mode="json") for m in goal.milestones],
            goal.updated_at,
        )
        if not updated:
            raise RecordNotFoundError(
                message=f"Goal {goal.id} not found for user {goal.user_id}",
                record_type="Goal",
                record_id=goal.id,
                user_id=goal.user_id,
                operation="save_goal_progress"
            )

    # Achievements

    async def get_user_achievements(self, user_id: str) -> list[Achievement]:
        rows = await self._run("get_user_achievements", user_id, queries.get_user_achievements, user_id)
        return [_map(achievement_from_row, row, "achievement", user_id) for row in rows]

    async def get_achievement(self, user_id: str, achievement_id: str) -> Optional[Achievement]:
        row = await self._run("get_achievement", user_id, queries.get_achievement, user_id, achievement_id)
        return _map(achievement_from_row, row, "achievement", user_id) if row else None

    async def save_achievement_progress(self, achievement: Achievement) -> None:
        updated = await self._run(
            "save_achievement_progress", achievement.user_id,
            queries.update_achievement_progress,
            achievement.user_id,
            achievement.id,
            achievement.progress.current,
            achievement.progress.last_updated,
            achievement.is_unlocked,
            achievement.unlocked_at,
            achievement.updated_at,
        )
        if not updated:
            raise RecordNotFoundError(
                message=f"Achievement {achievement.id} not found for user {achievement.user_id}",
                record_type="Achievement",
                record_id=achievement.id,
                user_id=achievement.user_id,
                operation="save_achievement_progress"
            )
