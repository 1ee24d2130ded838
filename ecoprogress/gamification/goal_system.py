"""
Goal System

Applies caller-reported progress to a user's goals. Goal progress is pushed
in by the caller, never pulled from activity data.
"""

import math
from typing import List, Optional
from datetime import datetime
import logging

from pydantic import BaseModel

from ecoprogress.db.store import ProgressStore
from ecoprogress.exceptions import RecordNotFoundError, ValidationError
from ecoprogress.gamification.projections import GoalView, project_goal
from ecoprogress.models.goal import Goal, GoalStatus
from ecoprogress.resilience.metrics import record_goal_update
from ecoprogress.utils.datetime_helpers import ensure_aware, now_local

logger = logging.getLogger(__name__)

RECENT_COMPLETED_LIMIT = 5


class GoalStats(BaseModel):
    total: int
    active: int
    completed: int
    overdue_count: int
    average_progress: float
    recent_completed: List[GoalView]


def validate_progress_value(value, user_id: Optional[str] = None) -> float:
    """
    Reject anything that is not a finite real number

    Raises:
        ValidationError: bool, non-numeric, NaN or infinite input
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(
            message=f"Progress value must be a number, got {type(value).__name__}",
            field="new_value",
            value=value,
            user_id=user_id,
            operation="update_goal_progress"
        )
    if not math.isfinite(value):
        raise ValidationError(
            message="Progress value must be finite",
            field="new_value",
            value=value,
            user_id=user_id,
            operation="update_goal_progress"
        )
    return float(value)


def average_progress(goals: List[Goal]) -> float:
    if not goals:
        return 0.0
    return sum(g.progress_percentage() for g in goals) / len(goals)


class GoalEngine:
    """Owns goal progress, completion and milestones for one store"""

    def __init__(self, store: ProgressStore):
        self.store = store

    async def update_progress(
        self,
        user_id: str,
        goal_id: str,
        new_value: float,
        now: Optional[datetime] = None
    ) -> GoalView:
        """
        Record new progress for a goal

        Args:
            user_id: Goal owner
            goal_id: Goal to update
            new_value: Reported progress (negative values clamp to 0)
            now: Update instant (defaults to the configured-timezone clock)

        Returns:
            GoalView of the updated goal

        Raises:
            ValidationError: new_value is not a finite number
            RecordNotFoundError: goal missing or owned by another user
        """
        value = validate_progress_value(new_value, user_id)
        now = ensure_aware(now or now_local())

        goal = await self.store.get_goal(user_id, goal_id)
        if goal is None:
            raise RecordNotFoundError(
                message=f"Goal {goal_id} not found for user {user_id}",
                record_type="Goal",
                record_id=goal_id,
                user_id=user_id,
                operation="update_goal_progress"
            )

        was_completed = goal.status == GoalStatus.COMPLETED
        milestones = goal.update_progress(value, now)
        await self.store.save_goal_progress(goal)

        record_goal_update("progress")
        if milestones:
            record_goal_update("milestone", len(milestones))
            for milestone in milestones:
                logger.info(f"Goal {goal_id} milestone reached: {milestone.title}")
        if goal.status == GoalStatus.COMPLETED and not was_completed:
            record_goal_update("completed")
            logger.info(f"User {user_id} completed goal {goal_id} ({goal.title})")

        return project_goal(goal, now)

    async def stats_overview(self, user_id: str, now: Optional[datetime] = None) -> GoalStats:
        now = ensure_aware(now or now_local())
        goals = await self.store.get_user_goals(user_id)

        active = [g for g in goals if g.status == GoalStatus.ACTIVE]
        completed = [g for g in goals if g.status == GoalStatus.COMPLETED]
        completed.sort(key=lambda g: ensure_aware(g.updated_at), reverse=True)

        return GoalStats(
            total=len(goals),
            active=len(active),
            completed=len(completed),
            overdue_count=sum(1 for g in goals if g.is_overdue(now)),
            average_progress=average_progress(active),
            recent_completed=[project_goal(g, now) for g in completed[:RECENT_COMPLETED_LIMIT]],
        )

    async def active_goals(self, user_id: str, now: Optional[datetime] = None) -> List[GoalView]:
        """Active goals, nearest end date first"""
        now = ensure_aware(now or now_local())
        goals = await self.store.get_user_goals(user_id, GoalStatus.ACTIVE)
        goals.sort(key=lambda g: ensure_aware(g.end_date))
        return [project_goal(g, now) for g in goals]
