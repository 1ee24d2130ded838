"""
In-memory store

Implements the ProgressStore protocol on plain dicts. Used by the test suite
and for local runs without PostgreSQL. Nothing is persisted across processes.
"""

import logging
from datetime import datetime
from typing import Optional

from ecoprogress.exceptions import RecordNotFoundError
from ecoprogress.models.activity import Activity, ActivityCategory, CategoryFootprint, FootprintTotals
from ecoprogress.models.achievement import Achievement
from ecoprogress.models.goal import Goal, GoalStatus
from ecoprogress.models.user import UserFootprint
from ecoprogress.utils.datetime_helpers import ensure_aware

logger = logging.getLogger(__name__)


def _in_window(moment: datetime, since: Optional[datetime], until: Optional[datetime]) -> bool:
    moment = ensure_aware(moment)
    if since is not None and moment < ensure_aware(since):
        return False
    if until is not None and moment > ensure_aware(until):
        return False
    return True


class InMemoryStore:
    """Dict-backed store keyed by (user_id, record_id)"""

    def __init__(self):
        self._footprints: dict[str, UserFootprint] = {}
        self._activities: dict[str, dict[str, Activity]] = {}
        self._goals: dict[str, dict[str, Goal]] = {}
        self._achievements: dict[str, dict[str, Achievement]] = {}

    # ------------------------------------------
    # Seeding
    # ------------------------------------------

    def add_footprint(self, footprint: UserFootprint) -> None:
        self._footprints[footprint.user_id] = footprint.model_copy(deep=True)

    def add_activity(self, activity: Activity) -> None:
        self._activities.setdefault(activity.user_id, {})[activity.id] = activity.model_copy(deep=True)

    def add_goal(self, goal: Goal) -> None:
        self._goals.setdefault(goal.user_id, {})[goal.id] = goal.model_copy(deep=True)

    def add_achievement(self, achievement: Achievement) -> None:
        self._achievements.setdefault(achievement.user_id, {})[achievement.id] = achievement.model_copy(deep=True)

    # ------------------------------------------
    # Activities
    # ------------------------------------------

    def _active(self, user_id: str, since: Optional[datetime], until: Optional[datetime]) -> list[Activity]:
        activities = [
            a for a in self._activities.get(user_id, {}).values()
            if a.is_active and _in_window(a.date, since, until)
        ]
        activities.sort(key=lambda a: ensure_aware(a.date))
        return activities

    async def count_active_activities(
        self,
        user_id: str,
        category: Optional[ActivityCategory] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> int:
        activities = self._active(user_id, since, until)
        if category is not None:
            activities = [a for a in activities if a.category == category]
        return len(activities)

    async def list_active_activities(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[Activity]:
        return [a.model_copy(deep=True) for a in self._active(user_id, since, until)]

    async def aggregate_footprint(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> FootprintTotals:
        activities = self._active(user_id, since, until)
        return FootprintTotals(
            total_kg=sum(a.carbon_footprint.in_kg() for a in activities),
            total_tons=sum(a.carbon_footprint.in_tons() for a in activities),
            activity_count=len(activities),
        )

    async def footprint_by_category(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[CategoryFootprint]:
        by_category: dict[ActivityCategory, CategoryFootprint] = {}
        for activity in self._active(user_id, since, until):
            entry = by_category.setdefault(activity.category, CategoryFootprint(category=activity.category))
            entry.total_kg += activity.carbon_footprint.in_kg()
            entry.total_tons += activity.carbon_footprint.in_tons()
            entry.count += 1

        # Largest footprint first
        return sorted(by_category.values(), key=lambda c: c.total_kg, reverse=True)

    # ------------------------------------------
    # Users
    # ------------------------------------------

    async def get_user_footprint(self, user_id: str) -> UserFootprint:
        footprint = self._footprints.get(user_id)
        if footprint is None:
            raise RecordNotFoundError(
                message=f"No footprint recorded for user {user_id}",
                record_type="User",
                record_id=user_id,
                user_id=user_id,
            )
        return footprint.model_copy(deep=True)

    # ------------------------------------------
    # Goals
    # ------------------------------------------

    async def count_goals(
        self,
        user_id: str,
        status: GoalStatus,
        updated_since: Optional[datetime] = None,
    ) -> int:
        return sum(
            1 for g in self._goals.get(user_id, {}).values()
            if g.status == status and _in_window(g.updated_at, updated_since, None)
        )

    async def get_user_goals(self, user_id: str, status: Optional[GoalStatus] = None) -> list[Goal]:
        goals = [
            g.model_copy(deep=True) for g in self._goals.get(user_id, {}).values()
            if status is None or g.status == status
        ]
        goals.sort(key=lambda g: ensure_aware(g.created_at))
        return goals

    async def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]:
        goal = self._goals.get(user_id, {}).get(goal_id)
        return goal.model_copy(deep=True) if goal else None

    async def save_goal_progress(self, goal: Goal) -> None:
        if goal.id not in self._goals.get(goal.user_id, {}):
            raise RecordNotFoundError(
                message=f"Goal {goal.id} not found for user {goal.user_id}",
                record_type="Goal",
                record_id=goal.id,
                user_id=goal.user_id,
            )
        self._goals[goal.user_id][goal.id] = goal.model_copy(deep=True)
        logger.debug(f"Saved goal {goal.id} progress to memory store")

    # ------------------------------------------
    # Achievements
    # ------------------------------------------

    async def get_user_achievements(self, user_id: str) -> list[Achievement]:
        achievements = [a.model_copy(deep=True) for a in self._achievements.get(user_id, {}).values()]
        achievements.sort(key=lambda a: ensure_aware(a.created_at))
        return achievements

    async def get_achievement(self, user_id: str, achievement_id: str) -> Optional[Achievement]:
        achievement = self._achievements.get(user_id, {}).get(achievement_id)
        return achievement.model_copy(deep=True) if achievement else None

    async def save_achievement_progress(self, achievement: Achievement) -> None:
        if achievement.id not in self._achievements.get(achievement.user_id, {}):
            raise RecordNotFoundError(
                message=f"Achievement {achievement.id} not found for user {achievement.user_id}",
                record_type="Achievement",
                record_id=achievement.id,
                user_id=achievement.user_id,
            )
        self._achievements[achievement.user_id][achievement.id] = achievement.model_copy(deep=True)
        logger.debug(f"Saved achievement {achievement.id} progress to memory store")
