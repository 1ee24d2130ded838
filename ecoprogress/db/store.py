"""
Store protocol

The progress engine only talks to persistence through these capabilities.
Every method is scoped to a single user; implementations must never return
another user's records.
"""
from datetime import datetime
from typing import Optional, Protocol

from ecoprogress.models.activity import Activity, ActivityCategory, CategoryFootprint, FootprintTotals
from ecoprogress.models.achievement import Achievement
from ecoprogress.models.goal import Goal, GoalStatus
from ecoprogress.models.user import UserFootprint


class ProgressStore(Protocol):
    """Activity, goal, achievement and footprint persistence for one user at a time"""

    # Activities
    async def count_active_activities(
        self,
        user_id: str,
        category: Optional[ActivityCategory] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> int: ...

    async def list_active_activities(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[Activity]: ...

    async def aggregate_footprint(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> FootprintTotals: ...

    async def footprint_by_category(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[CategoryFootprint]: ...

    # Users
    async def get_user_footprint(self, user_id: str) -> UserFootprint: ...

    # Goals
    async def count_goals(
        self,
        user_id: str,
        status: GoalStatus,
        updated_since: Optional[datetime] = None,
    ) -> int: ...

    async def get_user_goals(self, user_id: str, status: Optional[GoalStatus] = None) -> list[Goal]: ...

    async def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]: ...

    async def save_goal_progress(self, goal: Goal) -> None: ...

    # Achievements
    async def get_user_achievements(self, user_id: str) -> list[Achievement]: ...

    async def get_achievement(self, user_id: str, achievement_id: str) -> Optional[Achievement]: ...

    async def save_achievement_progress(self, achievement: Achievement) -> None: ...
