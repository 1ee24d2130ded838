"""
Database queries - re-exports every query function.

Module organization:
- activities.py: Activity counts, listings and footprint aggregates
- users.py: Stored user carbon footprint
- goals.py: Goal reads and progress writes
- achievements.py: Achievement reads and progress writes
"""

from ecoprogress.db.queries.activities import (
    count_active_activities,
    list_active_activities,
    aggregate_footprint,
    footprint_by_category,
)

from ecoprogress.db.queries.users import (
    get_user_footprint,
)

from ecoprogress.db.queries.goals import (
    count_goals,
    get_user_goals,
    get_goal,
    update_goal_progress,
)

from ecoprogress.db.queries.achievements import (
    get_user_achievements,
    get_achievement,
    update_achievement_progress,
)

# Connection is used by tests that patch queries.db.connection
from ecoprogress.db.connection import db

__all__ = [
    "count_active_activities",
    "list_active_activities",
    "aggregate_footprint",
    "footprint_by_category",
    "get_user_footprint",
    "count_goals",
    "get_user_goals",
    "get_goal",
    "update_goal_progress",
    "get_user_achievements",
    "get_achievement",
    "update_achievement_progress",
    "db",
]
