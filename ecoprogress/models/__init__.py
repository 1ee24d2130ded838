"""Pydantic models for activities, goals, achievements and user footprints"""

from ecoprogress.models.activity import (
    Activity,
    ActivityCategory,
    ActivityStatus,
    CarbonFootprint,
    CarbonUnit,
    CategoryFootprint,
    FootprintTotals,
)
from ecoprogress.models.achievement import (
    Achievement,
    AchievementCriteria,
    AchievementProgress,
    MetricKind,
    Rarity,
    Timeframe,
)
from ecoprogress.models.goal import Goal, GoalStatus, Milestone
from ecoprogress.models.user import UserFootprint

__all__ = [
    "Activity",
    "ActivityCategory",
    "ActivityStatus",
    "CarbonFootprint",
    "CarbonUnit",
    "CategoryFootprint",
    "FootprintTotals",
    "Achievement",
    "AchievementCriteria",
    "AchievementProgress",
    "MetricKind",
    "Rarity",
    "Timeframe",
    "Goal",
    "GoalStatus",
    "Milestone",
    "UserFootprint",
]
