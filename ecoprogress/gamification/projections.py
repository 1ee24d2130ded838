"""Read views for achievements and goals"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel

from ecoprogress.models.achievement import (
    Achievement,
    AchievementCategory,
    AchievementCriteria,
    AchievementType,
    Rarity,
)
from ecoprogress.models.common import Metadata
from ecoprogress.models.goal import (
    Goal,
    GoalCategory,
    GoalCurrent,
    GoalDifficulty,
    GoalPriority,
    GoalStatus,
    GoalTarget,
    Milestone,
)


class ProgressView(BaseModel):
    current: float
    required: float
    percentage: float


class AchievementView(BaseModel):
    id: str
    title: str
    description: str
    category: AchievementCategory
    type: AchievementType
    criteria: AchievementCriteria
    icon: str
    badge: str
    points: int
    rarity: Rarity
    is_unlocked: bool
    unlocked_at: Optional[datetime]
    progress: ProgressView
    metadata: Metadata
    tags: list[str]
    is_hidden: bool
    is_expired: bool
    created_at: datetime
    updated_at: datetime


class GoalView(BaseModel):
    id: str
    title: str
    description: Optional[str]
    category: GoalCategory
    target: GoalTarget
    current: GoalCurrent
    progress_percentage: float
    start_date: datetime
    end_date: datetime
    days_remaining: int
    is_overdue: bool
    status: GoalStatus
    priority: GoalPriority
    difficulty: GoalDifficulty
    milestones: list[Milestone]
    tags: list[str]
    is_public: bool
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime


def project_achievement(achievement: Achievement, now: datetime) -> AchievementView:
    return AchievementView(
        id=achievement.id,
        title=achievement.title,
        description=achievement.description,
        category=achievement.category,
        type=achievement.type,
        criteria=achievement.criteria.model_copy(),
        icon=achievement.icon,
        badge=achievement.badge,
        points=achievement.points,
        rarity=achievement.rarity,
        is_unlocked=achievement.is_unlocked,
        unlocked_at=achievement.unlocked_at,
        progress=ProgressView(
            current=achievement.progress.current,
            required=achievement.progress.required,
            percentage=achievement.progress_percentage(),
        ),
        metadata=dict(achievement.metadata),
        tags=list(achievement.tags),
        is_hidden=achievement.is_hidden,
        is_expired=achievement.is_expired(now),
        created_at=achievement.created_at,
        updated_at=achievement.updated_at,
    )


def project_goal(goal: Goal, now: datetime) -> GoalView:
    return GoalView(
        id=goal.id,
        title=goal.title,
        description=goal.description,
        category=goal.category,
        target=goal.target.model_copy(),
        current=goal.current.model_copy(),
        progress_percentage=goal.progress_percentage(),
        start_date=goal.start_date,
        end_date=goal.end_date,
        days_remaining=goal.days_remaining(now),
        is_overdue=goal.is_overdue(now),
        status=goal.status,
        priority=goal.priority,
        difficulty=goal.difficulty,
        milestones=[m.model_copy() for m in goal.milestones],
        tags=list(goal.tags),
        is_public=goal.is_public,
        notes=goal.notes,
        created_at=goal.created_at,
        updated_at=goal.updated_at,
    )
