"""Achievement models for gamification"""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from ecoprogress.models.common import Metadata, new_id, utc_now
from ecoprogress.utils.datetime_helpers import is_after


class AchievementCategory(str, Enum):
    """Achievement categories"""
    CARBON_REDUCTION = "carbon_reduction"
    ENERGY_SAVINGS = "energy_savings"
    WASTE_REDUCTION = "waste_reduction"
    WATER_CONSERVATION = "water_conservation"
    SUSTAINABLE_TRANSPORT = "sustainable_transport"
    ECO_FRIENDLY_LIFESTYLE = "eco_friendly_lifestyle"
    STREAK = "streak"
    MILESTONE = "milestone"
    COMMUNITY = "community"
    EDUCATION = "education"
    OTHER = "other"


class AchievementType(str, Enum):
    FIRST_ACTIVITY = "first_activity"
    STREAK = "streak"
    CARBON_REDUCTION = "carbon_reduction"
    GOAL_COMPLETION = "goal_completion"
    COMMUNITY_CONTRIBUTION = "community_contribution"
    EDUCATION_COMPLETION = "education_completion"
    MILESTONE = "milestone"
    SPECIAL = "special"


class MetricKind(str, Enum):
    """Closed set of quantities an achievement can be defined against"""
    CARBON_REDUCTION = "carbon_reduction"
    ACTIVITIES_COUNT = "activities_count"
    STREAK_DAYS = "streak_days"
    GOALS_COMPLETED = "goals_completed"
    COMMUNITY_POSTS = "community_posts"
    EDUCATION_MODULES = "education_modules"


class Timeframe(str, Enum):
    """Window a metric is aggregated over"""
    LIFETIME = "lifetime"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class CriteriaUnit(str, Enum):
    KG = "kg"
    TONS = "tons"
    COUNT = "count"
    DAYS = "days"
    PERCENTAGE = "percentage"


class Rarity(str, Enum):
    """Achievement rarity, ordered common -> legendary"""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        return RARITY_ORDER.index(self)


RARITY_ORDER = [Rarity.COMMON, Rarity.UNCOMMON, Rarity.RARE, Rarity.EPIC, Rarity.LEGENDARY]


class AchievementCriteria(BaseModel):
    """What an achievement measures and when it is met"""
    metric: MetricKind
    threshold: float = Field(ge=0)
    unit: CriteriaUnit
    timeframe: Timeframe = Timeframe.LIFETIME


class AchievementProgress(BaseModel):
    current: float = Field(default=0.0, ge=0)
    required: float = Field(ge=0)
    last_updated: Optional[datetime] = None


class Achievement(BaseModel):
    """A user's unlockable achievement with its progress"""
    id: str = Field(default_factory=new_id)
    user_id: str
    title: str = Field(max_length=100)
    description: str = Field(max_length=500)
    category: AchievementCategory
    type: AchievementType
    criteria: AchievementCriteria
    icon: str = "🏆"
    badge: str = ""
    points: int = Field(default=0, ge=0)
    rarity: Rarity = Rarity.COMMON
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None
    progress: AchievementProgress
    metadata: Metadata = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    is_hidden: bool = False
    expires_at: Optional[datetime] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def is_expired(self, now: datetime) -> bool:
        return is_after(now, self.expires_at) if self.expires_at else False

    def is_eligible(self, now: datetime) -> bool:
        """Only eligible achievements are evaluated during a progress check"""
        if self.is_unlocked or self.is_hidden or not self.is_active:
            return False
        return self.expires_at is None or is_after(self.expires_at, now)

    def progress_percentage(self) -> float:
        if self.progress.required == 0:
            return 0.0
        return min(self.progress.current / self.progress.required * 100, 100.0)

    def update_progress(self, new_progress: float, now: datetime) -> bool:
        """
        Set current progress and unlock when the requirement is met

        Progress may go down before unlock (metric regression is kept);
        is_unlocked never goes back to False.

        Returns:
            True if the achievement unlocked during this call
        """
        self.progress.current = max(0.0, new_progress)
        self.progress.last_updated = now
        self.updated_at = now

        if self.progress.current >= self.progress.required and not self.is_unlocked:
            self.is_unlocked = True
            self.unlocked_at = now
            return True
        return False

    def unlock(self, now: datetime) -> bool:
        """
        Force-unlock (idempotent)

        Returns:
            True if this call unlocked it, False if it already was
        """
        if self.is_unlocked:
            return False
        self.is_unlocked = True
        self.unlocked_at = now
        self.progress.current = self.progress.required
        self.progress.last_updated = now
        self.updated_at = now
        return True
