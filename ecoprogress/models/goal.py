"""Goal models"""
import math
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from ecoprogress.models.common import new_id, utc_now
from ecoprogress.utils.datetime_helpers import days_until, is_after


class GoalCategory(str, Enum):
    CARBON_REDUCTION = "carbon_reduction"
    ENERGY_SAVINGS = "energy_savings"
    WASTE_REDUCTION = "waste_reduction"
    WATER_CONSERVATION = "water_conservation"
    SUSTAINABLE_TRANSPORT = "sustainable_transport"
    ECO_FRIENDLY_LIFESTYLE = "eco_friendly_lifestyle"
    EDUCATION = "education"
    COMMUNITY = "community"
    OTHER = "other"


class GoalUnit(str, Enum):
    KG = "kg"
    TONS = "tons"
    KWH = "kwh"
    LITERS = "liters"
    ITEMS = "items"
    PERCENTAGE = "percentage"
    DAYS = "days"
    COUNT = "count"


class GoalTimeframe(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class GoalStatus(str, Enum):
    """Goal lifecycle; ACTIVE -> COMPLETED is one-way"""
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class GoalPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class GoalDifficulty(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"
    EXPERT = "expert"


class GoalTarget(BaseModel):
    value: float = Field(ge=0)
    unit: GoalUnit
    timeframe: GoalTimeframe


class GoalCurrent(BaseModel):
    value: float = Field(default=0.0, ge=0)
    last_updated: Optional[datetime] = None


class Milestone(BaseModel):
    """Intermediate checkpoint; once achieved it stays achieved"""
    title: str
    target_value: float
    achieved_value: float = 0.0
    achieved: bool = False
    achieved_date: Optional[datetime] = None


class Goal(BaseModel):
    """User-defined sustainability goal"""
    id: str = Field(default_factory=new_id)
    user_id: str
    title: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: GoalCategory
    target: GoalTarget
    current: GoalCurrent = Field(default_factory=GoalCurrent)
    start_date: datetime = Field(default_factory=utc_now)
    end_date: datetime
    status: GoalStatus = GoalStatus.ACTIVE
    priority: GoalPriority = GoalPriority.MEDIUM
    difficulty: GoalDifficulty = GoalDifficulty.MODERATE
    milestones: list[Milestone] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    is_public: bool = False
    notes: Optional[str] = Field(default=None, max_length=1000)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def update_progress(self, new_value: float, now: datetime) -> list[Milestone]:
        """
        Apply a reported progress value

        Completion and milestone flags only ever move forward; a smaller
        value lowers current.value but never un-completes anything.

        Args:
            new_value: Reported progress (clamped to >= 0)
            now: Timestamp for last_updated / achieved_date

        Returns:
            Milestones achieved by this update
        """
        self.current.value = max(0.0, new_value)
        self.current.last_updated = now
        self.updated_at = now

        if self.current.value >= self.target.value and self.status == GoalStatus.ACTIVE:
            self.status = GoalStatus.COMPLETED

        newly_achieved = []
        for milestone in self.milestones:
            if not milestone.achieved and self.current.value >= milestone.target_value:
                milestone.achieved = True
                milestone.achieved_value = milestone.target_value
                milestone.achieved_date = now
                newly_achieved.append(milestone)

        return newly_achieved

    def progress_percentage(self) -> float:
        if self.target.value == 0:
            return 0.0
        return min(self.current.value / self.target.value * 100, 100.0)

    def days_remaining(self, now: datetime) -> int:
        return max(0, math.ceil(days_until(self.end_date, now)))

    def is_overdue(self, now: datetime) -> bool:
        return is_after(now, self.end_date) and self.status == GoalStatus.ACTIVE
