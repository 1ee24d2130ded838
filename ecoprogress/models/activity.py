"""Activity models"""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from ecoprogress.models.common import Metadata, new_id, utc_now

KG_PER_TON = 1000.0


class CarbonUnit(str, Enum):
    """Units a carbon amount can be recorded in"""
    KG = "kg"
    TONS = "tons"


def to_kg(value: float, unit: CarbonUnit) -> float:
    """Convert a carbon amount to kilograms"""
    if CarbonUnit(unit) == CarbonUnit.TONS:
        return value * KG_PER_TON
    return value


def to_tons(value: float, unit: CarbonUnit) -> float:
    """Convert a carbon amount to tons"""
    if CarbonUnit(unit) == CarbonUnit.TONS:
        return value
    return value / KG_PER_TON


class ActivityCategory(str, Enum):
    """Activity categories"""
    TRANSPORTATION = "transportation"
    ENERGY = "energy"
    FOOD = "food"
    WASTE = "waste"
    WATER = "water"
    SHOPPING = "shopping"
    TRAVEL = "travel"
    OTHER = "other"


class ActivityStatus(str, Enum):
    """Only ACTIVE activities count toward metrics"""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CalculationMethod(str, Enum):
    MANUAL = "manual"
    CALCULATED = "calculated"
    ESTIMATED = "estimated"


class CarbonFootprint(BaseModel):
    """Carbon amount attached to an activity, as entered by the caller"""
    value: float = Field(ge=0)
    unit: CarbonUnit = CarbonUnit.KG
    calculation_method: CalculationMethod = CalculationMethod.CALCULATED

    def in_kg(self) -> float:
        return to_kg(self.value, self.unit)

    def in_tons(self) -> float:
        return to_tons(self.value, self.unit)


class Activity(BaseModel):
    """A dated environmental activity logged by a user"""
    id: str = Field(default_factory=new_id)
    user_id: str
    category: ActivityCategory
    subcategory: str
    title: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    date: datetime = Field(default_factory=utc_now)
    carbon_footprint: CarbonFootprint
    status: ActivityStatus = ActivityStatus.ACTIVE
    tags: list[str] = Field(default_factory=list)
    metadata: Metadata = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        return self.status == ActivityStatus.ACTIVE


class FootprintTotals(BaseModel):
    """Windowed sum/count over a user's active activities"""
    total_kg: float = 0.0
    total_tons: float = 0.0
    activity_count: int = 0


class CategoryFootprint(BaseModel):
    """Windowed sum/count for one activity category"""
    category: ActivityCategory
    total_kg: float = 0.0
    total_tons: float = 0.0
    count: int = 0
