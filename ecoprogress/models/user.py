"""User footprint model"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class UserFootprint(BaseModel):
    """Stored carbon totals for a user, in tons CO2 per year"""
    user_id: str
    baseline: float = 0.0
    total: float = 0.0
    target: float = 0.0
    last_calculated: Optional[datetime] = None

    @property
    def reduction(self) -> float:
        """Baseline minus current total (negative when the footprint grew)"""
        return self.baseline - self.total

    @property
    def reduction_percentage(self) -> float:
        if self.baseline <= 0:
            return 0.0
        return self.reduction / self.baseline * 100
