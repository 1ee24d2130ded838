"""Footprint summaries fed to the advisory text generator"""
import logging
from datetime import datetime, timedelta
from typing import List

from pydantic import BaseModel, Field

from ecoprogress.db.store import ProgressStore
from ecoprogress.models.activity import Activity, ActivityCategory
from ecoprogress.utils.datetime_helpers import ensure_aware

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10


class CategoryShare(BaseModel):
    category: ActivityCategory
    total_kg: float
    total_tons: float
    count: int
    percentage: float


class FootprintSummary(BaseModel):
    """Windowed footprint totals for one user"""
    window_start: datetime
    window_end: datetime
    total_kg: float = 0.0
    total_tons: float = 0.0
    activity_count: int = 0
    by_category: List[CategoryShare] = Field(default_factory=list)
    recent_activities: List[Activity] = Field(default_factory=list)

    @property
    def window_days(self) -> int:
        return (self.window_end - self.window_start).days


async def build_footprint_summary(
    store: ProgressStore,
    user_id: str,
    now: datetime,
    window_days: int
) -> FootprintSummary:
    """
    Aggregate a user's active activities over the trailing window

    Args:
        store: Activity source
        user_id: Owner
        now: Window end (inclusive)
        window_days: Window length in days

    Returns:
        FootprintSummary with per-category shares (largest first) and the
        most recent activities (newest first)
    """
    now = ensure_aware(now)
    since = now - timedelta(days=window_days)

    totals = await store.aggregate_footprint(user_id, since=since, until=now)
    categories = await store.footprint_by_category(user_id, since=since, until=now)
    activities = await store.list_active_activities(user_id, since=since, until=now)

    by_category = [
        CategoryShare(
            category=c.category,
            total_kg=c.total_kg,
            total_tons=c.total_tons,
            count=c.count,
            percentage=(c.total_kg / totals.total_kg * 100) if totals.total_kg > 0 else 0.0,
        )
        for c in categories
    ]

    recent = sorted(activities, key=lambda a: ensure_aware(a.date), reverse=True)[:RECENT_ACTIVITY_LIMIT]

    logger.debug(
        f"Footprint summary for user {user_id}: {totals.activity_count} activities, "
        f"{totals.total_kg:.1f} kg over {window_days} days"
    )

    return FootprintSummary(
        window_start=since,
        window_end=now,
        total_kg=totals.total_kg,
        total_tons=totals.total_tons,
        activity_count=totals.activity_count,
        by_category=by_category,
        recent_activities=recent,
    )
