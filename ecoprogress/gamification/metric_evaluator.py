"""
Metric Evaluation

Computes the current value of an achievement metric for one user:
- carbon_reduction: baseline minus current footprint (window independent)
- activities_count: active activities inside the window
- streak_days: consecutive active days ending today, inside the window
- goals_completed: goals completed (last updated) inside the window
- community_posts / education_modules: reserved, always 0

Results are clamped to the criteria threshold, so reported progress never
exceeds what the achievement asks for.
"""

from typing import Awaitable, Callable, Dict, Optional
from datetime import datetime, timedelta
import logging

from ecoprogress.db.store import ProgressStore
from ecoprogress.gamification.streak_system import streak_from_activities
from ecoprogress.models.achievement import AchievementCriteria, CriteriaUnit, MetricKind, Timeframe
from ecoprogress.models.activity import KG_PER_TON
from ecoprogress.models.goal import GoalStatus
from ecoprogress.utils.datetime_helpers import ensure_aware, shift_months, shift_years, start_of_day

logger = logging.getLogger(__name__)

MetricHandler = Callable[[ProgressStore, str, AchievementCriteria, Optional[datetime], datetime], Awaitable[float]]


def resolve_window_start(timeframe: Timeframe, now: datetime) -> Optional[datetime]:
    """
    Lower bound of a metric window

    Args:
        timeframe: Window kind
        now: Current instant (its timezone defines local midnight)

    Returns:
        Window start, or None for lifetime (no lower bound)
    """
    now = ensure_aware(now)
    timeframe = Timeframe(timeframe)

    if timeframe == Timeframe.DAILY:
        return start_of_day(now)
    if timeframe == Timeframe.WEEKLY:
        return now - timedelta(days=7)
    if timeframe == Timeframe.MONTHLY:
        return shift_months(now, -1)
    if timeframe == Timeframe.YEARLY:
        return shift_years(now, -1)
    return None


# ============================================
# Metric handlers (one per MetricKind)
# ============================================

async def _carbon_reduction(store, user_id, criteria, since, now) -> float:
    """Lifetime reduction against the stored baseline, in the criteria unit"""
    footprint = await store.get_user_footprint(user_id)
    reduction_tons = max(0.0, footprint.baseline - footprint.total)
    if criteria.unit == CriteriaUnit.KG:
        return reduction_tons * KG_PER_TON
    return reduction_tons


async def _activities_count(store, user_id, criteria, since, now) -> float:
    return float(await store.count_active_activities(user_id, since=since))


async def _streak_days(store, user_id, criteria, since, now) -> float:
    activities = await store.list_active_activities(user_id, since=since)
    return float(streak_from_activities(activities, now))


async def _goals_completed(store, user_id, criteria, since, now) -> float:
    return float(await store.count_goals(user_id, GoalStatus.COMPLETED, updated_since=since))


async def _not_tracked(store, user_id, criteria, since, now) -> float:
    # Community and education features are not built yet
    return 0.0


METRIC_HANDLERS: Dict[MetricKind, MetricHandler] = {
    MetricKind.CARBON_REDUCTION: _carbon_reduction,
    MetricKind.ACTIVITIES_COUNT: _activities_count,
    MetricKind.STREAK_DAYS: _streak_days,
    MetricKind.GOALS_COMPLETED: _goals_completed,
    MetricKind.COMMUNITY_POSTS: _not_tracked,
    MetricKind.EDUCATION_MODULES: _not_tracked,
}


class MetricEvaluator:
    """Evaluates achievement criteria against a user's stored data"""

    def __init__(self, store: ProgressStore):
        self.store = store

    async def evaluate(self, user_id: str, criteria: AchievementCriteria, now: datetime) -> float:
        """
        Current value of the criteria metric, clamped to its threshold

        Args:
            user_id: Owner of the data
            criteria: Metric, threshold, unit and timeframe
            now: Evaluation instant

        Returns:
            min(metric value, threshold)
        """
        now = ensure_aware(now)
        since = resolve_window_start(criteria.timeframe, now)
        handler = METRIC_HANDLERS[MetricKind(criteria.metric)]

        value = await handler(self.store, user_id, criteria, since, now)

        logger.debug(
            f"Metric {criteria.metric.value} for user {user_id} "
            f"({criteria.timeframe.value} since {since}): {value}"
        )

        return min(value, criteria.threshold)
