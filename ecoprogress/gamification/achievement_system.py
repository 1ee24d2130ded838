"""
Achievement System

Evaluates and unlocks a user's achievements:
- Eligible achievements (locked, visible, active, not expired) are evaluated
  in rarity order (common -> legendary), then creation order
- Progress is the criteria metric clamped to its threshold
- Changed progress is persisted; crossing the requirement unlocks
- One failing achievement never aborts the rest of the batch

Also provides the read side: stats overview, paginated listing, points,
rarity histogram and completion rate.
"""

import math
from typing import Dict, Iterable, List, Optional
from datetime import datetime
import logging

from pydantic import BaseModel, Field

from ecoprogress.db.store import ProgressStore
from ecoprogress.exceptions import EvaluationError, RecordNotFoundError, ValidationError
from ecoprogress.gamification.metric_evaluator import MetricEvaluator
from ecoprogress.gamification.projections import AchievementView, project_achievement
from ecoprogress.models.achievement import Achievement, AchievementCategory, RARITY_ORDER
from ecoprogress.resilience.metrics import record_evaluation, record_unlock
from ecoprogress.utils.datetime_helpers import ensure_aware, now_local

logger = logging.getLogger(__name__)

LIST_STATUSES = ("unlocked", "available")
RECENT_UNLOCKED_LIMIT = 5


class EvaluationFailure(BaseModel):
    """An achievement that could not be evaluated in a check"""
    achievement_id: str
    metric: str
    error: str
    message: str


class CheckResult(BaseModel):
    newly_unlocked: List[AchievementView] = Field(default_factory=list)
    total_unlocked: int = 0
    failed: List[EvaluationFailure] = Field(default_factory=list)


class AchievementStats(BaseModel):
    total: int
    unlocked: int
    available: int
    total_points: int
    achievement_count: int
    completion_rate: float
    rarity_histogram: Dict[str, int]
    recent_unlocked: List[AchievementView]


class AchievementPage(BaseModel):
    achievements: List[AchievementView]
    page: int
    limit: int
    total: int
    pages: int


# ============================================
# Pure helpers
# ============================================

def evaluation_order(achievements: Iterable[Achievement]) -> List[Achievement]:
    """Rarity ascending, then creation order (stable for equal timestamps)"""
    return sorted(
        achievements,
        key=lambda a: (a.rarity.rank, ensure_aware(a.created_at))
    )


def eligible_achievements(achievements: Iterable[Achievement], now: datetime) -> List[Achievement]:
    return evaluation_order(a for a in achievements if a.is_eligible(now))


def unlocked_active(achievements: Iterable[Achievement]) -> List[Achievement]:
    """Unlocked and active achievements, most recently unlocked first"""
    unlocked = [a for a in achievements if a.is_unlocked and a.is_active]
    unlocked.sort(
        key=lambda a: ensure_aware(a.unlocked_at or a.updated_at),
        reverse=True
    )
    return unlocked


def total_points(achievements: Iterable[Achievement]) -> int:
    """Points over unlocked and active achievements"""
    return sum(a.points for a in achievements if a.is_unlocked and a.is_active)


def rarity_histogram(achievements: Iterable[Achievement]) -> Dict[str, int]:
    """Count of unlocked achievements per rarity (rarities without unlocks omitted)"""
    histogram: Dict[str, int] = {}
    for achievement in achievements:
        if achievement.is_unlocked:
            key = achievement.rarity.value
            histogram[key] = histogram.get(key, 0) + 1
    return {r.value: histogram[r.value] for r in RARITY_ORDER if r.value in histogram}


def completion_rate(unlocked: int, total: int) -> float:
    if total == 0:
        return 0.0
    return unlocked / total * 100


# ============================================
# Engine
# ============================================

class AchievementEngine:
    """
    Owns achievement progress for one store.

    Args:
        store: ProgressStore implementation
        evaluator: MetricEvaluator (built on the same store if omitted)
    """

    def __init__(self, store: ProgressStore, evaluator: Optional[MetricEvaluator] = None):
        self.store = store
        self.evaluator = evaluator or MetricEvaluator(store)

    async def check(self, user_id: str, now: Optional[datetime] = None) -> CheckResult:
        """
        Re-evaluate every eligible achievement and unlock the ones now met

        Args:
            user_id: Owner of the achievements
            now: Evaluation instant (defaults to the configured-timezone clock)

        Returns:
            CheckResult with achievements unlocked by this call and any
            per-achievement failures
        """
        now = ensure_aware(now or now_local())
        result = CheckResult()

        achievements = await self.store.get_user_achievements(user_id)
        candidates = eligible_achievements(achievements, now)

        logger.info(f"Checking {len(candidates)} eligible achievements for user {user_id}")

        for achievement in candidates:
            metric = achievement.criteria.metric.value
            try:
                unlocked = await self._evaluate_one(user_id, achievement, now)
            except Exception as e:
                error = e if isinstance(e, EvaluationError) else EvaluationError(
                    message=f"Could not evaluate achievement {achievement.id}: {e}",
                    achievement_id=achievement.id,
                    metric=metric,
                    user_id=user_id,
                    operation="check_achievements",
                    cause=e
                )
                record_evaluation(metric, success=False)
                result.failed.append(EvaluationFailure(
                    achievement_id=achievement.id,
                    metric=metric,
                    error=type(e).__name__,
                    message=error.message,
                ))
                continue

            record_evaluation(metric, success=True)

            if unlocked:
                record_unlock(achievement.rarity.value)
                result.newly_unlocked.append(project_achievement(achievement, now))
                logger.info(
                    f"User {user_id} unlocked achievement {achievement.id} "
                    f"({achievement.title}) +{achievement.points} points"
                )

        result.total_unlocked = len(result.newly_unlocked)

        if result.failed:
            logger.warning(
                f"Achievement check for user {user_id} finished with "
                f"{len(result.failed)} failed evaluations"
            )

        return result

    async def _evaluate_one(self, user_id: str, achievement: Achievement, now: datetime) -> bool:
        """Evaluate, persist if changed, and report whether it unlocked"""
        progress = await self.evaluator.evaluate(user_id, achievement.criteria, now)

        if progress == achievement.progress.current:
            return False

        unlocked = achievement.update_progress(progress, now)
        await self.store.save_achievement_progress(achievement)
        return unlocked

    async def stats_overview(self, user_id: str, now: Optional[datetime] = None) -> AchievementStats:
        now = ensure_aware(now or now_local())
        achievements = await self.store.get_user_achievements(user_id)

        unlocked = unlocked_active(achievements)
        available = eligible_achievements(achievements, now)
        total = len(achievements)

        return AchievementStats(
            total=total,
            unlocked=len(unlocked),
            available=len(available),
            total_points=total_points(achievements),
            achievement_count=len(unlocked),
            completion_rate=completion_rate(len(unlocked), total),
            rarity_histogram=rarity_histogram(unlocked),
            recent_unlocked=[project_achievement(a, now) for a in unlocked[:RECENT_UNLOCKED_LIMIT]],
        )

    async def list_achievements(
        self,
        user_id: str,
        status: Optional[str] = None,
        category: Optional[AchievementCategory] = None,
        page: int = 1,
        limit: int = 10,
        now: Optional[datetime] = None
    ) -> AchievementPage:
        """
        Paginated achievements in evaluation order

        Args:
            status: None for all, "unlocked", or "available" (locked and visible)
            category: Optional category filter
            page: 1-based page number
            limit: Page size
        """
        if status is not None and status not in LIST_STATUSES:
            raise ValidationError(
                message=f"status must be one of {', '.join(LIST_STATUSES)}",
                field="status",
                value=status,
                user_id=user_id
            )
        if page < 1:
            raise ValidationError("page must be at least 1", field="page", value=page, user_id=user_id)
        if limit < 1:
            raise ValidationError("limit must be at least 1", field="limit", value=limit, user_id=user_id)

        now = ensure_aware(now or now_local())
        achievements = await self.store.get_user_achievements(user_id)

        if status == "unlocked":
            achievements = [a for a in achievements if a.is_unlocked]
        elif status == "available":
            achievements = [a for a in achievements if not a.is_unlocked and not a.is_hidden]
        if category is not None:
            achievements = [a for a in achievements if a.category == category]

        ordered = evaluation_order(achievements)
        start = (page - 1) * limit

        return AchievementPage(
            achievements=[project_achievement(a, now) for a in ordered[start:start + limit]],
            page=page,
            limit=limit,
            total=len(ordered),
            pages=math.ceil(len(ordered) / limit),
        )

    async def unlocked_achievements(self, user_id: str, now: Optional[datetime] = None) -> List[AchievementView]:
        now = ensure_aware(now or now_local())
        achievements = await self.store.get_user_achievements(user_id)
        return [project_achievement(a, now) for a in unlocked_active(achievements)]

    async def get_achievement(
        self,
        user_id: str,
        achievement_id: str,
        now: Optional[datetime] = None
    ) -> AchievementView:
        now = ensure_aware(now or now_local())
        achievement = await self._load(user_id, achievement_id)
        return project_achievement(achievement, now)

    async def force_unlock(
        self,
        user_id: str,
        achievement_id: str,
        now: Optional[datetime] = None
    ) -> AchievementView:
        """Unlock regardless of progress (no-op if already unlocked)"""
        now = ensure_aware(now or now_local())
        achievement = await self._load(user_id, achievement_id)

        if achievement.unlock(now):
            await self.store.save_achievement_progress(achievement)
            record_unlock(achievement.rarity.value)
            logger.info(f"Force-unlocked achievement {achievement_id} for user {user_id}")

        return project_achievement(achievement, now)

    async def _load(self, user_id: str, achievement_id: str) -> Achievement:
        achievement = await self.store.get_achievement(user_id, achievement_id)
        if achievement is None:
            raise RecordNotFoundError(
                message=f"Achievement {achievement_id} not found for user {user_id}",
                record_type="Achievement",
                record_id=achievement_id,
                user_id=user_id,
                operation="get_achievement"
            )
        return achievement
