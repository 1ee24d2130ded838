"""Unit tests for Pydantic models"""
import pytest
from datetime import timedelta
from pydantic import ValidationError

from ecoprogress.models.activity import CarbonFootprint, CarbonUnit, to_kg, to_tons
from ecoprogress.models.achievement import AchievementCriteria, AchievementProgress, MetricKind, Rarity, RARITY_ORDER
from ecoprogress.models.goal import Milestone
from ecoprogress.models.user import UserFootprint


# ============================================================================
# Activity Model Tests
# ============================================================================

class TestCarbonUnits:

    def test_conversions(self):
        assert to_kg(2.5, CarbonUnit.TONS) == 2500
        assert to_kg(40, CarbonUnit.KG) == 40
        assert to_tons(500, CarbonUnit.KG) == 0.5
        assert to_tons(3, "tons") == 3

    def test_footprint_helpers(self):
        footprint = CarbonFootprint(value=1.2, unit=CarbonUnit.TONS)

        assert footprint.in_kg() == pytest.approx(1200)
        assert footprint.in_tons() == pytest.approx(1.2)

    def test_negative_footprint_rejected(self):
        with pytest.raises(ValidationError):
            CarbonFootprint(value=-1)


class TestUserFootprint:

    def test_reduction(self):
        footprint = UserFootprint(user_id="u", baseline=10, total=7)

        assert footprint.reduction == 3
        assert footprint.reduction_percentage == pytest.approx(30.0)

    def test_zero_baseline_percentage(self):
        assert UserFootprint(user_id="u").reduction_percentage == 0.0


# ============================================================================
# Achievement Model Tests
# ============================================================================

class TestAchievement:

    def test_rarity_rank_follows_order(self):
        assert [r.rank for r in RARITY_ORDER] == [0, 1, 2, 3, 4]
        assert Rarity.COMMON.rank < Rarity.LEGENDARY.rank

    def test_criteria_requires_metric_and_threshold(self):
        with pytest.raises(ValidationError):
            AchievementCriteria(threshold=5, unit="count")
        with pytest.raises(ValidationError):
            AchievementCriteria(metric=MetricKind.STREAK_DAYS, unit="days")

    def test_unknown_metric_rejected(self):
        with pytest.raises(ValidationError):
            AchievementCriteria(metric="tree_hugs", threshold=1, unit="count")

    def test_update_progress_unlocks_once(self, achievement_factory, now):
        achievement = achievement_factory(threshold=3)

        assert achievement.update_progress(3, now) is True
        assert achievement.update_progress(3, now + timedelta(days=1)) is False
        assert achievement.unlocked_at == now

    def test_update_progress_never_relocks(self, achievement_factory, now):
        achievement = achievement_factory(threshold=3)
        achievement.update_progress(3, now)

        achievement.update_progress(0, now)

        assert achievement.is_unlocked is True
        assert achievement.progress.current == 0

    def test_update_progress_clamps_negative(self, achievement_factory, now):
        achievement = achievement_factory(threshold=3)

        achievement.update_progress(-2, now)

        assert achievement.progress.current == 0

    def test_percentage_caps(self, achievement_factory):
        achievement = achievement_factory(threshold=2, progress=AchievementProgress(current=5, required=2))

        assert achievement.progress_percentage() == 100.0

    def test_expiry_boundary(self, achievement_factory, now):
        achievement = achievement_factory(expires_at=now)

        assert achievement.is_expired(now) is False
        assert achievement.is_eligible(now) is False
        assert achievement.is_expired(now + timedelta(seconds=1)) is True


# ============================================================================
# Goal Model Tests
# ============================================================================

class TestGoal:

    def test_update_progress_returns_new_milestones(self, goal_factory, milestones, now):
        goal = goal_factory(target=100, milestones=milestones)

        first = goal.update_progress(30, now)
        second = goal.update_progress(55, now)

        assert [m.title for m in first] == ["Quarter"]
        assert [m.title for m in second] == ["Half"]

    def test_milestones_independent_of_completion(self, goal_factory, now):
        goal = goal_factory(target=10, milestones=[Milestone(title="Beyond", target_value=20)])

        goal.update_progress(12, now)

        assert goal.status.value == "completed"
        assert goal.milestones[0].achieved is False

    def test_naive_end_date_compared_as_utc(self, goal_factory, now):
        goal = goal_factory(end_date=(now - timedelta(hours=1)).replace(tzinfo=None))

        assert goal.is_overdue(now) is True
