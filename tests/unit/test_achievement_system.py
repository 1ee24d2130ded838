"""Unit tests for Achievement System (ecoprogress/gamification/achievement_system.py)"""
import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, patch

from ecoprogress.exceptions import RecordNotFoundError, ValidationError
from ecoprogress.gamification.achievement_system import (
    AchievementEngine,
    completion_rate,
    eligible_achievements,
    evaluation_order,
    rarity_histogram,
    total_points,
)
from ecoprogress.models.achievement import (
    AchievementCategory,
    AchievementProgress,
    CriteriaUnit,
    MetricKind,
    Rarity,
)
from ecoprogress.models.user import UserFootprint


# ============================================================================
# Ordering & Eligibility
# ============================================================================

class TestEvaluationOrder:

    def test_rarity_then_creation(self, achievement_factory, now):
        legendary = achievement_factory(rarity=Rarity.LEGENDARY, created_at=now - timedelta(days=9))
        common_new = achievement_factory(rarity=Rarity.COMMON, created_at=now - timedelta(days=1))
        common_old = achievement_factory(rarity=Rarity.COMMON, created_at=now - timedelta(days=5))
        rare = achievement_factory(rarity=Rarity.RARE, created_at=now - timedelta(days=3))
        epic = achievement_factory(rarity=Rarity.EPIC)
        uncommon = achievement_factory(rarity=Rarity.UNCOMMON)

        ordered = evaluation_order([legendary, common_new, rare, epic, common_old, uncommon])

        assert [a.id for a in ordered] == [
            common_old.id, common_new.id, uncommon.id, rare.id, epic.id, legendary.id
        ]

    def test_equal_keys_keep_input_order(self, achievement_factory, now):
        first = achievement_factory(created_at=now)
        second = achievement_factory(created_at=now)

        assert [a.id for a in evaluation_order([first, second])] == [first.id, second.id]

    def test_eligibility_filters(self, achievement_factory, now):
        eligible = achievement_factory()
        unlocked = achievement_factory(is_unlocked=True, unlocked_at=now)
        hidden = achievement_factory(is_hidden=True)
        inactive = achievement_factory(is_active=False)
        expired = achievement_factory(expires_at=now - timedelta(seconds=1))
        expiring = achievement_factory(expires_at=now + timedelta(days=1))

        result = eligible_achievements([eligible, unlocked, hidden, inactive, expired, expiring], now)

        assert {a.id for a in result} == {eligible.id, expiring.id}


# ============================================================================
# Derived Reads
# ============================================================================

class TestDerivedReads:

    def test_total_points_counts_unlocked_active_only(self, achievement_factory, now):
        achievements = [
            achievement_factory(points=10, is_unlocked=True, unlocked_at=now),
            achievement_factory(points=25, is_unlocked=True, unlocked_at=now),
            achievement_factory(points=100, is_unlocked=True, unlocked_at=now, is_active=False),
            achievement_factory(points=50),
        ]

        assert total_points(achievements) == 35

    def test_rarity_histogram(self, achievement_factory, now):
        achievements = [
            achievement_factory(rarity=Rarity.RARE, is_unlocked=True, unlocked_at=now),
            achievement_factory(rarity=Rarity.RARE, is_unlocked=True, unlocked_at=now),
            achievement_factory(rarity=Rarity.COMMON, is_unlocked=True, unlocked_at=now),
            achievement_factory(rarity=Rarity.EPIC),
        ]

        assert rarity_histogram(achievements) == {"common": 1, "rare": 2}

    def test_completion_rate(self):
        assert completion_rate(0, 0) == 0
        assert completion_rate(1, 4) == 25.0
        assert completion_rate(4, 4) == 100.0


# ============================================================================
# check() Tests
# ============================================================================

@pytest.mark.asyncio
async def test_check_unlocks_carbon_reduction_end_to_end(store, achievement_factory, test_user_id, now):
    """Baseline 10 t, current drops to 7 t, threshold 2 t -> unlocked"""
    store.add_footprint(UserFootprint(user_id=test_user_id, baseline=10.0, total=10.0))
    achievement = achievement_factory(metric=MetricKind.CARBON_REDUCTION, threshold=2, unit=CriteriaUnit.TONS)
    store.add_achievement(achievement)
    engine = AchievementEngine(store)

    first = await engine.check(test_user_id, now)
    assert first.newly_unlocked == []

    store.add_footprint(UserFootprint(user_id=test_user_id, baseline=10.0, total=7.0))
    second = await engine.check(test_user_id, now)

    assert second.total_unlocked == 1
    assert second.newly_unlocked[0].id == achievement.id
    assert second.newly_unlocked[0].progress.current == 2
    assert second.newly_unlocked[0].progress.percentage == 100

    stored = await store.get_achievement(test_user_id, achievement.id)
    assert stored.is_unlocked is True
    assert stored.unlocked_at == now


@pytest.mark.asyncio
async def test_check_reports_unlock_only_once(store, achievement_factory, activity_factory, test_user_id, now):
    store.add_achievement(achievement_factory(threshold=2))
    store.add_activity(activity_factory(days_ago=1))
    store.add_activity(activity_factory(days_ago=2))
    engine = AchievementEngine(store)

    first = await engine.check(test_user_id, now)
    second = await engine.check(test_user_id, now)

    assert first.total_unlocked == 1
    assert second.total_unlocked == 0


@pytest.mark.asyncio
async def test_check_persists_partial_progress(store, achievement_factory, activity_factory, test_user_id, now):
    achievement = achievement_factory(threshold=5)
    store.add_achievement(achievement)
    store.add_activity(activity_factory(days_ago=1))
    store.add_activity(activity_factory(days_ago=2))

    result = await AchievementEngine(store).check(test_user_id, now)

    stored = await store.get_achievement(test_user_id, achievement.id)
    assert result.newly_unlocked == []
    assert stored.progress.current == 2
    assert stored.progress.last_updated == now
    assert stored.is_unlocked is False


@pytest.mark.asyncio
async def test_check_skips_write_when_progress_unchanged(mock_store, achievement_factory, test_user_id, now):
    achievement = achievement_factory(threshold=5, progress=AchievementProgress(current=3, required=5))
    mock_store.get_user_achievements = AsyncMock(return_value=[achievement])
    mock_store.count_active_activities = AsyncMock(return_value=3)

    await AchievementEngine(mock_store).check(test_user_id, now)

    mock_store.save_achievement_progress.assert_not_called()


@pytest.mark.asyncio
async def test_check_allows_progress_regression(store, achievement_factory, test_user_id, now):
    """Metric going down before unlock lowers the stored progress"""
    store.add_footprint(UserFootprint(user_id=test_user_id, baseline=10.0, total=9.0))
    achievement = achievement_factory(
        metric=MetricKind.CARBON_REDUCTION, threshold=5, unit=CriteriaUnit.TONS,
        progress=AchievementProgress(current=3, required=5),
    )
    store.add_achievement(achievement)

    await AchievementEngine(store).check(test_user_id, now)

    stored = await store.get_achievement(test_user_id, achievement.id)
    assert stored.progress.current == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_check_never_relocks(store, achievement_factory, test_user_id, now):
    """Unlocked achievements are not evaluated and stay unlocked"""
    achievement = achievement_factory(threshold=1, is_unlocked=True, unlocked_at=now - timedelta(days=3),
                                      progress=AchievementProgress(current=1, required=1))
    store.add_achievement(achievement)

    result = await AchievementEngine(store).check(test_user_id, now)

    stored = await store.get_achievement(test_user_id, achievement.id)
    assert result.total_unlocked == 0
    assert stored.is_unlocked is True
    assert stored.unlocked_at == now - timedelta(days=3)


@pytest.mark.asyncio
async def test_check_returns_unlocks_in_rarity_order(store, achievement_factory, activity_factory, test_user_id, now):
    epic = achievement_factory(threshold=1, rarity=Rarity.EPIC, created_at=now - timedelta(days=50))
    common = achievement_factory(threshold=1, rarity=Rarity.COMMON, created_at=now - timedelta(days=1))
    rare = achievement_factory(threshold=1, rarity=Rarity.RARE, created_at=now - timedelta(days=20))
    for achievement in (epic, common, rare):
        store.add_achievement(achievement)
    store.add_activity(activity_factory(days_ago=0))

    result = await AchievementEngine(store).check(test_user_id, now)

    assert [a.id for a in result.newly_unlocked] == [common.id, rare.id, epic.id]


@pytest.mark.asyncio
async def test_check_evaluation_order_is_deterministic(mock_store, achievement_factory, test_user_id, now):
    achievements = [
        achievement_factory(threshold=3, rarity=Rarity.LEGENDARY),
        achievement_factory(threshold=1, rarity=Rarity.COMMON),
        achievement_factory(threshold=2, rarity=Rarity.UNCOMMON),
    ]
    mock_store.get_user_achievements = AsyncMock(side_effect=lambda user_id: list(achievements))
    evaluated = []

    async def record(user_id, criteria, now):
        evaluated.append(criteria.threshold)
        return 0

    engine = AchievementEngine(mock_store)
    runs = []
    for _ in range(3):
        evaluated.clear()
        with patch.object(engine.evaluator, "evaluate", side_effect=record):
            await engine.check(test_user_id, now)
        runs.append(list(evaluated))

    assert runs[0] == [1, 2, 3]
    assert runs[0] == runs[1] == runs[2]


@pytest.mark.asyncio
async def test_check_isolates_failures(store, achievement_factory, activity_factory, test_user_id, now):
    """Missing footprint fails one evaluation; the others still run"""
    broken = achievement_factory(metric=MetricKind.CARBON_REDUCTION, threshold=2, unit=CriteriaUnit.TONS)
    working = achievement_factory(threshold=1, rarity=Rarity.RARE)
    store.add_achievement(broken)
    store.add_achievement(working)
    store.add_activity(activity_factory(days_ago=0))

    result = await AchievementEngine(store).check(test_user_id, now)

    assert [a.id for a in result.newly_unlocked] == [working.id]
    assert len(result.failed) == 1
    assert result.failed[0].achievement_id == broken.id
    assert result.failed[0].metric == "carbon_reduction"
    assert result.failed[0].error == "RecordNotFoundError"


@pytest.mark.asyncio
async def test_check_isolates_persist_failures(mock_store, achievement_factory, test_user_id, now):
    first = achievement_factory(threshold=1)
    second = achievement_factory(threshold=1, rarity=Rarity.EPIC)
    mock_store.get_user_achievements = AsyncMock(return_value=[first, second])
    mock_store.count_active_activities = AsyncMock(return_value=1)
    mock_store.save_achievement_progress = AsyncMock(side_effect=[RuntimeError("write failed"), None])

    result = await AchievementEngine(mock_store).check(test_user_id, now)

    assert [a.id for a in result.newly_unlocked] == [second.id]
    assert result.failed[0].achievement_id == first.id
    assert result.failed[0].error == "RuntimeError"


@pytest.mark.asyncio
async def test_check_with_no_achievements(store, test_user_id, now):
    result = await AchievementEngine(store).check(test_user_id, now)

    assert result.newly_unlocked == []
    assert result.total_unlocked == 0
    assert result.failed == []


# ============================================================================
# Read Operations
# ============================================================================

@pytest.mark.asyncio
async def test_stats_overview(store, achievement_factory, test_user_id, now):
    store.add_achievement(achievement_factory(points=10, rarity=Rarity.COMMON, is_unlocked=True,
                                              unlocked_at=now - timedelta(days=2)))
    store.add_achievement(achievement_factory(points=30, rarity=Rarity.RARE, is_unlocked=True,
                                              unlocked_at=now - timedelta(days=1)))
    store.add_achievement(achievement_factory(points=50))
    store.add_achievement(achievement_factory(points=70, is_hidden=True))

    stats = await AchievementEngine(store).stats_overview(test_user_id, now)

    assert stats.total == 4
    assert stats.unlocked == 2
    assert stats.available == 1
    assert stats.total_points == 40
    assert stats.achievement_count == 2
    assert stats.completion_rate == 50.0
    assert stats.rarity_histogram == {"common": 1, "rare": 1}
    assert [a.points for a in stats.recent_unlocked] == [30, 10]


@pytest.mark.asyncio
async def test_stats_overview_empty(store, test_user_id, now):
    stats = await AchievementEngine(store).stats_overview(test_user_id, now)

    assert stats.total == 0
    assert stats.completion_rate == 0
    assert stats.rarity_histogram == {}


@pytest.mark.asyncio
async def test_list_achievements_paginates(store, achievement_factory, test_user_id, now):
    for n in range(5):
        store.add_achievement(achievement_factory(created_at=now - timedelta(days=10 - n), title=f"A{n}"))

    engine = AchievementEngine(store)
    page_one = await engine.list_achievements(test_user_id, page=1, limit=2, now=now)
    page_three = await engine.list_achievements(test_user_id, page=3, limit=2, now=now)

    assert [a.title for a in page_one.achievements] == ["A0", "A1"]
    assert [a.title for a in page_three.achievements] == ["A4"]
    assert page_one.total == 5
    assert page_one.pages == 3


@pytest.mark.asyncio
async def test_list_achievements_filters(store, achievement_factory, test_user_id, now):
    unlocked = achievement_factory(is_unlocked=True, unlocked_at=now, category=AchievementCategory.STREAK)
    available = achievement_factory()
    hidden = achievement_factory(is_hidden=True)
    for achievement in (unlocked, available, hidden):
        store.add_achievement(achievement)

    engine = AchievementEngine(store)
    only_unlocked = await engine.list_achievements(test_user_id, status="unlocked", now=now)
    only_available = await engine.list_achievements(test_user_id, status="available", now=now)
    streaks = await engine.list_achievements(test_user_id, category=AchievementCategory.STREAK, now=now)

    assert [a.id for a in only_unlocked.achievements] == [unlocked.id]
    assert [a.id for a in only_available.achievements] == [available.id]
    assert [a.id for a in streaks.achievements] == [unlocked.id]


@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [{"status": "locked"}, {"page": 0}, {"limit": 0}])
async def test_list_achievements_rejects_bad_arguments(store, test_user_id, kwargs):
    with pytest.raises(ValidationError):
        await AchievementEngine(store).list_achievements(test_user_id, **kwargs)


@pytest.mark.asyncio
async def test_get_achievement_of_other_user_is_not_found(store, achievement_factory, other_user_id, test_user_id, now):
    achievement = achievement_factory(user_id=other_user_id)
    store.add_achievement(achievement)

    with pytest.raises(RecordNotFoundError):
        await AchievementEngine(store).get_achievement(test_user_id, achievement.id, now)


@pytest.mark.asyncio
async def test_force_unlock_is_idempotent(store, achievement_factory, test_user_id, now):
    achievement = achievement_factory(threshold=10)
    store.add_achievement(achievement)
    engine = AchievementEngine(store)

    first = await engine.force_unlock(test_user_id, achievement.id, now)
    second = await engine.force_unlock(test_user_id, achievement.id, now + timedelta(hours=1))

    assert first.is_unlocked is True
    assert first.progress.current == 10
    assert second.unlocked_at == now


@pytest.mark.asyncio
async def test_unlocked_achievements_newest_first(store, achievement_factory, test_user_id, now):
    older = achievement_factory(is_unlocked=True, unlocked_at=now - timedelta(days=5))
    newer = achievement_factory(is_unlocked=True, unlocked_at=now - timedelta(days=1))
    store.add_achievement(older)
    store.add_achievement(newer)
    store.add_achievement(achievement_factory())

    result = await AchievementEngine(store).unlocked_achievements(test_user_id, now)

    assert [a.id for a in result] == [newer.id, older.id]
