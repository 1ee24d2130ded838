"""
Progress engine for ecoprogress

- Metric evaluation against stored activities, goals and footprints
- Daily activity streaks
- Achievement checks, unlocks and stats
- Goal progress, completion and milestones
- Read views for achievements and goals
"""

from ecoprogress.gamification.metric_evaluator import MetricEvaluator, resolve_window_start
from ecoprogress.gamification.streak_system import calculate_streak, streak_from_activities
from ecoprogress.gamification.achievement_system import AchievementEngine, CheckResult
from ecoprogress.gamification.goal_system import GoalEngine
from ecoprogress.gamification.projections import project_achievement, project_goal

__all__ = [
    "MetricEvaluator",
    "resolve_window_start",
    "calculate_streak",
    "streak_from_activities",
    "AchievementEngine",
    "CheckResult",
    "GoalEngine",
    "project_achievement",
    "project_goal",
]
