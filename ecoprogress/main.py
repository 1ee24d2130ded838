"""Command line entry point for the progress engine"""
import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from ecoprogress.config import validate_config, LOG_LEVEL
from ecoprogress.db.connection import db
from ecoprogress.db.postgres_store import PostgresStore
from ecoprogress.exceptions import EcoProgressError
from ecoprogress.gamification.achievement_system import AchievementEngine
from ecoprogress.gamification.goal_system import GoalEngine
from ecoprogress.insights.advisor import Advisor

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ecoprogress", description="Sustainability progress engine")
    commands = parser.add_subparsers(dest="command", required=True)

    check = commands.add_parser("check", help="Re-evaluate achievements and report new unlocks")
    check.add_argument("user_id")

    goal = commands.add_parser("goal-progress", help="Record progress for a goal")
    goal.add_argument("user_id")
    goal.add_argument("goal_id")
    goal.add_argument("value", type=float)

    stats = commands.add_parser("stats", help="Achievement and goal overview")
    stats.add_argument("user_id")

    insights = commands.add_parser("insights", help="Advisory insights for the last window")
    insights.add_argument("user_id")

    return parser


async def run(args: argparse.Namespace) -> dict:
    """Execute one command against PostgreSQL and return a JSON-ready dict"""
    store = PostgresStore()

    if args.command == "check":
        result = await AchievementEngine(store).check(args.user_id)
        return result.model_dump(mode="json")

    if args.command == "goal-progress":
        view = await GoalEngine(store).update_progress(args.user_id, args.goal_id, args.value)
        return view.model_dump(mode="json")

    if args.command == "stats":
        achievements = await AchievementEngine(store).stats_overview(args.user_id)
        goals = await GoalEngine(store).stats_overview(args.user_id)
        return {
            "achievements": achievements.model_dump(mode="json"),
            "goals": goals.model_dump(mode="json"),
        }

    if args.command == "insights":
        result = await Advisor(store).insights(args.user_id)
        return result.model_dump(mode="json")

    raise ValueError(f"Unknown command: {args.command}")


async def main(argv: Optional[list[str]] = None) -> int:
    """Main application entry point"""
    args = build_parser().parse_args(argv)

    try:
        logger.info("Validating configuration...")
        validate_config()

        logger.info("Initializing database connection pool...")
        await db.init_pool()

        output = await run(args)
        print(json.dumps(output, indent=2, ensure_ascii=False))
        return 0

    except EcoProgressError as e:
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1
    finally:
        logger.info("Closing database connection...")
        await db.close_pool()


def cli() -> None:
    # Configure logging
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    )
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
