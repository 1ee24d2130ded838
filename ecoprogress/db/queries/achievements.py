"""Achievement queries"""
import logging
from datetime import datetime
from typing import Optional
from ecoprogress.db.connection import db

logger = logging.getLogger(__name__)

ACHIEVEMENT_COLUMNS = """
    id, user_id, title, description, category, type, criteria,
    icon, badge, points, rarity, is_unlocked, unlocked_at,
    progress_current, progress_required, progress_updated_at,
    metadata, tags, is_hidden, expires_at, is_active, created_at, updated_at
"""


async def get_user_achievements(user_id: str) -> list[dict]:
    """
    All of a user's achievements, oldest first

    Eligibility filtering and evaluation order belong to the engine.
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {ACHIEVEMENT_COLUMNS}
                FROM achievements
                WHERE user_id = %s
                ORDER BY created_at ASC
                """,
                (user_id,)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


async def get_achievement(user_id: str, achievement_id: str) -> Optional[dict]:
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {ACHIEVEMENT_COLUMNS}
                FROM achievements
                WHERE id = %s AND user_id = %s
                """,
                (achievement_id, user_id)
            )
            row = await cur.fetchone()
            return dict(row) if row else None


async def update_achievement_progress(
    user_id: str,
    achievement_id: str,
    progress_current: float,
    progress_updated_at: Optional[datetime],
    is_unlocked: bool,
    unlocked_at: Optional[datetime],
    updated_at: datetime
) -> bool:
    """
    Write an achievement's progress and unlock state in a single UPDATE

    is_unlocked is OR-ed with the stored flag so a concurrent writer can never
    re-lock an unlocked achievement.

    Returns:
        True if a row was updated
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                UPDATE achievements
                SET progress_current = %s,
                    progress_updated_at = %s,
                    is_unlocked = is_unlocked OR %s,
                    unlocked_at = COALESCE(unlocked_at, %s),
                    updated_at = %s
                WHERE id = %s AND user_id = %s
                """,
                (
                    progress_current,
                    progress_updated_at,
                    is_unlocked,
                    unlocked_at,
                    updated_at,
                    achievement_id,
                    user_id
                )
            )
            await conn.commit()
            updated = cur.rowcount > 0
            if updated and is_unlocked:
                logger.debug(f"Stored unlocked achievement {achievement_id} for user {user_id}")
            return updated
