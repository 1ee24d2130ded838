"""Goal queries"""
import json
import logging
from datetime import datetime
from typing import Optional
from ecoprogress.db.connection import db

logger = logging.getLogger(__name__)

GOAL_COLUMNS = """
    id, user_id, title, description, category,
    target_value, target_unit, target_timeframe,
    current_value, current_updated_at,
    start_date, end_date, status, priority, difficulty,
    milestones, tags, is_public, notes, created_at, updated_at
"""


async def count_goals(user_id: str, status: str, updated_since: Optional[datetime] = None) -> int:
    """
    Count a user's goals in a status

    Args:
        user_id: Owner
        status: Goal status value
        updated_since: Inclusive lower bound on updated_at
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            query = """
                SELECT COUNT(*) AS count
                FROM goals
                WHERE user_id = %s AND status = %s
            """
            params = [user_id, status]

            if updated_since is not None:
                query += " AND updated_at >= %s"
                params.append(updated_since)

            await cur.execute(query, params)
            row = await cur.fetchone()
            return row['count'] if row else 0


async def get_user_goals(user_id: str, status: Optional[str] = None) -> list[dict]:
    """A user's goals, oldest first"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            query = f"""
                SELECT {GOAL_COLUMNS}
                FROM goals
                WHERE user_id = %s
            """
            params = [user_id]

            if status is not None:
                query += " AND status = %s"
                params.append(status)

            query += " ORDER BY created_at ASC"

            await cur.execute(query, params)
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


async def get_goal(user_id: str, goal_id: str) -> Optional[dict]:
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {GOAL_COLUMNS}
                FROM goals
                WHERE id = %s AND user_id = %s
                """,
                (goal_id, user_id)
            )
            row = await cur.fetchone()
            return dict(row) if row else None


async def update_goal_progress(
    user_id: str,
    goal_id: str,
    current_value: float,
    current_updated_at: datetime,
    status: str,
    milestones: list[dict],
    updated_at: datetime
) -> bool:
    """
    Write a goal's progress fields in a single UPDATE

    The value itself is last-writer-wins. A stored completion and any stored
    achieved milestone are kept even when the caller holds a stale copy.

    Args:
        milestones: JSON-ready milestone dicts

    Returns:
        True if a row was updated
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                UPDATE goals
                SET current_value = %s,
                    current_updated_at = %s,
                    status = CASE WHEN status = 'completed' THEN status ELSE %s END,
                    milestones = (
                        SELECT COALESCE(
                            jsonb_agg(
                                CASE WHEN COALESCE((stored.elem->>'achieved')::boolean, false)
                                    THEN stored.elem ELSE incoming.elem END
                                ORDER BY incoming.idx
                            ),
                            '[]'::jsonb
                        )
                        FROM jsonb_array_elements(%s::jsonb) WITH ORDINALITY AS incoming(elem, idx)
                        LEFT JOIN jsonb_array_elements(COALESCE(goals.milestones, '[]'::jsonb))
                            WITH ORDINALITY AS stored(elem, idx) ON stored.idx = incoming.idx
                    ),
                    updated_at = %s
                WHERE id = %s AND user_id = %s
                """,
                (
                    current_value,
                    current_updated_at,
                    status,
                    json.dumps(milestones),
                    updated_at,
                    goal_id,
                    user_id
                )
            )
            await conn.commit()
            updated = cur.rowcount > 0
            if updated:
                logger.debug(f"Updated goal {goal_id} progress for user {user_id}")
            return updated
