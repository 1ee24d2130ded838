"""User footprint queries"""
import logging
from typing import Optional
from ecoprogress.db.connection import db

logger = logging.getLogger(__name__)


async def get_user_footprint(user_id: str) -> Optional[dict]:
    """
    Get a user's stored carbon totals (tons CO2 per year)

    Returns:
        {'user_id', 'baseline', 'total', 'target', 'last_calculated'} or None
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id AS user_id,
                       carbon_baseline AS baseline,
                       carbon_total AS total,
                       carbon_target AS target,
                       footprint_calculated_at AS last_calculated
                FROM users
                WHERE id = %s
                """,
                (user_id,)
            )
            row = await cur.fetchone()
            return dict(row) if row else None
