"""Activity and footprint aggregate queries"""
import logging
from datetime import datetime
from typing import Optional
from ecoprogress.db.connection import db

logger = logging.getLogger(__name__)

ACTIVITY_COLUMNS = """
    id, user_id, category, subcategory, title, description, date,
    carbon_value, carbon_unit, calculation_method, status, tags, metadata, created_at
"""

# Activities may record carbon in kg or tons; aggregates are always kg
CARBON_KG_EXPR = "CASE WHEN carbon_unit = 'tons' THEN carbon_value * 1000 ELSE carbon_value END"


def _window(query: str, params: list, since: Optional[datetime], until: Optional[datetime]) -> str:
    """Append an inclusive date window to a query already filtering by user"""
    if since is not None:
        query += " AND date >= %s"
        params.append(since)
    if until is not None:
        query += " AND date <= %s"
        params.append(until)
    return query


async def count_active_activities(
    user_id: str,
    category: Optional[str] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None
) -> int:
    """
    Count a user's active activities

    Args:
        user_id: Owner
        category: Optional activity category value
        since: Inclusive lower bound on activity date
        until: Inclusive upper bound on activity date

    Returns:
        Number of matching activities
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            query = """
                SELECT COUNT(*) AS count
                FROM activities
                WHERE user_id = %s AND status = 'active'
            """
            params = [user_id]

            if category is not None:
                query += " AND category = %s"
                params.append(category)

            query = _window(query, params, since, until)

            await cur.execute(query, params)
            row = await cur.fetchone()
            return row['count'] if row else 0


async def list_active_activities(
    user_id: str,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None
) -> list[dict]:
    """Active activities in the window, oldest first"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            query = f"""
                SELECT {ACTIVITY_COLUMNS}
                FROM activities
                WHERE user_id = %s AND status = 'active'
            """
            params = [user_id]
            query = _window(query, params, since, until)
            query += " ORDER BY date ASC"

            await cur.execute(query, params)
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


async def aggregate_footprint(
    user_id: str,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None
) -> dict:
    """
    Sum and count of active activity footprints

    Returns:
        {'total_kg': float, 'activity_count': int}
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            query = f"""
                SELECT COALESCE(SUM({CARBON_KG_EXPR}), 0) AS total_kg,
                       COUNT(*) AS activity_count
                FROM activities
                WHERE user_id = %s AND status = 'active'
            """
            params = [user_id]
            query = _window(query, params, since, until)

            await cur.execute(query, params)
            row = await cur.fetchone()
            if not row:
                return {'total_kg': 0.0, 'activity_count': 0}
            return {'total_kg': float(row['total_kg']), 'activity_count': row['activity_count']}


async def footprint_by_category(
    user_id: str,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None
) -> list[dict]:
    """
    Footprint totals grouped by category, largest first

    Returns:
        List of {'category', 'total_kg', 'count'}
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            query = f"""
                SELECT category,
                       COALESCE(SUM({CARBON_KG_EXPR}), 0) AS total_kg,
                       COUNT(*) AS count
                FROM activities
                WHERE user_id = %s AND status = 'active'
            """
            params = [user_id]
            query = _window(query, params, since, until)
            query += """
                GROUP BY category
                ORDER BY total_kg DESC
            """

            await cur.execute(query, params)
            rows = await cur.fetchall()
            return [
                {'category': row['category'], 'total_kg': float(row['total_kg']), 'count': row['count']}
                for row in rows
            ]
