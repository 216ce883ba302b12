"""Repository for the per-bucket statistics cache and day-level aggregates."""

from datetime import datetime
from typing import Dict, List

import sqlalchemy as sa

from day_utils import as_utc
from db_utils import connection as sa_connection
from db_utils import transactional_connection, upsert_statement
from extensions import db
from models import VoidStatCache

_cache = VoidStatCache.__table__


def get_bucket_cache(target_day: str) -> List[dict]:
    """Cached bucket rows of a day, ordered by bucket key."""
    conn = sa_connection(db.engine)
    try:
        rows = conn.execute(
            sa.select(_cache.c.bucket, _cache.c.count)
            .where(_cache.c.target_day == target_day)
            .order_by(_cache.c.bucket.asc())
        ).fetchall()
    finally:
        conn.close()
    return [{"bucket": row["bucket"], "count": int(row["count"])} for row in rows]


def upsert_bucket_cache(
    target_day: str, counts: Dict[str, int], updated_at: datetime
) -> None:
    """Write bucket counts in one batch; rewriting a bucket is harmless."""
    if not counts:
        return
    rows = [
        {
            "target_day": target_day,
            "bucket": bucket,
            "count": count,
            "updated_at": as_utc(updated_at),
        }
        for bucket, count in sorted(counts.items())
    ]
    with transactional_connection(db.engine) as conn:
        conn.execute(
            upsert_statement(
                conn.dialect_name,
                _cache,
                rows,
                index_elements=("target_day", "bucket"),
                update_columns=("count", "updated_at"),
            )
        )


def get_user_durations(target_day: str) -> List[dict]:
    """Total void seconds per user for a day, longest first, ties by user id."""
    conn = sa_connection(db.engine)
    try:
        rows = conn.execute(
            """
            SELECT
                user_id,
                COALESCE(SUM(duration_sec), 0) AS total_duration_sec
            FROM void_sessions
            WHERE target_day = ?
            GROUP BY user_id
            ORDER BY total_duration_sec DESC, user_id ASC
            """,
            (target_day,),
        ).fetchall()
    finally:
        conn.close()
    return [
        {
            "user_id": int(row["user_id"]),
            "total_duration_sec": int(row["total_duration_sec"]),
        }
        for row in rows
    ]


def count_distinct_users_for_day(target_day: str) -> int:
    conn = sa_connection(db.engine)
    try:
        value = conn.execute(
            "SELECT COUNT(DISTINCT user_id) AS total FROM void_sessions WHERE target_day = ?",
            (target_day,),
        ).scalar()
    finally:
        conn.close()
    return int(value or 0)
