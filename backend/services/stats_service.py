"""
Stats service.

Live counters and the daily bucketed statistics. Daily buckets are served
from the persisted cache; only buckets missing from it are computed from
the day's sessions and written back. A bucket is materialised only once it
has fully elapsed, so cached counts are final and never revalidated.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import structlog
from day_utils import bucket_display_time, expected_buckets, target_day as calc_target_day
from repositories import stats_repo, users_repo, void_sessions_repo
from security import UNAUTHORIZED, ApiError, internal_error, validate_target_day
from sqlalchemy.exc import SQLAlchemyError

from .aggregation import compute_bucket_counts, compute_rank, is_user_in_bucket
from .common import utcnow

logger = structlog.get_logger("voidtrack.backend")


def get_live_stat() -> Dict[str, int]:
    today = calc_target_day(utcnow())
    try:
        current = users_repo.count_in_void()
    except SQLAlchemyError as exc:
        raise internal_error("failed to count current void", exc)
    try:
        slept = stats_repo.count_distinct_users_for_day(today)
    except SQLAlchemyError as exc:
        raise internal_error("failed to count today slept", exc)

    return {"current_void_count": current, "today_slept_count": slept}


def get_daily_buckets(target_day: str, now: datetime) -> List[Tuple[str, int]]:
    """Return ``(bucket_key, count)`` for every elapsed bucket of the day."""
    expected = expected_buckets(target_day, now)
    if not expected:
        return []

    try:
        cached_rows = stats_repo.get_bucket_cache(target_day)
    except SQLAlchemyError as exc:
        raise internal_error("failed to get bucket cache", exc)
    counts: Dict[str, int] = {row["bucket"]: row["count"] for row in cached_rows}

    missing = [bucket for bucket in expected if bucket not in counts]
    if missing:
        try:
            sessions = void_sessions_repo.find_by_day(target_day)
        except SQLAlchemyError as exc:
            raise internal_error("failed to find sessions", exc)

        computed = compute_bucket_counts(target_day, missing, sessions)
        try:
            stats_repo.upsert_bucket_cache(target_day, computed, now)
        except SQLAlchemyError as exc:
            raise internal_error("failed to upsert cache", exc)

        logger.bind(
            target_day=target_day,
            missing_buckets=len(missing),
            cached_buckets=len(expected) - len(missing),
            sessions_scanned=len(sessions),
        ).info("stats.cache_fill")
        counts.update(computed)

    return [(bucket, counts.get(bucket, 0)) for bucket in expected]


def get_daily_stat(*, user_id: Optional[int], target_day: Optional[str]) -> Dict[str, Any]:
    if user_id is None:
        raise ApiError("invalid user id", code=UNAUTHORIZED, status=401)
    day = validate_target_day(target_day)

    buckets = get_daily_buckets(day, utcnow())

    # Membership is per user and never cached; recompute from own sessions.
    try:
        my_sessions = void_sessions_repo.find_by_user_and_day(user_id, day)
    except SQLAlchemyError as exc:
        raise internal_error("failed to find user sessions", exc)

    bucket_items = [
        {
            "time": bucket_display_time(bucket),
            "count": count,
            "is_mine": is_user_in_bucket(bucket, my_sessions),
        }
        for bucket, count in buckets
    ]

    try:
        durations = stats_repo.get_user_durations(day)
    except SQLAlchemyError as exc:
        raise internal_error("failed to get user durations", exc)
    my_rank, total_users = compute_rank(durations, user_id)

    return {
        "target_day": day,
        "buckets": bucket_items,
        "my_rank": my_rank,
        "total_users": total_users,
    }
