"""
Pure statistics helpers.

Bucket overlap counting and ranking are kept free of storage so the cache
coordinator in stats_service is a thin memoisation layer over them.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from day_utils import BUCKET_SIZE, as_utc, parse_bucket_key


def session_overlaps(session: Mapping, bucket_start, bucket_end) -> bool:
    # Half-open: touching a bucket edge is not an overlap.
    return (
        as_utc(session["started_at"]) < bucket_end
        and as_utc(session["ended_at"]) > bucket_start
    )


def compute_bucket_counts(
    target_day: str,
    bucket_keys: Sequence[str],
    sessions: Iterable[Mapping],
) -> Dict[str, int]:
    """Distinct users whose sessions overlap each requested bucket.

    Unparseable bucket keys are skipped and report zero. Sessions tagged with
    a different target day are ignored.
    """
    windows: List[Tuple[str, object, object]] = []
    bucket_users: Dict[str, Set[int]] = {key: set() for key in bucket_keys}
    for key in bucket_keys:
        start = parse_bucket_key(key)
        if start is None:
            continue
        windows.append((key, start, start + BUCKET_SIZE))

    for session in sessions:
        if session.get("target_day", target_day) != target_day:
            continue
        for key, start, end in windows:
            if session_overlaps(session, start, end):
                bucket_users[key].add(session["user_id"])

    return {key: len(users) for key, users in bucket_users.items()}


def is_user_in_bucket(bucket: str, sessions: Iterable[Mapping]) -> bool:
    start = parse_bucket_key(bucket)
    if start is None:
        return False
    end = start + BUCKET_SIZE
    return any(session_overlaps(session, start, end) for session in sessions)


def compute_rank(
    durations: Sequence[Mapping], user_id: int
) -> Tuple[Optional[int], Optional[int]]:
    """Return ``(rank, total_users)`` for a user.

    ``durations`` are per-user totals; they are re-sorted here (total
    descending, user id ascending) so the result does not depend on the
    order the store returned them in.
    """
    if not durations:
        return None, None
    ordered = sorted(
        durations,
        key=lambda item: (-int(item["total_duration_sec"]), int(item["user_id"])),
    )
    rank: Optional[int] = None
    for index, item in enumerate(ordered, start=1):
        if int(item["user_id"]) == user_id:
            rank = index
            break
    return rank, len(ordered)
