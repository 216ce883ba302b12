from datetime import datetime
from zoneinfo import ZoneInfo

from services.aggregation import (
    compute_bucket_counts,
    compute_rank,
    is_user_in_bucket,
)

SEOUL = ZoneInfo("Asia/Seoul")
DAY = "2025-01-15"


def _kst(hour: int, minute: int, day: int = 16) -> datetime:
    return datetime(2025, 1, day, hour, minute, tzinfo=SEOUL)


def _session(user_id, start, end, day=DAY):
    return {
        "user_id": user_id,
        "started_at": start,
        "ended_at": end,
        "duration_sec": int((end - start).total_seconds()),
        "target_day": day,
    }


def test_session_counts_in_every_bucket_it_touches():
    sessions = [_session(1, _kst(10, 0), _kst(10, 25))]
    keys = [f"2025-01-16T10:{minute:02d}" for minute in (0, 10, 20, 30)]

    counts = compute_bucket_counts(DAY, keys, sessions)

    assert counts == {
        "2025-01-16T10:00": 1,
        "2025-01-16T10:10": 1,
        "2025-01-16T10:20": 1,
        "2025-01-16T10:30": 0,
    }


def test_bucket_edges_are_half_open():
    sessions = [_session(1, _kst(10, 10), _kst(10, 20))]
    keys = ["2025-01-16T10:00", "2025-01-16T10:10", "2025-01-16T10:20"]

    counts = compute_bucket_counts(DAY, keys, sessions)

    assert counts == {
        "2025-01-16T10:00": 0,
        "2025-01-16T10:10": 1,
        "2025-01-16T10:20": 0,
    }


def test_users_are_counted_once_per_bucket():
    sessions = [
        _session(1, _kst(10, 0), _kst(10, 3)),
        _session(1, _kst(10, 5), _kst(10, 8)),
        _session(2, _kst(10, 1), _kst(10, 2)),
    ]

    counts = compute_bucket_counts(DAY, ["2025-01-16T10:00"], sessions)

    assert counts == {"2025-01-16T10:00": 2}


def test_sessions_from_other_days_and_bad_keys_are_ignored():
    sessions = [
        _session(1, _kst(10, 0), _kst(10, 30), day="2025-01-16"),
        _session(2, _kst(10, 0), _kst(10, 30)),
    ]

    counts = compute_bucket_counts(DAY, ["2025-01-16T10:00", "garbage"], sessions)

    assert counts == {"2025-01-16T10:00": 1, "garbage": 0}


def test_is_user_in_bucket():
    sessions = [_session(1, _kst(16, 5, day=15), _kst(16, 12, day=15))]

    assert is_user_in_bucket("2025-01-15T16:00", sessions)
    assert is_user_in_bucket("2025-01-15T16:10", sessions)
    assert not is_user_in_bucket("2025-01-15T16:20", sessions)
    assert not is_user_in_bucket("2025-01-15T16:20", [])


def test_rank_orders_by_duration_then_user_id():
    durations = [
        {"user_id": 2, "total_duration_sec": 600},
        {"user_id": 1, "total_duration_sec": 600},
        {"user_id": 3, "total_duration_sec": 900},
    ]

    assert compute_rank(durations, 3) == (1, 3)
    assert compute_rank(durations, 1) == (2, 3)
    assert compute_rank(durations, 2) == (3, 3)


def test_rank_for_absent_user_or_empty_day():
    durations = [{"user_id": 1, "total_duration_sec": 60}]

    assert compute_rank(durations, 9) == (None, 1)
    assert compute_rank([], 1) == (None, None)
