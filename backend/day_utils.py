"""Tracking-day boundaries and 10-minute bucket keys.

A tracking day does not start at midnight: it runs from ``DAY_START_HOUR:00``
in the reference timezone until the same hour the next calendar day. Buckets
are 10-minute slots inside that window, keyed by a sortable
``YYYY-MM-DDTHH:MM`` string in the reference timezone.
"""

from __future__ import annotations

import os
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

BUCKET_SIZE = timedelta(minutes=10)
BUCKETS_PER_DAY = int(timedelta(days=1) / BUCKET_SIZE)
TARGET_DAY_FORMAT = "%Y-%m-%d"
BUCKET_KEY_FORMAT = "%Y-%m-%dT%H:%M"


def _day_start_hour_from_env(name: str, default: str) -> int:
    raw = os.environ.get(name, default).strip()
    try:
        hour = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if not 0 <= hour <= 23:
        raise ValueError(f"{name} must be between 0 and 23")
    return hour


def _timezone_from_env(name: str, default: str) -> ZoneInfo:
    tz_name = os.environ.get(name, default).strip()
    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError as exc:
        raise ValueError(f"Invalid timezone in {name}: {tz_name}") from exc


DAY_START_HOUR = _day_start_hour_from_env("VOID_DAY_START_HOUR", "16")
REFERENCE_TZ = _timezone_from_env("VOID_TIMEZONE", "Asia/Seoul")


def as_utc(value: datetime) -> datetime:
    """Normalise a stored instant to an aware UTC datetime.

    Naive values are what SQLite hands back for timezone columns; they were
    written as UTC, so they are tagged rather than converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def target_day(
    instant: datetime,
    *,
    day_start_hour: Optional[int] = None,
    tz: Optional[tzinfo] = None,
) -> str:
    """Return the tracking day (``YYYY-MM-DD``) an instant belongs to."""
    start_hour = DAY_START_HOUR if day_start_hour is None else day_start_hour
    local = as_utc(instant).astimezone(tz or REFERENCE_TZ)
    if local.hour < start_hour:
        local = local - timedelta(days=1)
    return local.strftime(TARGET_DAY_FORMAT)


def parse_target_day(value: Optional[str]) -> Optional[date]:
    """Parse a canonical ``YYYY-MM-DD`` day; ``None`` for anything else.

    Unpadded forms such as ``2025-1-15`` are rejected since the string is
    used verbatim as a storage key.
    """
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.strptime(value, TARGET_DAY_FORMAT).date()
    except ValueError:
        return None
    if parsed.strftime(TARGET_DAY_FORMAT) != value:
        return None
    return parsed


def truncate_to_bucket(instant: datetime, *, tz: Optional[tzinfo] = None) -> datetime:
    local = as_utc(instant).astimezone(tz or REFERENCE_TZ)
    return local.replace(
        minute=local.minute - local.minute % 10, second=0, microsecond=0
    )


def bucket_key(instant: datetime, *, tz: Optional[tzinfo] = None) -> str:
    return truncate_to_bucket(instant, tz=tz).strftime(BUCKET_KEY_FORMAT)


def parse_bucket_key(key: str, *, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Inverse of :func:`bucket_key`; ``None`` for malformed keys."""
    if not isinstance(key, str):
        return None
    try:
        naive = datetime.strptime(key, BUCKET_KEY_FORMAT)
    except ValueError:
        return None
    if naive.minute % 10:
        return None
    return naive.replace(tzinfo=tz or REFERENCE_TZ)


def bucket_display_time(key: str) -> str:
    """``HH:MM`` part of a bucket key, or the key itself when too short."""
    if len(key) >= 16:
        return f"{key[11:13]}:{key[14:16]}"
    return key


def day_start(
    day: date,
    *,
    day_start_hour: Optional[int] = None,
    tz: Optional[tzinfo] = None,
) -> datetime:
    start_hour = DAY_START_HOUR if day_start_hour is None else day_start_hour
    return datetime.combine(day, time(hour=start_hour), tzinfo=tz or REFERENCE_TZ)


def expected_buckets(
    day_value: str,
    now: datetime,
    *,
    day_start_hour: Optional[int] = None,
    tz: Optional[tzinfo] = None,
) -> List[str]:
    """Bucket keys of ``day_value`` that have fully elapsed by ``now``.

    The bucket containing ``now`` is still in progress and never included;
    past days are capped at the last bucket of the day.
    """
    parsed = parse_target_day(day_value)
    if parsed is None:
        return []
    zone = tz or REFERENCE_TZ
    start = day_start(parsed, day_start_hour=day_start_hour, tz=zone)
    last_bucket = start + BUCKETS_PER_DAY * BUCKET_SIZE - BUCKET_SIZE

    last_complete = truncate_to_bucket(now, tz=zone) - BUCKET_SIZE
    if last_complete > last_bucket:
        last_complete = last_bucket
    if last_complete < start:
        return []

    keys: List[str] = []
    cursor = start
    while cursor <= last_complete:
        keys.append(cursor.strftime(BUCKET_KEY_FORMAT))
        cursor = cursor + BUCKET_SIZE
    return keys
