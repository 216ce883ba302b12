"""Repository managing a user's activity labels and their usage counters."""

from datetime import datetime, timezone
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError

from day_utils import as_utc
from db_utils import connection as sa_connection
from db_utils import transactional_connection
from extensions import db
from models import Activity

_activities = Activity.__table__

_COLUMNS = (
    _activities.c.id,
    _activities.c.user_id,
    _activities.c.name,
    _activities.c.usage_count,
    _activities.c.last_used_at,
    _activities.c.created_at,
)


class RepositoryError(Exception):
    """Base repository error."""


class NotFoundError(RepositoryError):
    """Raised when an entity is not found."""


class ConflictError(RepositoryError):
    """Raised when an action conflicts with current state."""


def _row_to_activity(row) -> dict:
    item = dict(row)
    for key in ("last_used_at", "created_at"):
        if item.get(key) is not None:
            item[key] = as_utc(item[key])
    return item


def list_activities(user_id: int) -> List[dict]:
    """Most recently used first; never-used activities last."""
    conn = sa_connection(db.engine)
    try:
        rows = conn.execute(
            sa.select(*_COLUMNS)
            .where(_activities.c.user_id == user_id)
            .order_by(
                _activities.c.last_used_at.is_(None),
                _activities.c.last_used_at.desc(),
                _activities.c.usage_count.desc(),
                _activities.c.name.asc(),
            )
        ).fetchall()
    finally:
        conn.close()
    return [_row_to_activity(row) for row in rows]


def find_by_user_and_name(user_id: int, name: str) -> Optional[dict]:
    conn = sa_connection(db.engine)
    try:
        row = conn.execute(
            sa.select(*_COLUMNS).where(
                _activities.c.user_id == user_id, _activities.c.name == name
            )
        ).fetchone()
    finally:
        conn.close()
    return _row_to_activity(row) if row else None


def insert_activity(user_id: int, name: str) -> dict:
    """Create an activity; ConflictError when the user already has the name."""
    created_at = datetime.now(timezone.utc)
    try:
        with transactional_connection(db.engine) as conn:
            result = conn.execute(
                sa.insert(_activities).values(
                    user_id=user_id,
                    name=name,
                    usage_count=0,
                    last_used_at=None,
                    created_at=created_at,
                )
            )
            activity_id = result.inserted_primary_key
    except IntegrityError as exc:
        raise ConflictError(f"Activity '{name}' already exists") from exc

    return {
        "id": activity_id,
        "user_id": user_id,
        "name": name,
        "usage_count": 0,
        "last_used_at": None,
        "created_at": created_at,
    }


def delete_activity(activity_id: int, user_id: int) -> None:
    """Delete an activity owned by ``user_id``; NotFoundError otherwise."""
    with transactional_connection(db.engine) as conn:
        result = conn.execute(
            sa.delete(_activities).where(
                _activities.c.id == activity_id, _activities.c.user_id == user_id
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Activity {activity_id} not found")


def _check_incremented(result, activity_id: int) -> None:
    if result.rowcount != 1:
        raise NotFoundError(f"Activity {activity_id} not found")


def increment_usage(activity_id: int, used_at: datetime, *, conn=None) -> None:
    """Bump usage; NotFoundError when the activity no longer exists."""
    statement = (
        sa.update(_activities)
        .where(_activities.c.id == activity_id)
        .values(
            usage_count=_activities.c.usage_count + 1,
            last_used_at=as_utc(used_at),
        )
    )
    if conn is not None:
        _check_incremented(conn.execute(statement), activity_id)
        return
    with transactional_connection(db.engine) as own_conn:
        _check_incremented(own_conn.execute(statement), activity_id)
