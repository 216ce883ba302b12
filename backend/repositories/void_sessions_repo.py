"""Repository for completed void sessions."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

import sqlalchemy as sa

from day_utils import as_utc
from db_utils import connection as sa_connection
from db_utils import transactional_connection
from extensions import db
from models import VoidSession

from . import activities_repo, users_repo

_sessions = VoidSession.__table__

_COLUMNS = (
    _sessions.c.id,
    _sessions.c.user_id,
    _sessions.c.started_at,
    _sessions.c.ended_at,
    _sessions.c.duration_sec,
    _sessions.c.target_day,
    _sessions.c.activities,
)


class StateConflictError(Exception):
    """Raised when the user left the void before the session could be stored."""


def _row_to_session(row) -> dict:
    item = dict(row)
    item["started_at"] = as_utc(item["started_at"])
    item["ended_at"] = as_utc(item["ended_at"])
    item["activities"] = list(item.get("activities") or [])
    return item


def _insert_statement(session: Dict[str, Any]):
    return sa.insert(_sessions).values(
        user_id=session["user_id"],
        started_at=as_utc(session["started_at"]),
        ended_at=as_utc(session["ended_at"]),
        duration_sec=session["duration_sec"],
        target_day=session["target_day"],
        activities=list(session.get("activities") or []),
        created_at=datetime.now(timezone.utc),
    )


def create_session(session: Dict[str, Any]) -> int:
    """Persist a session as-is and return its id."""
    with transactional_connection(db.engine) as conn:
        result = conn.execute(_insert_statement(session))
        return int(result.inserted_primary_key or 0)


def complete_void_session(
    session: Dict[str, Any],
    activity_ids: Sequence[int],
    *,
    used_at: datetime,
) -> int:
    """Atomically bump activity usage, store the session and leave the void.

    Only the void that began at ``session["started_at"]`` is closed. If it is
    gone (a concurrent end or cancel won, possibly followed by a new start),
    nothing is written and StateConflictError is raised. A label deleted
    since the caller looked it up raises activities_repo.NotFoundError.
    """
    with transactional_connection(db.engine) as conn:
        cleared = users_repo.clear_void(
            session["user_id"],
            expected_started_at=session["started_at"],
            conn=conn,
        )
        if not cleared:
            raise StateConflictError(
                f"User {session['user_id']} is not in the void"
            )
        for activity_id in activity_ids:
            activities_repo.increment_usage(activity_id, used_at, conn=conn)
        result = conn.execute(_insert_statement(session))
        return int(result.inserted_primary_key or 0)


def find_by_day(target_day: str) -> List[dict]:
    conn = sa_connection(db.engine)
    try:
        rows = conn.execute(
            sa.select(*_COLUMNS)
            .where(_sessions.c.target_day == target_day)
            .order_by(_sessions.c.started_at.asc(), _sessions.c.id.asc())
        ).fetchall()
    finally:
        conn.close()
    return [_row_to_session(row) for row in rows]


def find_by_user_and_day(user_id: int, target_day: str) -> List[dict]:
    conn = sa_connection(db.engine)
    try:
        rows = conn.execute(
            sa.select(*_COLUMNS)
            .where(
                _sessions.c.user_id == user_id,
                _sessions.c.target_day == target_day,
            )
            .order_by(_sessions.c.started_at.asc(), _sessions.c.id.asc())
        ).fetchall()
    finally:
        conn.close()
    return [_row_to_session(row) for row in rows]
