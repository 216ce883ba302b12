"""Repository owning the user row and its void-state transitions.

Transitions are single conditional UPDATEs keyed on the expected prior
state, so concurrent start/end/cancel calls for one user cannot both win.
"""

from datetime import datetime, timezone
from typing import Optional

import sqlalchemy as sa

from day_utils import as_utc
from db_utils import connection as sa_connection
from db_utils import transactional_connection
from extensions import db
from models import User

_users = User.__table__


def _row_to_user(row) -> dict:
    item = dict(row)
    item["is_in_void"] = bool(item["is_in_void"])
    started = item.get("current_void_started_at")
    item["current_void_started_at"] = as_utc(started) if started else None
    return item


def create_user(nickname: str) -> int:
    """Insert a new user row and return its generated id."""
    now = datetime.now(timezone.utc)
    with transactional_connection(db.engine) as conn:
        result = conn.execute(
            sa.insert(_users).values(
                nickname=nickname,
                is_in_void=False,
                current_void_started_at=None,
                created_at=now,
                updated_at=now,
            )
        )
        return int(result.inserted_primary_key or 0)


def get_user_by_id(user_id: int) -> Optional[dict]:
    """Fetch a user row by id, returning None when absent."""
    conn = sa_connection(db.engine)
    try:
        row = conn.execute(
            sa.select(
                _users.c.id,
                _users.c.nickname,
                _users.c.is_in_void,
                _users.c.current_void_started_at,
            ).where(_users.c.id == user_id)
        ).fetchone()
    finally:
        conn.close()

    if not row:
        return None
    return _row_to_user(row)


def begin_void(user_id: int, started_at: datetime) -> bool:
    """Move the user into the void; False when they already were."""
    with transactional_connection(db.engine) as conn:
        result = conn.execute(
            sa.update(_users)
            .where(_users.c.id == user_id, _users.c.is_in_void == sa.false())
            .values(
                is_in_void=True,
                current_void_started_at=as_utc(started_at),
                updated_at=datetime.now(timezone.utc),
            )
        )
        return result.rowcount == 1


def clear_void(
    user_id: int,
    *,
    expected_started_at: Optional[datetime] = None,
    conn=None,
) -> bool:
    """Take the user out of the void; False when they were not in it.

    With ``expected_started_at`` only that particular void is cleared, so a
    void restarted since the caller read the user row is left alone. Pass
    ``conn`` to run inside a caller-owned transaction.
    """
    conditions = [_users.c.id == user_id, _users.c.is_in_void == sa.true()]
    if expected_started_at is not None:
        conditions.append(
            _users.c.current_void_started_at == as_utc(expected_started_at)
        )
    statement = (
        sa.update(_users)
        .where(*conditions)
        .values(
            is_in_void=False,
            current_void_started_at=None,
            updated_at=datetime.now(timezone.utc),
        )
    )
    if conn is not None:
        return conn.execute(statement).rowcount == 1
    with transactional_connection(db.engine) as own_conn:
        return own_conn.execute(statement).rowcount == 1


def count_in_void() -> int:
    conn = sa_connection(db.engine)
    try:
        value = conn.execute(
            "SELECT COUNT(*) AS total FROM users WHERE is_in_void = TRUE"
        ).scalar()
    finally:
        conn.close()
    return int(value or 0)
