from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union, cast

from sqlalchemy import Table, text
from sqlalchemy.engine import Connection, Engine, Result
from sqlalchemy.sql import Executable

STORE_TIMEOUT_MS = int(os.environ.get("STORE_TIMEOUT_MS", "5000"))

Statement = Union[str, Executable]


def _prepare_statement(
    sql: str, params: Sequence[object] | Mapping[str, object] | None
) -> Tuple[str, dict]:
    if params is None:
        return sql, {}
    if isinstance(params, Mapping):
        return sql, dict(params)
    if not isinstance(params, Sequence):
        raise TypeError("Unsupported parameter type; expected sequence or mapping.")

    placeholders = sql.count("?")
    if placeholders != len(params):
        raise ValueError(
            f"Parameter count mismatch: expected {placeholders}, got {len(params)}."
        )

    bound_params: dict[str, object] = {}
    parts = sql.split("?")
    rebuilt = parts[0]
    for index, (part, value) in enumerate(zip(parts[1:], params)):
        key = f"p{index}"
        rebuilt += f":{key}{part}"
        bound_params[key] = value
    return rebuilt, bound_params


class ResultWrapper:
    def __init__(self, result: Result):
        self._result = result

    def fetchone(self) -> Optional[Mapping[str, object]]:
        row = self._result.fetchone()
        return None if row is None else cast(Mapping[str, object], row._mapping)

    def fetchall(self) -> list[Mapping[str, object]]:
        return [
            cast(Mapping[str, object], row._mapping) for row in self._result.fetchall()
        ]

    def scalar(self):
        return self._result.scalar()

    @property
    def inserted_primary_key(self) -> Optional[int]:
        key = self._result.inserted_primary_key
        if not key:
            return None
        return int(key[0])

    @property
    def rowcount(self) -> int:
        raw = getattr(self._result, "rowcount", None)
        return int(raw or 0)


class SQLAlchemyConnectionWrapper:
    """Accepts qmark-style SQL strings as well as SQLAlchemy Core statements."""

    def __init__(self, connection: Connection):
        self._connection = connection

    @property
    def dialect_name(self) -> str:
        return self._connection.dialect.name

    def execute(
        self,
        sql: Statement,
        params: Sequence[object] | Mapping[str, object] | None = None,
    ) -> ResultWrapper:
        if isinstance(sql, str):
            statement, bound_params = _prepare_statement(sql, params)
            result = self._connection.execute(text(statement), bound_params)
        else:
            result = self._connection.execute(sql)
        return ResultWrapper(result)

    def close(self) -> None:
        self._connection.close()


def _apply_statement_timeout(connection: Connection, timeout_ms: Optional[int]) -> None:
    # Only PostgreSQL honours a per-transaction statement timeout; other
    # dialects rely on their driver defaults.
    if not timeout_ms or connection.dialect.name != "postgresql":
        return
    connection.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))


@contextmanager
def transactional_connection(
    engine: Engine, *, timeout_ms: Optional[int] = STORE_TIMEOUT_MS
) -> Iterator[SQLAlchemyConnectionWrapper]:
    connection = engine.connect()
    transaction = connection.begin()
    wrapper = SQLAlchemyConnectionWrapper(connection)
    try:
        _apply_statement_timeout(connection, timeout_ms)
        yield wrapper
    except Exception:
        transaction.rollback()
        connection.close()
        raise
    else:
        transaction.commit()
        connection.close()


def connection(
    engine: Engine, *, timeout_ms: Optional[int] = STORE_TIMEOUT_MS
) -> SQLAlchemyConnectionWrapper:
    conn = engine.connect()
    try:
        _apply_statement_timeout(conn, timeout_ms)
    except Exception:
        conn.close()
        raise
    return SQLAlchemyConnectionWrapper(conn)


def upsert_statement(
    dialect_name: str,
    table: Table,
    rows: Iterable[Mapping[str, object]],
    *,
    index_elements: Sequence[str],
    update_columns: Sequence[str],
):
    """Build a batched INSERT ... ON CONFLICT DO UPDATE for the given dialect."""
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"Upsert not supported for dialect {dialect_name}")

    statement = insert(table).values([dict(row) for row in rows])
    return statement.on_conflict_do_update(
        index_elements=list(index_elements),
        set_={column: statement.excluded[column] for column in update_columns},
    )
