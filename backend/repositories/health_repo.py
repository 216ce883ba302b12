"""Repository helpers for health checks."""

from db_utils import connection as sa_connection
from extensions import db


def ping_database() -> bool:
    """Run a trivial query under the configured statement timeout."""
    conn = sa_connection(db.engine)
    try:
        conn.execute("SELECT 1").scalar()
    finally:
        conn.close()
    return True
