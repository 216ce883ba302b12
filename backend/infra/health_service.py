import time
from typing import Dict, Tuple

import structlog

from repositories import health_repo

logger = structlog.get_logger("voidtrack.health")


def check_db_connection() -> bool:
    try:
        return health_repo.ping_database()
    except Exception as exc:
        logger.warning("health.db_check_failed", error=str(exc))
        return False


def current_uptime_seconds(server_start_time: float) -> float:
    return max(0.0, time.time() - server_start_time)


def build_health_summary(server_start_time: float) -> Tuple[Dict[str, object], bool]:
    db_ok = check_db_connection()
    summary = {
        "uptime_s": round(current_uptime_seconds(server_start_time), 2),
        "db_ok": db_ok,
    }
    return summary, db_ok
