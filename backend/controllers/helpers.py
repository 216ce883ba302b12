from typing import Optional

from flask import current_app, g


def current_user_id() -> Optional[int]:
    user = getattr(g, "current_user", None)
    return user["id"] if user else None


def allow_test_sessions() -> bool:
    return bool(current_app.config.get("ALLOW_TEST_SESSIONS", False))
