from datetime import datetime, timezone
from typing import Callable

_now_provider: Callable[[], datetime] = lambda: datetime.now(timezone.utc)


def utcnow() -> datetime:
    """Current instant as an aware UTC datetime."""
    return _now_provider()


def set_now_provider(func: Callable[[], datetime]) -> None:
    """Override the clock (used in tests)."""
    global _now_provider
    _now_provider = func


def reset_now_provider() -> None:
    set_now_provider(lambda: datetime.now(timezone.utc))
