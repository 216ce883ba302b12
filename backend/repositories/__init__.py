"""Repository package exposing all repository modules."""

from . import (
    activities_repo,
    health_repo,
    stats_repo,
    users_repo,
    void_sessions_repo,
)

__all__ = [
    "users_repo",
    "activities_repo",
    "void_sessions_repo",
    "stats_repo",
    "health_repo",
]
