"""
Void service.

Owns the void lifecycle: NOT_IN_VOID -> (start) -> IN_VOID -> (end | cancel)
-> NOT_IN_VOID. Only ``end`` produces a session; ``cancel`` discards the
elapsed time. Sessions belong to the tracking day in which they started.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from audit import log_event
from day_utils import as_utc, target_day as calc_target_day
from repositories import activities_repo, users_repo, void_sessions_repo
from security import (
    ACTIVITY_NOT_FOUND,
    ALREADY_IN_VOID,
    FORBIDDEN,
    NOT_IN_VOID,
    TOO_MANY_ACTIVITIES,
    UNAUTHORIZED,
    ApiError,
    internal_error,
    validate_seed_void_payload,
    validate_target_day,
    validate_void_end_payload,
)
from sqlalchemy.exc import SQLAlchemyError

from .common import utcnow

MAX_ACTIVITIES = 5


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return as_utc(value).isoformat() if value else None


def _require_user(user_id: Optional[int]) -> Dict[str, Any]:
    if user_id is None:
        raise ApiError("invalid user id", code=UNAUTHORIZED, status=401)
    try:
        user = users_repo.get_user_by_id(user_id)
    except SQLAlchemyError as exc:
        raise internal_error("failed to load user", exc)
    if user is None:
        raise ApiError("user not found", code=UNAUTHORIZED, status=401)
    return user


def _check_activity_count(activities: List[str]) -> None:
    if len(activities) > MAX_ACTIVITIES:
        raise ApiError(
            f"activities must be {MAX_ACTIVITIES} or fewer",
            code=TOO_MANY_ACTIVITIES,
            status=400,
            details={"max": MAX_ACTIVITIES, "received": len(activities)},
        )


def build_session(
    user_id: int, started_at: datetime, ended_at: datetime, activities: List[str]
) -> Dict[str, Any]:
    """Derive duration and target day the same way for every creation path."""
    started = as_utc(started_at)
    ended = as_utc(ended_at)
    return {
        "user_id": user_id,
        "started_at": started,
        "ended_at": ended,
        "duration_sec": int((ended - started).total_seconds()),
        "target_day": calc_target_day(started),
        "activities": list(activities),
    }


def _session_result(session_id: Any, session: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "session_id": str(session_id),
        "started_at": _isoformat(session["started_at"]),
        "ended_at": _isoformat(session["ended_at"]),
        "duration_sec": session["duration_sec"],
        "target_day": session["target_day"],
        "activities": list(session["activities"]),
    }


def start_void(user_id: Optional[int]) -> Dict[str, Any]:
    _require_user(user_id)
    now = utcnow()
    try:
        started = users_repo.begin_void(user_id, now)
    except SQLAlchemyError as exc:
        raise internal_error("failed to set void state", exc)
    if not started:
        raise ApiError("already in void", code=ALREADY_IN_VOID, status=409)

    day = calc_target_day(now)
    log_event(
        "void.start",
        "Void started",
        user_id=user_id,
        context={"target_day": day},
    )
    # No session exists until the void ends.
    return {"session_id": "", "started_at": _isoformat(now), "target_day": day}


def end_void(user_id: Optional[int], payload: Dict[str, Any]) -> Dict[str, Any]:
    activities = validate_void_end_payload(payload or {})["activities"]
    user = _require_user(user_id)
    if not user["is_in_void"] or user["current_void_started_at"] is None:
        raise ApiError("not in void", code=NOT_IN_VOID, status=400)
    _check_activity_count(activities)

    activity_ids: List[int] = []
    for name in activities:
        try:
            activity = activities_repo.find_by_user_and_name(user_id, name)
        except SQLAlchemyError as exc:
            raise internal_error("failed to find activity", exc)
        if activity is None:
            raise ApiError(
                f"activity not found: {name}",
                code=ACTIVITY_NOT_FOUND,
                status=404,
                details={"name": name},
            )
        activity_ids.append(activity["id"])

    now = utcnow()
    session = build_session(user_id, user["current_void_started_at"], now, activities)
    try:
        session_id = void_sessions_repo.complete_void_session(
            session, activity_ids, used_at=now
        )
    except void_sessions_repo.StateConflictError:
        raise ApiError("not in void", code=NOT_IN_VOID, status=400)
    except activities_repo.NotFoundError as exc:
        raise ApiError(str(exc), code=ACTIVITY_NOT_FOUND, status=404)
    except SQLAlchemyError as exc:
        raise internal_error("failed to create void session", exc)

    log_event(
        "void.end",
        "Void ended",
        user_id=user_id,
        context={
            "session_id": session_id,
            "target_day": session["target_day"],
            "duration_sec": session["duration_sec"],
            "activities": activities,
        },
    )
    return _session_result(session_id, session)


def cancel_void(user_id: Optional[int]) -> Dict[str, str]:
    _require_user(user_id)
    try:
        cleared = users_repo.clear_void(user_id)
    except SQLAlchemyError as exc:
        raise internal_error("failed to reset void state", exc)
    if not cleared:
        raise ApiError("not in void", code=NOT_IN_VOID, status=400)

    log_event("void.cancel", "Void cancelled", user_id=user_id)
    return {"message": "Void cancelled"}


def get_history(user_id: Optional[int], target_day: Optional[str]) -> Dict[str, Any]:
    if user_id is None:
        raise ApiError("invalid user id", code=UNAUTHORIZED, status=401)
    day = validate_target_day(target_day)
    try:
        sessions = void_sessions_repo.find_by_user_and_day(user_id, day)
    except SQLAlchemyError as exc:
        raise internal_error("failed to find void sessions", exc)

    items = [
        {
            "session_id": str(session["id"]),
            "started_at": _isoformat(session["started_at"]),
            "ended_at": _isoformat(session["ended_at"]),
            "duration_sec": session["duration_sec"],
            "activities": session["activities"],
        }
        for session in sessions
    ]
    return {
        "target_day": day,
        "sessions": items,
        "total_duration_sec": sum(session["duration_sec"] for session in sessions),
    }


def create_test_session(
    user_id: Optional[int], payload: Dict[str, Any], *, enabled: bool = True
) -> Dict[str, Any]:
    """Backfill a finished session without touching the user's void state."""
    if not enabled:
        raise ApiError("test sessions are disabled", code=FORBIDDEN, status=403)
    _require_user(user_id)
    data = validate_seed_void_payload(payload or {})
    _check_activity_count(data["activities"])

    session = build_session(
        user_id, data["started_at"], data["ended_at"], data["activities"]
    )
    try:
        session_id = void_sessions_repo.create_session(session)
    except SQLAlchemyError as exc:
        raise internal_error("failed to create test void session", exc)

    log_event(
        "void.test_create",
        "Test void session created",
        user_id=user_id,
        context={"session_id": session_id, "target_day": session["target_day"]},
    )
    return _session_result(session_id, session)
