"""
Activities service.

Activity labels a user can attach to a finished void. Usage counters are
bumped by void_service when a void ends; this module covers listing,
creation and deletion.
"""

from typing import Any, Dict, List, Optional

from audit import log_event
from day_utils import as_utc
from repositories import activities_repo
from security import (
    ACTIVITY_ALREADY_EXISTS,
    ACTIVITY_NOT_FOUND,
    UNAUTHORIZED,
    ApiError,
    internal_error,
    validate_activity_create_payload,
)
from sqlalchemy.exc import SQLAlchemyError


def _serialize(activity: Dict[str, Any]) -> Dict[str, Any]:
    last_used = activity.get("last_used_at")
    return {
        "id": str(activity["id"]),
        "name": activity["name"],
        "usage_count": int(activity.get("usage_count") or 0),
        "last_used_at": as_utc(last_used).isoformat() if last_used else None,
    }


def _require_user_id(user_id: Optional[int]) -> int:
    if user_id is None:
        raise ApiError("invalid user id", code=UNAUTHORIZED, status=401)
    return user_id


def list_activities(*, user_id: Optional[int]) -> Dict[str, List[Dict[str, Any]]]:
    user_id = _require_user_id(user_id)
    try:
        rows = activities_repo.list_activities(user_id)
    except SQLAlchemyError as exc:
        raise internal_error("failed to find activities", exc)
    return {"activities": [_serialize(row) for row in rows]}


def add_activity(*, user_id: Optional[int], payload: Dict[str, Any]) -> Dict[str, Any]:
    user_id = _require_user_id(user_id)
    name = validate_activity_create_payload(payload or {})["name"]

    try:
        existing = activities_repo.find_by_user_and_name(user_id, name)
    except SQLAlchemyError as exc:
        raise internal_error("failed to check duplicate activity", exc)
    if existing is not None:
        raise ApiError(
            f"activity already exists: {name}",
            code=ACTIVITY_ALREADY_EXISTS,
            status=409,
        )

    try:
        created = activities_repo.insert_activity(user_id, name)
    except activities_repo.ConflictError:
        # Lost a race with a concurrent create of the same name.
        raise ApiError(
            f"activity already exists: {name}",
            code=ACTIVITY_ALREADY_EXISTS,
            status=409,
        )
    except SQLAlchemyError as exc:
        raise internal_error("failed to create activity", exc)

    log_event(
        "activity.create",
        "Activity created",
        user_id=user_id,
        context={"name": name},
    )
    return _serialize(created)


def delete_activity(activity_id: int, *, user_id: Optional[int]) -> Dict[str, str]:
    user_id = _require_user_id(user_id)
    try:
        activities_repo.delete_activity(activity_id, user_id)
    except activities_repo.NotFoundError:
        raise ApiError(
            f"activity not found: {activity_id}",
            code=ACTIVITY_NOT_FOUND,
            status=404,
        )
    except SQLAlchemyError as exc:
        raise internal_error("failed to delete activity", exc)

    log_event(
        "activity.delete",
        "Activity deleted",
        user_id=user_id,
        context={"activity_id": activity_id},
    )
    return {"message": "Activity deleted"}
