from typing import Any, Dict

from flask import Blueprint, jsonify, request

from controllers.helpers import current_user_id
from security import ApiError, error_response
from services import activities_service

activities_bp = Blueprint("activities", __name__)


@activities_bp.get("/activities")
def get_activities():
    user_id = current_user_id()
    if user_id is None:
        return error_response("UNAUTHORIZED", "Missing user context", 401)

    try:
        payload = activities_service.list_activities(user_id=user_id)
    except ApiError as exc:
        return error_response(exc.code, exc.message, exc.status, exc.details)
    return jsonify(payload)


@activities_bp.post("/activities")
def add_activity():
    user_id = current_user_id()
    if user_id is None:
        return error_response("UNAUTHORIZED", "Missing user context", 401)

    data: Dict[str, Any] = request.get_json(silent=True) or {}
    try:
        result = activities_service.add_activity(user_id=user_id, payload=data)
    except ApiError as exc:
        return error_response(exc.code, exc.message, exc.status, exc.details)
    return jsonify(result), 201


@activities_bp.delete("/activities/<int:activity_id>")
def delete_activity(activity_id):
    user_id = current_user_id()
    if user_id is None:
        return error_response("UNAUTHORIZED", "Missing user context", 401)

    try:
        result = activities_service.delete_activity(activity_id, user_id=user_id)
    except ApiError as exc:
        return error_response(exc.code, exc.message, exc.status, exc.details)
    return jsonify(result), 200
