from typing import Any, Dict

from flask import Blueprint, jsonify, request

from controllers.helpers import current_user_id, allow_test_sessions
from security import ApiError, error_response
from services import void_service

void_bp = Blueprint("void", __name__)


@void_bp.post("/void/start")
def start_void():
    user_id = current_user_id()
    if user_id is None:
        return error_response("UNAUTHORIZED", "Missing user context", 401)

    try:
        result = void_service.start_void(user_id)
    except ApiError as exc:
        return error_response(exc.code, exc.message, exc.status, exc.details)
    return jsonify(result), 200


@void_bp.post("/void/end")
def end_void():
    user_id = current_user_id()
    if user_id is None:
        return error_response("UNAUTHORIZED", "Missing user context", 401)

    data: Dict[str, Any] = request.get_json(silent=True) or {}
    try:
        result = void_service.end_void(user_id, data)
    except ApiError as exc:
        return error_response(exc.code, exc.message, exc.status, exc.details)
    return jsonify(result), 200


@void_bp.post("/void/cancel")
def cancel_void():
    user_id = current_user_id()
    if user_id is None:
        return error_response("UNAUTHORIZED", "Missing user context", 401)

    try:
        result = void_service.cancel_void(user_id)
    except ApiError as exc:
        return error_response(exc.code, exc.message, exc.status, exc.details)
    return jsonify(result), 200


@void_bp.post("/void/test")
def create_test_void():
    user_id = current_user_id()
    if user_id is None:
        return error_response("UNAUTHORIZED", "Missing user context", 401)

    data: Dict[str, Any] = request.get_json(silent=True) or {}
    try:
        result = void_service.create_test_session(
            user_id, data, enabled=allow_test_sessions()
        )
    except ApiError as exc:
        return error_response(exc.code, exc.message, exc.status, exc.details)
    return jsonify(result), 201


@void_bp.get("/void/history")
def void_history():
    user_id = current_user_id()
    if user_id is None:
        return error_response("UNAUTHORIZED", "Missing user context", 401)

    try:
        payload = void_service.get_history(user_id, request.args.get("target_day"))
    except ApiError as exc:
        return error_response(exc.code, exc.message, exc.status, exc.details)
    return jsonify(payload)
