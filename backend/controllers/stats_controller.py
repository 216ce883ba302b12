from flask import Blueprint, jsonify, request

from controllers.helpers import current_user_id
from security import ApiError, error_response
from services import stats_service

stats_bp = Blueprint("stats", __name__)


@stats_bp.get("/stats/live")
def get_live_stat():
    try:
        payload = stats_service.get_live_stat()
    except ApiError as exc:
        return error_response(exc.code, exc.message, exc.status, exc.details)
    return jsonify(payload)


@stats_bp.get("/stats/daily")
def get_daily_stat():
    user_id = current_user_id()
    if user_id is None:
        return error_response("UNAUTHORIZED", "Missing user context", 401)

    try:
        payload = stats_service.get_daily_stat(
            user_id=user_id,
            target_day=request.args.get("target_day"),
        )
    except ApiError as exc:
        return error_response(exc.code, exc.message, exc.status, exc.details)
    return jsonify(payload)
