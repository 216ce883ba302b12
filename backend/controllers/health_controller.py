from flask import Blueprint, current_app, jsonify

from infra import health_service

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health():
    summary, healthy = health_service.build_health_summary(
        current_app.config["SERVER_START_TIME"]
    )
    summary["status"] = "ok" if healthy else "unavailable"
    status_code = 200 if healthy else 503
    return jsonify(summary), status_code
