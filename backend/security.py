from typing import Any, Dict, Optional

from flask import jsonify
from pydantic import ValidationError as PydanticValidationError
from schemas import (
    ActivityCreatePayload,
    SeedVoidPayload,
    TargetDayQuery,
    VoidEndPayload,
)

# Stable error codes; clients branch on these, never on the HTTP status.
BAD_REQUEST = "BAD_REQUEST"
UNAUTHORIZED = "UNAUTHORIZED"
TOKEN_EXPIRED = "TOKEN_EXPIRED"
INVALID_CSRF = "INVALID_CSRF"
FORBIDDEN = "FORBIDDEN"
NOT_FOUND = "NOT_FOUND"
METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
CONFLICT = "CONFLICT"
INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

ALREADY_IN_VOID = "ALREADY_IN_VOID"
NOT_IN_VOID = "NOT_IN_VOID"
TOO_MANY_ACTIVITIES = "TOO_MANY_ACTIVITIES"

INVALID_ACTIVITY_NAME = "INVALID_ACTIVITY_NAME"
ACTIVITY_ALREADY_EXISTS = "ACTIVITY_ALREADY_EXISTS"
ACTIVITY_NOT_FOUND = "ACTIVITY_NOT_FOUND"


class ApiError(Exception):
    def __init__(
        self,
        message: str,
        *,
        code: str = BAD_REQUEST,
        status: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.details = details or {}


class ValidationError(ApiError):
    """Malformed input; always a 400."""

    def __init__(
        self,
        message: str,
        *,
        code: str = BAD_REQUEST,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, status=400, details=details)


def internal_error(message: str, exc: Exception) -> ApiError:
    return ApiError(f"{message}: {exc}", code=INTERNAL_SERVER_ERROR, status=500)


def error_response(
    code: str,
    message: str,
    status: int,
    details: Optional[Dict[str, Any]] = None,
):
    payload = {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        }
    }
    return jsonify(payload), status


def _extract_error_info(exc: PydanticValidationError) -> tuple[str, Dict[str, Any]]:
    errors = exc.errors()
    missing_fields = [
        ".".join(str(part) for part in err.get("loc", []) if part != "__root__")
        for err in errors
        if err.get("type") == "missing"
    ]
    if missing_fields:
        return (
            f"Missing required field(s): {', '.join(missing_fields)}",
            {"fields": missing_fields},
        )
    if errors:
        message = errors[0].get("msg") or ""
        if message.startswith("Value error, "):
            message = message.split(", ", 1)[1]
        if message:
            return message, {}
    return str(exc), {}


def _validate(model, payload: Any, *, code: str = BAD_REQUEST):
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload", code=code)
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        message, details = _extract_error_info(exc)
        raise ValidationError(message, code=code, details=details)


def validate_void_end_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    return _validate(VoidEndPayload, payload).model_dump()


def validate_seed_void_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    return _validate(SeedVoidPayload, payload).model_dump()


def validate_activity_create_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    return _validate(
        ActivityCreatePayload, payload, code=INVALID_ACTIVITY_NAME
    ).model_dump()


def validate_target_day(value: Optional[str]) -> str:
    data = _validate(TargetDayQuery, {"target_day": value})
    return data.target_day
