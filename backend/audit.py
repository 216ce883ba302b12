from typing import Any, Dict, Optional

import structlog

audit_logger = structlog.get_logger("voidtrack.audit")


def _normalize_level(level: str) -> str:
    return (level or "info").strip().lower() or "info"


def _safe_context(context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not context:
        return {}
    safe: Dict[str, Any] = {}
    for key, value in context.items():
        if isinstance(value, (str, int, float, bool)) or value is None:
            safe[key] = value
        elif isinstance(value, dict):
            safe[key] = _safe_context(value)
        elif isinstance(value, (list, tuple)):
            safe[key] = [
                item if isinstance(item, (str, int, float, bool)) else str(item)
                for item in value
            ]
        else:
            safe[key] = str(value)
    return safe


def log_event(
    event_type: str,
    message: str,
    *,
    user_id: Optional[int] = None,
    level: str = "info",
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """Emit a domain event on the audit logger."""
    normalized_level = _normalize_level(level)
    log_method = getattr(audit_logger, normalized_level, audit_logger.info)
    log_method(
        "domain_event",
        event_type=event_type,
        user_id=user_id,
        message=message,
        context=_safe_context(context),
    )
