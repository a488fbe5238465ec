"""Standard error envelope for every API error.

Shape::

    {"type": "client_error" | "server_error",
     "errors": [{"code": ..., "detail": ..., "attr": ...}],
     "action": "retry" | "reload" | "fix_input" | "surface"}

``action`` tells clients how to recover.  Domain errors are translated in
the views; ``api_exception_handler`` (``REST_FRAMEWORK["EXCEPTION_HANDLER"]``)
wraps DRF's own errors (authentication, parsing, validation, throttling).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from rest_framework import exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


def error_body(
    status_code: int,
    errors: List[Dict[str, Any]],
    action: str,
) -> Dict[str, Any]:
    return {
        "type": "server_error" if status_code >= 500 else "client_error",
        "errors": errors,
        "action": action,
    }


def error_response(
    status_code: int,
    code: str,
    detail: str,
    action: str,
    attr: Optional[str] = None,
) -> Response:
    body = error_body(status_code, [{"code": code, "detail": detail, "attr": attr}], action)
    return Response(body, status=status_code)


def _flatten(detail: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    """Turn DRF's nested ``ErrorDetail`` structures into envelope entries."""
    if isinstance(detail, dict):
        errors: List[Dict[str, Any]] = []
        for key, value in detail.items():
            name = key if attr is None else f"{attr}.{key}"
            errors.extend(_flatten(value, None if key == "non_field_errors" else name))
        return errors
    if isinstance(detail, list):
        errors = []
        for item in detail:
            errors.extend(_flatten(item, attr))
        return errors
    code = getattr(detail, "code", "error")
    return [{"code": code, "detail": str(detail), "attr": attr}]


def _action_for(exc: Exception, status_code: int) -> str:
    if isinstance(exc, (exceptions.ValidationError, exceptions.ParseError)):
        return "fix_input"
    if isinstance(exc, exceptions.Throttled) or status_code >= 500:
        return "retry"
    return "surface"


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    response = exception_handler(exc, context)
    if response is None:
        # Unhandled errors propagate to Django (500 + traceback in logs).
        return None

    if isinstance(exc, exceptions.ValidationError):
        errors = _flatten(exc.detail)
    else:
        detail = response.data.get("detail", "") if isinstance(response.data, dict) else ""
        code = getattr(detail, "code", None) or getattr(exc, "default_code", "error")
        errors = [{"code": code, "detail": str(detail), "attr": None}]

    action = _action_for(exc, response.status_code)
    logger.info(
        "api.error",
        status_code=response.status_code,
        codes=[error["code"] for error in errors],
        action=action,
    )
    response.data = error_body(response.status_code, errors, action)
    return response

