"""Client-side errors.

Every error carries the recovery ``action`` the server attached to its
error envelope: ``retry``, ``reload``, ``fix_input`` or ``surface``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type


class ClientError(Exception):
    default_action = "surface"

    def __init__(
        self,
        detail: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        field: Optional[str] = None,
        action: Optional[str] = None,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.field = field
        self.action = action or self.default_action
        super().__init__(detail)


class ValidationFailed(ClientError):
    default_action = "fix_input"


class AuthenticationFailed(ClientError):
    pass


class Forbidden(ClientError):
    pass


class PreconditionFailed(ClientError):
    default_action = "fix_input"


class TransitionNotAllowed(ClientError):
    default_action = "reload"


class Conflict(ClientError):
    default_action = "reload"


class NotFound(ClientError):
    pass


class Unavailable(ClientError):
    default_action = "retry"


class RequestTimedOut(ClientError):
    """The server did not answer in time.

    The mutation may or may not have been applied, so it is never retried
    automatically; reload to find out.
    """

    default_action = "reload"


_BY_CODE: Dict[str, Type[ClientError]] = {
    "invalid_input": ValidationFailed,
    "forbidden_actor": Forbidden,
    "precondition_failed": PreconditionFailed,
    "transition_not_allowed": TransitionNotAllowed,
    "conflict": Conflict,
    "not_found": NotFound,
    "unavailable": Unavailable,
}

_BY_STATUS: Dict[int, Type[ClientError]] = {
    400: ValidationFailed,
    401: AuthenticationFailed,
    403: Forbidden,
    404: NotFound,
    409: Conflict,
    422: PreconditionFailed,
    503: Unavailable,
}


def error_from_response(response: Any) -> ClientError:
    """Map an error response (``requests.Response``) to a ``ClientError``."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    errors = body.get("errors") or [{}]
    first = errors[0] if isinstance(errors[0], dict) else {}
    code = first.get("code")
    error_class = _BY_CODE.get(code) or _BY_STATUS.get(response.status_code)
    if error_class is None:
        error_class = Unavailable if response.status_code >= 500 else ClientError

    return error_class(
        detail=first.get("detail") or response.reason or "Request failed.",
        code=code,
        status_code=response.status_code,
        field=first.get("attr"),
        action=body.get("action"),
    )
