"""Order domain exceptions.

Raised by the validator, the store gateway and the service layer.  Views
translate them into the standard error envelope; each class carries the
HTTP status and the recovery action clients should take.
"""

from __future__ import annotations

from typing import Optional


class RecoveryAction:
    RETRY = "retry"
    RELOAD = "reload"
    FIX_INPUT = "fix_input"
    SURFACE = "surface"


class OrderError(Exception):
    """Base class for every order-domain failure."""

    status_code = 400
    code = "order_error"
    action = RecoveryAction.SURFACE
    default_detail = "Order operation failed."

    def __init__(self, detail: Optional[str] = None, field: Optional[str] = None) -> None:
        self.detail = detail or self.default_detail
        self.field = field
        super().__init__(self.detail)


class OrderValidationError(OrderError):
    """Malformed input (bad identifiers, invalid filters, unknown action)."""

    status_code = 400
    code = "invalid_input"
    action = RecoveryAction.FIX_INPUT
    default_detail = "Invalid input."


class ForbiddenActor(OrderError):
    """The actor's role may not perform the action, or the order is out of scope."""

    status_code = 403
    code = "forbidden_actor"
    action = RecoveryAction.SURFACE
    default_detail = "You are not allowed to perform this action."


class PreconditionFailed(OrderError):
    """The transition edge exists but required data is missing."""

    status_code = 422
    code = "precondition_failed"
    action = RecoveryAction.FIX_INPUT
    default_detail = "A required field is missing."


class TransitionNotAllowed(OrderError):
    """No edge for the action from the order's current state."""

    status_code = 409
    code = "transition_not_allowed"
    action = RecoveryAction.RELOAD
    default_detail = "This action is not allowed in the order's current state."


class Conflict(OrderError):
    """The order changed concurrently (version mismatch)."""

    status_code = 409
    code = "conflict"
    action = RecoveryAction.RELOAD
    default_detail = "The order was modified by someone else. Reload and try again."


class OrderNotFound(OrderError):
    """The requested order does not exist or has been soft-deleted."""

    status_code = 404
    code = "not_found"
    action = RecoveryAction.SURFACE
    default_detail = "Order not found."


class Unavailable(OrderError):
    """The store could not be reached."""

    status_code = 503
    code = "unavailable"
    action = RecoveryAction.RETRY
    default_detail = "The order store is temporarily unavailable."
