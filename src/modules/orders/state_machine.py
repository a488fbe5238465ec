"""Order lifecycle state machine.

Pure transition validation: no database access, no clock, no logging.
``validate_transition`` receives an immutable snapshot of the order, the
requested action with its payload and the actor's role, and returns either
an ``Accepted`` outcome carrying the complete resulting state or a
``Rejected`` outcome carrying the domain error.

Checks run in a fixed order:

1. the action exists and has an edge from the current state
   (``TransitionNotAllowed``);
2. the actor's role may drive that edge (``ForbiddenActor``);
3. the edge's preconditions hold (``PreconditionFailed`` with ``field``).

Execution data (service type plus partner providers) is the only payload
that gates edges.  A service type flagged ``requires_partner_providers``
needs at least one provider.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, FrozenSet, Optional, Tuple, Union

from modules.accounts.constants import OPERATIONAL_ROLES, Role
from modules.orders.constants import ExecutionStatus, FinancialStatus, TransitionAction
from modules.orders.exceptions import (
    ForbiddenActor,
    OrderError,
    OrderValidationError,
    PreconditionFailed,
    TransitionNotAllowed,
)

if TYPE_CHECKING:
    from modules.orders.models import Order

# Where the execution data checked by a rule comes from.
FROM_REQUEST = "request"
FROM_ORDER = "order"
FROM_REQUEST_OR_ORDER = "request_or_order"


@dataclass(frozen=True)
class OrderSnapshot:
    """The parts of an order the validator looks at."""

    execution_status: str
    financial_status: str
    service_type_id: Optional[str] = None
    service_type_requires_providers: bool = False
    provider_ids: Tuple[str, ...] = ()
    return_reason: str = ""
    version: int = 0

    @classmethod
    def from_order(cls, order: Order) -> OrderSnapshot:
        service_type = order.service_type
        return cls(
            execution_status=order.execution_status,
            financial_status=order.financial_status,
            service_type_id=str(service_type.id) if service_type else None,
            service_type_requires_providers=bool(
                service_type and service_type.requires_partner_providers
            ),
            provider_ids=tuple(
                sorted(str(pk) for pk in order.service_providers.values_list("id", flat=True))
            ),
            return_reason=order.return_reason or "",
            version=order.version,
        )


@dataclass(frozen=True)
class TransitionRequest:
    """A requested action and its payload.

    ``provider_ids`` is ``None`` when the caller did not send providers,
    which is distinct from sending an empty list.
    """

    action: str
    reason: str = ""
    notes: str = ""
    service_type_id: Optional[str] = None
    service_type_requires_providers: bool = False
    provider_ids: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class TransitionRule:
    action: str
    sources: FrozenSet[str]
    target: str
    roles: FrozenSet[str]
    financial_sources: Optional[FrozenSet[str]] = None
    target_financial: Optional[str] = None
    execution_data: Optional[str] = None
    requires_reason: bool = False
    rejects_paid: bool = False

    def applies_to(self, snapshot: OrderSnapshot) -> bool:
        if snapshot.execution_status not in self.sources:
            return False
        if self.financial_sources is not None:
            return snapshot.financial_status in self.financial_sources
        return True


@dataclass(frozen=True)
class Accepted:
    action: str
    from_status: str
    to_status: str
    from_financial_status: str
    to_financial_status: str
    service_type_id: Optional[str]
    provider_ids: Tuple[str, ...]
    return_reason: str
    notes: str = ""
    sets_operational_responsible: bool = False
    sets_financial_responsible: bool = False
    accepted: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Rejected:
    error: OrderError
    accepted: bool = field(default=False, init=False)


TransitionOutcome = Union[Accepted, Rejected]


_OPERATIONAL = frozenset(OPERATIONAL_ROLES)
_ALL_EXECUTION = frozenset(ExecutionStatus.values)

TRANSITION_RULES: Tuple[TransitionRule, ...] = (
    TransitionRule(
        action=TransitionAction.START_EXECUTION,
        sources=frozenset({ExecutionStatus.PENDING, ExecutionStatus.CORRECTED}),
        target=ExecutionStatus.IN_PROGRESS,
        roles=_OPERATIONAL,
        execution_data=FROM_REQUEST_OR_ORDER,
    ),
    TransitionRule(
        action=TransitionAction.COMPLETE_EXECUTION,
        sources=frozenset({ExecutionStatus.IN_PROGRESS}),
        target=ExecutionStatus.COMPLETED,
        roles=_OPERATIONAL,
    ),
    TransitionRule(
        action=TransitionAction.COMPLETE_EXECUTION,
        sources=frozenset({ExecutionStatus.CORRECTED}),
        target=ExecutionStatus.COMPLETED,
        roles=_OPERATIONAL,
        execution_data=FROM_REQUEST_OR_ORDER,
    ),
    TransitionRule(
        action=TransitionAction.RETURN,
        sources=frozenset({ExecutionStatus.PENDING, ExecutionStatus.IN_PROGRESS}),
        target=ExecutionStatus.RETURNED,
        roles=_OPERATIONAL,
        requires_reason=True,
    ),
    TransitionRule(
        action=TransitionAction.CORRECT,
        sources=frozenset({ExecutionStatus.RETURNED}),
        target=ExecutionStatus.CORRECTED,
        roles=frozenset({Role.SELLER, Role.ADMIN}),
        execution_data=FROM_REQUEST,
    ),
    TransitionRule(
        action=TransitionAction.RESEND,
        sources=frozenset({ExecutionStatus.CORRECTED}),
        target=ExecutionStatus.IN_PROGRESS,
        roles=frozenset({Role.SELLER, Role.ADMIN, Role.OPERATOR, Role.SUPERVISOR}),
        execution_data=FROM_ORDER,
    ),
    TransitionRule(
        action=TransitionAction.MARK_PAID,
        sources=frozenset({ExecutionStatus.COMPLETED}),
        target=ExecutionStatus.COMPLETED,
        roles=frozenset({Role.FINANCE, Role.ADMIN}),
        financial_sources=frozenset({FinancialStatus.UNPAID}),
        target_financial=FinancialStatus.PAID,
    ),
    TransitionRule(
        action=TransitionAction.CANCEL,
        sources=_ALL_EXECUTION - {ExecutionStatus.CANCELED},
        target=ExecutionStatus.CANCELED,
        roles=frozenset({Role.ADMIN}),
        rejects_paid=True,
    ),
)


def find_rule(action: str, snapshot: OrderSnapshot) -> Optional[TransitionRule]:
    for rule in TRANSITION_RULES:
        if rule.action == action and rule.applies_to(snapshot):
            return rule
    return None


def _execution_data(
    rule: TransitionRule, snapshot: OrderSnapshot, request: TransitionRequest
) -> Tuple[Optional[str], bool, Tuple[str, ...]]:
    """Resolve the (service type, requires providers, providers) a rule checks."""
    use_request = rule.execution_data == FROM_REQUEST or (
        rule.execution_data == FROM_REQUEST_OR_ORDER and request.service_type_id
    )
    if use_request:
        # providers omitted from the request keep the ones stored on the order
        providers = request.provider_ids
        if providers is None:
            providers = snapshot.provider_ids
        return (
            request.service_type_id,
            request.service_type_requires_providers,
            tuple(providers),
        )
    return (
        snapshot.service_type_id,
        snapshot.service_type_requires_providers,
        snapshot.provider_ids,
    )


def _check_preconditions(
    rule: TransitionRule, snapshot: OrderSnapshot, request: TransitionRequest
) -> Optional[OrderError]:
    if rule.requires_reason and not (request.reason or "").strip():
        return PreconditionFailed("A return reason is required.", field="reason")

    if rule.rejects_paid and snapshot.financial_status == FinancialStatus.PAID:
        return PreconditionFailed(
            "A paid order cannot be canceled.", field="financial_status"
        )

    if rule.execution_data is not None:
        service_type_id, requires_providers, providers = _execution_data(
            rule, snapshot, request
        )
        if not service_type_id:
            return PreconditionFailed("A service type is required.", field="service_type")
        if requires_providers and not providers:
            return PreconditionFailed(
                "This service type requires at least one service provider.",
                field="providers",
            )
    return None


def validate_transition(
    snapshot: OrderSnapshot, request: TransitionRequest, actor_role: str
) -> TransitionOutcome:
    """Decide whether ``actor_role`` may apply ``request`` to ``snapshot``."""
    if request.action not in TransitionAction.values:
        return Rejected(
            OrderValidationError(f"Unknown action '{request.action}'.", field="action")
        )

    rule = find_rule(request.action, snapshot)
    if rule is None:
        return Rejected(
            TransitionNotAllowed(
                f"Cannot apply '{request.action}' to an order that is "
                f"{snapshot.execution_status}/{snapshot.financial_status}."
            )
        )

    if actor_role not in rule.roles:
        return Rejected(
            ForbiddenActor(f"Role '{actor_role}' cannot apply '{request.action}'.")
        )

    error = _check_preconditions(rule, snapshot, request)
    if error is not None:
        return Rejected(error)

    if rule.execution_data is not None:
        service_type_id, _, provider_ids = _execution_data(rule, snapshot, request)
    else:
        service_type_id, provider_ids = snapshot.service_type_id, snapshot.provider_ids

    if rule.action == TransitionAction.RETURN:
        return_reason = request.reason.strip()
    else:
        return_reason = snapshot.return_reason

    sets_operational = rule.action in {
        TransitionAction.START_EXECUTION,
        TransitionAction.COMPLETE_EXECUTION,
        TransitionAction.RETURN,
    } or (rule.action == TransitionAction.RESEND and actor_role in OPERATIONAL_ROLES)

    return Accepted(
        action=rule.action,
        from_status=snapshot.execution_status,
        to_status=rule.target,
        from_financial_status=snapshot.financial_status,
        to_financial_status=rule.target_financial or snapshot.financial_status,
        service_type_id=service_type_id,
        provider_ids=tuple(provider_ids),
        return_reason=return_reason,
        notes=(request.notes or request.reason or "").strip(),
        sets_operational_responsible=sets_operational,
        sets_financial_responsible=rule.action == TransitionAction.MARK_PAID,
    )
