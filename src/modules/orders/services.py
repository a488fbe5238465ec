"""Order service layer (use cases).

Thin orchestration over the store gateway: every lifecycle command is
expressed as a ``TransitionRequest`` and handed to
``IOrderRepository.apply_transition``, which owns validation, persistence
and history in one transaction.  Change notification happens through the
domain events the gateway publishes after commit.

Mutations are never retried here; a ``Conflict`` always reaches the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import structlog

from modules.orders.constants import TransitionAction
from modules.orders.pagination import Page, PageRequest, PaginationEngine
from modules.orders.state_machine import TransitionRequest

if TYPE_CHECKING:
    from modules.accounts.actors import Actor
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order, OrderStatusHistory
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


def _provider_tuple(provider_ids: Optional[Sequence[Any]]) -> Optional[tuple]:
    if provider_ids is None:
        return None
    return tuple(str(pk) for pk in provider_ids)


class OrderService:
    """Application service for Order use-cases.

    Receives the repository via constructor injection (DIP).
    """

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository
        self._pagination = PaginationEngine(order_repository)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO, actor: Actor) -> Order:
        log = logger.bind(actor_id=actor.id, customer_id=str(dto.customer_id))
        log.info("order.creation_started")
        return self._order_repo.create(
            {
                "customer_id": dto.customer_id,
                "payment_method_id": dto.payment_method_id,
                "total_amount": dto.total_amount,
                "date": dto.date,
                "notes": dto.notes or "",
                "service_type_id": dto.service_type_id,
                "provider_ids": dto.provider_ids,
                "seller_id": dto.seller_id,
            },
            actor,
        )

    def start_execution(
        self,
        order_id: Any,
        actor: Actor,
        service_type_id: Optional[Any] = None,
        provider_ids: Optional[Sequence[Any]] = None,
        expected_version: Optional[int] = None,
    ) -> Order:
        request = TransitionRequest(
            action=TransitionAction.START_EXECUTION,
            service_type_id=str(service_type_id) if service_type_id else None,
            provider_ids=_provider_tuple(provider_ids),
        )
        return self._transition(order_id, request, actor, expected_version)

    def complete_execution(
        self, order_id: Any, actor: Actor, expected_version: Optional[int] = None
    ) -> Order:
        request = TransitionRequest(action=TransitionAction.COMPLETE_EXECUTION)
        return self._transition(order_id, request, actor, expected_version)

    def return_order(
        self,
        order_id: Any,
        actor: Actor,
        reason: str,
        expected_version: Optional[int] = None,
    ) -> Order:
        request = TransitionRequest(action=TransitionAction.RETURN, reason=reason or "")
        return self._transition(order_id, request, actor, expected_version)

    def correct_order(
        self,
        order_id: Any,
        actor: Actor,
        service_type_id: Optional[Any],
        provider_ids: Optional[Sequence[Any]] = None,
        notes: str = "",
        expected_version: Optional[int] = None,
    ) -> Order:
        request = TransitionRequest(
            action=TransitionAction.CORRECT,
            notes=notes or "",
            service_type_id=str(service_type_id) if service_type_id else None,
            provider_ids=_provider_tuple(provider_ids),
        )
        return self._transition(order_id, request, actor, expected_version)

    def resend_order(
        self,
        order_id: Any,
        actor: Actor,
        notes: str = "",
        expected_version: Optional[int] = None,
    ) -> Order:
        request = TransitionRequest(action=TransitionAction.RESEND, notes=notes or "")
        return self._transition(order_id, request, actor, expected_version)

    def mark_paid(
        self, order_id: Any, actor: Actor, expected_version: Optional[int] = None
    ) -> Order:
        request = TransitionRequest(action=TransitionAction.MARK_PAID)
        return self._transition(order_id, request, actor, expected_version)

    def cancel_order(
        self,
        order_id: Any,
        actor: Actor,
        notes: str = "",
        expected_version: Optional[int] = None,
    ) -> Order:
        request = TransitionRequest(action=TransitionAction.CANCEL, notes=notes or "")
        return self._transition(order_id, request, actor, expected_version)

    def delete_order(self, order_id: Any, actor: Actor) -> None:
        self._order_repo.soft_delete(order_id, actor)

    def clear_orders(self, actor: Actor) -> int:
        return self._order_repo.purge_all(actor)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any, actor: Actor) -> Order:
        return self._order_repo.get(order_id, actor)

    def get_history(self, order_id: Any, actor: Actor) -> List[OrderStatusHistory]:
        return self._order_repo.history(order_id, actor)

    def list_orders(self, params: Dict[str, Any], actor: Actor) -> Page:
        """Resolve one listing page from raw query parameters."""
        return self._pagination.resolve_page(PageRequest.from_query_params(params), actor)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transition(
        self,
        order_id: Any,
        request: TransitionRequest,
        actor: Actor,
        expected_version: Optional[int],
    ) -> Order:
        logger.info(
            "order.transition_requested",
            order_id=order_id,
            action=request.action,
            actor_id=actor.id,
            expected_version=expected_version,
        )
        return self._order_repo.apply_transition(
            order_id, request, actor, expected_version=expected_version
        )
