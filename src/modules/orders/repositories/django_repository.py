"""Django ORM implementation of the order store gateway.

``apply_transition`` is the only code path that changes order state.  It
runs inside one ``transaction.atomic()`` block:

1. row-locked load (``select_for_update``), soft-deleted rows excluded;
2. scope and optimistic-version checks;
3. ``validate_transition`` on an immutable snapshot;
4. conditional ``UPDATE ... WHERE id = ? AND version = ?``;
5. provider set update plus exactly one history row.

``select_for_update`` is a no-op on SQLite; the conditional update alone
guarantees that two writers holding the same version cannot both succeed.
Domain events are handed to the event bus with ``transaction.on_commit`` so
subscribers never see rolled-back changes.
"""

from __future__ import annotations

import dataclasses
import functools
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import structlog
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import InterfaceError, OperationalError, transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from modules.accounts.actors import Actor
from modules.catalog.models import Customer, PaymentMethod, ServiceProvider, ServiceType
from modules.orders.constants import CREATE_ROLES
from modules.orders.events import (
    OrderCreated,
    OrderDeleted,
    OrdersPurged,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    Conflict,
    ForbiddenActor,
    OrderNotFound,
    OrderValidationError,
    Unavailable,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository
from modules.orders.state_machine import (
    OrderSnapshot,
    TransitionRequest,
    validate_transition,
)
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

F_ = TypeVar("F_", bound=Callable[..., Any])

_DETAIL_RELATIONS = (
    "customer",
    "seller",
    "payment_method",
    "service_type",
    "responsible_operational",
    "responsible_financial",
)


def store_errors(func: F_) -> F_:
    """Translate database connectivity errors into ``Unavailable``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            logger.error(
                "order.store_unavailable", operation=func.__name__, error=str(exc)
            )
            raise Unavailable() from exc

    return wrapper  # type: ignore[return-value]


def parse_order_id(order_id: Any) -> int:
    try:
        pk = int(order_id)
    except (TypeError, ValueError):
        raise OrderValidationError(f"Invalid order id '{order_id}'.", field="id")
    if pk < 1:
        raise OrderValidationError(f"Invalid order id '{order_id}'.", field="id")
    return pk


class OrderDjangoRepository(IOrderRepository):
    """Concrete order gateway backed by Django ORM."""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _detail_queryset(self) -> QuerySet:
        return (
            Order.objects.alive()
            .select_related(*_DETAIL_RELATIONS)
            .prefetch_related("service_providers")
        )

    def _dispatch_events(self, order: Order) -> None:
        for event in order.pull_domain_events():
            event_bus.publish_after_commit(event)

    @staticmethod
    def _check_scope(order: Order, actor: Actor) -> None:
        if actor.is_scoped and order.seller_id != actor.id:
            logger.warning(
                "order.out_of_scope", order_id=order.pk, actor_id=actor.id
            )
            raise ForbiddenActor("This order belongs to another seller.")

    @staticmethod
    def _lookup(model: Any, pk: Any, field: str, **extra: Any) -> Any:
        try:
            instance = model.objects.filter(pk=pk, **extra).first()
        except (ValueError, ValidationError):
            instance = None
        if instance is None:
            raise OrderValidationError(f"Unknown {field} '{pk}'.", field=field)
        return instance

    def _resolve_providers(self, provider_ids: Optional[Sequence[Any]]) -> Optional[Tuple[str, ...]]:
        if provider_ids is None:
            return None
        unique_ids = {str(pk) for pk in provider_ids}
        try:
            found = {
                str(pk)
                for pk in ServiceProvider.objects.filter(
                    pk__in=unique_ids, is_active=True
                ).values_list("id", flat=True)
            }
        except (ValueError, ValidationError):
            found = set()
        missing = unique_ids - found
        if missing:
            raise OrderValidationError(
                f"Unknown service providers: {', '.join(sorted(missing))}.",
                field="providers",
            )
        return tuple(sorted(found))

    def _resolve_request(self, request: TransitionRequest) -> TransitionRequest:
        """Attach the service-type flag and normalized provider ids."""
        requires_providers = False
        if request.service_type_id:
            service_type = self._lookup(
                ServiceType, request.service_type_id, "service_type", is_active=True
            )
            requires_providers = service_type.requires_partner_providers
        return dataclasses.replace(
            request,
            service_type_id=str(request.service_type_id) if request.service_type_id else None,
            service_type_requires_providers=requires_providers,
            provider_ids=self._resolve_providers(request.provider_ids),
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @store_errors
    @transaction.atomic
    def create(self, data: Dict[str, Any], actor: Actor) -> Order:
        """Create an order in ``pending``/``unpaid``.

        ``data`` keys: ``customer_id``, ``payment_method_id``,
        ``total_amount`` (required); ``date``, ``notes``,
        ``service_type_id``, ``provider_ids``, ``seller_id`` (optional).
        Scoped actors always sell for themselves.
        """
        if actor.role not in CREATE_ROLES:
            raise ForbiddenActor(f"Role '{actor.role}' cannot create orders.")

        seller_id = data.get("seller_id") or actor.id
        if actor.is_scoped and seller_id != actor.id:
            raise ForbiddenActor("Sellers can only register their own orders.")

        customer = self._lookup(
            Customer, data.get("customer_id"), "customer_id", is_active=True
        )
        payment_method = self._lookup(
            PaymentMethod, data.get("payment_method_id"), "payment_method_id", is_active=True
        )
        seller = self._lookup(get_user_model(), seller_id, "seller_id", is_active=True)
        service_type = None
        if data.get("service_type_id"):
            service_type = self._lookup(
                ServiceType, data["service_type_id"], "service_type", is_active=True
            )
        providers = self._resolve_providers(data.get("provider_ids"))

        order = Order(
            customer=customer,
            seller=seller,
            payment_method=payment_method,
            service_type=service_type,
            total_amount=data["total_amount"],
            date=data.get("date") or timezone.localdate(),
            notes=data.get("notes") or "",
        )
        order.save()
        if providers:
            order.service_providers.set(providers)

        order.add_domain_event(
            OrderCreated(aggregate_id=order.pk, order_number=order.order_number)
        )
        self._dispatch_events(order)

        logger.info(
            "order.created",
            order_id=order.pk,
            order_number=order.order_number,
            seller_id=seller.pk,
            actor_id=actor.id,
        )
        return self._detail_queryset().get(pk=order.pk)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @store_errors
    def get(self, order_id: Any, actor: Actor) -> Order:
        pk = parse_order_id(order_id)
        order = self._detail_queryset().filter(pk=pk).first()
        if order is None:
            raise OrderNotFound(f"Order {pk} not found.")
        self._check_scope(order, actor)
        return order

    @store_errors
    def history(self, order_id: Any, actor: Actor) -> List[OrderStatusHistory]:
        order = self.get(order_id, actor)
        return list(
            OrderStatusHistory.objects.filter(order_id=order.pk)
            .select_related("actor")
            .order_by("sequence")
        )

    @store_errors
    def query_page(
        self,
        filters: Dict[str, Any],
        ordering: Sequence[str],
        page: int,
        page_size: int,
        actor: Actor,
    ) -> Tuple[List[Order], int]:
        data = dict(filters)
        if actor.is_scoped:
            # Scope comes from the actor, never from the caller's filters.
            data["seller"] = actor.id

        filterset = OrderFilter(data=data, queryset=self._detail_queryset())
        if not filterset.is_valid():
            field, messages = next(iter(filterset.errors.items()))
            raise OrderValidationError(" ".join(messages), field=field)

        queryset = filterset.qs.order_by(*ordering)
        total = queryset.count()
        offset = (page - 1) * page_size
        return list(queryset[offset : offset + page_size]), total

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @store_errors
    @transaction.atomic
    def apply_transition(
        self,
        order_id: Any,
        request: TransitionRequest,
        actor: Actor,
        expected_version: Optional[int] = None,
    ) -> Order:
        pk = parse_order_id(order_id)
        log = logger.bind(
            order_id=pk, action=request.action, actor_id=actor.id, actor_role=actor.role
        )

        order = Order.objects.alive().select_for_update().filter(pk=pk).first()
        if order is None:
            raise OrderNotFound(f"Order {pk} not found.")
        self._check_scope(order, actor)

        if expected_version is not None and expected_version != order.version:
            log.warning(
                "order.version_conflict",
                expected_version=expected_version,
                stored_version=order.version,
            )
            raise Conflict(
                f"Order {pk} is at version {order.version}, "
                f"expected {expected_version}."
            )

        snapshot = OrderSnapshot.from_order(order)
        outcome = validate_transition(snapshot, self._resolve_request(request), actor.role)
        if not outcome.accepted:
            log.warning(
                "order.transition_rejected",
                error=outcome.error.code,
                field=outcome.error.field,
                current_status=snapshot.execution_status,
            )
            raise outcome.error

        changes: Dict[str, Any] = {
            "execution_status": outcome.to_status,
            "financial_status": outcome.to_financial_status,
            "service_type_id": outcome.service_type_id,
            "return_reason": outcome.return_reason,
            "version": F("version") + 1,
            "updated_at": timezone.now(),
        }
        if outcome.sets_operational_responsible:
            changes["responsible_operational_id"] = actor.id
        if outcome.sets_financial_responsible:
            changes["responsible_financial_id"] = actor.id

        updated = Order.objects.alive().filter(pk=pk, version=snapshot.version).update(
            **changes
        )
        if updated == 0:
            log.warning("order.concurrent_update", stored_version=snapshot.version)
            raise Conflict(f"Order {pk} was modified concurrently.")

        new_version = snapshot.version + 1
        if outcome.provider_ids != snapshot.provider_ids:
            order.service_providers.set(outcome.provider_ids)

        OrderStatusHistory.objects.create(
            order_id=pk,
            sequence=new_version,
            action=outcome.action,
            from_status=outcome.from_status,
            to_status=outcome.to_status,
            from_financial_status=outcome.from_financial_status,
            to_financial_status=outcome.to_financial_status,
            actor_id=actor.id,
            actor_role=actor.role,
            notes=outcome.notes,
        )

        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=pk,
                action=outcome.action,
                from_status=outcome.from_status,
                to_status=outcome.to_status,
                version=new_version,
            )
        )
        self._dispatch_events(order)

        log.info(
            "order.status_updated",
            from_status=outcome.from_status,
            to_status=outcome.to_status,
            financial_status=outcome.to_financial_status,
            version=new_version,
        )
        return self._detail_queryset().get(pk=pk)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    @store_errors
    @transaction.atomic
    def soft_delete(self, order_id: Any, actor: Actor) -> None:
        if not actor.is_admin:
            raise ForbiddenActor("Only administrators can delete orders.")
        pk = parse_order_id(order_id)
        order = Order.objects.alive().select_for_update().filter(pk=pk).first()
        if order is None:
            raise OrderNotFound(f"Order {pk} not found.")

        order.delete()
        order.add_domain_event(OrderDeleted(aggregate_id=pk))
        self._dispatch_events(order)
        logger.info("order.soft_deleted", order_id=pk, actor_id=actor.id)

    @store_errors
    @transaction.atomic
    def purge_all(self, actor: Actor) -> int:
        if not actor.is_admin:
            raise ForbiddenActor("Only administrators can clear orders.")

        _, per_model = Order.objects.purge()
        count = per_model.get(Order._meta.label, 0)

        event_bus.publish_after_commit(OrdersPurged(aggregate_id=None, count=count))
        logger.warning("order.purged", count=count, actor_id=actor.id)
        return count
