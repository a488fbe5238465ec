"""Order API views.

Exposes ``OrderService`` via HTTP using DRF ViewSets.  Domain exceptions
are caught and translated into the standard error envelope; the view never
swallows generic exceptions.
"""

from __future__ import annotations

from typing import Any, Callable, Dict

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.serializers import Serializer
from rest_framework.throttling import BaseThrottle
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.accounts.actors import Actor
from modules.core.exceptions import error_response
from modules.orders.constants import STATUS_LABELS
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import OrderError
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CorrectOrderSerializer,
    CreateOrderSerializer,
    ExecutionDataSerializer,
    NotesActionSerializer,
    OrderListQuerySerializer,
    OrderSerializer,
    ReturnOrderSerializer,
    StatusHistorySerializer,
    VersionedActionSerializer,
)
from modules.orders.services import OrderService


def order_error_response(exc: OrderError) -> Response:
    return error_response(
        status_code=exc.status_code,
        code=exc.code,
        detail=exc.detail,
        action=exc.action,
        attr=exc.field,
    )


def _build_service() -> OrderService:
    return OrderService(order_repository=OrderDjangoRepository())


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through the
    service/gateway layer.  Transition endpoints accept an optional
    ``expectedVersion``; a stale version yields 409 with ``action=reload``.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _build_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttling scope per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "history"}:
            throttle_scope = "order_listing"
        elif self.action is not None:
            throttle_scope = "order_transition"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def _actor(self) -> Actor:
        return Actor.from_user(self.request.user)

    def _transition(
        self,
        request: Request,
        serializer_class: type[Serializer],
        call: Callable[[Dict[str, Any]], Order],
    ) -> Response:
        payload = serializer_class(data=request.data)
        payload.is_valid(raise_exception=True)
        try:
            order = call(payload.validated_data)
        except OrderError as exc:
            return order_error_response(exc)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Create / List / Retrieve / Delete
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        dto = CreateOrderDTO(
            customer_id=data["customerId"],
            payment_method_id=data["paymentMethodId"],
            total_amount=data["totalAmount"],
            date=data.get("date"),
            notes=data.get("notes", ""),
            service_type_id=data.get("serviceTypeId"),
            provider_ids=data.get("providerIds"),
            seller_id=data.get("sellerId"),
        )

        try:
            order = self._service.create_order(dto, self._actor())
        except OrderError as exc:
            return order_error_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @extend_schema(parameters=[OrderListQuerySerializer])
    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Query: ``page``, ``pageSize`` (or ``limit``), ``sortField``,
        ``sortDirection``, ``status``, ``searchTerm``, ``startDate``,
        ``endDate``, ``sellerId``.  Sellers only ever see their own orders.
        """
        try:
            page = self._service.list_orders(request.query_params, self._actor())
        except OrderError as exc:
            return order_error_response(exc)

        return Response(
            {
                "data": OrderSerializer(page.data, many=True).data,
                "total": page.total,
                "page": page.page,
                "pageSize": page.page_size,
                "totalPages": page.total_pages,
            }
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk, self._actor())
        except OrderError as exc:
            return order_error_response(exc)
        return Response(OrderSerializer(order).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/ (admin, soft delete)."""
        try:
            self._service.delete_order(pk, self._actor())
        except OrderError as exc:
            return order_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def history(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/history/"""
        try:
            entries = self._service.get_history(pk, self._actor())
        except OrderError as exc:
            return order_error_response(exc)
        return Response(StatusHistorySerializer(entries, many=True).data)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="start-execution")
    def start_execution(self, request: Request, pk: str | None = None) -> Response:
        actor = self._actor()
        return self._transition(
            request,
            ExecutionDataSerializer,
            lambda data: self._service.start_execution(
                pk,
                actor,
                service_type_id=data.get("serviceTypeId"),
                provider_ids=data.get("providerIds"),
                expected_version=data.get("expectedVersion"),
            ),
        )

    @action(detail=True, methods=["post"], url_path="complete-execution")
    def complete_execution(self, request: Request, pk: str | None = None) -> Response:
        actor = self._actor()
        return self._transition(
            request,
            VersionedActionSerializer,
            lambda data: self._service.complete_execution(
                pk, actor, expected_version=data.get("expectedVersion")
            ),
        )

    @action(detail=True, methods=["post"], url_path="return")
    def return_order(self, request: Request, pk: str | None = None) -> Response:
        actor = self._actor()
        return self._transition(
            request,
            ReturnOrderSerializer,
            lambda data: self._service.return_order(
                pk,
                actor,
                reason=data.get("reason", ""),
                expected_version=data.get("expectedVersion"),
            ),
        )

    @action(detail=True, methods=["post"])
    def correct(self, request: Request, pk: str | None = None) -> Response:
        actor = self._actor()
        return self._transition(
            request,
            CorrectOrderSerializer,
            lambda data: self._service.correct_order(
                pk,
                actor,
                service_type_id=data.get("serviceTypeId"),
                provider_ids=data.get("providerIds"),
                notes=data.get("notes", ""),
                expected_version=data.get("expectedVersion"),
            ),
        )

    @action(detail=True, methods=["post"])
    def resend(self, request: Request, pk: str | None = None) -> Response:
        actor = self._actor()
        return self._transition(
            request,
            NotesActionSerializer,
            lambda data: self._service.resend_order(
                pk,
                actor,
                notes=data.get("notes", ""),
                expected_version=data.get("expectedVersion"),
            ),
        )

    @action(detail=True, methods=["post"], url_path="mark-paid")
    def mark_paid(self, request: Request, pk: str | None = None) -> Response:
        actor = self._actor()
        return self._transition(
            request,
            VersionedActionSerializer,
            lambda data: self._service.mark_paid(
                pk, actor, expected_version=data.get("expectedVersion")
            ),
        )

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        actor = self._actor()
        return self._transition(
            request,
            NotesActionSerializer,
            lambda data: self._service.cancel_order(
                pk,
                actor,
                notes=data.get("notes", ""),
                expected_version=data.get("expectedVersion"),
            ),
        )


class ClearOrdersView(APIView):
    """DELETE /api/v1/admin/clear-orders/ (admin): removes every order."""

    throttle_scope = "order_transition"

    def delete(self, request: Request) -> Response:
        try:
            count = _build_service().clear_orders(Actor.from_user(request.user))
        except OrderError as exc:
            return order_error_response(exc)
        return Response({"count": count})


class StatusLabelsView(APIView):
    """GET /api/v1/statuses/: presentation labels for every status."""

    def get(self, request: Request) -> Response:
        return Response(STATUS_LABELS)
