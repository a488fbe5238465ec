"""Order and OrderStatusHistory models.

Rules kept by the persistence layer:
- ``order_number`` is generated once (``ORD-YYYYMMDD-XXXXXX``) and never
  edited.
- ``version`` is the optimistic-concurrency token; the store gateway bumps
  it with a conditional update on every accepted transition.
- ``total_amount`` is a fixed-point decimal.
- References to reference data and sellers use PROTECT to preserve the
  order's financial history.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
- History is append-only and written only for accepted transitions, never
  on creation.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.conf import settings
from django.db import models
from django.utils import timezone

from modules.accounts.constants import Role
from modules.core.models import BaseModel, SoftDeleteModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    ExecutionStatus,
    FinancialStatus,
    TransitionAction,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Order(DomainEventMixin, SoftDeleteModel):
    """Order aggregate root.

    Orders use an auto-increment integer ``id`` (the identifier users see
    in URLs) while ``order_number`` is the human-readable document number.
    """

    id: models.BigAutoField = models.BigAutoField(primary_key=True)
    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    date: models.DateField = models.DateField(default=timezone.localdate)
    customer: models.ForeignKey = models.ForeignKey(
        "catalog.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    seller: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sold_orders",
    )
    payment_method: models.ForeignKey = models.ForeignKey(
        "catalog.PaymentMethod",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    service_type: models.ForeignKey = models.ForeignKey(
        "catalog.ServiceType",
        on_delete=models.PROTECT,
        related_name="orders",
        null=True,
        blank=True,
    )
    service_providers: models.ManyToManyField = models.ManyToManyField(
        "catalog.ServiceProvider",
        related_name="orders",
        blank=True,
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    execution_status: models.CharField = models.CharField(
        max_length=20,
        choices=ExecutionStatus.choices,
        default=ExecutionStatus.PENDING,
    )
    financial_status: models.CharField = models.CharField(
        max_length=10,
        choices=FinancialStatus.choices,
        default=FinancialStatus.UNPAID,
    )
    notes: models.TextField = models.TextField(blank=True, default="")
    return_reason: models.TextField = models.TextField(blank=True, default="")
    responsible_operational: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="operated_orders",
        null=True,
        blank=True,
    )
    responsible_financial: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="settled_orders",
        null=True,
        blank=True,
    )
    version: models.PositiveIntegerField = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "orders"
        ordering = ["-date", "id"]
        indexes = [
            models.Index(fields=["execution_status"], name="orders_exec_status_idx"),
            models.Index(fields=["-date"], name="orders_date_idx"),
            models.Index(fields=["seller", "-date"], name="orders_seller_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(financial_status=FinancialStatus.PAID)
                | models.Q(execution_status=ExecutionStatus.COMPLETED),
                name="orders_paid_requires_completed",
            ),
        ]

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                logger.error("order.number_generation_failed")
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.execution_status}/{self.financial_status})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail of accepted transitions.

    ``sequence`` equals the order's ``version`` right after the transition,
    so entries of one order are totally ordered even when two share a
    timestamp.  ``actor`` is nullable so deleting a user keeps the trail.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    sequence: models.PositiveIntegerField = models.PositiveIntegerField()
    action: models.CharField = models.CharField(
        max_length=30, choices=TransitionAction.choices
    )
    from_status: models.CharField = models.CharField(
        max_length=20, choices=ExecutionStatus.choices
    )
    to_status: models.CharField = models.CharField(
        max_length=20, choices=ExecutionStatus.choices
    )
    from_financial_status: models.CharField = models.CharField(
        max_length=10, choices=FinancialStatus.choices
    )
    to_financial_status: models.CharField = models.CharField(
        max_length=10, choices=FinancialStatus.choices
    )
    actor: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    actor_role: models.CharField = models.CharField(max_length=20, choices=Role.choices)
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["sequence"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "sequence"], name="osh_order_sequence_uniq"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} #{self.sequence}: {self.from_status} -> {self.to_status}"
