"""Order DRF serializers for API input/output.

Field names are camelCase on the wire.  Business rules live in the state
machine and the store gateway; input serializers only check shape.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import MAX_PAGE_SIZE
from modules.orders.models import Order, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    customerId = serializers.UUIDField()
    paymentMethodId = serializers.UUIDField()
    totalAmount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    serviceTypeId = serializers.UUIDField(required=False, allow_null=True)
    providerIds = serializers.ListField(
        child=serializers.UUIDField(), required=False, allow_null=True
    )
    sellerId = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class VersionedActionSerializer(serializers.Serializer):
    """Base payload for transition endpoints."""

    expectedVersion = serializers.IntegerField(
        required=False, allow_null=True, min_value=0
    )


class NotesActionSerializer(VersionedActionSerializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class ExecutionDataSerializer(VersionedActionSerializer):
    """Service type plus partner providers sent with start/correct."""

    serviceTypeId = serializers.UUIDField(required=False, allow_null=True)
    providerIds = serializers.ListField(
        child=serializers.UUIDField(), required=False, allow_null=True
    )


class CorrectOrderSerializer(ExecutionDataSerializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class ReturnOrderSerializer(VersionedActionSerializer):
    # Emptiness is a precondition of the transition, reported as 422.
    reason = serializers.CharField(required=False, default="", allow_blank=True)


class OrderListQuerySerializer(serializers.Serializer):
    """Listing query parameters, published in the OpenAPI schema.

    Validation itself happens in ``PageRequest``.
    """

    page = serializers.IntegerField(required=False, min_value=1)
    pageSize = serializers.IntegerField(
        required=False, min_value=1, max_value=MAX_PAGE_SIZE
    )
    limit = serializers.IntegerField(
        required=False, min_value=1, max_value=MAX_PAGE_SIZE, help_text="Alias of pageSize."
    )
    sortField = serializers.CharField(required=False)
    sortDirection = serializers.ChoiceField(choices=["asc", "desc"], required=False)
    status = serializers.CharField(required=False)
    searchTerm = serializers.CharField(required=False)
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)
    sellerId = serializers.IntegerField(required=False)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    fromStatus = serializers.CharField(source="from_status")
    toStatus = serializers.CharField(source="to_status")
    fromFinancialStatus = serializers.CharField(source="from_financial_status")
    toFinancialStatus = serializers.CharField(source="to_financial_status")
    actorId = serializers.IntegerField(source="actor_id", allow_null=True)
    actorName = serializers.SerializerMethodField()
    actorRole = serializers.CharField(source="actor_role")
    createdAt = serializers.DateTimeField(source="created_at")

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "sequence",
            "action",
            "fromStatus",
            "toStatus",
            "fromFinancialStatus",
            "toFinancialStatus",
            "actorId",
            "actorName",
            "actorRole",
            "notes",
            "createdAt",
        ]
        read_only_fields = fields

    def get_actorName(self, obj: OrderStatusHistory) -> str | None:
        return obj.actor.get_username() if obj.actor_id else None


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for a single order.

    ``status`` mirrors ``executionStatus`` for clients that render a single
    status column.
    """

    orderNumber = serializers.CharField(source="order_number")
    customerId = serializers.UUIDField(source="customer_id")
    customerName = serializers.CharField(source="customer.name")
    sellerId = serializers.IntegerField(source="seller_id")
    sellerName = serializers.CharField(source="seller.username")
    paymentMethodId = serializers.UUIDField(source="payment_method_id")
    paymentMethodName = serializers.CharField(source="payment_method.name")
    serviceTypeId = serializers.UUIDField(source="service_type_id", allow_null=True)
    serviceTypeName = serializers.SerializerMethodField()
    providerIds = serializers.SerializerMethodField()
    status = serializers.CharField(source="execution_status")
    executionStatus = serializers.CharField(source="execution_status")
    financialStatus = serializers.CharField(source="financial_status")
    totalAmount = serializers.DecimalField(
        source="total_amount", max_digits=12, decimal_places=2
    )
    returnReason = serializers.CharField(source="return_reason")
    responsibleOperationalId = serializers.IntegerField(
        source="responsible_operational_id", allow_null=True
    )
    responsibleFinancialId = serializers.IntegerField(
        source="responsible_financial_id", allow_null=True
    )
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")

    class Meta:
        model = Order
        fields = [
            "id",
            "orderNumber",
            "date",
            "customerId",
            "customerName",
            "sellerId",
            "sellerName",
            "paymentMethodId",
            "paymentMethodName",
            "serviceTypeId",
            "serviceTypeName",
            "providerIds",
            "status",
            "executionStatus",
            "financialStatus",
            "totalAmount",
            "notes",
            "returnReason",
            "responsibleOperationalId",
            "responsibleFinancialId",
            "version",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields

    def get_serviceTypeName(self, obj: Order) -> str | None:
        return obj.service_type.name if obj.service_type_id else None

    def get_providerIds(self, obj: Order) -> list[str]:
        return sorted(str(provider.pk) for provider in obj.service_providers.all())
