import django_filters
from django.db.models import Q

from modules.orders.constants import ALL_STATUSES, ExecutionStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(
        method="filter_status",
        choices=[*ExecutionStatus.choices, (ALL_STATUSES, "Todos")],
    )
    search = django_filters.CharFilter(method="filter_search")
    start_date = django_filters.DateFilter(field_name="date", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="date", lookup_expr="lte")
    seller = django_filters.NumberFilter(field_name="seller_id")

    class Meta:
        model = Order
        fields = ["status", "search", "start_date", "end_date", "seller"]

    def filter_status(self, queryset, name, value):
        if not value or value == ALL_STATUSES:
            return queryset
        return queryset.filter(execution_status=value)

    def filter_search(self, queryset, name, value):
        term = (value or "").strip()
        if not term:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=term)
            | Q(customer__name__icontains=term)
            | Q(seller__username__icontains=term)
        )
