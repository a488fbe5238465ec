"""Reference-data API views.

List-only and unpaginated: the data is small and clients cache the whole
collection in their persistent tier.
"""

from __future__ import annotations

from rest_framework.mixins import ListModelMixin, RetrieveModelMixin
from rest_framework.viewsets import GenericViewSet

from modules.catalog.models import Customer, PaymentMethod, ServiceProvider, ServiceType
from modules.catalog.serializers import (
    CustomerSerializer,
    PaymentMethodSerializer,
    ServiceProviderSerializer,
    ServiceTypeSerializer,
)


class _ReferenceViewSet(ListModelMixin, RetrieveModelMixin, GenericViewSet):
    pagination_class = None

    def get_queryset(self):
        return self.queryset.filter(is_active=True)


class CustomerViewSet(_ReferenceViewSet):
    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer


class PaymentMethodViewSet(_ReferenceViewSet):
    queryset = PaymentMethod.objects.all()
    serializer_class = PaymentMethodSerializer


class ServiceTypeViewSet(_ReferenceViewSet):
    queryset = ServiceType.objects.all()
    serializer_class = ServiceTypeSerializer


class ServiceProviderViewSet(_ReferenceViewSet):
    queryset = ServiceProvider.objects.all()
    serializer_class = ServiceProviderSerializer
