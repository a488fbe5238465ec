"""Catalog URL configuration."""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.catalog.views import (
    CustomerViewSet,
    PaymentMethodViewSet,
    ServiceProviderViewSet,
    ServiceTypeViewSet,
)

router = SimpleRouter(trailing_slash=True)
router.register("customers", CustomerViewSet, basename="customer")
router.register("payment-methods", PaymentMethodViewSet, basename="payment-method")
router.register("service-types", ServiceTypeViewSet, basename="service-type")
router.register("service-providers", ServiceProviderViewSet, basename="service-provider")

urlpatterns = router.urls
