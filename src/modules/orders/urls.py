"""Order URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import ClearOrdersView, OrderViewSet, StatusLabelsView

router = DefaultRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")

urlpatterns = [
    path("admin/clear-orders/", ClearOrdersView.as_view(), name="clear-orders"),
    path("statuses/", StatusLabelsView.as_view(), name="status-labels"),
    *router.urls,
]
