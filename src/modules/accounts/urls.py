"""Accounts URL configuration."""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.accounts.views import UserViewSet

router = SimpleRouter(trailing_slash=True)
router.register("users", UserViewSet, basename="user")

urlpatterns = router.urls
