"""User listing for reference-data lookups."""

from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework.mixins import ListModelMixin
from rest_framework.viewsets import GenericViewSet

from modules.accounts.serializers import UserSerializer


class UserViewSet(ListModelMixin, GenericViewSet):
    serializer_class = UserSerializer
    pagination_class = None

    def get_queryset(self):
        return (
            get_user_model()
            .objects.filter(is_active=True)
            .select_related("profile")
            .order_by("username", "id")
        )
