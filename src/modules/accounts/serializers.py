from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from modules.accounts.actors import Actor


class UserSerializer(serializers.ModelSerializer):
    """Read serializer used by clients to resolve seller names."""

    role = serializers.SerializerMethodField()

    class Meta:
        model = get_user_model()
        fields = ["id", "username", "role"]
        read_only_fields = fields

    def get_role(self, obj) -> str:
        return Actor.from_user(obj).role
