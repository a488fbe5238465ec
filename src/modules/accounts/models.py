"""User profile carrying the actor role.

The Django ``User`` stays the authentication identity; the role lives on a
one-to-one ``Profile`` so authentication remains an external concern.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.accounts.constants import Role
from modules.core.models import BaseModel


class Profile(BaseModel):
    """Role assignment for a single user."""

    user: models.OneToOneField = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    role: models.CharField = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.SELLER,
    )

    class Meta:
        db_table = "profiles"

    def __str__(self) -> str:
        return f"Profile<{self.user_id}:{self.role}>"
