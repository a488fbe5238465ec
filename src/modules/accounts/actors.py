"""Actor value object.

Every mutation and query in the orders core receives an ``Actor`` instead
of a request or a user instance, so authorization is checked at the point
of mutation with the role the caller actually holds.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from modules.accounts.constants import SCOPED_ROLES, Role


@dataclass(frozen=True)
class Actor:
    id: int
    role: str
    username: str = ""

    @property
    def is_scoped(self) -> bool:
        """``True`` when the actor may only see and touch their own orders."""
        return self.role in SCOPED_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_user(cls, user: Any) -> Actor:
        """Build an actor from an authenticated Django user.

        Superusers without a profile act as admins; any other user without
        a profile falls back to the least privileged role (seller).
        """
        profile = getattr(user, "profile", None)
        if profile is not None:
            role = profile.role
        elif getattr(user, "is_superuser", False):
            role = Role.ADMIN
        else:
            role = Role.SELLER
        return cls(id=user.pk, role=role, username=user.get_username())
