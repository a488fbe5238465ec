"""Actor roles.

Roles decide which order transitions a user may request and whether
their queries are restricted to their own orders (scoped roles).
"""

from django.db import models


class Role(models.TextChoices):
    SELLER = "seller", "Vendedor"
    OPERATOR = "operator", "Operacional"
    SUPERVISOR = "supervisor", "Supervisor"
    FINANCE = "finance", "Financeiro"
    ADMIN = "admin", "Administrador"


OPERATIONAL_ROLES: frozenset[str] = frozenset(
    {Role.OPERATOR, Role.SUPERVISOR, Role.ADMIN}
)

# Roles whose queries and mutations are limited to orders they own.
SCOPED_ROLES: frozenset[str] = frozenset({Role.SELLER})
