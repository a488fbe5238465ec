"""Order domain constants.

Execution and financial status choices, transition action names and the
presentation lookup table used by clients to render statuses.
"""

from django.db import models

from modules.accounts.constants import Role


class ExecutionStatus(models.TextChoices):
    PENDING = "pending", "Pendente"
    IN_PROGRESS = "in_progress", "Em Andamento"
    RETURNED = "returned", "Devolvida"
    COMPLETED = "completed", "Concluída"
    CANCELED = "canceled", "Cancelada"
    CORRECTED = "corrected", "Corrigida Aguardando Operacional"


class FinancialStatus(models.TextChoices):
    UNPAID = "unpaid", "Não pago"
    PAID = "paid", "Pago"


class TransitionAction(models.TextChoices):
    START_EXECUTION = "start_execution", "Iniciar execução"
    COMPLETE_EXECUTION = "complete_execution", "Concluir execução"
    RETURN = "return", "Devolver"
    CORRECT = "correct", "Corrigir"
    RESEND = "resend", "Reenviar"
    MARK_PAID = "mark_paid", "Confirmar pagamento"
    CANCEL = "cancel", "Cancelar"


ALL_STATUSES = "all"

# Presentation labels served at /statuses/.
STATUS_LABELS: dict[str, dict[str, str]] = {
    "execution": dict(ExecutionStatus.choices),
    "financial": dict(FinancialStatus.choices),
}

ORDER_NUMBER_MAX_RETRIES = 5

DEFAULT_PAGE_SIZE = 15
MAX_PAGE_SIZE = 100

DEFAULT_SORT_FIELD = "date"
DEFAULT_SORT_DIRECTION = "desc"

# Public sort keys -> ORM columns.
SORT_FIELD_COLUMNS: dict[str, str] = {
    "orderNumber": "order_number",
    "date": "date",
    "customerName": "customer__name",
    "sellerName": "seller__username",
    "totalAmount": "total_amount",
    "status": "execution_status",
}

# Roles allowed to register new orders.
CREATE_ROLES: frozenset[str] = frozenset({Role.SELLER, Role.SUPERVISOR, Role.ADMIN})
