"""Order store gateway interface.

The service layer depends exclusively on this contract.  Every operation
receives the acting ``Actor`` so scope and role checks happen where the
data is read or written.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from modules.accounts.actors import Actor
    from modules.orders.models import Order, OrderStatusHistory
    from modules.orders.state_machine import TransitionRequest


class IOrderRepository(ABC):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, data: Dict[str, Any], actor: Actor) -> Order:
        """Create an order in ``pending``/``unpaid``.  No history is written."""

    @abstractmethod
    def get(self, order_id: int, actor: Actor) -> Order:
        """Load one live order visible to ``actor`` or raise ``OrderNotFound``."""

    @abstractmethod
    def history(self, order_id: int, actor: Actor) -> List[OrderStatusHistory]:
        """Return the order's history ordered by sequence."""

    @abstractmethod
    def apply_transition(
        self,
        order_id: int,
        request: TransitionRequest,
        actor: Actor,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Validate and persist one transition atomically.

        Raises ``OrderNotFound``, ``ForbiddenActor``, ``Conflict``,
        ``TransitionNotAllowed``, ``PreconditionFailed``,
        ``OrderValidationError`` or ``Unavailable``.
        """

    @abstractmethod
    def query_page(
        self,
        filters: Dict[str, Any],
        ordering: Sequence[str],
        page: int,
        page_size: int,
        actor: Actor,
    ) -> Tuple[List[Order], int]:
        """Return one page of orders and the total matching the same filter."""

    @abstractmethod
    def soft_delete(self, order_id: int, actor: Actor) -> None:
        """Soft-delete one order (admin only)."""

    @abstractmethod
    def purge_all(self, actor: Actor) -> int:
        """Hard-delete every order and its history (admin only)."""
