"""Domain events for the Orders bounded context.

Published on the in-process event bus after the producing transaction
commits, so handlers never observe rolled-back state.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    order_number: str = ""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when a transition is accepted."""

    action: str = ""
    from_status: str = ""
    to_status: str = ""
    version: int = 0


@dataclass(frozen=True)
class OrderDeleted(DomainEvent):
    """Raised when an order is soft-deleted."""


@dataclass(frozen=True)
class OrdersPurged(DomainEvent):
    """Raised when every order is removed by an administrator."""

    count: int = 0
