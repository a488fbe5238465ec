"""Event handlers for Orders domain events.

Every change to the order set, whatever produced it, fans out the same
payload-minimal ``orders_changed`` notification to connected clients.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCreated,
    OrderDeleted,
    OrdersPurged,
    OrderStatusChanged,
)
from modules.realtime.notifier import ChangeNotifier, change_notifier
from shared.domain.bus import IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class OrdersChangedHandler(IEventHandler[DomainEvent]):
    def __init__(self, notifier: ChangeNotifier) -> None:
        self._notifier = notifier

    def handle(self, event: DomainEvent) -> None:
        logger.info("order.event.received", **event.log_context())
        self._notifier.notify_orders_changed()


orders_changed_handler = OrdersChangedHandler(change_notifier)

NOTIFYING_EVENTS = (OrderCreated, OrderStatusChanged, OrderDeleted, OrdersPurged)
