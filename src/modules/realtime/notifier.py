"""Change notifier.

Called after an order mutation commits.  Builds the payload-minimal
``orders_changed`` message and hands it to the connection registry.  The
notification is best-effort: a client that misses it catches up on its
next fetch.
"""

from __future__ import annotations

import structlog
from asgiref.sync import async_to_sync

from modules.realtime.messages import orders_changed_message
from modules.realtime.registry import ConnectionRegistry, connection_registry

logger = structlog.get_logger(__name__)


class ChangeNotifier:
    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry

    def notify_orders_changed(self) -> int:
        """Broadcast ``orders_changed``; return how many connections got it."""
        message = orders_changed_message()
        delivered = async_to_sync(self._registry.broadcast)(message)
        logger.info("realtime.orders_changed_sent", delivered=delivered)
        return delivered


change_notifier = ChangeNotifier(connection_registry)
