"""In-process event bus bound to the Django transaction lifecycle."""

from __future__ import annotations

from typing import Dict, Iterable, List, Type

import structlog
from django.db import transaction

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        """Register ``handler``; subscribing the same pair twice is a no-op."""
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def subscribe_many(
        self, event_classes: Iterable[Type[DomainEvent]], handler: IEventHandler
    ) -> None:
        for event_class in event_classes:
            self.subscribe(event_class, handler)

    def handlers_for(self, event_class: Type[DomainEvent]) -> List[IEventHandler]:
        return list(self._handlers.get(event_class, []))

    def publish(self, event: DomainEvent) -> None:
        handlers = self.handlers_for(type(event))
        logger.debug("event_bus.dispatch", handlers=len(handlers), **event.log_context())
        for handler in handlers:
            handler.handle(event)

    def publish_after_commit(self, event: DomainEvent) -> None:
        """Defer ``publish`` until the surrounding transaction commits.

        Outside an atomic block Django runs the callback immediately; on
        rollback it is discarded, so handlers never see uncommitted state.
        """
        transaction.on_commit(lambda: self.publish(event))


event_bus = InMemoryEventBus()
