"""Ports for delivering domain events inside the process."""

from __future__ import annotations

from typing import Iterable, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol[E]):
    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    """Routes each published event to the handlers subscribed to its class."""

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None: ...

    def subscribe_many(
        self, event_classes: Iterable[Type[DomainEvent]], handler: IEventHandler
    ) -> None: ...

    def publish(self, event: DomainEvent) -> None: ...

    def publish_after_commit(self, event: DomainEvent) -> None: ...
