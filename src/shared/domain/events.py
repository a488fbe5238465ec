"""Domain event primitives shared by every module."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Something that happened to an aggregate.

    ``event_name`` is derived from the concrete class so handlers and log
    lines can name the event without importing it.
    """

    aggregate_id: Optional[Union[int, UUID]]
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", type(self).__name__)

    def log_context(self) -> Dict[str, Any]:
        return {
            "event_name": self.event_name,
            "event_id": str(self.event_id),
            "aggregate_id": self.aggregate_id,
        }


class DomainEventMixin:
    """Lets an aggregate record events until its repository dispatches them."""

    def add_domain_event(self, event: DomainEvent) -> None:
        self.__dict__.setdefault("_pending_events", []).append(event)

    def pull_domain_events(self) -> List[DomainEvent]:
        """Return the recorded events in order and forget them."""
        return self.__dict__.pop("_pending_events", [])

    @property
    def domain_events(self) -> List[DomainEvent]:
        return list(self.__dict__.get("_pending_events", []))
