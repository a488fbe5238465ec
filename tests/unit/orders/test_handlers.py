"""Unit tests for Orders event handlers and the in-memory bus."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from modules.orders.events import OrderCreated, OrderDeleted, OrdersPurged, OrderStatusChanged
from modules.orders.handlers import (
    NOTIFYING_EVENTS,
    OrdersChangedHandler,
    orders_changed_handler,
)
from shared.infrastructure.bus import InMemoryEventBus, event_bus

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "event",
    [
        OrderCreated(aggregate_id=1, order_number="ORD-1"),
        OrderStatusChanged(aggregate_id=1, action="cancel", to_status="canceled", version=2),
        OrderDeleted(aggregate_id=1),
        OrdersPurged(aggregate_id=None, count=3),
    ],
    ids=lambda event: event.event_name,
)
def test_every_order_event_notifies_once(event):
    notifier = MagicMock()
    OrdersChangedHandler(notifier).handle(event)
    notifier.notify_orders_changed.assert_called_once_with()


def test_handler_is_subscribed_to_every_order_event():
    for event_class in NOTIFYING_EVENTS:
        assert orders_changed_handler in event_bus.handlers_for(event_class)


def test_in_memory_event_bus_routes_events():
    bus = InMemoryEventBus()
    handled = []

    class CapturingHandler:
        def handle(self, event) -> None:
            handled.append(event)

    handler = CapturingHandler()
    bus.subscribe(OrderCreated, handler)
    bus.subscribe(OrderCreated, handler)

    event = OrderCreated(aggregate_id=7)
    bus.publish(event)
    bus.publish(OrderDeleted(aggregate_id=7))

    assert handled == [event]


def test_handler_logs_received_event(caplog):
    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        OrdersChangedHandler(MagicMock()).handle(OrderDeleted(aggregate_id=11))

    assert any("order.event.received" in record.getMessage() for record in caplog.records)


def test_publish_after_commit_defers_until_commit(django_capture_on_commit_callbacks):
    bus = InMemoryEventBus()
    handler = MagicMock()
    bus.subscribe_many(NOTIFYING_EVENTS, handler)

    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        bus.publish_after_commit(OrderCreated(aggregate_id=3))
        handler.handle.assert_not_called()

    callbacks[0]()
    handler.handle.assert_called_once()
