"""Unit tests for domain event recording on aggregates."""

from __future__ import annotations

import pytest

from modules.orders.events import OrderCreated, OrderStatusChanged
from modules.orders.models import Order

pytestmark = pytest.mark.unit


def test_order_records_and_hands_over_events():
    order = Order(order_number="ORD-20260301-AAAAAA")
    assert order.domain_events == []

    created = OrderCreated(aggregate_id=1, order_number=order.order_number)
    changed = OrderStatusChanged(aggregate_id=1, action="cancel", to_status="canceled")
    order.add_domain_event(created)
    order.add_domain_event(changed)

    assert order.pull_domain_events() == [created, changed]
    assert order.pull_domain_events() == []
    assert order.domain_events == []


def test_event_name_and_log_context():
    event = OrderStatusChanged(aggregate_id=9, action="mark_paid", version=4)

    assert event.event_name == "OrderStatusChanged"
    context = event.log_context()
    assert context["aggregate_id"] == 9
    assert context["event_name"] == "OrderStatusChanged"
    assert context["event_id"] == str(event.event_id)


def test_events_are_immutable():
    event = OrderCreated(aggregate_id=1)
    with pytest.raises(AttributeError):
        event.order_number = "changed"
