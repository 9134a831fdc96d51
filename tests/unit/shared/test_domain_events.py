"""Unit tests for domain events registration on entities."""

from __future__ import annotations

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.events import OrderStatusChanged, ShipmentDocketMissing
from modules.orders.models import Order

pytestmark = pytest.mark.unit


def test_order_registers_and_clears_domain_events():
    order = Order(order_number="ORD-1760000000000-AB12CD", status=OrderStatus.PENDING)

    assert order.domain_events == []

    event = OrderStatusChanged(
        aggregate_id=order.id,
        old_status=OrderStatus.PENDING,
        new_status=OrderStatus.SHIPPED,
    )
    order.add_domain_event(event)

    assert order.domain_events == [event]
    assert event.event_name == "OrderStatusChanged"

    order.clear_domain_events()
    assert order.domain_events == []


def test_domain_events_returns_a_copy():
    order = Order(order_number="ORD-1760000000000-AB12CD")
    order.add_domain_event(ShipmentDocketMissing(aggregate_id=order.id))

    order.domain_events.clear()

    assert len(order.domain_events) == 1


def test_events_get_distinct_ids():
    order = Order(order_number="ORD-1760000000000-AB12CD")
    first = ShipmentDocketMissing(aggregate_id=order.id)
    second = ShipmentDocketMissing(aggregate_id=order.id)
    assert first.event_id != second.event_id
    assert first.occurred_on.tzinfo is not None


def test_payload_is_json_safe():
    order = Order(order_number="ORD-1760000000000-AB12CD")
    event = OrderStatusChanged(
        aggregate_id=order.id, old_status="pending", new_status="shipped", actor="ops-admin"
    )

    payload = event.to_payload()

    assert payload["aggregate_id"] == str(order.id)
    assert payload["event_name"] == "OrderStatusChanged"
    assert payload["actor"] == "ops-admin"
    assert isinstance(payload["occurred_on"], str)
