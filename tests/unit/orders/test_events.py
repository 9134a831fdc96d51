"""Unit tests for order domain events, the outbox and the event bus.

Covers:
- Events are persisted to the outbox in the saving transaction.
- Committed events are dispatched to the bus and marked published.
- A failing handler marks its outbox row failed.
"""

from __future__ import annotations

import logging

import pytest

from modules.core.models import EventStatus, OutboxEvent
from modules.orders.events import (
    OrderCreated,
    OrderStatusChanged,
    ShipmentCreated,
    ShipmentDocketMissing,
)
from modules.orders.handlers import shipment_docket_missing_handler
from modules.orders.repositories.django_repository import OrderDjangoRepository
from shared.infrastructure.bus import InMemoryEventBus, event_bus

pytestmark = pytest.mark.unit


class _FailingHandler:
    def handle(self, event):
        raise RuntimeError("notification service down")


class TestEventPayloads:
    def test_event_name_is_class_name(self, make_order):
        order = make_order()
        event = ShipmentCreated(
            aggregate_id=order.id,
            order_number=order.order_number,
            docket_number="9988776655",
            carrier="Sequel Logistics",
        )
        assert event.event_name == "ShipmentCreated"

    def test_events_are_immutable(self, make_order):
        event = OrderCreated(aggregate_id=make_order().id, order_number="ORD-1")
        with pytest.raises(AttributeError):
            event.order_number = "ORD-2"


class TestOutbox:
    def test_save_writes_outbox_rows(self, make_order):
        order = make_order()
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id, old_status="pending", new_status="confirmed"
            )
        )

        OrderDjangoRepository().save(order)

        row = OutboxEvent.objects.filter(aggregate_id=str(order.id)).get(event_type="OrderStatusChanged")
        assert row.aggregate_id == str(order.id)
        assert row.topic == "orders"
        assert row.payload["new_status"] == "confirmed"
        assert row.payload["aggregate_id"] == str(order.id)
        assert row.status == EventStatus.PENDING
        assert order.domain_events == []

    def test_committed_events_are_published(
        self, make_order, django_capture_on_commit_callbacks
    ):
        order = make_order()
        order.add_domain_event(
            OrderCreated(aggregate_id=order.id, order_number=order.order_number)
        )

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            OrderDjangoRepository().save(order)

        assert len(callbacks) == 1
        row = OutboxEvent.objects.get(event_type="OrderCreated")
        assert row.status == EventStatus.PUBLISHED
        assert row.processed_at is not None

    def test_handler_failure_marks_row_failed(
        self, make_order, django_capture_on_commit_callbacks
    ):
        order = make_order()
        failing = _FailingHandler()
        event_bus.subscribe(OrderCreated, failing)
        try:
            order.add_domain_event(
                OrderCreated(aggregate_id=order.id, order_number=order.order_number)
            )
            with django_capture_on_commit_callbacks(execute=True):
                OrderDjangoRepository().save(order)
        finally:
            event_bus._handlers[OrderCreated].remove(failing)

        row = OutboxEvent.objects.get(event_type="OrderCreated")
        assert row.status == EventStatus.FAILED
        assert "notification service down" in row.error_message
        assert row.retry_count == 1


class TestEventBus:
    def test_remaining_handlers_still_run(self, make_order):
        bus = InMemoryEventBus()
        seen = []

        class _Recorder:
            def handle(self, event):
                seen.append(event)

        bus.subscribe(OrderCreated, _FailingHandler())
        bus.subscribe(OrderCreated, _Recorder())
        event = OrderCreated(aggregate_id=make_order().id)

        errors = bus.publish(event)

        assert seen == [event]
        assert errors == ["_FailingHandler: notification service down"]

    def test_subscribe_is_idempotent(self):
        bus = InMemoryEventBus()
        handler = _FailingHandler()
        bus.subscribe(OrderCreated, handler)
        bus.subscribe(OrderCreated, handler)
        assert len(bus._handlers[OrderCreated]) == 1

    def test_docket_missing_handler_warns(self, make_order, caplog):
        order = make_order()
        event = ShipmentDocketMissing(
            aggregate_id=order.id,
            order_number=order.order_number,
            reference_number="BRN-77",
        )
        with caplog.at_level(logging.WARNING, logger="modules.orders.handlers"):
            shipment_docket_missing_handler.handle(event)

        assert any(
            "shipment.docket_missing" in record.getMessage()
            and "BRN-77" in record.getMessage()
            and record.levelno == logging.WARNING
            for record in caplog.records
        )
