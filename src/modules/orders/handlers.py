"""Event handlers for Orders domain events.

Handlers run after the producing transaction commits; the events are
already durable in the outbox, so handlers only log.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCreated,
    OrderStatusChanged,
    ShipmentCreated,
    ShipmentDocketMissing,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.created_event_handled",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.status_changed_event_handled",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
            actor=event.actor,
        )


class ShipmentCreatedHandler(IEventHandler[ShipmentCreated]):
    def handle(self, event: ShipmentCreated) -> None:
        logger.info(
            "shipment.created_event_handled",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
            docket_number=event.docket_number,
        )


class ShipmentDocketMissingHandler(IEventHandler[ShipmentDocketMissing]):
    def handle(self, event: ShipmentDocketMissing) -> None:
        logger.warning(
            "shipment.docket_missing",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
            reference_number=event.reference_number,
        )


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
shipment_created_handler = ShipmentCreatedHandler()
shipment_docket_missing_handler = ShipmentDocketMissingHandler()
