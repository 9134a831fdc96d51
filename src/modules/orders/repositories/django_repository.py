"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Write
operations run inside ``transaction.atomic()`` so the Order aggregate
(order row, items, logs and outbox events) is persisted atomically.

Concurrency control on mutations uses ``select_for_update()`` on the
order row.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.core.models import OutboxEvent
from modules.orders.models import Order, OrderItem, OrderStatusHistory, TrackingEvent
from modules.orders.repositories.interfaces import IOrderRepository
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"
_RELATED = ("items", "status_history", "status_history__user", "tracking_events")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        data = dict(data)
        items = data.pop("items", [])
        shipping = data.pop("shipping_charge", None)

        order = Order(**data)
        order.save()

        for position, item_data in enumerate(items):
            OrderItem(order=order, position=position, **item_data).save()

        order.recalculate_pricing(shipping=shipping)
        order.save(update_fields=["pricing"])

        logger.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_related("customer")
                .prefetch_related(*_RELATED)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Must be called inside a transaction.  ``of=("self",)`` keeps the
        lock on the order row when the customer join is present.
        """
        try:
            return (
                Order.objects.select_for_update(of=("self",))
                .select_related("customer")
                .prefetch_related(*_RELATED)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = Order.objects.select_related("customer").prefetch_related(*_RELATED)
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_tracking_events(self, order_id: str) -> QuerySet:
        return TrackingEvent.objects.filter(order_id=order_id).order_by(
            "timestamp", "created_at"
        )

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and move its pending domain events to the outbox.

        Events are handed to the in-process bus only once the surrounding
        transaction commits.
        """
        entity.save()

        events = entity.domain_events
        for event in events:
            outbox = OutboxEvent.record(event, topic=OUTBOX_TOPIC)
            transaction.on_commit(lambda o=outbox, e=event: _dispatch(o, e))
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # Child logs
    # ------------------------------------------------------------------

    def add_history(
        self,
        order: Order,
        new_status: str,
        old_status: Optional[str] = None,
        note: str = "",
        user: Any = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order=order,
            old_status=old_status,
            new_status=new_status,
            note=note,
            user=user if getattr(user, "is_authenticated", False) else None,
        )
        logger.info(
            "order.history_added",
            order_id=str(order.id),
            old_status=old_status,
            new_status=new_status,
        )
        return history

    def add_tracking_event(self, order: Order, **fields: Any) -> TrackingEvent:
        event = TrackingEvent.objects.create(order=order, **fields)
        logger.info(
            "order.tracking_event_added",
            order_id=str(order.id),
            status=event.status,
            docket_number=event.docket_number,
        )
        return event


def _dispatch(outbox: OutboxEvent, event: DomainEvent) -> None:
    """Deliver a committed event and record the outcome on its outbox row."""
    errors = event_bus.publish(event)
    if errors:
        outbox.mark_as_failed("; ".join(errors))
    else:
        outbox.mark_as_published()

