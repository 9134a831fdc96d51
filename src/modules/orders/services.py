"""Order service layer (Use Cases).

Orchestrates order creation, status management and shipment creation.
Write operations are atomic: the service defines the unit-of-work
boundary and locks the order row for every mutation.

Rules enforced:
- Status must be one of the canonical order statuses.
- Under the ``strict`` transition policy, transitions must appear in the
  transition table; the default ``unrestricted`` policy accepts any.
- Every status change appends one status-history entry; changes into
  ``shipped``, ``delivered`` or ``cancelled`` also append a tracking event.
- A shipment is created at most once per order.  The guard is re-checked
  under the row lock and backed by the unique tracking-number column.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

import structlog
from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from modules.customers.exceptions import CustomerNotFound
from modules.orders.constants import (
    TRACKED_STATUSES,
    TRANSITION_POLICY_STRICT,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.events import (
    OrderCreated,
    OrderStatusChanged,
    ShipmentCreated,
    ShipmentDocketMissing,
)
from modules.orders.exceptions import (
    InvalidOrderStatus,
    InvalidStatusTransition,
    OrderNotFound,
)
from modules.shipments.constants import (
    CARRIER_NAME,
    DEFAULT_SHIPPING_SERVICE,
    SHIPPING_METHOD,
)
from modules.shipments.exceptions import ShipmentAlreadyExists
from modules.shipments.services import ShipmentGateway

if TYPE_CHECKING:
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order, TrackingEvent
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.shipments.dtos import ShipmentResultDTO

logger = structlog.get_logger(__name__)

_SHIPPABLE_FROM = {OrderStatus.PENDING, OrderStatus.CONFIRMED}


def _actor_label(actor: Any) -> Optional[str]:
    if actor is None or not getattr(actor, "is_authenticated", False):
        return None
    return actor.get_username()


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the shipment gateway via constructor
    injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: ICustomerRepository,
        shipment_gateway: Optional[ShipmentGateway] = None,
    ) -> None:
        self._order_repo = order_repository
        self._customer_repo = customer_repository
        self._gateway = shipment_gateway or ShipmentGateway()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, actor: Any = None) -> Order:
        """Create an admin-entered order with its items.

        Raises:
            CustomerNotFound: ``customer_id`` does not resolve.
        """
        log = logger.bind(customer_id=str(dto.customer_id) if dto.customer_id else None)
        log.info("order.creation_started", item_count=len(dto.items))

        if dto.customer_id is not None:
            customer = self._customer_repo.get_by_id(str(dto.customer_id))
            if not customer:
                raise CustomerNotFound(f"Customer {dto.customer_id} not found.")

        data: Dict[str, Any] = {
            "customer_id": dto.customer_id,
            "payment_method": dto.payment_method,
            "payment_method_label": dto.payment_method_label,
            "payment_status": dto.payment_status,
            "transaction_id": dto.transaction_id,
            "shipping_address": (
                dto.shipping_address.model_dump() if dto.shipping_address else None
            ),
            "billing_address": (
                dto.billing_address.model_dump() if dto.billing_address else None
            ),
            "notes": dto.notes,
            "shipping_charge": dto.shipping_charge,
            "items": [item.model_dump() for item in dto.items],
        }
        order = self._order_repo.create(data)

        self._order_repo.add_history(
            order,
            new_status=order.status,
            note="Order created",
            user=actor,
        )
        order.add_domain_event(
            OrderCreated(aggregate_id=order.id, order_number=order.order_number)
        )
        self._order_repo.save(order)

        log.info("order.created", order_id=str(order.id), order_number=order.order_number)
        return self._order_repo.get_by_id(str(order.id))

    @transaction.atomic
    def update_status(
        self,
        order_id: str,
        new_status: str,
        note: str = "",
        actor: Any = None,
    ) -> Order:
        """Set the canonical status of an order.

        Raises:
            InvalidOrderStatus: *new_status* is not a canonical status.
            OrderNotFound: the order does not exist.
            InvalidStatusTransition: strict policy rejects the transition.
        """
        if new_status not in OrderStatus.values:
            raise InvalidOrderStatus(f"Invalid order status: {new_status}")

        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        actor_name = _actor_label(actor)
        log = logger.bind(
            order_id=str(order.id),
            order_number=order.order_number,
            old_status=order.status,
            new_status=new_status,
            actor=actor_name,
        )

        policy = settings.ORDER_STATUS_TRANSITION_POLICY
        if policy == TRANSITION_POLICY_STRICT and not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidStatusTransition(
                f"Cannot transition order from '{order.status}' to '{new_status}'."
            )

        old_status = order.mark_status(new_status)
        self._order_repo.add_history(
            order,
            new_status=new_status,
            old_status=old_status,
            note=note or f"Status updated to {new_status}",
            user=actor,
        )
        if new_status in TRACKED_STATUSES:
            self._order_repo.add_tracking_event(
                order,
                status=new_status,
                carrier=order.carrier,
                docket_number=order.tracking_number or "",
                note=note or f"Order {new_status}",
                estimated_delivery=order.estimated_delivery,
            )

        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=new_status,
                actor=actor_name,
            )
        )
        self._order_repo.save(order)

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order.id))

    def create_shipment(
        self, order_id: str, actor: Any = None
    ) -> Tuple[Order, ShipmentResultDTO]:
        """Create the carrier shipment for an order and record it.

        The carrier call runs outside the database transaction; the result
        is folded back under a row lock.

        Raises:
            OrderNotFound: the order does not exist.
            ShipmentAlreadyExists: the order already has a shipment.
            ShipmentError: a precondition or carrier failure (see gateway).
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(
            order_id=str(order.id),
            order_number=order.order_number,
            actor=_actor_label(actor),
        )
        result = self._gateway.create_shipment(order)

        try:
            with transaction.atomic():
                locked = self._order_repo.get_for_update(order_id)
                if not locked:
                    raise OrderNotFound(f"Order {order_id} not found.")
                existing = locked.existing_docket
                if existing is not None:
                    log.error(
                        "shipment.duplicate_carrier_shipment",
                        docket_number=result.docket_number,
                        existing_docket=existing,
                    )
                    raise ShipmentAlreadyExists(existing)
                self._apply_shipment(locked, result, actor)
                self._order_repo.save(locked)
        except IntegrityError as exc:
            log.error(
                "shipment.duplicate_carrier_shipment",
                docket_number=result.docket_number,
                error=str(exc),
            )
            raise ShipmentAlreadyExists(result.docket_number) from exc

        log.info(
            "shipment.created",
            docket_number=result.docket_number,
            status=locked.status,
        )
        return self._order_repo.get_by_id(order_id), result

    def _apply_shipment(
        self, order: Order, result: ShipmentResultDTO, actor: Any
    ) -> None:
        docket = result.docket_number or ""

        self._order_repo.add_tracking_event(
            order,
            status=OrderStatus.SHIPPED,
            carrier=CARRIER_NAME,
            docket_number=docket,
            reference_number=result.reference_number or "",
            note=f"Shipment created via {CARRIER_NAME}",
            estimated_delivery=result.estimated_delivery or "",
        )

        old_status = order.status
        if order.status in _SHIPPABLE_FROM:
            order.mark_status(OrderStatus.SHIPPED)
        self._order_repo.add_history(
            order,
            new_status=OrderStatus.SHIPPED,
            old_status=old_status,
            note=f"Shipment created via {CARRIER_NAME}. Docket: {docket}",
            user=actor,
        )

        order.carrier = CARRIER_NAME
        order.shipping_method = SHIPPING_METHOD
        order.shipping_service = result.category_type or DEFAULT_SHIPPING_SERVICE
        order.courier_service = CARRIER_NAME
        order.tracking_number = docket or None
        order.estimated_delivery = result.estimated_delivery or ""
        metadata = {
            "sequelDocketNumber": docket,
            "sequelBRN": result.reference_number,
            "sequelClientCode": result.client_code,
        }
        if result.docket_print:
            metadata["sequelDocketPrint"] = result.docket_print
        order.shipment_metadata = metadata
        # save() replaces cod with the method named by the legacy label.
        order.payment_status = PaymentStatus.PAID

        order.add_domain_event(
            ShipmentCreated(
                aggregate_id=order.id,
                order_number=order.order_number,
                docket_number=docket,
                carrier=CARRIER_NAME,
            )
        )
        if old_status != order.status:
            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    old_status=old_status,
                    new_status=order.status,
                    actor=_actor_label(actor),
                )
            )
        if not docket:
            order.add_domain_event(
                ShipmentDocketMissing(
                    aggregate_id=order.id,
                    order_number=order.order_number,
                    reference_number=result.reference_number or "",
                )
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        return self._order_repo.list(filters)

    def list_tracking_events(self, order_id: str) -> QuerySet[TrackingEvent]:
        self.get_order(order_id)
        return self._order_repo.list_tracking_events(order_id)
