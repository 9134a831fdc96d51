"""Unit tests for OrderService.

Covers:
- Order creation with history and customer validation.
- Status updates: validation, history, tracking events, strict policy.
- Shipment creation: carrier result folded into the order, duplicate
  guard under the row lock, rejected shipments leave the order untouched.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.customers.exceptions import CustomerNotFound
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import (
    InvalidOrderStatus,
    InvalidStatusTransition,
    OrderNotFound,
)
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.shipments.dtos import ShipmentResultDTO
from modules.shipments.exceptions import CarrierRejected, ShipmentAlreadyExists
from modules.shipments.services import ShipmentGateway

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def gateway():
    return MagicMock(spec=ShipmentGateway)


@pytest.fixture()
def service(gateway):
    return OrderService(
        order_repository=OrderDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        shipment_gateway=gateway,
    )


def _result(**overrides) -> ShipmentResultDTO:
    data = {
        "docket_number": "9988776655",
        "reference_number": "BRN-4471",
        "client_code": "TESTSTORE01",
        "category_type": "secure diamond & jewellery",
        "estimated_delivery": "2026-10-20",
        "message": "Shipment created",
    }
    data.update(overrides)
    return ShipmentResultDTO(**data)


# ---------------------------------------------------------------------------
# create_order
# ---------------------------------------------------------------------------


class TestCreateOrder:
    def test_creates_order_with_items_and_history(self, service, customer, admin_user):
        dto = CreateOrderDTO(
            customer_id=customer.id,
            items=[
                {"name": "Emerald Pendant", "unit_price": "18000.00", "quantity": 2},
                {"name": "Gold Chain", "unit_price": "22000.00"},
            ],
            shipping_charge="150.00",
            payment_method="upi",
        )

        order = service.create_order(dto, actor=admin_user)

        assert order.status == OrderStatus.PENDING
        assert order.order_status == "pending"
        assert order.items.count() == 2
        assert order.subtotal == Decimal("58000.00")
        assert order.gst == Decimal("1740.00")
        assert order.total_amount == Decimal("59890.00")
        assert order.payment_method_label == "UPI"

        history = list(order.status_history.all())
        assert len(history) == 1
        assert history[0].old_status is None
        assert history[0].new_status == OrderStatus.PENDING
        assert history[0].note == "Order created"
        assert history[0].user == admin_user

    def test_items_keep_request_order(self, service):
        dto = CreateOrderDTO(
            items=[{"name": f"Charm {i}", "unit_price": "500"} for i in range(3)]
        )
        order = service.create_order(dto)
        assert [item.name for item in order.items.all()] == ["Charm 0", "Charm 1", "Charm 2"]

    def test_unknown_customer(self, service):
        dto = CreateOrderDTO(
            customer_id=uuid4(), items=[{"name": "Ring", "unit_price": "100"}]
        )
        with pytest.raises(CustomerNotFound):
            service.create_order(dto)
        assert Order.objects.count() == 0


# ---------------------------------------------------------------------------
# update_status
# ---------------------------------------------------------------------------


class TestUpdateStatus:
    def test_records_history_with_default_note(self, service, make_order):
        order = make_order()

        updated = service.update_status(str(order.id), OrderStatus.CONFIRMED)

        assert updated.status == OrderStatus.CONFIRMED
        assert updated.order_status == "processing"
        last = list(updated.status_history.all())[-1]
        assert last.old_status == OrderStatus.PENDING
        assert last.new_status == OrderStatus.CONFIRMED
        assert last.note == "Status updated to confirmed"
        assert last.user is None

    def test_custom_note_is_kept(self, service, make_order):
        order = make_order()
        updated = service.update_status(
            str(order.id), OrderStatus.IN_PRODUCTION, note="Sent to karigar"
        )
        assert list(updated.status_history.all())[-1].note == "Sent to karigar"

    @pytest.mark.parametrize(
        "new_status, tracked",
        [
            ("pending", False),
            ("confirmed", False),
            ("in_production", False),
            ("ready_for_dispatch", False),
            ("shipped", True),
            ("delivered", True),
            ("cancelled", True),
            ("refunded", False),
        ],
    )
    def test_tracking_event_only_for_tracked_statuses(
        self, service, make_order, new_status, tracked
    ):
        order = make_order()
        updated = service.update_status(str(order.id), new_status)
        assert updated.tracking_events.count() == (1 if tracked else 0)

    def test_tracking_event_carries_shipping_details(self, service, make_order):
        order = make_order(
            carrier="Sequel Logistics",
            tracking_number="1234509876",
            estimated_delivery="2026-10-21",
        )
        updated = service.update_status(str(order.id), OrderStatus.DELIVERED)

        event = updated.tracking_events.get()
        assert event.status == OrderStatus.DELIVERED
        assert event.carrier == "Sequel Logistics"
        assert event.docket_number == "1234509876"
        assert event.note == "Order delivered"
        assert updated.delivered_at is not None

    def test_same_status_still_appends_history(self, service, make_order):
        order = make_order()
        updated = service.update_status(str(order.id), OrderStatus.PENDING)
        assert updated.status_history.count() == 1

    def test_unknown_status(self, service, make_order):
        order = make_order()
        with pytest.raises(InvalidOrderStatus, match="Invalid order status: lost"):
            service.update_status(str(order.id), "lost")
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_unknown_order(self, service):
        with pytest.raises(OrderNotFound):
            service.update_status(str(uuid4()), OrderStatus.CONFIRMED)

    def test_unrestricted_policy_allows_any_transition(self, service, make_order):
        order = make_order(status=OrderStatus.DELIVERED)
        updated = service.update_status(str(order.id), OrderStatus.PENDING)
        assert updated.status == OrderStatus.PENDING

    def test_strict_policy_rejects_invalid_transition(self, service, make_order, settings):
        settings.ORDER_STATUS_TRANSITION_POLICY = "strict"
        order = make_order(status=OrderStatus.DELIVERED)

        with pytest.raises(InvalidStatusTransition):
            service.update_status(str(order.id), OrderStatus.PENDING)

        order.refresh_from_db()
        assert order.status == OrderStatus.DELIVERED
        assert order.status_history.count() == 0

    def test_strict_policy_allows_listed_transition(self, service, make_order, settings):
        settings.ORDER_STATUS_TRANSITION_POLICY = "strict"
        order = make_order()
        updated = service.update_status(str(order.id), OrderStatus.CONFIRMED)
        assert updated.status == OrderStatus.CONFIRMED


# ---------------------------------------------------------------------------
# create_shipment
# ---------------------------------------------------------------------------


class TestCreateShipment:
    def test_folds_result_into_order(self, service, gateway, make_order, admin_user):
        order = make_order(payment_method="cod", payment_method_label="UPI")
        gateway.create_shipment.return_value = _result()

        updated, result = service.create_shipment(str(order.id), actor=admin_user)

        assert result.docket_number == "9988776655"
        assert updated.status == OrderStatus.SHIPPED
        assert updated.order_status == "shipped"
        assert updated.shipped_at is not None
        assert updated.carrier == "Sequel Logistics"
        assert updated.shipping_method == "sequel247"
        assert updated.shipping_service == "secure diamond & jewellery"
        assert updated.tracking_number == "9988776655"
        assert updated.estimated_delivery == "2026-10-20"
        assert updated.payment_status == PaymentStatus.PAID
        assert updated.payment_status_label == "Paid"
        assert updated.payment_method == "upi"
        assert updated.shipment_metadata == {
            "sequelDocketNumber": "9988776655",
            "sequelBRN": "BRN-4471",
            "sequelClientCode": "TESTSTORE01",
        }

        event = updated.tracking_events.get()
        assert event.status == OrderStatus.SHIPPED
        assert event.docket_number == "9988776655"
        assert event.reference_number == "BRN-4471"
        assert event.note == "Shipment created via Sequel Logistics"

        history = list(updated.status_history.all())[-1]
        assert history.old_status == OrderStatus.PENDING
        assert history.new_status == OrderStatus.SHIPPED
        assert history.note == "Shipment created via Sequel Logistics. Docket: 9988776655"
        assert history.user == admin_user

    def test_docket_print_kept_in_metadata(self, service, gateway, make_order):
        order = make_order()
        gateway.create_shipment.return_value = _result(docket_print="https://cdn/label.pdf")
        updated, _ = service.create_shipment(str(order.id))
        assert updated.shipment_metadata["sequelDocketPrint"] == "https://cdn/label.pdf"

    def test_production_status_is_not_advanced(self, service, gateway, make_order):
        order = make_order(status=OrderStatus.IN_PRODUCTION)
        gateway.create_shipment.return_value = _result()

        updated, _ = service.create_shipment(str(order.id))

        assert updated.status == OrderStatus.IN_PRODUCTION
        assert updated.shipped_at is None
        history = list(updated.status_history.all())[-1]
        assert history.old_status == OrderStatus.IN_PRODUCTION
        assert history.new_status == OrderStatus.SHIPPED

    def test_missing_docket_is_recorded(self, service, gateway, make_order):
        order = make_order()
        gateway.create_shipment.return_value = _result(docket_number=None)

        updated, _ = service.create_shipment(str(order.id))

        assert updated.tracking_number is None
        assert updated.shipment_metadata["sequelDocketNumber"] == ""
        assert updated.tracking_events.get().docket_number == ""
        assert updated.has_shipment

    def test_rejection_leaves_order_untouched(self, make_order, gateway):
        repo = MagicMock(wraps=OrderDjangoRepository())
        service = OrderService(repo, CustomerDjangoRepository(), gateway)
        order = make_order()
        gateway.create_shipment.side_effect = CarrierRejected("pincode not serviceable")

        with pytest.raises(CarrierRejected, match="pincode not serviceable"):
            service.create_shipment(str(order.id))

        repo.get_for_update.assert_not_called()
        repo.save.assert_not_called()
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING
        assert order.tracking_number is None
        assert order.tracking_events.count() == 0

    def test_shipment_recorded_while_carrier_call_ran(self, service, gateway, make_order):
        order = make_order()

        def _concurrent_create(target):
            Order.objects.filter(id=target.id).update(tracking_number="1111122222")
            return _result()

        gateway.create_shipment.side_effect = _concurrent_create

        with pytest.raises(ShipmentAlreadyExists, match="Docket: 1111122222"):
            service.create_shipment(str(order.id))

        order.refresh_from_db()
        assert order.tracking_number == "1111122222"
        assert order.tracking_events.count() == 0

    def test_duplicate_tracking_number_is_conflict(self, service, gateway, make_order):
        make_order(tracking_number="9988776655")
        order = make_order()
        gateway.create_shipment.return_value = _result()

        with pytest.raises(ShipmentAlreadyExists):
            service.create_shipment(str(order.id))

        order.refresh_from_db()
        assert order.tracking_number is None
        assert order.status == OrderStatus.PENDING

    def test_unknown_order(self, service, gateway):
        with pytest.raises(OrderNotFound):
            service.create_shipment(str(uuid4()))
        gateway.create_shipment.assert_not_called()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestQueries:
    def test_get_order_not_found(self, service):
        with pytest.raises(OrderNotFound):
            service.get_order(str(uuid4()))

    def test_get_order_invalid_id(self, service):
        with pytest.raises(OrderNotFound):
            service.get_order("not-a-uuid")

    def test_list_tracking_events_unknown_order(self, service):
        with pytest.raises(OrderNotFound):
            service.list_tracking_events(str(uuid4()))

    def test_list_orders_with_filters(self, service, make_order):
        make_order(status=OrderStatus.SHIPPED)
        make_order()
        assert service.list_orders({"status": OrderStatus.SHIPPED}).count() == 1
