"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).  Business
logic lives in the Service Layer, which receives Pydantic DTOs from
``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import (
    DEFAULT_CURRENCY,
    DEFAULT_TAX_RATE,
    PaymentMethod,
    PaymentStatus,
)
from modules.orders.models import Order, OrderItem, OrderStatusHistory, TrackingEvent

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class AddressSerializer(serializers.Serializer):
    line1 = serializers.CharField(max_length=255)
    line2 = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    city = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    state = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    postal_code = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    country = serializers.CharField(max_length=100, required=False, default="India")


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single jewelry line in an order creation request."""

    name = serializers.CharField(max_length=255)
    sku = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1, default=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    currency = serializers.CharField(max_length=3, required=False, default=DEFAULT_CURRENCY)
    specification = serializers.DictField(required=False, default=dict)
    gross_weight_g = serializers.DecimalField(
        max_digits=10, decimal_places=3, required=False, allow_null=True, default=None
    )
    net_gold_weight_g = serializers.DecimalField(
        max_digits=10, decimal_places=3, required=False, allow_null=True, default=None
    )
    discount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, default=0
    )
    tax_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, required=False, default=DEFAULT_TAX_RATE
    )


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    customer_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    shipping_address = AddressSerializer(required=False, allow_null=True, default=None)
    billing_address = AddressSerializer(required=False, allow_null=True, default=None)
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, required=False, default=PaymentMethod.CARD
    )
    payment_method_label = serializers.CharField(
        max_length=30, required=False, allow_blank=True, default=""
    )
    payment_status = serializers.ChoiceField(
        choices=PaymentStatus.choices, required=False, default=PaymentStatus.PENDING
    )
    transaction_id = serializers.CharField(
        max_length=100, required=False, allow_blank=True, default=""
    )
    shipping_charge = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, default=0
    )
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateStatusSerializer(serializers.Serializer):
    """Status is checked against the canonical values by the service."""

    status = serializers.CharField(max_length=32)
    note = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "position",
            "name",
            "sku",
            "quantity",
            "unit_price",
            "currency",
            "specification",
            "gross_weight_g",
            "net_gold_weight_g",
            "subtotal",
            "discount",
            "tax_rate",
            "tax",
            "total",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    user = serializers.CharField(source="user.get_username", read_only=True, default=None)

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "note",
            "user",
            "created_at",
        ]
        read_only_fields = fields


class TrackingEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = TrackingEvent
        fields = [
            "id",
            "status",
            "timestamp",
            "carrier",
            "docket_number",
            "reference_number",
            "note",
            "estimated_delivery",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Full order with items, status history and tracking events."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)
    tracking_events = TrackingEventSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "order_status",
            "pricing",
            "subtotal",
            "discount_amount",
            "shipping_charge",
            "gst",
            "total_amount",
            "payment_method",
            "payment_method_label",
            "payment_status",
            "payment_status_label",
            "transaction_id",
            "shipping_address",
            "billing_address",
            "carrier",
            "shipping_method",
            "shipping_service",
            "tracking_number",
            "courier_service",
            "estimated_delivery",
            "shipment_metadata",
            "shipped_at",
            "delivered_at",
            "cancelled_at",
            "notes",
            "created_at",
            "updated_at",
            "items",
            "status_history",
            "tracking_events",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight read serializer for order listings."""

    customer_name = serializers.CharField(
        source="customer.full_name", read_only=True, default=None
    )

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "customer_name",
            "status",
            "order_status",
            "payment_status",
            "total_amount",
            "tracking_number",
            "created_at",
        ]
        read_only_fields = fields
