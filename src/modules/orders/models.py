"""Order aggregate: Order, OrderItem, OrderStatusHistory and TrackingEvent.

Rules enforced at persist time (``Order.save``):
- The legacy ``order_status`` is a projection of the canonical ``status``.
- The flattened pricing columns are copied from the canonical ``pricing``
  document in the same write.
- ``cod`` is never stored as the payment method; legacy payment labels are
  re-derived from the canonical method and status.
- ``order_number`` is generated on first insert and regenerated on a
  uniqueness collision (bounded retries).

Status history and tracking events are append-only child records.
"""

from __future__ import annotations

import secrets
import string
import time
from decimal import Decimal
from typing import Any, Optional

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import IntegrityError, models, transaction
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    DEFAULT_CURRENCY,
    DEFAULT_TAX_RATE,
    LEGACY_LABEL_TO_METHOD,
    ORDER_NUMBER_MAX_RETRIES,
    ORDER_NUMBER_PREFIX,
    ORDER_NUMBER_SUFFIX_LENGTH,
    PAYMENT_METHOD_LABELS,
    PAYMENT_STATUS_LABELS,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    LegacyOrderStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    legacy_status_for,
)
from modules.orders.dtos import PricingRecord
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)

_BASE36_ALPHABET = string.digits + string.ascii_uppercase
_CENTS = Decimal("0.01")

# Status -> timeline field stamped on first entry into that status.
_TIMELINE_FIELDS = {
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``order_number`` is the human-readable identifier
    (``ORD-<epoch millis>-<6 base36 chars>``); the UUIDv7 ``id`` is used for
    internal references and API lookups.

    ``customer`` is nullable: orders imported from the storefront may carry
    a customer reference that no longer resolves.  Such orders can be read
    and updated but shipment creation rejects them.
    """

    order_number: models.CharField = models.CharField(
        max_length=32, unique=True, editable=False
    )
    customer: models.ForeignKey = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )

    # Status --------------------------------------------------------------
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    order_status: models.CharField = models.CharField(
        max_length=20,
        choices=LegacyOrderStatus.choices,
        default=LegacyOrderStatus.PENDING,
        editable=False,
    )

    # Pricing -------------------------------------------------------------
    pricing: models.JSONField = models.JSONField(default=dict, blank=True)
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"), editable=False
    )
    discount_amount: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"), editable=False
    )
    shipping_charge: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"), editable=False
    )
    gst: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"), editable=False
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"), editable=False
    )

    # Payment -------------------------------------------------------------
    payment_method: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CARD,
    )
    payment_method_label: models.CharField = models.CharField(
        max_length=30, blank=True, default=""
    )
    payment_status: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_status_label: models.CharField = models.CharField(
        max_length=30, blank=True, default="", editable=False
    )
    transaction_id: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )

    # Addresses -----------------------------------------------------------
    shipping_address: models.JSONField = models.JSONField(null=True, blank=True)
    billing_address: models.JSONField = models.JSONField(null=True, blank=True)

    # Shipping ------------------------------------------------------------
    carrier: models.CharField = models.CharField(max_length=100, blank=True, default="")
    shipping_method: models.CharField = models.CharField(
        max_length=50, blank=True, default=""
    )
    shipping_service: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )
    tracking_number: models.CharField = models.CharField(  # noqa: DJ01
        max_length=50, unique=True, null=True, blank=True
    )
    courier_service: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )
    estimated_delivery: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )
    shipment_metadata: models.JSONField = models.JSONField(default=dict, blank=True)
    shipped_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    delivered_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    cancelled_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["order_status"], name="orders_legacy_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check *new_status* against the strict transition table."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def mark_status(self, new_status: str, at=None) -> str:
        """Set the canonical status and stamp its timeline date once.

        Returns the previous status.  Does not save.
        """
        old_status = self.status
        self.status = new_status
        field = _TIMELINE_FIELDS.get(new_status)
        if field and getattr(self, field) is None:
            setattr(self, field, at or timezone.now())
        return old_status

    # ------------------------------------------------------------------
    # Shipment guard
    # ------------------------------------------------------------------

    @property
    def existing_docket(self) -> Optional[str]:
        """Docket number of an already-created shipment, if any."""
        for event in self.tracking_events.all():
            if event.docket_number:
                return event.docket_number
        if self.tracking_number:
            return self.tracking_number
        if self.shipment_metadata:
            return self.shipment_metadata.get("sequelDocketNumber") or ""
        return None

    @property
    def has_shipment(self) -> bool:
        return self.existing_docket is not None

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    @property
    def pricing_record(self) -> PricingRecord:
        return PricingRecord.model_validate(
            self.pricing or {"currency": DEFAULT_CURRENCY}
        )

    def recalculate_pricing(self, shipping: Optional[Decimal] = None) -> PricingRecord:
        """Rebuild the canonical pricing document from the saved items."""
        items = list(self.items.all())
        current = self.pricing_record
        if shipping is None:
            shipping = current.shipping
        currency = items[0].currency if items else current.currency
        subtotal = sum((item.subtotal for item in items), Decimal("0.00"))
        discount = sum((item.discount for item in items), Decimal("0.00"))
        tax = sum((item.tax for item in items), Decimal("0.00"))
        record = PricingRecord(
            currency=currency,
            subtotal=subtotal,
            discount=discount,
            shipping=shipping,
            tax=tax,
            total=subtotal - discount + shipping + tax,
        )
        self.pricing = record.model_dump(mode="json")
        return record

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Return ``ORD-<epoch millis>-<6 random base36 chars>``."""
        millis = int(time.time() * 1000)
        suffix = "".join(
            secrets.choice(_BASE36_ALPHABET) for _ in range(ORDER_NUMBER_SUFFIX_LENGTH)
        )
        return f"{ORDER_NUMBER_PREFIX}-{millis}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def sync_derived_fields(self) -> None:
        """Recompute every legacy/derived column from its canonical source."""
        self.order_status = legacy_status_for(self.status)

        record = self.pricing_record
        self.pricing = record.model_dump(mode="json")
        self.subtotal = record.subtotal
        self.discount_amount = record.discount
        self.shipping_charge = record.shipping
        self.gst = record.tax
        self.total_amount = record.total

        if self.payment_method == PaymentMethod.COD:
            # The legacy label wins over the card default, so "UPI" yields upi.
            normalized = LEGACY_LABEL_TO_METHOD.get(
                self.payment_method_label, PaymentMethod.CARD
            )
            logger.warning(
                "order.cod_payment_normalized",
                order_number=self.order_number,
                payment_method=normalized,
            )
            self.payment_method = normalized
        if LEGACY_LABEL_TO_METHOD.get(self.payment_method_label) != self.payment_method:
            self.payment_method_label = PAYMENT_METHOD_LABELS[self.payment_method]
        self.payment_status_label = PAYMENT_STATUS_LABELS[self.payment_status]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.sync_derived_fields()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = list(update_fields) + [
                f for f in _DERIVED_FIELDS if f not in update_fields
            ]

        if not self._state.adding or self.order_number:
            super().save(*args, **kwargs)
            return

        for attempt in range(1, ORDER_NUMBER_MAX_RETRIES + 1):
            self.order_number = self.generate_order_number()
            try:
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                if not Order.objects.filter(order_number=self.order_number).exists():
                    self.order_number = ""
                    raise
                logger.warning(
                    "order.order_number_collision",
                    order_number=self.order_number,
                    attempt=attempt,
                )
        self.order_number = ""
        raise RuntimeError(
            f"Failed to generate unique order_number after "
            f"{ORDER_NUMBER_MAX_RETRIES} attempts"
        )

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


_DERIVED_FIELDS = (
    "order_status",
    "pricing",
    "subtotal",
    "discount_amount",
    "shipping_charge",
    "gst",
    "total_amount",
    "payment_method",
    "payment_method_label",
    "payment_status_label",
)


class OrderItem(BaseModel):
    """Jewelry line item.

    ``name``, ``sku`` and prices are snapshots taken when the order was
    placed.  ``subtotal``, ``tax`` and ``total`` are recalculated on every
    save.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    position: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    name: models.CharField = models.CharField(max_length=255)
    sku: models.CharField = models.CharField(max_length=100, blank=True, default="")
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2
    )
    currency: models.CharField = models.CharField(
        max_length=3, default=DEFAULT_CURRENCY
    )
    # metal, stone, dimensions, customization
    specification: models.JSONField = models.JSONField(default=dict, blank=True)
    gross_weight_g: models.DecimalField = models.DecimalField(
        max_digits=10, decimal_places=3, null=True, blank=True
    )
    net_gold_weight_g: models.DecimalField = models.DecimalField(
        max_digits=10, decimal_places=3, null=True, blank=True
    )
    discount: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    tax_rate: models.DecimalField = models.DecimalField(
        max_digits=5, decimal_places=2, default=DEFAULT_TAX_RATE
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, editable=False
    )
    tax: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, editable=False
    )
    total: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, editable=False
    )

    class Meta:
        db_table = "order_items"
        ordering = ["position", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def calculate_totals(self) -> None:
        unit_price = Decimal(self.unit_price)
        discount = Decimal(self.discount or 0)
        self.subtotal = (unit_price * self.quantity).quantize(_CENTS)
        taxable = self.subtotal - discount
        self.tax = (taxable * Decimal(self.tax_rate) / 100).quantize(_CENTS)
        self.total = taxable + self.tax

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.calculate_totals()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} x{self.quantity} ({self.currency} {self.total})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``user`` is nullable: ``None`` means the change was performed by the
    system.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    note: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.new_status}"


class TrackingEvent(BaseModel):
    """Append-only shipment tracking entry shown to the customer."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="tracking_events",
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    timestamp: models.DateTimeField = models.DateTimeField(default=timezone.now)
    carrier: models.CharField = models.CharField(max_length=100, blank=True, default="")
    docket_number: models.CharField = models.CharField(
        max_length=20, blank=True, default=""
    )
    reference_number: models.CharField = models.CharField(
        max_length=50, blank=True, default=""
    )
    note: models.TextField = models.TextField(blank=True, default="")
    estimated_delivery: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )

    class Meta:
        db_table = "order_tracking_events"
        ordering = ["timestamp", "created_at"]
        indexes = [
            models.Index(
                fields=["order", "timestamp"],
                name="ote_order_timestamp_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.status} @ {self.timestamp:%Y-%m-%d %H:%M}"
