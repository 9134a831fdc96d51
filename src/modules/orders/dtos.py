"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  These are the
contracts between the API layer (DRF serializers), the service layer and
the persisted JSON documents.  DTOs are immutable (``frozen=True``).

- ``PricingRecord``: canonical pricing document stored on the order.
- ``ShippingAddressDTO``: postal address document.
- ``CreateOrderItemDTO`` / ``CreateOrderDTO``: order creation input.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.orders.constants import (
    DEFAULT_CURRENCY,
    DEFAULT_TAX_RATE,
    PaymentMethod,
    PaymentStatus,
)

_CENTS = Decimal("0.01")


def _to_cents(value: Any) -> Decimal:
    try:
        return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}") from None


class PricingRecord(BaseModel):
    """Canonical pricing of an order, amounts rounded to 2 decimals."""

    model_config = ConfigDict(frozen=True)

    currency: str = DEFAULT_CURRENCY
    subtotal: Decimal = Decimal("0.00")
    discount: Decimal = Decimal("0.00")
    shipping: Decimal = Decimal("0.00")
    tax: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")

    @field_validator("subtotal", "discount", "shipping", "tax", "total", mode="before")
    @classmethod
    def quantize_amount(cls, v: Any) -> Decimal:
        return _to_cents(v if v is not None else 0)

    @field_validator("subtotal", "discount", "shipping", "tax", "total")
    @classmethod
    def amount_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Amounts cannot be negative.")
        return v


class ShippingAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    line1: str
    line2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "India"


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single jewelry line in a creation request."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=255)
    sku: str = ""
    quantity: int = 1
    unit_price: Decimal
    currency: str = DEFAULT_CURRENCY
    specification: Dict[str, Any] = Field(default_factory=dict)
    gross_weight_g: Optional[Decimal] = None
    net_gold_weight_g: Optional[Decimal] = None
    discount: Decimal = Decimal("0.00")
    tax_rate: Decimal = DEFAULT_TAX_RATE

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("unit_price", "discount", "tax_rate")
    @classmethod
    def must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Value cannot be negative.")
        return v

    @field_validator("gross_weight_g", "net_gold_weight_g")
    @classmethod
    def weight_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Weight must be positive.")
        return v

    @model_validator(mode="after")
    def discount_within_subtotal(self) -> CreateOrderItemDTO:
        if self.discount > self.quantity * self.unit_price:
            raise ValueError(
                f"Discount on {self.name!r} cannot exceed quantity x unit price."
            )
        return self


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - ``shipping_charge`` cannot be negative.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: Optional[UUID] = None
    items: List[CreateOrderItemDTO]
    shipping_address: Optional[ShippingAddressDTO] = None
    billing_address: Optional[ShippingAddressDTO] = None
    payment_method: PaymentMethod = PaymentMethod.CARD
    payment_method_label: str = ""
    payment_status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str = ""
    shipping_charge: Decimal = Decimal("0.00")
    notes: str = ""

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @field_validator("shipping_charge")
    @classmethod
    def shipping_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Shipping charge cannot be negative.")
        return v
