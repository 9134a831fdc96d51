"""Order domain constants.

Status and payment enumerations, the legacy projections kept for older
consumers, and the optional strict transition table.
"""

from decimal import Decimal

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    IN_PRODUCTION = "in_production", "In production"
    READY_FOR_DISPATCH = "ready_for_dispatch", "Ready for dispatch"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
    REFUNDED = "refunded", "Refunded"


class LegacyOrderStatus(models.TextChoices):
    """Status vocabulary of the legacy ``order_status`` column."""

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
    RETURNED = "returned", "Returned"


# Total projection canonical -> legacy.  Every OrderStatus member must be a
# key; ``legacy_status_for`` raises instead of falling back.
LEGACY_STATUS_MAP: dict[str, str] = {
    OrderStatus.PENDING: LegacyOrderStatus.PENDING,
    OrderStatus.CONFIRMED: LegacyOrderStatus.PROCESSING,
    OrderStatus.IN_PRODUCTION: LegacyOrderStatus.PROCESSING,
    OrderStatus.READY_FOR_DISPATCH: LegacyOrderStatus.PROCESSING,
    OrderStatus.SHIPPED: LegacyOrderStatus.SHIPPED,
    OrderStatus.DELIVERED: LegacyOrderStatus.DELIVERED,
    OrderStatus.CANCELLED: LegacyOrderStatus.CANCELLED,
    OrderStatus.REFUNDED: LegacyOrderStatus.RETURNED,
}

_missing = set(OrderStatus.values) - set(LEGACY_STATUS_MAP)
if _missing:
    raise RuntimeError(f"LEGACY_STATUS_MAP is missing statuses: {sorted(_missing)}")


def legacy_status_for(status: str) -> str:
    """Return the legacy ``order_status`` value for a canonical status."""
    try:
        return LEGACY_STATUS_MAP[status]
    except KeyError:
        raise ValueError(f"Unknown order status: {status!r}") from None


TERMINAL_STATES: set[str] = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.REFUNDED,
}

# Statuses whose manual transition is also recorded as a tracking event.
TRACKED_STATUSES: set[str] = {
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
}

# Only enforced under ORDER_STATUS_TRANSITION_POLICY = "strict".
VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {
        OrderStatus.CONFIRMED,
        OrderStatus.IN_PRODUCTION,
        OrderStatus.CANCELLED,
    },
    OrderStatus.CONFIRMED: {
        OrderStatus.IN_PRODUCTION,
        OrderStatus.READY_FOR_DISPATCH,
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.IN_PRODUCTION: {
        OrderStatus.READY_FOR_DISPATCH,
        OrderStatus.CANCELLED,
    },
    OrderStatus.READY_FOR_DISPATCH: {
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: {OrderStatus.REFUNDED},
    OrderStatus.REFUNDED: set(),
}

TRANSITION_POLICY_UNRESTRICTED = "unrestricted"
TRANSITION_POLICY_STRICT = "strict"


class PaymentMethod(models.TextChoices):
    CARD = "card", "Card"
    UPI = "upi", "UPI"
    COD = "cod", "Cash on delivery"
    BANK_TRANSFER = "bank_transfer", "Bank transfer"
    WALLET = "wallet", "Wallet"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    AUTHORIZED = "authorized", "Authorized"
    PAID = "paid", "Paid"
    REFUNDED = "refunded", "Refunded"
    FAILED = "failed", "Failed"


# Legacy display label -> canonical method.
LEGACY_LABEL_TO_METHOD: dict[str, str] = {
    "Credit Card": PaymentMethod.CARD,
    "Debit Card": PaymentMethod.CARD,
    "Net Banking": PaymentMethod.BANK_TRANSFER,
    "UPI": PaymentMethod.UPI,
}

# Canonical method -> legacy display label.  COD has no label: it is
# normalized away before labels are derived.
PAYMENT_METHOD_LABELS: dict[str, str] = {
    PaymentMethod.CARD: "Credit Card",
    PaymentMethod.UPI: "UPI",
    PaymentMethod.BANK_TRANSFER: "Net Banking",
    PaymentMethod.WALLET: "UPI",
}

PAYMENT_STATUS_LABELS: dict[str, str] = {
    PaymentStatus.PENDING: "Pending",
    PaymentStatus.AUTHORIZED: "Authorized",
    PaymentStatus.PAID: "Paid",
    PaymentStatus.REFUNDED: "Refunded",
    PaymentStatus.FAILED: "Failed",
}

DEFAULT_CURRENCY = "INR"
DEFAULT_TAX_RATE = Decimal("3.00")  # GST on jewellery, percent

ORDER_NUMBER_PREFIX = "ORD"
ORDER_NUMBER_SUFFIX_LENGTH = 6
ORDER_NUMBER_MAX_RETRIES = 5
