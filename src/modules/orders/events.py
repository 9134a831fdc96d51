"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    order_number: str = ""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an order status changes."""

    old_status: Optional[str] = None
    new_status: str = ""
    actor: Optional[str] = None


@dataclass(frozen=True)
class ShipmentCreated(DomainEvent):
    """Raised when the carrier accepted a shipment for the order."""

    order_number: str = ""
    docket_number: str = ""
    carrier: str = ""


@dataclass(frozen=True)
class ShipmentDocketMissing(DomainEvent):
    """The carrier reported success without returning a docket number.

    The shipment cannot be tracked until an operator reconciles it.
    """

    order_number: str = ""
    reference_number: str = ""
