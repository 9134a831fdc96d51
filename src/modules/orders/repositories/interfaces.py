"""Order repository interface.

Extends ``IRepository[Order]`` with the methods the order lifecycle
needs: atomic creation with items, row-locked reads, and the two
append-only child logs (status history and tracking events).

The Service Layer depends exclusively on this contract.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order, OrderStatusHistory, TrackingEvent


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem, OrderStatusHistory and
    TrackingEvent children.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` carries the order columns plus ``items`` (list of dicts
        with the OrderItem columns) and an optional ``shipping_charge``.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with customer, items and child logs loaded."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order holding a row-level lock."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """List orders with optional filters."""

    @abstractmethod
    def add_history(
        self,
        order: Order,
        new_status: str,
        old_status: Optional[str] = None,
        note: str = "",
        user: Any = None,
    ) -> OrderStatusHistory:
        """Append a status-history entry."""

    @abstractmethod
    def add_tracking_event(self, order: Order, **fields: Any) -> TrackingEvent:
        """Append a tracking event."""

    @abstractmethod
    def list_tracking_events(self, order_id: str) -> QuerySet:
        """Tracking events of an order, oldest first."""
