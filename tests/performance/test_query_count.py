"""Performance regression tests: constant query count (N+1 prevention).

Verifies that list and retrieve endpoints execute a bounded number of
SQL queries regardless of the number of records, proving that
``select_related`` / ``prefetch_related`` are correctly applied.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import OrderStatusHistory, TrackingEvent


@pytest.fixture()
def orders_with_children(make_order, admin_user):
    """Ten orders, each with three items, history and a tracking event."""
    orders = []
    for i in range(10):
        order = make_order(
            items=[
                {"name": f"Pendant {i}-{n}", "unit_price": Decimal("2500.00")}
                for n in range(3)
            ]
        )
        OrderStatusHistory.objects.create(
            order=order, new_status=OrderStatus.PENDING, note="Order created", user=admin_user
        )
        TrackingEvent.objects.create(order=order, status=OrderStatus.SHIPPED)
        orders.append(order)
    return orders


class TestOrderListQueryCount:
    def test_list_query_count_is_constant(
        self, admin_client, orders_with_children, django_assert_max_num_queries
    ):
        """GET /api/v1/orders/ runs a bounded number of queries.

        1. Admin role lookup
        2. COUNT for pagination
        3. SELECT orders JOIN customer
        4-7. Prefetches (items, history, history users, tracking events)
        """
        with django_assert_max_num_queries(8):
            response = admin_client.get("/api/v1/orders/")

        assert response.status_code == 200
        assert response.data["count"] == 10


class TestOrderRetrieveQueryCount:
    def test_retrieve_query_count_is_constant(
        self, admin_client, orders_with_children, django_assert_max_num_queries
    ):
        order = orders_with_children[0]

        with django_assert_max_num_queries(8):
            response = admin_client.get(f"/api/v1/orders/{order.id}/")

        assert response.status_code == 200
        data = response.data["data"]
        assert len(data["items"]) == 3
        assert data["status_history"][0]["user"] == "ops-admin"
