import json
from decimal import Decimal

import httpx
import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.customers.models import Customer
from modules.orders.models import Order, OrderItem
from modules.shipments.client import SequelClient
from modules.shipments.constants import TEST_BASE_URL

User = get_user_model()

SHIPPING_ADDRESS = {
    "line1": "14 Zaveri Bazaar, Kalbadevi Road",
    "line2": "Near Mumba Devi Temple",
    "city": "Mumbai",
    "state": "Maharashtra",
    "postal_code": "400002",
    "country": "India",
}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Reset throttle counters between tests."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def admin_user():
    group, _ = Group.objects.get_or_create(name="admin")
    user = User.objects.create_user(username="ops-admin", password="testpass123")
    user.groups.add(group)
    return user


@pytest.fixture()
def admin_client(admin_user):
    """APIClient authenticated as a member of the ``admin`` group."""
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture()
def staff_client():
    """APIClient authenticated as a user without an admin role."""
    client = APIClient()
    user = User.objects.create_user(username="storefront", password="testpass123")
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def customer():
    return Customer.objects.create(
        first_name="Ananya",
        last_name="Iyer",
        email="ananya.iyer@example.com",
        phone="+91 98765 43210",
    )


@pytest.fixture()
def make_order(customer):
    """Factory persisting an order with one ring by default."""

    def _make(items=None, **fields):
        fields.setdefault("customer", customer)
        fields.setdefault("shipping_address", dict(SHIPPING_ADDRESS))
        order = Order.objects.create(**fields)
        if items is None:
            items = [
                {
                    "name": "Solitaire Diamond Ring",
                    "sku": "RNG-SOL-001",
                    "quantity": 1,
                    "unit_price": Decimal("45000.00"),
                    "gross_weight_g": Decimal("4.500"),
                    "specification": {"metal": "18K gold", "stone": "diamond 0.5ct"},
                }
            ]
        for position, item in enumerate(items):
            OrderItem.objects.create(order=order, position=position, **item)
        order.recalculate_pricing()
        order.save()
        return order

    return _make


class FakeCarrier:
    """Scripted Sequel247 endpoint served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[str, dict] = {}

    def respond(self, path, json_body=None, status_code=200, content=None, error=None):
        self._routes[path] = {
            "json": json_body,
            "status_code": status_code,
            "content": content,
            "error": error,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get(request.url.path.lstrip("/"))
        if route is None:
            return httpx.Response(404, json={"status": "false", "message": "Not stubbed"})
        if route["error"] is not None:
            raise route["error"](f"{route['error'].__name__} while calling carrier", request=request)
        if route["content"] is not None:
            return httpx.Response(route["status_code"], content=route["content"])
        return httpx.Response(route["status_code"], json=route["json"])

    @property
    def calls(self) -> int:
        return len(self.requests)

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)

    def client(self) -> SequelClient:
        return SequelClient(
            token="test-sequel-token",
            store_code="TESTSTORE01",
            base_url=TEST_BASE_URL,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture()
def carrier(monkeypatch):
    """Route every ``SequelClient.from_settings()`` client to a FakeCarrier."""
    fake = FakeCarrier()
    monkeypatch.setattr(SequelClient, "from_settings", lambda *args, **kwargs: fake.client())
    return fake
