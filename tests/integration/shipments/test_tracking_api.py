"""Integration tests for the carrier query endpoints.

Covers:
- POST /api/v1/shipments/track/ and /track-multiple/.
- POST /api/v1/shipments/serviceability/ and /estimated-delivery/.
- Invalid input rejected before any carrier call.
"""

from __future__ import annotations

import httpx
import pytest

pytestmark = pytest.mark.integration

BASE = "/api/v1/shipments"


class TestTrack:
    def test_track(self, admin_client, carrier):
        carrier.respond(
            "api/track",
            {"status": "true", "data": {"docket": "1234567890", "current": "In transit"}},
        )

        response = admin_client.post(f"{BASE}/track/", {"docket_number": "1234567890"}, format="json")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "data": {
                "status": "true",
                "data": {"docket": "1234567890", "current": "In transit"},
            },
        }
        assert carrier.calls == 1

    @pytest.mark.parametrize("docket", ["123", "12345678901", "1234567890 "])
    def test_invalid_docket(self, admin_client, carrier, docket):
        response = admin_client.post(f"{BASE}/track/", {"docket_number": docket}, format="json")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_DOCKET_NUMBER"
        assert carrier.calls == 0

    def test_carrier_failure_flag(self, admin_client, carrier):
        carrier.respond("api/track", {"status": "false", "message": "Docket not found"})
        response = admin_client.post(f"{BASE}/track/", {"docket_number": "1234567890"}, format="json")
        assert response.status_code == 400
        assert response.json()["message"] == "Docket not found"

    def test_carrier_unreachable(self, admin_client, carrier):
        carrier.respond("api/track", error=httpx.ConnectError)
        response = admin_client.post(f"{BASE}/track/", {"docket_number": "1234567890"}, format="json")
        assert response.status_code == 502


class TestTrackMultiple:
    def test_track_multiple(self, admin_client, carrier):
        carrier.respond("api/trackMultiple", {"status": "true", "data": []})
        response = admin_client.post(
            f"{BASE}/track-multiple/",
            {"docket_numbers": ["1234567890", "0987654321"]},
            format="json",
        )
        assert response.status_code == 200
        assert carrier.body()["dockets"] == ["1234567890", "0987654321"]

    def test_names_every_invalid_docket(self, admin_client, carrier):
        response = admin_client.post(
            f"{BASE}/track-multiple/",
            {"docket_numbers": ["1234567890", "12", "ABCDEFGHIJ"]},
            format="json",
        )
        assert response.status_code == 400
        assert "12, ABCDEFGHIJ" in response.json()["message"]
        assert carrier.calls == 0

    def test_empty_list(self, admin_client, carrier):
        response = admin_client.post(
            f"{BASE}/track-multiple/", {"docket_numbers": []}, format="json"
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_DOCKET_NUMBER"


class TestServiceability:
    def test_serviceable(self, admin_client, carrier):
        carrier.respond("api/checkServiceability", {"status": "true", "serviceable": True})
        response = admin_client.post(f"{BASE}/serviceability/", {"pin_code": "560001"}, format="json")
        assert response.status_code == 200
        assert response.json()["data"]["serviceable"] is True

    def test_invalid_pin_code(self, admin_client, carrier):
        response = admin_client.post(f"{BASE}/serviceability/", {"pin_code": "56000"}, format="json")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_POSTAL_CODE"
        assert carrier.calls == 0


class TestEstimatedDelivery:
    def test_estimate(self, admin_client, carrier):
        carrier.respond("api/shipment/calculateEDD", {"status": "true", "edd": "2026-10-21"})
        response = admin_client.post(
            f"{BASE}/estimated-delivery/",
            {"destination_pincode": "110001", "pickup_date": "2026-10-18"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["data"]["edd"] == "2026-10-21"
        assert carrier.body()["origin_pincode"] == "400001"

    def test_missing_pickup_date(self, admin_client, carrier):
        response = admin_client.post(
            f"{BASE}/estimated-delivery/", {"destination_pincode": "110001"}, format="json"
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


def test_requires_admin(staff_client, carrier):
    response = staff_client.post(f"{BASE}/track/", {"docket_number": "1234567890"}, format="json")
    assert response.status_code == 403
    assert carrier.calls == 0
