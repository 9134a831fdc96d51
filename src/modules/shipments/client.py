"""Sequel247 HTTP client.

Thin wrapper over the carrier's JSON API.  Every call is a POST with the
API token injected into the body.  The client maps transport failures and
unparseable bodies to carrier exceptions; interpreting the business status
flag is left to the gateway.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import structlog
from django.conf import settings

from modules.shipments.constants import (
    CREATE_SHIPMENT_PATH,
    DEFAULT_TIMEOUT_SECONDS,
    ESTIMATED_DELIVERY_PATH,
    LOCATION,
    PACKAGE_COUNT,
    PICKUP_DATE,
    PICKUP_TIME,
    PRODUCTION_BASE_URL,
    SERVICE_TYPE,
    SERVICEABILITY_PATH,
    SHIPMENT_TYPE,
    TEST_BASE_URL,
    TRACK_MULTIPLE_PATH,
    TRACK_PATH,
)
from modules.shipments.dtos import ShipmentRequest
from modules.shipments.exceptions import CarrierResponseError, CarrierUnavailable

logger = structlog.get_logger(__name__)


class SequelClient:
    """Synchronous Sequel247 API client.

    A fresh ``httpx.Client`` is opened per call; ``transport`` lets tests
    substitute ``httpx.MockTransport``.
    """

    def __init__(
        self,
        token: str,
        store_code: str,
        base_url: str = TEST_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._token = token
        self.store_code = store_code
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, transport: Optional[httpx.BaseTransport] = None) -> SequelClient:
        base_url = settings.SEQUEL247_ENDPOINT or (
            PRODUCTION_BASE_URL if settings.SEQUEL247_USE_PRODUCTION else TEST_BASE_URL
        )
        return cls(
            token=settings.SEQUEL247_TOKEN,
            store_code=settings.SEQUEL247_STORE_CODE,
            base_url=base_url,
            timeout=settings.SEQUEL247_TIMEOUT,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = {"token": self._token, **body}
        log = logger.bind(path=path)
        try:
            with httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            ) as client:
                response = client.post(path, json=payload)
        except httpx.RequestError as exc:
            message = str(exc) or type(exc).__name__
            log.error("carrier.request_failed", error=message)
            raise CarrierUnavailable(message) from exc

        log.info("carrier.response_received", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            log.error(
                "carrier.invalid_response",
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise CarrierResponseError(
                f"Carrier returned a non-JSON response (HTTP {response.status_code})."
            ) from None

        if not isinstance(data, dict):
            log.error("carrier.invalid_response", status_code=response.status_code)
            raise CarrierResponseError(
                f"Carrier returned an unexpected response (HTTP {response.status_code})."
            )
        if response.is_error:
            # The carrier reports business errors with 4xx codes and a JSON body.
            log.warning("carrier.error_status", status_code=response.status_code)
        return data

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def create_shipment(self, request: ShipmentRequest) -> Dict[str, Any]:
        body = {
            "location": LOCATION,
            "shipmentType": SHIPMENT_TYPE,
            "serviceType": SERVICE_TYPE,
            "pickUpDate": PICKUP_DATE,
            "pickUpTime": PICKUP_TIME,
            "fromStoreCode": self.store_code,
            "toAddress": {
                "consignee_name": request.consignee_name,
                "address_line1": request.address_line1,
                "address_line2": request.address_line2,
                "pinCode": request.postal_code,
                "auth_receiver_name": request.consignee_name,
                "auth_receiver_phone": request.consignee_phone,
            },
            "net_weight": _format_decimal(request.net_weight),
            "gross_weight": _format_decimal(request.gross_weight),
            "net_value": str(request.declared_value),
            "no_of_packages": PACKAGE_COUNT,
            "remark": request.remark,
            "invoice": [request.order_number],
        }
        return self._post(CREATE_SHIPMENT_PATH, body)

    def track(self, docket_number: str) -> Dict[str, Any]:
        return self._post(TRACK_PATH, {"docket": docket_number})

    def track_multiple(self, docket_numbers: List[str]) -> Dict[str, Any]:
        return self._post(TRACK_MULTIPLE_PATH, {"dockets": list(docket_numbers)})

    def check_serviceability(self, pin_code: str) -> Dict[str, Any]:
        return self._post(SERVICEABILITY_PATH, {"pin_code": pin_code})

    def calculate_edd(
        self, origin_pincode: str, destination_pincode: str, pickup_date: str
    ) -> Dict[str, Any]:
        return self._post(
            ESTIMATED_DELIVERY_PATH,
            {
                "origin_pincode": origin_pincode,
                "destination_pincode": destination_pincode,
                "pickup_date": pickup_date,
            },
        )


def _format_decimal(value) -> str:
    """Plain decimal string without exponent or trailing zeros (``20.000`` -> ``20``)."""
    return format(value.normalize(), "f")
