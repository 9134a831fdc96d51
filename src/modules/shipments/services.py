"""Shipment gateway (carrier adapter).

Translates an order into a Sequel247 shipment request, calls the carrier
and interprets its reply.  Every precondition is checked locally before
any network call.  The gateway never writes to the database: folding an
accepted shipment back into the order is the order service's job.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import structlog
from django.conf import settings
from pydantic import ValidationError

from modules.shipments.client import SequelClient
from modules.shipments.constants import (
    ADDRESS_LINE_MAX_LENGTH,
    DEFAULT_FAILURE_MESSAGE,
    DEFAULT_ITEM_WEIGHT_G,
    PACKAGING_WEIGHT_G,
    PHONE_DIGITS,
)
from modules.shipments.dtos import (
    CarrierResponse,
    ShipmentRequest,
    ShipmentResultDTO,
    is_success_flag,
)
from modules.shipments.exceptions import (
    CarrierRejected,
    CarrierResponseError,
    CustomerEmailMissing,
    CustomerMissing,
    InvalidCustomerPhone,
    InvalidDocketNumber,
    InvalidPostalCode,
    ShipmentAlreadyExists,
    ShippingAddressMissing,
)

if TYPE_CHECKING:
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)

_DOCKET_RE = re.compile(r"[0-9]{10}")
_POSTAL_CODE_RE = re.compile(r"[0-9]{6}")


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def is_valid_docket_number(value: Any) -> bool:
    return isinstance(value, str) and _DOCKET_RE.fullmatch(value) is not None


def is_valid_postal_code(value: Any) -> bool:
    return isinstance(value, str) and _POSTAL_CODE_RE.fullmatch(value) is not None


def consignee_phone(phone: str) -> str:
    """Last ten digits of *phone* (drops a leading country code)."""
    digits = re.sub(r"[^0-9]", "", phone or "")
    return digits[-PHONE_DIGITS:]


def item_weight(item) -> Decimal:
    """Declared gross weight, else net gold weight, else the default."""
    if item.gross_weight_g:
        return Decimal(item.gross_weight_g)
    if item.net_gold_weight_g:
        return Decimal(item.net_gold_weight_g)
    return DEFAULT_ITEM_WEIGHT_G


def net_weight(items: Iterable[Any]) -> Decimal:
    return sum((item_weight(item) * item.quantity for item in items), Decimal("0"))


def declared_value(order: Order) -> int:
    """Order total rounded half-up to a whole rupee."""
    total = order.total_amount or order.pricing_record.total or Decimal("0")
    return int(Decimal(total).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _truncate(value: str) -> str:
    return (value or "")[:ADDRESS_LINE_MAX_LENGTH]


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class ShipmentGateway:
    """Sequel247 shipment adapter.

    The client is built from settings on first use, so constructing the
    gateway never requires carrier configuration.
    """

    def __init__(self, client: Optional[SequelClient] = None) -> None:
        self._client = client

    @property
    def client(self) -> SequelClient:
        if self._client is None:
            self._client = SequelClient.from_settings()
        return self._client

    # ------------------------------------------------------------------
    # Shipment creation
    # ------------------------------------------------------------------

    def build_request(self, order: Order) -> ShipmentRequest:
        """Validate shipment preconditions and build the carrier request.

        Raises, in this order:
            ShipmentAlreadyExists: the order already has a shipment.
            ShippingAddressMissing: no shipping address.
            InvalidPostalCode: postal code is not exactly 6 digits.
            CustomerMissing: the customer reference did not resolve.
            CustomerEmailMissing: the customer has no e-mail.
            InvalidCustomerPhone: the phone has fewer than 10 digits.
        """
        existing = order.existing_docket
        if existing is not None:
            raise ShipmentAlreadyExists(existing)

        address = order.shipping_address
        if not address:
            raise ShippingAddressMissing("Shipping address not found for this order.")

        postal_code = address.get("postal_code")
        if not is_valid_postal_code(postal_code):
            raise InvalidPostalCode(
                f"Invalid pincode: {postal_code}. Pincode must be 6 digits."
            )

        customer = order.customer
        if customer is None:
            raise CustomerMissing("Customer information not found for this order.")
        if not customer.email:
            raise CustomerEmailMissing("Customer email is required for shipment creation.")
        if len(customer.phone_digits) < PHONE_DIGITS:
            raise InvalidCustomerPhone(
                "Customer phone number must contain at least 10 digits."
            )

        city = address.get("city", "")
        state = address.get("state", "")
        net = net_weight(order.items.all())
        return ShipmentRequest(
            order_number=order.order_number,
            consignee_name=customer.full_name,
            consignee_phone=consignee_phone(customer.phone),
            address_line1=_truncate(address.get("line1", "")),
            address_line2=_truncate(address.get("line2") or f"{city}, {state}"),
            postal_code=postal_code,
            net_weight=net,
            gross_weight=net + PACKAGING_WEIGHT_G,
            declared_value=declared_value(order),
            remark=f"Order: {order.order_number}",
        )

    def create_shipment(self, order: Order) -> ShipmentResultDTO:
        """Submit a shipment for *order* and return the carrier's result.

        A rejected shipment raises ``CarrierRejected`` with the carrier's
        message.  An accepted shipment without a docket number is still a
        success; the caller records the anomaly.
        """
        request = self.build_request(order)
        log = logger.bind(order_number=order.order_number)
        log.info(
            "shipment.request_submitted",
            postal_code=request.postal_code,
            net_weight=str(request.net_weight),
            declared_value=request.declared_value,
        )

        payload = self.client.create_shipment(request)
        try:
            response = CarrierResponse.model_validate(payload)
        except ValidationError as exc:
            log.error("shipment.response_unparseable", error=str(exc))
            raise CarrierResponseError(
                "Carrier returned a malformed shipment response.", details=payload
            ) from exc

        if not response.succeeded:
            message = response.message or DEFAULT_FAILURE_MESSAGE
            log.warning("shipment.carrier_rejected", carrier_message=message)
            raise CarrierRejected(message, details=payload)

        result = ShipmentResultDTO.from_response(response)
        if not result.docket_number:
            log.warning(
                "shipment.docket_missing_in_response",
                reference_number=result.reference_number,
            )
        log.info("shipment.carrier_accepted", docket_number=result.docket_number)
        return result

    # ------------------------------------------------------------------
    # Read-only carrier queries
    # ------------------------------------------------------------------

    def track_docket(self, docket_number: str) -> Dict[str, Any]:
        if not is_valid_docket_number(docket_number):
            raise InvalidDocketNumber([docket_number])
        payload = self.client.track(docket_number)
        self._raise_for_failure(payload, "Failed to track shipment")
        return payload

    def track_dockets(self, docket_numbers: List[str]) -> Dict[str, Any]:
        if not docket_numbers:
            raise InvalidDocketNumber([])
        invalid = [value for value in docket_numbers if not is_valid_docket_number(value)]
        if invalid:
            raise InvalidDocketNumber(invalid)
        payload = self.client.track_multiple(docket_numbers)
        self._raise_for_failure(payload, "Failed to track shipments")
        return payload

    def check_serviceability(self, pin_code: str) -> Dict[str, Any]:
        if not is_valid_postal_code(pin_code):
            raise InvalidPostalCode(f"Invalid pincode: {pin_code}. Pincode must be 6 digits.")
        payload = self.client.check_serviceability(pin_code)
        self._raise_for_failure(payload, "Failed to check serviceability")
        return payload

    def estimate_delivery(
        self,
        destination_pincode: str,
        pickup_date: str,
        origin_pincode: Optional[str] = None,
    ) -> Dict[str, Any]:
        origin = origin_pincode or settings.SEQUEL247_ORIGIN_PINCODE
        for value in (origin, destination_pincode):
            if not is_valid_postal_code(value):
                raise InvalidPostalCode(
                    f"Invalid pincode: {value}. Pincode must be 6 digits."
                )
        payload = self.client.calculate_edd(origin, destination_pincode, pickup_date)
        self._raise_for_failure(payload, "Failed to calculate estimated delivery")
        return payload

    @staticmethod
    def _raise_for_failure(payload: Dict[str, Any], fallback: str) -> None:
        """Raise ``CarrierRejected`` when the payload carries a failure flag.

        Query payloads without a ``status`` key are passed through.
        """
        if "status" not in payload or is_success_flag(payload["status"]):
            return
        message = payload.get("message") or fallback
        logger.warning("carrier.query_rejected", carrier_message=str(message))
        raise CarrierRejected(str(message), details=payload)
