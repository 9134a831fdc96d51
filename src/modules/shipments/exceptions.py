"""Shipment domain exceptions.

Precondition failures are raised before any carrier call.  Carrier
failures keep the carrier's message and, where available, its payload.
Each class carries the ``code`` placed in the API error envelope.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional


class ShipmentError(Exception):
    code = "SHIPMENT_ERROR"


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------


class ShipmentAlreadyExists(ShipmentError):
    """The order already has a carrier shipment."""

    code = "SHIPMENT_ALREADY_EXISTS"

    def __init__(self, docket_number: Optional[str] = None) -> None:
        self.docket_number = docket_number or ""
        message = "Shipment already created for this order."
        if self.docket_number:
            message = f"{message} Docket: {self.docket_number}"
        super().__init__(message)


class ShippingAddressMissing(ShipmentError):
    code = "SHIPPING_ADDRESS_MISSING"


class InvalidPostalCode(ShipmentError):
    code = "INVALID_POSTAL_CODE"


class CustomerMissing(ShipmentError):
    code = "CUSTOMER_MISSING"


class CustomerEmailMissing(ShipmentError):
    code = "CUSTOMER_EMAIL_MISSING"


class InvalidCustomerPhone(ShipmentError):
    code = "INVALID_CUSTOMER_PHONE"


class InvalidDocketNumber(ShipmentError):
    """One or more docket numbers are not exactly 10 digits."""

    code = "INVALID_DOCKET_NUMBER"

    def __init__(self, invalid: Iterable[Any]) -> None:
        self.invalid = list(invalid)
        if not self.invalid:
            message = "At least one docket number is required."
        elif len(self.invalid) == 1:
            message = (
                f"Invalid docket number: {self.invalid[0]!s}. "
                "Docket numbers must be exactly 10 digits."
            )
        else:
            listed = ", ".join(str(value) for value in self.invalid)
            message = (
                f"Invalid docket numbers: {listed}. "
                "Docket numbers must be exactly 10 digits."
            )
        super().__init__(message)


# ---------------------------------------------------------------------------
# Carrier
# ---------------------------------------------------------------------------


class CarrierError(ShipmentError):
    """Carrier API error with details."""

    code = "CARRIER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class CarrierRejected(CarrierError):
    """The carrier answered with a failure status flag."""

    code = "CARRIER_REJECTED"


class CarrierUnavailable(CarrierError):
    """Transport failure: timeout, DNS, connection refused."""

    code = "CARRIER_UNAVAILABLE"


class CarrierResponseError(CarrierError):
    """The carrier answered with a body that is not a JSON object."""

    code = "CARRIER_BAD_RESPONSE"
