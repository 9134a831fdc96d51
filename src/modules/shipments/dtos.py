"""Shipment DTOs.

``ShipmentRequest`` is the carrier-neutral request built from an order.
``CarrierResponse`` parses the carrier's loosely-typed reply once: the
alternate spellings of the docket number and estimated delivery keys are
resolved here and nowhere else.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from modules.shipments.constants import SUCCESS_FLAG


def is_success_flag(value: Any) -> bool:
    """``True`` only for the carrier's ``"true"`` flag (any case, or a bool)."""
    return str(value).strip().lower() == SUCCESS_FLAG


class ShipmentRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_number: str
    consignee_name: str
    consignee_phone: str
    address_line1: str
    address_line2: str
    postal_code: str
    net_weight: Decimal
    gross_weight: Decimal
    declared_value: int
    remark: str


class CarrierShipmentData(BaseModel):
    """Data block of a successful shipment-creation reply."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    docket_number: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("docketNumber", "docket_number")
    )
    reference_number: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("brn", "reference_number")
    )
    client_code: Optional[str] = None
    category_type: Optional[str] = None
    docket_print: Optional[str] = None
    estimated_delivery: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("estimated_delivery", "estimatedDelivery"),
    )

    @field_validator(
        "docket_number",
        "reference_number",
        "client_code",
        "category_type",
        "docket_print",
        "estimated_delivery",
        mode="before",
    )
    @classmethod
    def coerce_to_string(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v)


class CarrierResponse(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    status: Any = None
    message: Optional[str] = None
    data: Optional[CarrierShipmentData] = None

    @field_validator("message", mode="before")
    @classmethod
    def coerce_message(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)

    @field_validator("data", mode="before")
    @classmethod
    def drop_non_object_data(cls, v: Any) -> Any:
        # The carrier sends ``[]`` or ``""`` for an empty data block.
        if not isinstance(v, dict):
            return None
        return v

    @property
    def succeeded(self) -> bool:
        return is_success_flag(self.status)


class ShipmentResultDTO(BaseModel):
    """Outcome of an accepted shipment, returned to the API caller."""

    model_config = ConfigDict(frozen=True)

    docket_number: Optional[str] = None
    reference_number: Optional[str] = None
    client_code: Optional[str] = None
    category_type: Optional[str] = None
    docket_print: Optional[str] = None
    estimated_delivery: Optional[str] = None
    message: str = ""

    @classmethod
    def from_response(cls, response: CarrierResponse) -> ShipmentResultDTO:
        data = response.data or CarrierShipmentData()
        return cls(
            docket_number=data.docket_number or None,
            reference_number=data.reference_number,
            client_code=data.client_code,
            category_type=data.category_type,
            docket_print=data.docket_print,
            estimated_delivery=data.estimated_delivery,
            message=response.message or "",
        )

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump()
