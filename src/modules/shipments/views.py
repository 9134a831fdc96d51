"""Shipment API views.

Read-only carrier queries (tracking, serviceability, delivery estimate).
Shipment creation lives on the order resource
(``POST /api/v1/orders/{id}/create-shipment/``).
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.core.exceptions import error_response
from modules.core.permissions import IsAdminRole
from modules.shipments.exceptions import (
    CarrierResponseError,
    CarrierUnavailable,
    ShipmentAlreadyExists,
    ShipmentError,
)
from modules.shipments.serializers import (
    EstimatedDeliverySerializer,
    ServiceabilitySerializer,
    TrackDocketSerializer,
    TrackMultipleSerializer,
)
from modules.shipments.services import ShipmentGateway


def shipment_error_status(exc: ShipmentError) -> int:
    """HTTP status for a shipment exception."""
    if isinstance(exc, ShipmentAlreadyExists):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, (CarrierUnavailable, CarrierResponseError)):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_400_BAD_REQUEST


class ShipmentViewSet(ViewSet):
    """Carrier queries for administrators."""

    permission_classes = [IsAuthenticated, IsAdminRole]
    throttle_scope = "carrier_tracking"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._gateway = ShipmentGateway()

    def _query(self, call, *args) -> Response:
        try:
            payload = call(*args)
        except ShipmentError as exc:
            return error_response(exc, shipment_error_status(exc))
        return Response({"success": True, "data": payload})

    @action(detail=False, methods=["post"])
    def track(self, request: Request) -> Response:
        """POST /api/v1/shipments/track/"""
        serializer = TrackDocketSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._query(
            self._gateway.track_docket, serializer.validated_data["docket_number"]
        )

    @action(detail=False, methods=["post"], url_path="track-multiple")
    def track_multiple(self, request: Request) -> Response:
        """POST /api/v1/shipments/track-multiple/"""
        serializer = TrackMultipleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._query(
            self._gateway.track_dockets, serializer.validated_data["docket_numbers"]
        )

    @action(detail=False, methods=["post"])
    def serviceability(self, request: Request) -> Response:
        """POST /api/v1/shipments/serviceability/"""
        serializer = ServiceabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._query(
            self._gateway.check_serviceability, serializer.validated_data["pin_code"]
        )

    @action(detail=False, methods=["post"], url_path="estimated-delivery")
    def estimated_delivery(self, request: Request) -> Response:
        """POST /api/v1/shipments/estimated-delivery/"""
        serializer = EstimatedDeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return self._query(
            self._gateway.estimate_delivery,
            data["destination_pincode"],
            data["pickup_date"],
            data.get("origin_pincode") or None,
        )
