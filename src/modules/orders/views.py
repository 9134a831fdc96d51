"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.  Domain
exceptions are caught and translated into the standard error envelope;
the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import error_response
from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import IsAdminRole
from modules.customers.exceptions import CustomerNotFound
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import (
    InvalidOrderStatus,
    InvalidStatusTransition,
    OrderNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    TrackingEventSerializer,
    UpdateStatusSerializer,
)
from modules.orders.services import OrderService
from modules.shipments.exceptions import ShipmentError
from modules.shipments.views import shipment_error_status


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories.  Does **not** extend
    ``ModelViewSet``: all ORM writes go through the service/repository
    layer.
    """

    queryset = Order.objects.all()
    permission_classes = [IsAuthenticated, IsAdminRole]
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = (
            "shipment_creation" if self.action == "create_shipment" else None
        )
        return super().get_throttles()

    def get_queryset(self):
        return OrderDjangoRepository().list()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateOrderDTO.model_validate(serializer.validated_data)
        except PydanticValidationError as exc:
            messages = [err["msg"] for err in exc.errors()]
            raise ValidationError({"non_field_errors": messages}) from exc

        try:
            order = self._service.create_order(dto, actor=request.user)
        except CustomerNotFound as exc:
            return error_response(exc, status.HTTP_404_NOT_FOUND)

        return Response(
            {"success": True, "data": OrderSerializer(order).data},
            status=status.HTTP_201_CREATED,
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering is handled by ``OrderFilter``, ordering by
        ``OrderingFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk)
        except OrderNotFound as exc:
            return error_response(exc, status.HTTP_404_NOT_FOUND, message="Order not found")
        return Response({"success": True, "data": OrderSerializer(order).data})

    @action(detail=True, methods=["get"])
    def tracking(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/tracking/"""
        try:
            events = self._service.list_tracking_events(pk)
        except OrderNotFound as exc:
            return error_response(exc, status.HTTP_404_NOT_FOUND, message="Order not found")
        return Response(
            {"success": True, "data": TrackingEventSerializer(events, many=True).data}
        )

    # ------------------------------------------------------------------
    # Status update
    # ------------------------------------------------------------------

    @action(detail=True, methods=["put", "patch"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PUT|PATCH /api/v1/orders/{pk}/status/"""
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            order = self._service.update_status(
                order_id=pk,
                new_status=data["status"],
                note=data["note"],
                actor=request.user,
            )
        except InvalidOrderStatus as exc:
            return error_response(exc, status.HTTP_400_BAD_REQUEST)
        except OrderNotFound as exc:
            return error_response(exc, status.HTTP_404_NOT_FOUND, message="Order not found")
        except InvalidStatusTransition as exc:
            return error_response(exc, status.HTTP_409_CONFLICT)

        return Response({"success": True, "data": OrderSerializer(order).data})

    # ------------------------------------------------------------------
    # Shipment
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="create-shipment")
    def create_shipment(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/create-shipment/"""
        try:
            order, result = self._service.create_shipment(pk, actor=request.user)
        except OrderNotFound as exc:
            return error_response(exc, status.HTTP_404_NOT_FOUND, message="Order not found")
        except ShipmentError as exc:
            return error_response(exc, shipment_error_status(exc))

        return Response(
            {
                "success": True,
                "message": "Shipment created successfully",
                "data": {
                    "order": OrderSerializer(order).data,
                    "shipment": result.as_dict(),
                },
            }
        )
