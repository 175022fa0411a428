"""Order API views.

Exposes the Lifecycle Coordinator (``OrderService``) via HTTP.  Domain
errors are translated by ``domain_error_response``; the views never
swallow anything else.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.core.responses import domain_error_response, validation_error_response
from modules.orders.dtos import CreateOrderDTO, TransitionOrderDTO
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.serializers import (
    CancelSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    TransitionSerializer,
)
from modules.orders.services import build_order_service
from shared.domain.exceptions import DomainError


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through the
    service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    search_fields = ["id", "customer_info__name", "store__name"]
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        return self._service.list_orders()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        try:
            dto = CreateOrderDTO(**serializer.to_dto_data())
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            order = self._service.create_order(dto)
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/?userId=&storeId=&status=

        Filtering is handled by ``OrderFilter``, ordering by
        ``OrderingFilter``.  Results are paginated; overdue pickups on the
        page are expired before they are rendered.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        page = self._service.observe_orders(page)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/

        Observing an order recomputes its pickup countdown and applies the
        timeout cancellation when it is due.
        """
        try:
            order = self._service.observe_order(pk)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Body: ``{status, reason?, cancelledBy?, actor?, expectedVersion?}``.
        """
        serializer = TransitionSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        try:
            dto = TransitionOrderDTO(**serializer.to_dto_data())
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            order = self._service.transition(
                pk,
                dto.status,
                actor=dto.resolved_actor,
                reason=dto.reason,
                expected_version=dto.expected_version,
            )
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        serializer = CancelSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        data = serializer.validated_data

        try:
            order = self._service.cancel(
                pk,
                cancelled_by=data["cancelledBy"],
                reason=data.get("reason") or None,
                expected_version=data.get("expectedVersion"),
            )
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["post"], url_path="auto-cancel")
    def auto_cancel(self, request: Request) -> Response:
        """POST /api/v1/orders/auto-cancel/

        Runs the pickup-expiry sweep on demand.
        """
        cancelled = self._service.expire_overdue_pickups()
        return Response({"cancelledCount": cancelled})
