"""Inventory API views.

Routes (under ``/api/v1/``)::

    GET   stores/{store_id}/inventory/
    POST  stores/{store_id}/inventory/
    GET   stores/{store_id}/inventory/{product_id}/
    PATCH stores/{store_id}/inventory/{product_id}/
    POST  stores/{store_id}/inventory/{product_id}/restock/

Domain errors are translated by ``domain_error_response``; anything else
propagates.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.core.responses import domain_error_response, validation_error_response
from modules.inventory.dtos import CreateProductDTO, InventoryPatchDTO, RestockDTO
from modules.inventory.filters import ProductFilter
from modules.inventory.models import Product
from modules.inventory.repositories.django_repository import ProductDjangoRepository
from modules.inventory.serializers import (
    CreateProductSerializer,
    InventoryPatchSerializer,
    ProductSerializer,
    RestockSerializer,
)
from modules.inventory.services import ProductService
from modules.stores.repositories.django_repository import StoreDjangoRepository
from shared.domain.exceptions import DomainError


class InventoryViewSet(GenericViewSet):
    """Store inventory endpoints backed by ``ProductService``."""

    queryset = Product.objects.none()
    serializer_class = ProductSerializer
    lookup_url_kwarg = "product_id"
    filterset_class = ProductFilter
    ordering_fields = ["name", "quantity", "discount_price", "expires_at"]
    ordering = ["name", "id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(
            repository=ProductDjangoRepository(),
            store_repository=StoreDjangoRepository(),
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request, store_id: str | None = None) -> Response:
        """GET /api/v1/stores/{store_id}/inventory/"""
        try:
            queryset = self._service.list_products(store_id)
        except DomainError as exc:
            return domain_error_response(exc)

        queryset = self.filter_queryset(queryset)
        page = self.paginate_queryset(queryset)
        serializer = ProductSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(
        self, request: Request, store_id: str | None = None, product_id: str | None = None
    ) -> Response:
        """GET /api/v1/stores/{store_id}/inventory/{product_id}/"""
        try:
            product = self._service.get_product(store_id, product_id)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(ProductSerializer(product).data)

    # ------------------------------------------------------------------
    # Create / Patch / Restock
    # ------------------------------------------------------------------

    def create(self, request: Request, store_id: str | None = None) -> Response:
        """POST /api/v1/stores/{store_id}/inventory/"""
        serializer = CreateProductSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        try:
            dto = CreateProductDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            product = self._service.create_product(store_id, dto)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def partial_update(
        self, request: Request, store_id: str | None = None, product_id: str | None = None
    ) -> Response:
        """PATCH /api/v1/stores/{store_id}/inventory/{product_id}/

        Accepts ``quantity``/``stock`` and ``isListed``/``isAvailable``.
        """
        serializer = InventoryPatchSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        try:
            dto = InventoryPatchDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            product = self._service.update_inventory(store_id, product_id, dto)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(ProductSerializer(product).data)

    @action(detail=True, methods=["post"])
    def restock(
        self, request: Request, store_id: str | None = None, product_id: str | None = None
    ) -> Response:
        """POST /api/v1/stores/{store_id}/inventory/{product_id}/restock/"""
        serializer = RestockSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        dto = RestockDTO(delta=serializer.validated_data["delta"])
        try:
            product = self._service.restock(store_id, product_id, dto.delta)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(ProductSerializer(product).data)
