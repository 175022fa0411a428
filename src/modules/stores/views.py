"""Store API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.responses import domain_error_response, validation_error_response
from modules.stores.models import Store
from modules.stores.repositories.django_repository import StoreDjangoRepository
from modules.stores.serializers import (
    CreateStoreSerializer,
    StoreDailySalesSerializer,
    StoreSerializer,
)
from modules.stores.services import StoreService
from shared.domain.exceptions import DomainError


class StoreViewSet(GenericViewSet):
    queryset = Store.objects.none()
    serializer_class = StoreSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = StoreService(repository=StoreDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/stores/"""
        stores = self._service.list_stores()
        return Response(StoreSerializer(stores, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/stores/{pk}/"""
        try:
            store = self._service.get_store(pk)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(StoreSerializer(store).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/stores/"""
        serializer = CreateStoreSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)
        try:
            store = self._service.create_store(**serializer.validated_data)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(StoreSerializer(store).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"])
    def sales(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/stores/{pk}/sales/"""
        try:
            rows = self._service.daily_sales(pk)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(StoreDailySalesSerializer(rows, many=True).data)
