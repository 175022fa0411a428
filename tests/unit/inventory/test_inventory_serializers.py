"""Unit tests for the inventory serializers and their field aliases."""

from __future__ import annotations

import pytest

from modules.inventory.serializers import (
    CreateProductSerializer,
    InventoryPatchSerializer,
    ProductSerializer,
)

pytestmark = pytest.mark.unit


class TestInventoryPatchSerializer:
    @pytest.mark.parametrize(
        ("payload", "expected"),
        [
            ({"quantity": 5}, {"quantity": 5, "is_listed": None}),
            ({"stock": 5}, {"quantity": 5, "is_listed": None}),
            ({"isListed": False}, {"quantity": None, "is_listed": False}),
            ({"isAvailable": False}, {"quantity": None, "is_listed": False}),
            ({"stock": 2, "isAvailable": True}, {"quantity": 2, "is_listed": True}),
            ({"quantity": 3, "stock": 3}, {"quantity": 3, "is_listed": None}),
        ],
    )
    def test_aliases_fold_into_canonical_fields(self, payload, expected):
        serializer = InventoryPatchSerializer(data=payload)
        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data == expected

    def test_conflicting_aliases_rejected(self):
        serializer = InventoryPatchSerializer(data={"quantity": 3, "stock": 4})
        assert not serializer.is_valid()
        assert "quantity" in serializer.errors

    def test_conflicting_listing_aliases_rejected(self):
        serializer = InventoryPatchSerializer(data={"isListed": True, "isAvailable": False})
        assert not serializer.is_valid()
        assert "isListed" in serializer.errors


class TestCreateProductSerializer:
    def test_defaults(self):
        serializer = CreateProductSerializer(
            data={"name": "Croissant", "originalPrice": "40.00", "discountPrice": "20.00"}
        )
        assert serializer.is_valid(), serializer.errors
        data = serializer.validated_data
        assert data["quantity"] == 0
        assert data["is_listed"] is True
        assert data["expires_at"] is None

    def test_stock_alias(self):
        serializer = CreateProductSerializer(
            data={
                "name": "Croissant",
                "originalPrice": "40.00",
                "discountPrice": "20.00",
                "stock": 6,
                "isAvailable": False,
            }
        )
        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data["quantity"] == 6
        assert serializer.validated_data["is_listed"] is False


class TestProductSerializer:
    def test_output_carries_both_alias_names(self, make_product):
        product = make_product(quantity=7, is_listed=False)

        data = ProductSerializer(product).data

        assert data["quantity"] == data["stock"] == 7
        assert data["isListed"] is data["isAvailable"] is False
        assert data["storeId"] == str(product.store_id)
        assert data["discountPrice"] == "20.00"
