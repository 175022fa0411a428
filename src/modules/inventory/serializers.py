"""Inventory DRF serializers for API input/output.

The external contract accepts two names for the same field:
``quantity``/``stock`` and ``isListed``/``isAvailable``.  The aliases are
folded into one canonical value here, at the boundary; responses carry both
names.  Sending both names with different values is a validation error.
"""

from __future__ import annotations

from typing import Any, Dict

from rest_framework import serializers

from modules.inventory.models import Product

QUANTITY_ALIASES = ("quantity", "stock")
LISTED_ALIASES = ("isListed", "isAvailable")


def resolve_alias(attrs: Dict[str, Any], names: tuple[str, str]) -> Any:
    """Return the value given under either name, or ``None``."""
    given = {name: attrs[name] for name in names if attrs.get(name) is not None}
    if len(set(given.values())) > 1:
        first, second = names
        raise serializers.ValidationError(
            {first: f"'{first}' and '{second}' refer to the same field but disagree."}
        )
    return next(iter(given.values()), None)


class InventoryPatchSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(required=False, allow_null=True)
    stock = serializers.IntegerField(required=False, allow_null=True)
    isListed = serializers.BooleanField(required=False, allow_null=True)
    isAvailable = serializers.BooleanField(required=False, allow_null=True)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "quantity": resolve_alias(attrs, QUANTITY_ALIASES),
            "is_listed": resolve_alias(attrs, LISTED_ALIASES),
        }


class CreateProductSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, default="", allow_blank=True)
    category = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=100
    )
    originalPrice = serializers.DecimalField(max_digits=10, decimal_places=2)
    discountPrice = serializers.DecimalField(max_digits=10, decimal_places=2)
    quantity = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    stock = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    isListed = serializers.BooleanField(required=False, allow_null=True)
    isAvailable = serializers.BooleanField(required=False, allow_null=True)
    expiresAt = serializers.DateTimeField(required=False, allow_null=True, default=None)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        quantity = resolve_alias(attrs, QUANTITY_ALIASES)
        is_listed = resolve_alias(attrs, LISTED_ALIASES)
        return {
            "name": attrs["name"],
            "description": attrs["description"],
            "category": attrs["category"],
            "original_price": attrs["originalPrice"],
            "discount_price": attrs["discountPrice"],
            "quantity": 0 if quantity is None else quantity,
            "is_listed": True if is_listed is None else is_listed,
            "expires_at": attrs["expiresAt"],
        }


class RestockSerializer(serializers.Serializer):
    delta = serializers.IntegerField(min_value=1)


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for an inventory item (both alias names included)."""

    storeId = serializers.UUIDField(source="store_id", read_only=True)
    originalPrice = serializers.DecimalField(
        source="original_price", max_digits=10, decimal_places=2, read_only=True
    )
    discountPrice = serializers.DecimalField(
        source="discount_price", max_digits=10, decimal_places=2, read_only=True
    )
    stock = serializers.IntegerField(source="quantity", read_only=True)
    isListed = serializers.BooleanField(source="is_listed", read_only=True)
    isAvailable = serializers.BooleanField(source="is_listed", read_only=True)
    expiresAt = serializers.DateTimeField(source="expires_at", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "storeId",
            "name",
            "description",
            "category",
            "originalPrice",
            "discountPrice",
            "quantity",
            "stock",
            "isListed",
            "isAvailable",
            "expiresAt",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields
