"""Store DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.stores.models import Store, StoreDailySales


class CreateStoreSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    location = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=255
    )


class StoreSerializer(serializers.ModelSerializer):
    storeCode = serializers.CharField(source="store_code", read_only=True)
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Store
        fields = ["id", "name", "location", "storeCode", "isActive", "createdAt"]
        read_only_fields = fields


class StoreDailySalesSerializer(serializers.ModelSerializer):
    totalAmount = serializers.DecimalField(
        source="total_amount", max_digits=12, decimal_places=2, read_only=True
    )
    orderCount = serializers.IntegerField(source="order_count", read_only=True)
    itemsSold = serializers.IntegerField(source="items_sold", read_only=True)

    class Meta:
        model = StoreDailySales
        fields = ["date", "totalAmount", "orderCount", "itemsSold"]
        read_only_fields = fields
