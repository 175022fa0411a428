"""Order DRF serializers for API input/output.

The serializers operate at the Interface layer only: they validate request
shape and render responses in the camelCase used by the web clients.
Business rules live in ``OrderService``.
"""

from __future__ import annotations

from typing import Any, Dict

from rest_framework import serializers

from modules.orders.constants import Actor, OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.timer import pickup_countdown

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    """A cart line.  Client-side ``name``/``price`` are accepted but ignored."""

    productId = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    name = serializers.CharField(required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)


class CustomerInfoSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, default="", allow_blank=True)
    phone = serializers.CharField(required=False, default="", allow_blank=True)
    email = serializers.EmailField(required=False, default="", allow_blank=True)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    storeId = serializers.UUIDField()
    userId = serializers.CharField(max_length=128)
    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    total = serializers.DecimalField(max_digits=10, decimal_places=2)
    customerInfo = CustomerInfoSerializer(required=False)
    note = serializers.CharField(required=False, default="", allow_blank=True)

    def to_dto_data(self) -> Dict[str, Any]:
        data = self.validated_data
        return {
            "store_id": data["storeId"],
            "user_id": data["userId"],
            "items": [
                {"product_id": item["productId"], "quantity": item["quantity"]}
                for item in data["items"]
            ],
            "total": data["total"],
            "customer_info": data.get("customerInfo") or {},
            "note": data.get("note", ""),
        }


# ``system`` is set by the pickup timer only; clients may not claim it.
CLIENT_ACTORS = [Actor.USER, Actor.STORE, Actor.ADMIN]


class TransitionSerializer(serializers.Serializer):
    """Body of ``PATCH /orders/{id}/``."""

    status = serializers.ChoiceField(choices=OrderStatus.choices)
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    cancelledBy = serializers.ChoiceField(
        choices=CLIENT_ACTORS, required=False, allow_null=True
    )
    actor = serializers.ChoiceField(choices=CLIENT_ACTORS, required=False, allow_null=True)
    expectedVersion = serializers.IntegerField(
        required=False, allow_null=True, min_value=1
    )

    def to_dto_data(self) -> Dict[str, Any]:
        data = self.validated_data
        return {
            "status": data["status"],
            "reason": data.get("reason") or None,
            "cancelled_by": data.get("cancelledBy"),
            "actor": data.get("actor"),
            "expected_version": data.get("expectedVersion"),
        }


class CancelSerializer(serializers.Serializer):
    """Body of ``POST /orders/{id}/cancel/``."""

    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    cancelledBy = serializers.ChoiceField(
        choices=CLIENT_ACTORS, required=False, default=Actor.USER
    )
    expectedVersion = serializers.IntegerField(
        required=False, allow_null=True, min_value=1
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Line item snapshot; never reflects later catalog edits."""

    productId = serializers.UUIDField(source="product_id", read_only=True)
    name = serializers.CharField(source="product_name", read_only=True)
    unitPrice = serializers.DecimalField(
        source="unit_price", max_digits=10, decimal_places=2, read_only=True
    )

    class Meta:
        model = OrderItem
        fields = ["productId", "name", "unitPrice", "quantity", "subtotal"]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    oldStatus = serializers.CharField(source="old_status", read_only=True)
    newStatus = serializers.CharField(source="new_status", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = OrderStatusHistory
        fields = ["oldStatus", "newStatus", "actor", "notes", "createdAt"]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no nested relations)."""

    storeId = serializers.UUIDField(source="store_id", read_only=True)
    storeName = serializers.CharField(source="store.name", read_only=True)
    userId = serializers.CharField(source="user_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    pickup = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "storeId",
            "storeName",
            "userId",
            "status",
            "total",
            "createdAt",
            "pickup",
        ]
        read_only_fields = fields

    def get_pickup(self, obj: Order) -> Dict[str, Any]:
        countdown = pickup_countdown(obj)
        return {
            "running": countdown.running,
            "deadline": countdown.deadline.isoformat() if countdown.deadline else None,
            "remainingSeconds": countdown.remaining_seconds,
            "expired": countdown.expired,
        }


class OrderSerializer(OrderListSerializer):
    """Full order with item snapshots, timestamps, history and countdown."""

    items = OrderItemSerializer(many=True, read_only=True)
    customerInfo = serializers.JSONField(source="customer_info", read_only=True)
    acceptedAt = serializers.DateTimeField(source="accepted_at", read_only=True)
    preparedAt = serializers.DateTimeField(source="prepared_at", read_only=True)
    completedAt = serializers.DateTimeField(source="completed_at", read_only=True)
    cancelledAt = serializers.DateTimeField(source="cancelled_at", read_only=True)
    rejectedAt = serializers.DateTimeField(source="rejected_at", read_only=True)
    reason = serializers.CharField(source="cancel_reason", read_only=True)
    cancelledBy = serializers.CharField(source="cancelled_by", read_only=True)
    statusHistory = StatusHistorySerializer(
        source="status_history", many=True, read_only=True
    )

    class Meta:
        model = Order
        fields = [
            "id",
            "storeId",
            "storeName",
            "userId",
            "status",
            "total",
            "items",
            "customerInfo",
            "note",
            "createdAt",
            "acceptedAt",
            "preparedAt",
            "completedAt",
            "cancelledAt",
            "rejectedAt",
            "reason",
            "cancelledBy",
            "version",
            "statusHistory",
            "pickup",
        ]
        read_only_fields = fields
