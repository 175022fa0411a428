"""Unit tests for order serializers."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest
from django.utils import timezone

from modules.orders.models import Order
from modules.orders.serializers import (
    CancelSerializer,
    CreateOrderSerializer,
    OrderSerializer,
    TransitionSerializer,
)

pytestmark = pytest.mark.unit


class TestCreateOrderSerializer:
    def test_to_dto_data_ignores_client_prices(self):
        product_id = uuid4()
        serializer = CreateOrderSerializer(
            data={
                "storeId": str(uuid4()),
                "userId": "student-1",
                "items": [
                    {"productId": str(product_id), "quantity": 2, "name": "X", "price": "1.00"}
                ],
                "total": "40.00",
                "customerInfo": {"name": "Amy Lin", "phone": "0912-345-678"},
            }
        )

        assert serializer.is_valid(), serializer.errors
        data = serializer.to_dto_data()
        assert data["items"] == [{"product_id": product_id, "quantity": 2}]
        assert data["customer_info"]["email"] == ""
        assert data["note"] == ""

    def test_empty_cart_rejected(self):
        serializer = CreateOrderSerializer(
            data={"storeId": str(uuid4()), "userId": "u", "items": [], "total": "1.00"}
        )
        assert not serializer.is_valid()
        assert "items" in serializer.errors


class TestTransitionSerializer:
    def test_to_dto_data(self):
        serializer = TransitionSerializer(
            data={"status": "cancelled", "cancelledBy": "user", "reason": "", "expectedVersion": 3}
        )

        assert serializer.is_valid(), serializer.errors
        assert serializer.to_dto_data() == {
            "status": "cancelled",
            "reason": None,
            "cancelled_by": "user",
            "actor": None,
            "expected_version": 3,
        }

    def test_unknown_status_rejected(self):
        serializer = TransitionSerializer(data={"status": "shipped"})
        assert not serializer.is_valid()
        assert "status" in serializer.errors

    @pytest.mark.parametrize("field", ["cancelledBy", "actor"])
    def test_system_cannot_be_claimed_by_clients(self, field):
        serializer = TransitionSerializer(data={"status": "cancelled", field: "system"})
        assert not serializer.is_valid()
        assert field in serializer.errors


class TestCancelSerializer:
    def test_defaults_to_user(self):
        serializer = CancelSerializer(data={})
        assert serializer.is_valid()
        assert serializer.validated_data["cancelledBy"] == "user"

    def test_system_cannot_be_claimed_by_clients(self):
        serializer = CancelSerializer(data={"cancelledBy": "system"})
        assert not serializer.is_valid()


class TestOrderSerializer:
    def test_output_shape(self, place_order, make_product, order_service):
        order = place_order([(make_product(), 1)])
        order_service.accept(order.id)
        prepared = order_service.prepare(order.id)

        data = OrderSerializer(prepared).data

        assert data["id"] == order.id
        assert data["status"] == "prepared"
        assert data["items"][0]["name"] == "Chicken Bento"
        assert data["items"][0]["unitPrice"] == "20.00"
        assert data["version"] == 3
        assert [row["newStatus"] for row in data["statusHistory"]] == [
            "pending",
            "accepted",
            "prepared",
        ]
        assert data["pickup"]["running"] is True
        assert 0 < data["pickup"]["remainingSeconds"] <= 600
        assert data["pickup"]["expired"] is False

    def test_pickup_block_for_pending_order(self, place_order, make_product):
        order = place_order([(make_product(), 1)])

        pickup = OrderSerializer(order).data["pickup"]

        assert pickup == {
            "running": False,
            "deadline": None,
            "remainingSeconds": 0,
            "expired": False,
        }

    def test_expired_flag(self, place_order, make_product, order_service):
        order = place_order([(make_product(), 1)])
        order_service.accept(order.id)
        order_service.prepare(order.id)
        Order.objects.filter(pk=order.pk).update(
            prepared_at=timezone.now() - timedelta(seconds=700)
        )

        pickup = OrderSerializer(Order.objects.get(pk=order.pk)).data["pickup"]

        assert pickup["expired"] is True
        assert pickup["remainingSeconds"] == 0
