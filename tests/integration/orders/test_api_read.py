"""Integration tests for GET /api/v1/orders/ and GET /api/v1/orders/{id}/."""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone

from modules.orders.constants import Actor
from modules.orders.models import Order

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


@pytest.fixture()
def orders(place_order, make_product, other_store, order_service):
    product = make_product(quantity=50)
    theirs = make_product(name="Croissant", store=other_store, quantity=50)
    first = place_order([(product, 1)], user_id="student-1")
    second = place_order([(product, 2)], user_id="student-2")
    third = place_order([(theirs, 1)], user_id="student-1", store_id=other_store.id)
    order_service.accept(second.id)
    return first, second, third


class TestListOrders:
    def test_list_is_paginated(self, auth_client, orders):
        response = auth_client.get(URL)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 3
        assert {row["id"] for row in data["results"]} == {order.id for order in orders}
        assert "items" not in data["results"][0]

    def test_filter_by_user(self, auth_client, orders):
        response = auth_client.get(URL, {"userId": "student-1"})

        ids = {row["id"] for row in response.json()["results"]}
        assert ids == {orders[0].id, orders[2].id}

    def test_filter_by_store(self, auth_client, orders, other_store):
        response = auth_client.get(URL, {"storeId": str(other_store.id)})

        assert [row["id"] for row in response.json()["results"]] == [orders[2].id]

    def test_filter_by_status(self, auth_client, orders):
        response = auth_client.get(URL, {"status": "accepted"})

        assert [row["id"] for row in response.json()["results"]] == [orders[1].id]

    def test_filter_by_date_range(self, auth_client, orders):
        today = timezone.localdate()
        Order.objects.filter(pk=orders[0].pk).update(
            created_at=timezone.now() - timedelta(days=10)
        )

        response = auth_client.get(URL, {"start_date": today.isoformat()})

        assert orders[0].id not in {row["id"] for row in response.json()["results"]}

    def test_ordering_by_total(self, auth_client, orders):
        response = auth_client.get(URL, {"ordering": "-total"})

        totals = [row["total"] for row in response.json()["results"]]
        assert totals == sorted(totals, key=float, reverse=True)

    def test_list_expires_overdue_pickups(self, auth_client, orders, order_service):
        order_service.prepare(orders[1].id)
        Order.objects.filter(pk=orders[1].pk).update(
            prepared_at=timezone.now() - timedelta(seconds=601)
        )

        response = auth_client.get(URL)

        rows = {row["id"]: row for row in response.json()["results"]}
        overdue = rows[orders[1].id]
        assert overdue["status"] == "cancelled"
        assert overdue["pickup"]["running"] is False
        assert rows[orders[0].id]["pickup"]["running"] is False
        assert Order.objects.get(pk=orders[1].pk).status == "cancelled"

    def test_list_shows_running_pickup_timer(self, auth_client, orders, order_service):
        order_service.prepare(orders[1].id)

        response = auth_client.get(URL)

        rows = {row["id"]: row for row in response.json()["results"]}
        assert rows[orders[1].id]["status"] == "prepared"
        assert rows[orders[1].id]["pickup"]["running"] is True


class TestRetrieveOrder:
    def test_retrieve(self, auth_client, orders):
        response = auth_client.get(f"{URL}{orders[1].id}/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "accepted"
        assert data["acceptedAt"] is not None
        assert len(data["statusHistory"]) == 2

    def test_not_found(self, auth_client):
        response = auth_client.get(f"{URL}order-999-20250101-001/")

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_observing_expired_order_cancels_it(self, auth_client, orders, order_service):
        order_service.prepare(orders[1].id)
        Order.objects.filter(pk=orders[1].pk).update(
            prepared_at=timezone.now() - timedelta(seconds=601)
        )

        response = auth_client.get(f"{URL}{orders[1].id}/")

        data = response.json()
        assert data["status"] == "cancelled"
        assert data["cancelledBy"] == Actor.SYSTEM
        assert data["reason"] == "timeout"
        assert data["pickup"]["running"] is False
