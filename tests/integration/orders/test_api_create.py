"""Integration tests for POST /api/v1/orders/."""

from __future__ import annotations

from uuid import uuid4

import pytest
from django.utils import timezone

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


def _payload(store, lines, **overrides):
    payload = {
        "storeId": str(store.id),
        "userId": "student-1",
        "items": [
            {"productId": str(product.id), "quantity": qty, "name": product.name}
            for product, qty in lines
        ],
        "total": str(sum(product.discount_price * qty for product, qty in lines)),
        "customerInfo": {"name": "Amy Lin", "phone": "0912-345-678"},
        "note": "Pick up after class",
    }
    payload.update(overrides)
    return payload


class TestCreateOrder:
    def test_create_returns_201_with_snapshots(self, auth_client, store, make_product):
        p1 = make_product(name="Bento", price="20.00", quantity=5)
        p2 = make_product(name="Milk", price="15.00", quantity=5)

        response = auth_client.post(URL, _payload(store, [(p1, 2), (p2, 1)]), format="json")

        assert response.status_code == 201
        data = response.json()
        today = timezone.localdate().strftime("%Y%m%d")
        assert data["id"] == f"order-{store.store_code}-{today}-001"
        assert data["status"] == "pending"
        assert data["total"] == "55.00"
        assert data["storeName"] == store.name
        assert [item["subtotal"] for item in data["items"]] == ["40.00", "15.00"]
        assert data["customerInfo"]["name"] == "Amy Lin"
        assert data["note"] == "Pick up after class"
        assert data["acceptedAt"] is None
        assert data["version"] == 1

    def test_stock_is_not_reserved(self, auth_client, store, make_product):
        product = make_product(quantity=3)

        auth_client.post(URL, _payload(store, [(product, 2)]), format="json")

        product.refresh_from_db()
        assert product.quantity == 3

    def test_requires_authentication(self, api_client, store, make_product):
        product = make_product()

        response = api_client.post(URL, _payload(store, [(product, 1)]), format="json")

        assert response.status_code == 401


class TestCreateOrderErrors:
    def test_empty_cart(self, auth_client, store):
        response = auth_client.post(URL, _payload(store, [], total="10.00"), format="json")

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "validation_error"
        assert data["errors"][0]["attr"] == "items"

    @pytest.mark.parametrize("total", ["0", "-5.00"])
    def test_non_positive_total(self, auth_client, store, make_product, total):
        product = make_product()

        response = auth_client.post(
            URL, _payload(store, [(product, 1)], total=total), format="json"
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "total"

    def test_insufficient_stock_names_the_item(self, auth_client, store, make_product):
        product = make_product(name="Melon Bun", quantity=1)

        response = auth_client.post(URL, _payload(store, [(product, 2)]), format="json")

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "insufficient_stock"
        assert "Melon Bun" in data["detail"]
        assert data["errors"][0]["attr"] == "items.0.quantity"

    def test_unlisted_item(self, auth_client, store, make_product):
        product = make_product(is_listed=False)

        response = auth_client.post(URL, _payload(store, [(product, 1)]), format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "items.0.productId"

    def test_unknown_store(self, auth_client, store, make_product):
        product = make_product()
        payload = _payload(store, [(product, 1)], storeId=str(uuid4()))

        response = auth_client.post(URL, payload, format="json")

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_stale_total(self, auth_client, store, make_product):
        product = make_product(price="20.00")

        response = auth_client.post(
            URL, _payload(store, [(product, 1)], total="18.00"), format="json"
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "total"

    def test_malformed_json(self, auth_client):
        response = auth_client.post(URL, data="{", content_type="application/json")

        assert response.status_code == 400
