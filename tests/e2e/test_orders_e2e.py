"""E2E order flow: store, product, order and its full pickup lifecycle."""

from __future__ import annotations

import json
from uuid import uuid4

import pytest

pytestmark = [pytest.mark.e2e]


def _headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}


def _post(context, url, payload, headers):
    return context.post(url, data=json.dumps(payload), headers=headers)


def _patch(context, url, payload, headers):
    return context.patch(url, data=json.dumps(payload), headers=headers)


def test_order_lifecycle(api_request_context, auth_token):
    headers = _headers(auth_token)

    store_response = _post(
        api_request_context,
        "/api/v1/stores/",
        {"name": f"E2E Cafe {uuid4().hex[:6]}", "location": "Test Hall"},
        headers,
    )
    assert store_response.status == 201
    store_id = store_response.json()["id"]

    product_response = _post(
        api_request_context,
        f"/api/v1/stores/{store_id}/inventory/",
        {"name": "E2E Bento", "originalPrice": "80.00", "discountPrice": "40.00", "stock": 2},
        headers,
    )
    assert product_response.status == 201
    product_id = product_response.json()["id"]

    order_response = _post(
        api_request_context,
        "/api/v1/orders/",
        {
            "storeId": store_id,
            "userId": "e2e-student",
            "items": [{"productId": product_id, "quantity": 2}],
            "total": "80.00",
        },
        headers,
    )
    assert order_response.status == 201
    order_id = order_response.json()["id"]

    for target in ("accepted", "prepared"):
        response = _patch(
            api_request_context, f"/api/v1/orders/{order_id}/", {"status": target}, headers
        )
        assert response.status == 200
        assert response.json()["status"] == target

    product = api_request_context.get(
        f"/api/v1/stores/{store_id}/inventory/{product_id}/", headers=headers
    ).json()
    assert product["quantity"] == 0

    retrieved = api_request_context.get(f"/api/v1/orders/{order_id}/", headers=headers)
    assert retrieved.status == 200
    assert retrieved.json()["pickup"]["running"] is True

    completed = _patch(
        api_request_context, f"/api/v1/orders/{order_id}/", {"status": "completed"}, headers
    )
    assert completed.status == 200
    assert completed.json()["completedAt"] is not None


def test_cancel_releases_stock(api_request_context, auth_token):
    headers = _headers(auth_token)
    store_id = _post(
        api_request_context, "/api/v1/stores/", {"name": f"E2E Deli {uuid4().hex[:6]}"}, headers
    ).json()["id"]
    product_id = _post(
        api_request_context,
        f"/api/v1/stores/{store_id}/inventory/",
        {"name": "E2E Milk", "originalPrice": "50.00", "discountPrice": "25.00", "quantity": 3},
        headers,
    ).json()["id"]
    order_id = _post(
        api_request_context,
        "/api/v1/orders/",
        {
            "storeId": store_id,
            "userId": "e2e-student",
            "items": [{"productId": product_id, "quantity": 1}],
            "total": "25.00",
        },
        headers,
    ).json()["id"]
    _patch(api_request_context, f"/api/v1/orders/{order_id}/", {"status": "accepted"}, headers)

    cancelled = _post(
        api_request_context,
        f"/api/v1/orders/{order_id}/cancel/",
        {"cancelledBy": "user", "reason": "Class ran late"},
        headers,
    )

    assert cancelled.status == 200
    assert cancelled.json()["reason"] == "Class ran late"
    product = api_request_context.get(
        f"/api/v1/stores/{store_id}/inventory/{product_id}/", headers=headers
    ).json()
    assert product["quantity"] == 3
