from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from modules.inventory.models import Product
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, CustomerInfoDTO
from modules.orders.services import build_order_service
from modules.stores.models import Store


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Revision counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def auth_client():
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    user = get_user_model().objects.create_user(username="clerk", password="testpass123")
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Marketplace fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def store():
    return Store.objects.create(name="Student Center Deli", location="Student Center 1F")


@pytest.fixture()
def other_store():
    return Store.objects.create(name="Library Bakery", location="Main Library B1")


@pytest.fixture()
def make_product(store):
    """Factory for products; defaults to a listed item of the ``store`` fixture."""

    def _make(name="Chicken Bento", price="20.00", quantity=10, **kwargs):
        kwargs.setdefault("store", store)
        kwargs.setdefault("original_price", Decimal(price) * 2)
        kwargs.setdefault("is_listed", True)
        kwargs.setdefault("expires_at", timezone.now() + timedelta(hours=6))
        return Product.objects.create(
            name=name,
            discount_price=Decimal(price),
            quantity=quantity,
            **kwargs,
        )

    return _make


@pytest.fixture()
def order_service():
    return build_order_service()


@pytest.fixture()
def place_order(order_service, store):
    """Create a ``pending`` order through the service.

    ``lines`` is a list of ``(product, quantity)`` pairs; the total is computed
    from the products' discount prices.
    """

    def _place(lines, user_id="student-1", **kwargs):
        total = sum((product.discount_price * qty for product, qty in lines), Decimal("0"))
        dto = CreateOrderDTO(
            store_id=kwargs.pop("store_id", store.id),
            user_id=user_id,
            items=[
                CreateOrderItemDTO(product_id=product.id, quantity=qty)
                for product, qty in lines
            ],
            total=kwargs.pop("total", total),
            customer_info=CustomerInfoDTO(name="Amy Lin", phone="0912-345-678"),
            **kwargs,
        )
        return order_service.create_order(dto)

    return _place
