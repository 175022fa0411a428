"""Unit tests for ProductService (catalog use cases scoped to a store)."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.core.models import OutboxEvent
from modules.inventory.dtos import CreateProductDTO, InventoryPatchDTO
from modules.inventory.exceptions import ProductNotFound
from modules.inventory.repositories.django_repository import ProductDjangoRepository
from modules.inventory.services import ProductService
from modules.stores.exceptions import StoreNotFound
from modules.stores.repositories.django_repository import StoreDjangoRepository

pytestmark = pytest.mark.unit

MISSING_ID = "0190a000-0000-7000-8000-000000000000"


@pytest.fixture()
def service():
    return ProductService(
        repository=ProductDjangoRepository(),
        store_repository=StoreDjangoRepository(),
    )


def _dto(**kwargs):
    kwargs.setdefault("name", "Fruit Salad")
    kwargs.setdefault("original_price", Decimal("70.00"))
    kwargs.setdefault("discount_price", Decimal("40.00"))
    kwargs.setdefault("quantity", 5)
    return CreateProductDTO(**kwargs)


class TestCreateProduct:
    def test_creates_listed_product(self, service, store):
        product = service.create_product(str(store.id), _dto())

        assert product.store_id == store.id
        assert product.quantity == 5
        assert product.is_listed is True
        assert OutboxEvent.objects.filter(
            aggregate_id=str(product.id), event_type="StockChanged"
        ).exists()

    def test_zero_quantity_is_created_unlisted(self, service, store):
        product = service.create_product(str(store.id), _dto(quantity=0))
        assert product.is_listed is False

    def test_unknown_store(self, service):
        with pytest.raises(StoreNotFound):
            service.create_product(MISSING_ID, _dto())


class TestUpdateInventory:
    def test_listing_and_quantity_together(self, service, store, make_product):
        product = make_product(quantity=2, is_listed=False)

        result = service.update_inventory(
            str(store.id), str(product.id), InventoryPatchDTO(quantity=9, is_listed=True)
        )

        assert result.quantity == 9
        assert result.is_listed is True

    def test_zero_quantity_wins_over_listing(self, service, store, make_product):
        product = make_product(quantity=2)

        result = service.update_inventory(
            str(store.id), str(product.id), InventoryPatchDTO(quantity=0, is_listed=True)
        )

        assert result.quantity == 0
        assert result.is_listed is False

    def test_product_of_another_store_is_not_found(
        self, service, other_store, make_product
    ):
        product = make_product()

        with pytest.raises(ProductNotFound):
            service.update_inventory(
                str(other_store.id), str(product.id), InventoryPatchDTO(quantity=1)
            )


class TestRestock:
    def test_restock_adds_and_relists(self, service, store, make_product):
        product = make_product(quantity=0, is_listed=False)

        result = service.restock(str(store.id), str(product.id), 4)

        assert result.quantity == 4
        assert result.is_listed is True


class TestQueries:
    def test_list_products_scoped_to_store(self, service, store, other_store, make_product):
        mine = make_product(name="Mine")
        make_product(name="Theirs", store=other_store)

        assert list(service.list_products(str(store.id))) == [mine]

    def test_list_products_unknown_store(self, service):
        with pytest.raises(StoreNotFound):
            service.list_products(MISSING_ID)
