"""Unit tests for stores: code assignment, order counter and sales."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from modules.stores.exceptions import StoreCodeExhausted, StoreNotFound
from modules.stores.models import Store
from modules.stores.repositories.django_repository import StoreDjangoRepository
from modules.stores.services import StoreService

pytestmark = pytest.mark.unit


@pytest.fixture()
def repository():
    return StoreDjangoRepository()


class TestStoreCode:
    def test_first_store_gets_001(self):
        store = Store.objects.create(name="Deli")
        assert store.store_code == "001"

    def test_codes_increase(self):
        Store.objects.create(name="Deli")
        second = Store.objects.create(name="Bakery")
        assert second.store_code == "002"

    def test_code_is_kept_on_update(self):
        store = Store.objects.create(name="Deli")
        store.name = "Deli & Bento"
        store.save()
        store.refresh_from_db()
        assert store.store_code == "001"

    def test_next_code_fills_after_highest(self):
        Store.objects.create(name="Deli")
        Store.objects.filter(name="Deli").update(store_code="041")
        assert Store.next_store_code() == "042"

    def test_exhausted_codes_raise(self):
        Store.objects.create(name="Deli")
        Store.objects.filter(name="Deli").update(store_code="999")
        with pytest.raises(StoreCodeExhausted):
            Store.objects.create(name="One Too Many")


class TestOrderSequence:
    def test_sequence_starts_at_one_per_day(self, repository, store):
        assert repository.next_order_sequence(store, "20250101") == 1
        assert repository.next_order_sequence(store, "20250101") == 2
        assert repository.next_order_sequence(store, "20250102") == 1

    def test_sequence_is_per_store(self, repository, store, other_store):
        repository.next_order_sequence(store, "20250101")
        assert repository.next_order_sequence(other_store, "20250101") == 1


class TestDailySales:
    def test_record_sale_accumulates(self, repository, store):
        day = date(2025, 1, 1)
        repository.record_sale(store.id, day, Decimal("55.00"), 3)
        sales = repository.record_sale(store.id, day, Decimal("20.00"), 1)

        assert sales.total_amount == Decimal("75.00")
        assert sales.order_count == 2
        assert sales.items_sold == 4


class TestStoreService:
    def test_create_store_strips_name(self, repository):
        store = StoreService(repository).create_store("  Dorm Convenience  ", "Dormitory 7")
        assert store.name == "Dorm Convenience"
        assert store.store_code == "001"

    def test_get_missing_store_raises(self, repository):
        with pytest.raises(StoreNotFound):
            StoreService(repository).get_store("0190a000-0000-7000-8000-000000000000")

    def test_get_store_with_malformed_id_raises_not_found(self, repository):
        with pytest.raises(StoreNotFound):
            StoreService(repository).get_store("not-a-uuid")

    def test_list_stores_hides_inactive(self, repository, store, other_store):
        other_store.is_active = False
        other_store.save()
        assert StoreService(repository).list_stores() == [store]
