"""Store service layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import structlog
from django.db import transaction

from modules.stores.exceptions import StoreNotFound
from modules.stores.models import Store, StoreDailySales

if TYPE_CHECKING:
    from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)


class StoreService:
    def __init__(self, repository: IStoreRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def create_store(self, name: str, location: str = "") -> Store:
        """Register a store; its 3-digit code is assigned on save.

        Raises:
            StoreCodeExhausted: all codes up to 999 are in use.
        """
        store = self._repo.save(Store(name=name.strip(), location=location))
        logger.info("store.created", store_id=str(store.id), store_code=store.store_code)
        return store

    def get_store(self, store_id: str) -> Store:
        store = self._repo.get_by_id(store_id)
        if store is None:
            raise StoreNotFound(f"Store {store_id} not found.", field="storeId")
        return store

    def list_stores(self) -> List[Store]:
        return self._repo.list({"is_active": True})

    def daily_sales(self, store_id: str) -> List[StoreDailySales]:
        store = self.get_store(store_id)
        return list(store.daily_sales.all())
