"""Product repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.inventory.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_many(self, ids: Iterable[str]) -> Dict[str, Product]:
        """Fetch several products at once, keyed by ``str(id)``."""

    @abstractmethod
    def list_for_store(
        self, store_id: str, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """One store's products as a queryset, so views can filter and page it."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Product]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def decrement_if_available(self, id: str, quantity: int) -> bool:
        """Atomically subtract ``quantity`` when at least that much is left.

        Returns ``False`` (and changes nothing) otherwise.
        """

    @abstractmethod
    def increment(self, id: str, quantity: int) -> bool:
        """Atomically add ``quantity`` and relist the product."""

    @abstractmethod
    def journal(self, product_id: str, kind: str, delta: int, reference: Optional[str]) -> bool:
        """Record a stock movement.

        Returns ``False`` when the (reference, product, kind) triple was
        already journaled, i.e. the mutation was applied before.
        """

    @abstractmethod
    def publish_events(self, entity: Product) -> None:
        """Hand the product's pending domain events to the broadcaster."""
