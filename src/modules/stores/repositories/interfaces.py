"""Store repository interface."""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.stores.models import Store, StoreDailySales


class IStoreRepository(IRepository["Store"]):
    """Repository contract for stores and their per-day counters."""

    @abstractmethod
    def next_order_sequence(self, store: Store, date_str: str) -> int:
        """Increment and return the store's order sequence for ``date_str``.

        Must run inside the caller's transaction.
        """

    @abstractmethod
    def record_sale(
        self, store_id: str, day: date, amount: Decimal, item_count: int
    ) -> StoreDailySales:
        """Add one completed order to the store's daily sales row."""
