"""Order repository interface.

Extends ``IRepository[Order]`` with what the Lifecycle Coordinator needs:
atomic creation with items, locked reads, version-checked transitions,
status history and the overdue-pickup query.

The service layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` must include ``id``, ``store_id``, ``user_id``, ``total``
        and ``items`` (dicts with ``product_id``, ``product_name``,
        ``unit_price``, ``quantity``); optionally ``customer_info`` and
        ``note``.
        """

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def apply_transition(self, order: Order, changes: Dict[str, Any]) -> bool:
        """Write ``changes`` only if the stored version still equals
        ``order.version``; bump the version and publish pending events.

        Returns ``False`` when another writer got there first.
        """

    @abstractmethod
    def add_history(
        self,
        order_id: str,
        status: str,
        actor: str,
        notes: str = "",
        old_status: Optional[str] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def search(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Order]":
        """Orders as an eager-loading queryset for filtering and paging."""

    @abstractmethod
    def overdue_pickup_ids(self, prepared_before: datetime) -> List[str]:
        """Ids of ``prepared`` orders prepared at or before the cutoff."""
