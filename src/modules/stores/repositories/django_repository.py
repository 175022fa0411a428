"""Django ORM implementation of the Store repository."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F

from modules.stores.models import OrderCounter, Store, StoreDailySales
from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)


class StoreDjangoRepository(IStoreRepository):
    """Concrete Store repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Store]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return Store.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Store]:
        queryset = Store.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Store) -> Store:
        entity.save()
        logger.info("store.saved", store_id=str(entity.id))
        return entity

    @transaction.atomic
    def next_order_sequence(self, store: Store, date_str: str) -> int:
        counter, _ = OrderCounter.objects.select_for_update().get_or_create(
            store=store, date_str=date_str
        )
        OrderCounter.objects.filter(pk=counter.pk).update(seq=F("seq") + 1)
        counter.refresh_from_db(fields=["seq"])
        return counter.seq

    @transaction.atomic
    def record_sale(
        self, store_id: str, day: date, amount: Decimal, item_count: int
    ) -> StoreDailySales:
        sales, _ = StoreDailySales.objects.select_for_update().get_or_create(
            store_id=store_id, date=day
        )
        sales.add_order(amount, item_count)
        logger.info(
            "store.sale_recorded",
            store_id=str(store_id),
            date=day.isoformat(),
            amount=str(amount),
            order_count=sales.order_count,
        )
        return sales
