"""Django ORM implementation of the Product repository.

Error handling follows the Null Object pattern: look-ups return ``None``
instead of raising, and the ledger decides what a missing product means.
Stock arithmetic is done in SQL (``F`` expressions) so concurrent requests
never overwrite each other's quantity.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from modules.inventory.models import Product, StockMovement
from modules.inventory.repositories.interfaces import IProductRepository
from modules.sync.broadcaster import broadcaster
from modules.sync.constants import INVENTORY_TOPIC

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return Product.objects.select_related("store").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_many(self, ids: Iterable[str]) -> Dict[str, Product]:
        try:
            products = Product.objects.filter(id__in=list(ids))
            return {str(product.id): product for product in products}
        except (ValueError, ValidationError):
            return {}

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"is_listed": True}
            {"name__icontains": "bento"}
        """
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_store(
        self, store_id: str, filters: Optional[Dict[str, Any]] = None
    ) -> QuerySet[Product]:
        queryset = Product.objects.filter(store_id=store_id)
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product and its pending events."""
        entity.save()
        self.publish_events(entity)
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    def get_for_update(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def decrement_if_available(self, id: str, quantity: int) -> bool:
        updated = Product.objects.filter(id=id, quantity__gte=quantity).update(
            quantity=F("quantity") - quantity,
            updated_at=timezone.now(),
        )
        return updated == 1

    def increment(self, id: str, quantity: int) -> bool:
        updated = Product.objects.filter(id=id).update(
            quantity=F("quantity") + quantity,
            is_listed=True,
            updated_at=timezone.now(),
        )
        return updated == 1

    def journal(self, product_id: str, kind: str, delta: int, reference: Optional[str]) -> bool:
        try:
            with transaction.atomic():
                StockMovement.objects.create(
                    product_id=product_id,
                    kind=kind,
                    delta=delta,
                    reference=reference or None,
                )
        except IntegrityError:
            logger.info(
                "inventory.movement_already_applied",
                product_id=str(product_id),
                kind=kind,
                reference=reference,
            )
            return False
        return True

    def publish_events(self, entity: Product) -> None:
        events = entity.domain_events
        if events:
            broadcaster.broadcast(events, topic=INVENTORY_TOPIC)
        entity.clear_domain_events()
