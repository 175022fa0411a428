"""Django ORM implementation of the Order repository.

All write operations are wrapped in ``transaction.atomic()`` so the Order
aggregate (Order + OrderItems + history) is persisted atomically.

Concurrency control on transitions is twofold: ``select_for_update()``
serialises writers on databases that support row locks, and every
transition is an ``UPDATE ... WHERE version = <read version>`` so a lost
race is detected even where row locks are unavailable.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository
from modules.sync.broadcaster import broadcaster
from modules.sync.constants import ORDERS_TOPIC

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            id=data["id"],
            store_id=data["store_id"],
            user_id=data["user_id"],
            total=data["total"],
            customer_info=data.get("customer_info") or {},
            note=data.get("note", ""),
        )
        order.save(force_insert=True)

        items = data.get("items", [])
        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    position=position,
                    product_id=item["product_id"],
                    product_name=item["product_name"],
                    unit_price=item["unit_price"],
                    quantity=item["quantity"],
                    subtotal=item["quantity"] * item["unit_price"],
                )
                for position, item in enumerate(items)
            ]
        )

        logger.info("order.persisted", order_id=order.id, item_count=len(items))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> QuerySet[Order]:
        return Order.objects.select_related("store").prefetch_related(
            "items", "status_history"
        )

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Eager-loads items so the caller can iterate them under the lock."""
        try:
            return (
                Order.objects.select_for_update(of=("self",))
                .select_related("store")
                .prefetch_related("items")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        return list(self.search(filters))

    def search(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """Supported filter keys include ``status``, ``store_id``, ``user_id``
        and ``created_at__range``."""
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def overdue_pickup_ids(self, prepared_before: datetime) -> List[str]:
        return list(
            Order.objects.filter(
                status=OrderStatus.PREPARED,
                prepared_at__lte=prepared_before,
            )
            .order_by("prepared_at")
            .values_list("id", flat=True)
        )

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order and publish its events."""
        entity.save()
        event_count = self._publish(entity)
        logger.info("order.saved", order_id=entity.id, event_count=event_count)
        return entity

    @transaction.atomic
    def apply_transition(self, order: Order, changes: Dict[str, Any]) -> bool:
        read_version = order.version
        updated = Order.objects.filter(pk=order.pk, version=read_version).update(
            **changes,
            version=F("version") + 1,
            updated_at=timezone.now(),
        )
        if updated != 1:
            logger.warning(
                "order.version_conflict", order_id=order.id, read_version=read_version
            )
            return False

        for field, value in changes.items():
            setattr(order, field, value)
        order.version = read_version + 1
        self._publish(order)
        return True

    @transaction.atomic
    def add_history(
        self,
        order_id: str,
        status: str,
        actor: str,
        notes: str = "",
        old_status: Optional[str] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            actor=actor,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            actor=actor,
        )
        return history

    def _publish(self, entity: Order) -> int:
        events = entity.domain_events
        if events:
            broadcaster.broadcast(events, topic=ORDERS_TOPIC)
        entity.clear_domain_events()
        return len(events)
