"""Order, OrderItem and OrderStatusHistory models.

Business rules implemented:
- The primary key is the human-decodable order id
  ``order-{storeCode}-{yyyymmdd}-{seq}``, assigned by the service.
- Items snapshot the product name and unit price; they are written once and
  never updated, so later catalog edits never alter historical orders.
- ``total`` is computed at creation and never recomputed.
- Each status ever entered has exactly one ``*_at`` timestamp; timestamps
  never decrease.
- ``version`` increases on every transition; writes are conditional on it.
- Orders are never deleted (append-only audit trail).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import structlog
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    STATUS_TIMESTAMP_FIELDS,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    Actor,
    OrderStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root."""

    id = models.CharField(primary_key=True, max_length=64, editable=False)
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    user_id = models.CharField(max_length=128)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    total = models.DecimalField(max_digits=10, decimal_places=2)
    customer_info = models.JSONField(default=dict, blank=True)
    note = models.TextField(blank=True, default="")

    accepted_at = models.DateTimeField(null=True, blank=True)
    prepared_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)

    cancel_reason = models.TextField(blank=True, default="")
    cancelled_by = models.CharField(
        max_length=10, choices=Actor.choices, blank=True, default=""
    )
    version = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["user_id", "-created_at"], name="orders_user_idx"),
            models.Index(fields=["status", "prepared_at"], name="orders_pickup_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gt=0),
                name="orders_total_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    def timestamp_for(self, status: str) -> Optional[datetime]:
        """The moment the order entered *status* (``created_at`` for pending)."""
        if status == OrderStatus.PENDING:
            return self.created_at
        return getattr(self, STATUS_TIMESTAMP_FIELDS[status])

    def latest_timestamp(self) -> Optional[datetime]:
        stamps = [self.created_at] + [
            getattr(self, field) for field in STATUS_TIMESTAMP_FIELDS.values()
        ]
        stamps = [stamp for stamp in stamps if stamp is not None]
        return max(stamps) if stamps else None

    def reached_statuses(self) -> set[str]:
        """Statuses whose timestamp is set."""
        return {status for status in OrderStatus.values if self.timestamp_for(status)}

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items.all())

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.id} ({self.status})"


class OrderItem(BaseModel):
    """Immutable line item with name and price snapshots.

    ``product`` is kept only as a reference for stock bookkeeping; it is
    nulled if the product is ever removed, while the snapshot survives.
    ``subtotal`` is always ``quantity * unit_price``.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    position = models.PositiveSmallIntegerField(default=0)
    product = models.ForeignKey(
        "inventory.Product",
        on_delete=models.SET_NULL,
        null=True,
        related_name="order_items",
    )
    product_name = models.CharField(max_length=255)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    subtotal = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["position"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise RuntimeError("Order items are immutable once written.")
        self.subtotal = self.quantity * Decimal(self.unit_price)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} (${self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``actor`` records who requested the change; ``system`` marks automatic
    cancellations by the pickup timer.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    actor = models.CharField(max_length=10, choices=Actor.choices)
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.new_status}"
