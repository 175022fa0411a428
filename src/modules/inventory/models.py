"""Product (inventory item) and the stock movement journal.

Business rules implemented:
- ``quantity`` can never become negative (unsigned column plus the ledger's
  conditional decrement).
- ``is_listed`` is the store owner's own signal; it may be false while stock
  remains.  The ledger relists on release and unlists when quantity is set
  to zero.
- Discount price must be positive and not above the original price.
- Every ledger mutation tied to an order is journaled once per
  (reference, product, kind), which makes duplicate deliveries no-ops.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.inventory.constants import StockMovementKind
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Product(DomainEventMixin, BaseModel):
    """A discounted near-expiry item listed by one store.

    All quantity mutations go through ``InventoryLedger``; nothing else
    writes ``quantity``.
    """

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.PROTECT,
        related_name="products",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=100, blank=True, default="")
    original_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    discount_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    quantity = models.PositiveIntegerField(default=0)
    is_listed = models.BooleanField(default=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["store", "is_listed"], name="products_store_listed_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(discount_price__gt=0),
                name="products_discount_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(discount_price__lte=models.F("original_price")),
                name="products_discount_not_above_original",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if (
            self.discount_price is not None
            and self.original_price is not None
            and self.discount_price > self.original_price
        ):
            raise ValidationError(
                {"discount_price": "Discount price cannot exceed the original price."}
            )

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                store_id=str(self.store_id),
                name=self.name,
            )

    def __str__(self) -> str:
        return f"{self.name} ({self.quantity})"


class StockMovement(BaseModel):
    """Append-only journal of ledger mutations.

    ``reference`` is the order id for reservations and releases caused by the
    order lifecycle, and empty for manual adjustments and restocks.
    ``delta`` is the signed change applied to ``quantity``.
    """

    product = models.ForeignKey(
        "inventory.Product",
        on_delete=models.CASCADE,
        related_name="movements",
    )
    kind = models.CharField(max_length=20, choices=StockMovementKind.choices)
    delta = models.IntegerField()
    reference = models.CharField(max_length=64, null=True, blank=True)  # noqa: DJ01

    class Meta:
        db_table = "stock_movements"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["product", "created_at"], name="stock_mov_product_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["reference", "product", "kind"],
                condition=models.Q(reference__isnull=False),
                name="stock_movement_apply_once",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.kind} {self.delta:+d} {self.product_id} ({self.reference or '-'})"
