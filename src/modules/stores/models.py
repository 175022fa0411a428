"""Store, per-day order counter and per-day sales aggregation.

- ``Store.store_code`` is the 3-digit code embedded in order ids
  (``order-{storeCode}-{yyyymmdd}-{seq}``); it is assigned once on creation.
- ``OrderCounter`` hands out the daily sequence for a store.  It is
  incremented inside the transaction that creates the order, so two
  concurrent checkouts never receive the same number.
- ``StoreDailySales`` accumulates completed orders per store and local date.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.db import models
from django.db.models import F

from modules.core.models import BaseModel
from modules.stores.constants import MAX_STORE_CODE, STORE_CODE_WIDTH
from modules.stores.exceptions import StoreCodeExhausted

logger = structlog.get_logger(__name__)


class Store(BaseModel):
    """A campus shop listing near-expiry food."""

    name = models.CharField(max_length=255)
    location = models.CharField(max_length=255, blank=True, default="")
    store_code = models.CharField(
        max_length=STORE_CODE_WIDTH, unique=True, editable=False
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "stores"
        ordering = ["store_code"]

    @staticmethod
    def next_store_code() -> str:
        """Return the next free code (``001`` .. ``999``)."""
        codes = Store.objects.values_list("store_code", flat=True)
        highest = max((int(code) for code in codes if code.isdigit()), default=0)
        candidate = highest + 1
        if candidate > MAX_STORE_CODE:
            raise StoreCodeExhausted(
                f"Store codes exhausted (max {MAX_STORE_CODE}).", field="store_code"
            )
        return str(candidate).zfill(STORE_CODE_WIDTH)

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if not self.store_code:
            self.store_code = self.next_store_code()
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "store_created",
                store_id=str(self.id),
                store_code=self.store_code,
            )

    def __str__(self) -> str:
        return f"{self.store_code} - {self.name}"


class OrderCounter(models.Model):
    """Daily order sequence per store (``date_str`` is ``YYYYMMDD``)."""

    store = models.ForeignKey(
        "stores.Store", on_delete=models.CASCADE, related_name="order_counters"
    )
    date_str = models.CharField(max_length=8)
    seq = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "store_order_counters"
        constraints = [
            models.UniqueConstraint(
                fields=["store", "date_str"], name="order_counter_store_date_uniq"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.store_id}/{self.date_str}: {self.seq}"


class StoreDailySales(BaseModel):
    """Running sales totals of completed orders for one store and day."""

    store = models.ForeignKey(
        "stores.Store", on_delete=models.CASCADE, related_name="daily_sales"
    )
    date = models.DateField()
    total_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    order_count = models.PositiveIntegerField(default=0)
    items_sold = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "store_daily_sales"
        ordering = ["-date"]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "date"], name="store_daily_sales_uniq"
            ),
        ]

    def add_order(self, amount: Decimal, item_count: int) -> None:
        """Atomically accumulate one completed order."""
        StoreDailySales.objects.filter(pk=self.pk).update(
            total_amount=F("total_amount") + amount,
            order_count=F("order_count") + 1,
            items_sold=F("items_sold") + item_count,
        )
        self.refresh_from_db(fields=["total_amount", "order_count", "items_sold"])

    def __str__(self) -> str:
        return f"{self.store_id} {self.date}: {self.order_count} orders"
