"""Inventory domain exceptions.

Raised by the Inventory Ledger and the product service.  Views translate
them through ``modules.core.responses.domain_error_response``.
"""

from __future__ import annotations

from shared.domain.exceptions import InsufficientStock, NotFound


class ProductNotFound(NotFound):
    """The product does not exist or belongs to another store."""


class InsufficientProductStock(InsufficientStock):
    """A reservation asked for more units than the product has left."""

    def __init__(
        self,
        product_id: str,
        requested: int,
        available: int,
        *,
        name: str = "",
        field: str | None = None,
    ) -> None:
        label = f"'{name}'" if name else str(product_id)
        super().__init__(
            f"Product {label} has {available} left, {requested} requested.",
            field=field,
        )
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available
