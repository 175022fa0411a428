"""Inventory DTOs for the Service Layer.

Pydantic v2 contracts between the API layer (DRF serializers) and the
services.  DTOs are immutable (``frozen=True``) and use canonical field
names only; the ``stock``/``isAvailable`` aliases are resolved by the
serializers before a DTO is built.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class CreateProductDTO(BaseModel):
    """Immutable DTO for adding a product to a store."""

    model_config = ConfigDict(frozen=True)

    name: str
    original_price: Decimal
    discount_price: Decimal
    quantity: int = 0
    is_listed: bool = True
    description: str = ""
    category: str = ""
    expires_at: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name must not be empty.")
        return v.strip()

    @field_validator("original_price", "discount_price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Quantity cannot be negative.")
        return v

    @model_validator(mode="after")
    def discount_not_above_original(self):
        if self.discount_price > self.original_price:
            raise ValueError("Discount price cannot exceed the original price.")
        return self


class InventoryPatchDTO(BaseModel):
    """Immutable DTO for ``PATCH /stores/{id}/inventory/{productId}``.

    ``quantity`` is an absolute value; negatives are clamped to zero by the
    ledger rather than rejected.
    """

    model_config = ConfigDict(frozen=True)

    quantity: Optional[int] = None
    is_listed: Optional[bool] = None

    @model_validator(mode="after")
    def something_to_change(self):
        if self.quantity is None and self.is_listed is None:
            raise ValueError("Provide 'quantity' (or 'stock') and/or 'isListed' (or 'isAvailable').")
        return self


class RestockDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    delta: int

    @field_validator("delta")
    @classmethod
    def delta_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Restock delta must be at least 1.")
        return v
