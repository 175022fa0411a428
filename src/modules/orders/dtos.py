"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Lifecycle Coordinator.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO``: a product and quantity from the cart.
- ``CustomerInfoDTO``: contact snapshot stored on the order.
- ``CreateOrderDTO``: input for order creation (nested items).
- ``TransitionOrderDTO``: input for a status change.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import CANCELLATION_STATES, Actor, OrderStatus

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """One cart line.

    Only ``product_id`` and ``quantity`` are trusted; name and unit price
    are snapshotted from the catalog by the service.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CustomerInfoDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    phone: str = ""
    email: str = ""


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``user_id`` is not blank.
    - ``items`` contains at least one item, each product once.
    - ``total`` is greater than zero.
    """

    model_config = ConfigDict(frozen=True)

    store_id: UUID
    user_id: str
    items: List[CreateOrderItemDTO]
    total: Decimal
    customer_info: CustomerInfoDTO = CustomerInfoDTO()
    note: str = ""

    @field_validator("user_id")
    @classmethod
    def user_id_must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("userId is required.")
        return v.strip()

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @field_validator("total")
    @classmethod
    def total_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Total must be greater than zero.")
        return v

    @model_validator(mode="after")
    def no_duplicate_products(self):
        """Prevent duplicate product IDs in the same order."""
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self


class TransitionOrderDTO(BaseModel):
    """Immutable DTO for ``PATCH /orders/{id}``.

    ``cancelled_by`` is required when the target is ``cancelled`` or
    ``rejected``; for other targets the actor defaults to ``store``.
    """

    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    reason: Optional[str] = None
    cancelled_by: Optional[Actor] = None
    actor: Optional[Actor] = None
    expected_version: Optional[int] = None

    @model_validator(mode="after")
    def cancellation_needs_actor(self):
        if self.status in CANCELLATION_STATES and self.cancelled_by is None:
            raise ValueError(f"cancelledBy is required when status is '{self.status}'.")
        return self

    @property
    def resolved_actor(self) -> str:
        if self.status in CANCELLATION_STATES:
            return self.cancelled_by
        return self.actor or self.cancelled_by or Actor.STORE
