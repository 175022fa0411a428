"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderEvent(DomainEvent):
    """Common routing data: the store and user channels to notify."""

    store_id: str = ""
    user_id: str = ""
    status: str = ""


@dataclass(frozen=True)
class OrderCreated(OrderEvent):
    """Raised when an order is created."""


@dataclass(frozen=True)
class OrderStatusChanged(OrderEvent):
    """Raised on every status transition."""

    old_status: str = ""


@dataclass(frozen=True)
class OrderCancelled(OrderEvent):
    """Raised when an order is cancelled or rejected."""

    cancelled_by: str = ""
    reason: str = ""
