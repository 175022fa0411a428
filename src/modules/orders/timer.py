"""Pickup countdown.

The countdown is derived, never stored: it is recomputed from
``prepared_at`` on every observation, so it survives page reloads and
process restarts.  The window length comes from
``settings.ORDER_PICKUP_WINDOW_SECONDS`` (600 by default).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

from django.conf import settings
from django.utils import timezone

from modules.orders.constants import OrderStatus

if TYPE_CHECKING:
    from modules.orders.models import Order


@dataclass(frozen=True)
class PickupCountdown:
    """Snapshot of an order's pickup window at one instant.

    ``running`` is true only while the order is ``prepared``.
    """

    running: bool
    deadline: Optional[datetime]
    remaining_seconds: int
    expired: bool


def pickup_window() -> timedelta:
    return timedelta(seconds=settings.ORDER_PICKUP_WINDOW_SECONDS)


def pickup_deadline(order: Order) -> Optional[datetime]:
    if order.prepared_at is None:
        return None
    return order.prepared_at + pickup_window()


def pickup_countdown(order: Order, now: Optional[datetime] = None) -> PickupCountdown:
    """Compute the countdown for *order* as of *now*."""
    now = now or timezone.now()
    deadline = pickup_deadline(order)
    running = order.status == OrderStatus.PREPARED and deadline is not None
    if not running:
        return PickupCountdown(
            running=False, deadline=deadline, remaining_seconds=0, expired=False
        )

    remaining = (deadline - now).total_seconds()
    return PickupCountdown(
        running=True,
        deadline=deadline,
        remaining_seconds=max(0, int(remaining)),
        expired=remaining <= 0,
    )


def is_pickup_expired(order: Order, now: Optional[datetime] = None) -> bool:
    """True when *order* is still ``prepared`` and its window has run out."""
    return pickup_countdown(order, now).expired


def overdue_cutoff(now: Optional[datetime] = None) -> datetime:
    """Orders prepared at or before this instant have expired."""
    return (now or timezone.now()) - pickup_window()
