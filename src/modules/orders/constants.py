"""Order domain constants.

Status choices, the transition map of the order state machine and the
actors allowed to request each target status.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    PREPARED = "prepared", "Prepared"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    REJECTED = "rejected", "Rejected"


class Actor(models.TextChoices):
    USER = "user", "User"
    STORE = "store", "Store"
    ADMIN = "admin", "Admin"
    SYSTEM = "system", "System"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {
        OrderStatus.ACCEPTED,
        OrderStatus.REJECTED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.ACCEPTED: {OrderStatus.PREPARED, OrderStatus.CANCELLED},
    OrderStatus.PREPARED: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.REJECTED: set(),
}

TERMINAL_STATES: set[str] = {
    OrderStatus.COMPLETED,
    OrderStatus.CANCELLED,
    OrderStatus.REJECTED,
}

# Statuses in which the order holds a stock reservation.
RESERVED_STATES: set[str] = {OrderStatus.ACCEPTED, OrderStatus.PREPARED}

# Statuses that record ``cancelled_by`` and ``cancel_reason``.
CANCELLATION_STATES: set[str] = {OrderStatus.CANCELLED, OrderStatus.REJECTED}

ALLOWED_ACTORS: dict[str, set[str]] = {
    OrderStatus.ACCEPTED: {Actor.STORE, Actor.ADMIN},
    OrderStatus.REJECTED: {Actor.STORE, Actor.ADMIN},
    OrderStatus.PREPARED: {Actor.STORE, Actor.ADMIN},
    OrderStatus.COMPLETED: {Actor.STORE, Actor.ADMIN},
    OrderStatus.CANCELLED: {Actor.USER, Actor.STORE, Actor.ADMIN, Actor.SYSTEM},
}

STATUS_TIMESTAMP_FIELDS: dict[str, str] = {
    OrderStatus.ACCEPTED: "accepted_at",
    OrderStatus.PREPARED: "prepared_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
    OrderStatus.REJECTED: "rejected_at",
}

DEFAULT_CANCEL_REASON = "No reason provided"
TIMEOUT_REASON = "timeout"
EXPIRED_REASON = "expired"

ORDER_ID_FORMAT = "order-{store_code}-{date}-{seq:03d}"
