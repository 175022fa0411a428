"""Order domain exceptions.

Raised by the Lifecycle Coordinator when business rules are violated.
The API layer translates them via ``domain_error_response``.
"""

from __future__ import annotations

from shared.domain.exceptions import ConcurrencyConflict, InvalidTransition, NotFound


class OrderNotFound(NotFound):
    """The requested order does not exist."""


class InvalidOrderTransition(InvalidTransition):
    """The target status is not reachable from the order's current status."""

    def __init__(self, order_id: str, current: str, attempted: str) -> None:
        super().__init__(
            f"Order {order_id} cannot move from '{current}' to '{attempted}'.",
            field="status",
        )
        self.order_id = order_id
        self.current = current
        self.attempted = attempted


class ActorNotAllowed(InvalidTransition):
    """The actor may not request this transition (e.g. a user accepting)."""

    def __init__(self, actor: str, attempted: str) -> None:
        super().__init__(
            f"Actor '{actor}' may not move an order to '{attempted}'.",
            field="actor",
        )


class StaleOrderVersion(ConcurrencyConflict):
    """The order changed since the caller read it."""
