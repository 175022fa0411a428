"""Domain error taxonomy shared by every bounded context.

All errors are recoverable at the request boundary.  Each carries a stable
``code`` that the API layer copies into the response body, so clients can
branch on it without parsing the message.
"""

from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base class for business-rule failures.  Never mutates state."""

    code = "domain_error"

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(DomainError):
    """Malformed or missing request data; ``field`` names the offender."""

    code = "validation_error"


class NotFound(DomainError):
    """A referenced order, product or store does not exist."""

    code = "not_found"


class InsufficientStock(DomainError):
    """A reservation asked for more units than are available."""

    code = "insufficient_stock"


class InvalidTransition(DomainError):
    """The requested status is not reachable from the current status."""

    code = "invalid_transition"


class ConcurrencyConflict(DomainError):
    """A write lost a race against another write on the same record."""

    code = "concurrency_conflict"
