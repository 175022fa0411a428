"""Store domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import NotFound, ValidationError


class StoreNotFound(NotFound):
    """The referenced store does not exist."""


class StoreCodeExhausted(ValidationError):
    """Every 3-digit store code is already taken."""
