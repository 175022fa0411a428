"""Domain events for the Inventory bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class StockChanged(DomainEvent):
    """A product's quantity or listing flag changed.

    ``change`` is the ledger operation (reserve, release, adjust, listing).
    """

    store_id: str = ""
    change: str = ""
    quantity: int = 0
    is_listed: bool = True
    reference: str = ""
