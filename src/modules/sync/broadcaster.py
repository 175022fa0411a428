"""Synchronization broadcaster.

Surfaces (customer page, store dashboard, admin dashboard) are loaded
independently and share no live connection.  A committed change reaches them
three ways:

1. ``broadcast`` writes each domain event to the outbox inside the caller's
   transaction and, once that transaction commits, bumps a revision counter
   per interested channel and publishes the event on the in-process bus.
2. Dashboards poll ``/sync/revisions/`` or the ``/sync/changes/`` feed and
   re-fetch whatever changed.
3. The outbox relay task republishes events whose on-commit delivery never
   happened or failed.

Delivery is at-least-once and unordered across surfaces.  Events are hints:
consumers re-read the order or product instead of trusting the payload.
"""

from __future__ import annotations

import json
from dataclasses import asdict, fields
from datetime import datetime
from decimal import Decimal
from functools import partial
from typing import Any, Dict, Iterable, List, Optional, Type
from uuid import UUID

import structlog
from django.core.cache import cache
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent
from modules.sync.constants import (
    ADMIN_CHANNEL,
    ORDER_CHANNEL,
    ORDERS_TOPIC,
    PRODUCT_CHANNEL,
    REVISION_CACHE_KEY,
    STORE_CHANNEL,
    USER_CHANNEL,
)
from shared.domain.bus import IEventBus
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


def channels_for(event: DomainEvent, topic: str) -> List[str]:
    """Channels whose subscribers care about ``event``."""
    channel = ORDER_CHANNEL if topic == ORDERS_TOPIC else PRODUCT_CHANNEL
    channels = [channel.format(event.aggregate_id)]
    store_id = getattr(event, "store_id", "")
    if store_id:
        channels.append(STORE_CHANNEL.format(store_id))
    user_id = getattr(event, "user_id", "")
    if user_id:
        channels.append(USER_CHANNEL.format(user_id))
    channels.append(ADMIN_CHANNEL)
    return channels


class SyncBroadcaster:
    """Fans committed domain events out to every interested surface."""

    def __init__(self, bus: IEventBus = event_bus) -> None:
        self._bus = bus

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def broadcast(self, events: Iterable[DomainEvent], *, topic: str) -> List[OutboxEvent]:
        """Record ``events`` in the outbox and deliver them after commit.

        Must be called inside the transaction that produced the change; if
        that transaction rolls back, nothing is delivered.
        """
        rows = []
        for event in events:
            row = OutboxEvent.objects.create(
                event_type=event.event_name,
                aggregate_id=event.aggregate_id,
                payload=serialize_event(event),
                topic=topic,
            )
            rows.append(row)
            transaction.on_commit(
                partial(self._deliver, event, topic, row.pk), robust=True
            )
        return rows

    def _deliver(self, event: DomainEvent, topic: str, outbox_id: Any) -> None:
        self.bump(channels_for(event, topic))
        try:
            self._bus.publish(event)
        except Exception as exc:
            logger.exception(
                "sync.delivery_failed",
                event_name=event.event_name,
                aggregate_id=event.aggregate_id,
            )
            OutboxEvent.objects.filter(pk=outbox_id).update(
                status=EventStatus.FAILED,
                error_message=str(exc),
                retry_count=F("retry_count") + 1,
                updated_at=timezone.now(),
            )
            return

        OutboxEvent.objects.filter(pk=outbox_id).update(
            status=EventStatus.PUBLISHED,
            processed_at=timezone.now(),
            updated_at=timezone.now(),
        )
        logger.info(
            "sync.broadcast",
            event_name=event.event_name,
            aggregate_id=event.aggregate_id,
            topic=topic,
        )

    def relay(self, row: OutboxEvent) -> None:
        """Republish a stored outbox row on the bus and mark it published."""
        event = deserialize_event(row.event_type, row.payload)
        self._bus.publish(event)
        row.mark_as_published()

    # ------------------------------------------------------------------
    # Revision counters
    # ------------------------------------------------------------------

    def bump(self, channels: Iterable[str]) -> None:
        """Increment each channel's revision counter.

        Counters only let pollers skip needless re-fetches, so a cache outage
        is logged and does not fail the already-committed change.
        """
        for channel in channels:
            key = REVISION_CACHE_KEY.format(channel)
            try:
                if not cache.add(key, 1, timeout=None):
                    cache.incr(key)
            except Exception:
                logger.warning("sync.revision_bump_failed", channel=channel, exc_info=True)

    def revision(self, channel: str) -> int:
        return int(cache.get(REVISION_CACHE_KEY.format(channel)) or 0)

    def revisions(self, channels: Iterable[str]) -> Dict[str, int]:
        channels = list(channels)
        keys = {REVISION_CACHE_KEY.format(channel): channel for channel in channels}
        found = cache.get_many(list(keys))
        return {channel: int(found.get(key) or 0) for key, channel in keys.items()}


# ---------------------------------------------------------------------------
# Event (de)serialisation
# ---------------------------------------------------------------------------


def serialize_event(event: DomainEvent) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, list):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value


def _event_class(name: str) -> Optional[Type[DomainEvent]]:
    pending = list(DomainEvent.__subclasses__())
    while pending:
        candidate = pending.pop()
        if candidate.__name__ == name:
            return candidate
        pending.extend(candidate.__subclasses__())
    return None


def deserialize_event(event_type: str, payload: Dict[str, Any]) -> DomainEvent:
    """Rebuild a domain event from its outbox payload."""
    event_class = _event_class(event_type)
    if event_class is None:
        raise LookupError(f"Unknown event type '{event_type}'.")

    init_fields = {f.name for f in fields(event_class) if f.init}
    kwargs = {key: value for key, value in payload.items() if key in init_fields}
    if "event_id" in kwargs:
        kwargs["event_id"] = UUID(kwargs["event_id"])
    if "occurred_on" in kwargs:
        kwargs["occurred_on"] = datetime.fromisoformat(kwargs["occurred_on"])
    return event_class(**kwargs)


broadcaster = SyncBroadcaster()
