"""Reconciliation endpoints polled by dashboards.

``GET /api/v1/sync/changes/`` is the change feed: events committed after a
cursor, narrowed to one store, user, order or product.  Event ids are taken
when a row is inserted, not when its transaction commits, so the returned
cursor never moves past an event younger than ``SYNC_FEED_GRACE_SECONDS``.
Recent events may therefore be returned again on the next poll.
``GET /api/v1/sync/revisions/`` returns per-channel revision counters so a
dashboard can poll cheaply and re-fetch only the channels that moved.
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from rest_framework.decorators import api_view
from rest_framework.request import Request
from rest_framework.response import Response

from modules.core.models import OutboxEvent
from modules.core.responses import domain_error_response, validation_error_response
from modules.sync.broadcaster import broadcaster
from modules.sync.constants import INVENTORY_TOPIC, ORDERS_TOPIC
from modules.sync.serializers import ChangeSerializer, ChangesQuerySerializer
from shared.domain.exceptions import ValidationError


@api_view(["GET"])
def changes(request: Request) -> Response:
    query = ChangesQuerySerializer(data=request.query_params)
    if not query.is_valid():
        return validation_error_response(query.errors)
    params = query.validated_data

    queryset = OutboxEvent.objects.after(params["since"])
    if "storeId" in params:
        queryset = queryset.filter(payload__store_id=params["storeId"])
    if "userId" in params:
        queryset = queryset.filter(payload__user_id=params["userId"])
    if "orderId" in params:
        queryset = queryset.filter(topic=ORDERS_TOPIC, aggregate_id=params["orderId"])
    if "productId" in params:
        queryset = queryset.filter(topic=INVENTORY_TOPIC, aggregate_id=params["productId"])

    limit = params.get("limit", settings.OUTBOX_RELAY_BATCH_SIZE)
    rows = list(queryset.order_by("id")[:limit])
    cursor = _settled_cursor(rows, params["since"])
    return Response(
        {
            "events": ChangeSerializer(rows, many=True).data,
            "cursor": cursor,
            "hasMore": len(rows) == limit,
            "pollIntervalSeconds": settings.SYNC_POLL_INTERVAL_SECONDS,
        }
    )


def _settled_cursor(rows, since):
    """Id of the last row in the unbroken run of settled rows, else ``since``."""
    settled_before = timezone.now() - timedelta(seconds=settings.SYNC_FEED_GRACE_SECONDS)
    cursor = since
    for row in rows:
        if row.created_at > settled_before:
            break
        cursor = row.id
    return str(cursor) if cursor else None


@api_view(["GET"])
def revisions(request: Request) -> Response:
    channels = [c for c in request.query_params.getlist("channel") if c]
    if not channels:
        return domain_error_response(
            ValidationError("At least one 'channel' is required.", field="channel")
        )
    return Response(
        {
            "revisions": broadcaster.revisions(channels),
            "pollIntervalSeconds": settings.SYNC_POLL_INTERVAL_SECONDS,
        }
    )
