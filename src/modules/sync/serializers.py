"""Sync DRF serializers (query validation and change feed output)."""

from __future__ import annotations

from rest_framework import serializers

from modules.core.models import OutboxEvent


class ChangesQuerySerializer(serializers.Serializer):
    since = serializers.UUIDField(required=False, allow_null=True, default=None)
    storeId = serializers.CharField(required=False, allow_blank=False)
    userId = serializers.CharField(required=False, allow_blank=False)
    orderId = serializers.CharField(required=False, allow_blank=False)
    productId = serializers.CharField(required=False, allow_blank=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=500)


class ChangeSerializer(serializers.ModelSerializer):
    """One entry of the change feed: a pointer to what to re-fetch."""

    type = serializers.CharField(source="event_type")
    aggregateId = serializers.CharField(source="aggregate_id")
    occurredAt = serializers.DateTimeField(source="created_at")
    storeId = serializers.SerializerMethodField()
    userId = serializers.SerializerMethodField()
    status = serializers.SerializerMethodField()

    class Meta:
        model = OutboxEvent
        fields = [
            "id",
            "type",
            "topic",
            "aggregateId",
            "occurredAt",
            "storeId",
            "userId",
            "status",
        ]
        read_only_fields = fields

    def get_storeId(self, obj: OutboxEvent) -> str | None:
        return obj.payload.get("store_id") or None

    def get_userId(self, obj: OutboxEvent) -> str | None:
        return obj.payload.get("user_id") or None

    def get_status(self, obj: OutboxEvent) -> str | None:
        return obj.payload.get("status") or None
