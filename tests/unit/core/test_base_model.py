"""Unit tests for BaseModel behaviour, exercised through a concrete model."""

from __future__ import annotations

import uuid

import pytest

from modules.stores.models import Store

pytestmark = pytest.mark.unit


class TestBaseModel:
    def test_primary_key_is_uuid7(self):
        store = Store.objects.create(name="UUID Store")

        assert isinstance(store.id, uuid.UUID)
        assert store.id.version == 7

    def test_ids_are_time_ordered(self):
        first = Store.objects.create(name="First")
        second = Store.objects.create(name="Second")

        assert first.id < second.id

    def test_timestamps_are_set_on_create(self):
        store = Store.objects.create(name="Stamped")

        assert store.created_at is not None
        assert store.updated_at is not None

    def test_update_fields_refreshes_updated_at(self):
        store = Store.objects.create(name="Renamed")
        before = store.updated_at

        store.name = "Renamed Again"
        store.save(update_fields=["name"])
        store.refresh_from_db()

        assert store.name == "Renamed Again"
        assert store.updated_at > before
