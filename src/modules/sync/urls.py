"""Sync URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.sync.views import changes, revisions

urlpatterns = [
    path("sync/changes/", changes, name="sync-changes"),
    path("sync/revisions/", revisions, name="sync-revisions"),
]
