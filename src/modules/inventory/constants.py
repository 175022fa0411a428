"""Inventory domain constants."""

from django.db import models


class StockMovementKind(models.TextChoices):
    RESERVE = "reserve", "Reserve"
    RELEASE = "release", "Release"
    ADJUST = "adjust", "Adjust"
