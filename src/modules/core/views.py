"""Health check endpoint (``GET /health``).

Reports the database, the cache (which also holds the sync revision
counters) and the outbox backlog the relay still has to deliver.
"""

import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

from modules.core.models import OutboxEvent

logger = structlog.get_logger()


def _timed(check: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
    start = time.monotonic()
    result = check()
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
        **result,
    }


def _check_database() -> Dict[str, Any]:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    return {}


def _check_cache() -> Dict[str, Any]:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")
    return {}


def _check_outbox() -> Dict[str, Any]:
    return {"backlog": OutboxEvent.objects.relayable().count()}


def health_check(request: HttpRequest) -> JsonResponse:
    checks = (
        ("database", _check_database),
        ("cache", _check_cache),
        ("outbox", _check_outbox),
    )
    services: Dict[str, Dict[str, Any]] = {}
    for name, check in checks:
        try:
            services[name] = _timed(check)
        except Exception:
            services[name] = {"status": "down"}
            logger.error("health_check_failure", service=name, exc_info=True)

    healthy = all(service["status"] == "up" for service in services.values())
    logger.info("health_check_completed", status="healthy" if healthy else "unhealthy")

    return JsonResponse(
        {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )
