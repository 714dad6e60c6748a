import time
from typing import Any, Dict

import structlog
from django.core.cache import cache
from django.db import DatabaseError, connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

logger = structlog.get_logger()


def _timed(check) -> Dict[str, Any]:
    start = time.monotonic()
    check()
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def _ping_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _ping_cache() -> None:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")


def health_check(request: HttpRequest) -> JsonResponse:
    """Public liveness check: database + cache round trips."""
    services: Dict[str, Dict[str, Any]] = {}

    try:
        services["database"] = _timed(_ping_database)
    except DatabaseError:
        services["database"] = {"status": "down"}
        logger.error("health_check_db_failure")

    try:
        services["cache"] = _timed(_ping_cache)
    except Exception as exc:  # backend-specific errors (redis, memcached)
        services["cache"] = {"status": "down"}
        logger.error("health_check_cache_failure", error=str(exc))

    healthy = all(s["status"] == "up" for s in services.values())
    logger.info("health_check_completed", status="healthy" if healthy else "unhealthy")

    return JsonResponse(
        {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )
