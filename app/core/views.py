"""
Core views providing infrastructure endpoints.
"""

from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse


def health_check(request):
    """
    Health check endpoint for load balancers and container orchestration.

    The database is required; the Redis cache is reported but a cache outage
    only degrades the service (cache is configured with IGNORE_EXCEPTIONS).

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable

    Example Response:
        {"status": "healthy", "database": "connected", "cache": "connected"}
    """
    payload = {"status": "healthy", "database": "unknown", "cache": "unknown"}

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        payload["database"] = "connected"
    except Exception:
        payload["database"] = "disconnected"
        payload["status"] = "unhealthy"

    try:
        cache.set("health_check", "ok", timeout=1)
        payload["cache"] = "connected" if cache.get("health_check") == "ok" else "disconnected"
    except Exception:
        payload["cache"] = "disconnected"

    return JsonResponse(payload, status=200 if payload["status"] == "healthy" else 503)
