import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.actors import Actor
from modules.realtime.registry import connection_registry

logger = structlog.get_logger(__name__)


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


def _probe(name: str, check: Callable[[], None]) -> Dict[str, Any]:
    start = time.monotonic()
    try:
        check()
    except Exception as exc:
        logger.error("health_check_failure", service=name, error=str(exc))
        return {"status": "down"}
    return {"status": "up", "response_time_ms": round((time.monotonic() - start) * 1000, 2)}


def health_check(request: HttpRequest) -> JsonResponse:
    services: Dict[str, Dict[str, Any]] = {
        "database": _probe("database", _ping_database),
        "cache": _probe("cache", _ping_cache),
        "realtime": {
            "status": "up",
            "connections": len(connection_registry),
            "capacity": connection_registry.max_connections,
        },
    }
    healthy = all(service["status"] == "up" for service in services.values())
    status = "healthy" if healthy else "unhealthy"
    logger.info("health_check_completed", status=status)

    return JsonResponse(
        {"status": status, "timestamp": timezone.now().isoformat(), "services": services},
        status=200 if healthy else 503,
    )


class CurrentUserView(APIView):
    """Identity and role of the authenticated caller.

    Clients use it to decide which lifecycle actions to offer.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: HttpRequest) -> Response:
        actor = Actor.from_user(request.user)
        return Response({"id": actor.id, "username": actor.username, "role": actor.role})
