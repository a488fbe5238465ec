"""Request correlation for structured logs.

Every HTTP request and every push connection carries one correlation id,
taken from the caller's ``X-Request-ID`` header or generated.  It is bound
into structlog's context variables so each log line emitted while serving
the request includes it.
"""

import time
import uuid
from typing import Callable, Iterable, Optional, Tuple

import structlog
from django.http import HttpRequest, HttpResponse

REQUEST_ID_HEADER = "X-Request-ID"

logger = structlog.get_logger(__name__)


def bind_correlation_id(candidate: Optional[str]) -> str:
    """Start a fresh log context bound to ``candidate`` or a new UUID4."""
    cid = candidate or str(uuid.uuid4())
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(correlation_id=cid)
    return cid


def correlation_id_from_scope(headers: Iterable[Tuple[bytes, bytes]]) -> Optional[str]:
    """Read ``X-Request-ID`` from raw ASGI headers."""
    wanted = REQUEST_ID_HEADER.lower().encode("latin-1")
    for name, value in headers:
        if name.lower() == wanted:
            return value.decode("latin-1") or None
    return None


class CorrelationIdMiddleware:
    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = bind_correlation_id(request.headers.get(REQUEST_ID_HEADER))
        path = request.get_full_path()
        logger.info("request_started", method=request.method, path=path)

        start = time.monotonic()
        response = self.get_response(request)
        logger.info(
            "request_finished",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )

        response[REQUEST_ID_HEADER] = cid
        return response
