"""Per-request access log enriched with the listing outcome."""
import time
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

HEALTH_PREFIX = "/api/v1/health/"

# Set on request.state by the listing routes.
LISTING_FIELDS = ("listing_path", "entry_count", "host_source")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Emits one structlog event per request.

    Listing requests are logged as ``listing_request`` with the decoded
    directory path, the number of entries and whether the link hostname came
    from ``public_host`` or from the request. Everything else is logged as
    ``http_request``. Health checks are not logged, and neither is the query
    string.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path.startswith(HEALTH_PREFIX):
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        fields: dict[str, Any] = {
            name: getattr(request.state, name)
            for name in LISTING_FIELDS
            if hasattr(request.state, name)
        }
        event = "listing_request" if fields else "http_request"

        logger.info(
            event,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=duration_ms,
            client=request.client.host if request.client else None,
            **fields,
        )

        return response
