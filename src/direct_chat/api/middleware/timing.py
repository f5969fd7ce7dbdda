"""Access log with latency, tagged with the request's correlation id."""
from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from direct_chat.api.middleware.correlation_id import correlation_id_ctx

logger = logging.getLogger(__name__)


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Must sit inside CorrelationIdMiddleware so the id is already bound."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        took_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "request_id=%s %s %s -> %d in %.1fms",
            correlation_id_ctx.get() or "-",
            request.method,
            request.url.path,
            response.status_code,
            took_ms,
        )
        return response
