"""
Notes API - Access Log Middleware
==================================

What:  One line per request on the "notesapi.access" logger:
       `GET /api/v1/notes/search?q=milk -> 200 (3.1 ms)`
How:   5xx lines are logged at ERROR, 4xx at WARNING, the rest at INFO.
       The request id is not part of the message; RequestIDLogFilter adds
       it to every record.

Request bodies are never logged; notes may hold anything.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("notesapi.access")

# Polled by load balancers and browsers; not worth a line each
QUIET_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


def status_log_level(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        target = request.url.path
        if request.url.query:
            target += "?" + request.url.query

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # The catch-all handler answers 500 once this propagates
            logger.error("%s %s -> 500 (%.1f ms)", request.method, target,
                         (time.perf_counter() - start) * 1000)
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.log(
            status_log_level(response.status_code),
            "%s %s -> %d (%.1f ms)",
            request.method,
            target,
            response.status_code,
            elapsed_ms,
        )
        return response
