"""
Notes API - Request Correlation
================================

What:  Gives every request an id, echoes it in X-Request-ID and stamps it
       on every log record written while the request is handled.
How:   RequestIDMiddleware keeps the id in two places: a ContextVar, read by
       RequestIDLogFilter, and request.state, read by the exception
       handlers. request.state lives in the ASGI scope, so it is still
       there for the catch-all handler, which runs outside this middleware.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id(request: Request) -> str:
    """The id RequestIDMiddleware assigned to `request`, or "" before it ran."""
    return getattr(request.state, "request_id", None) or request_id_var.get()


class RequestIDLogFilter(logging.Filter):
    """Adds `request_id` to each record; "-" outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # A caller-supplied id is kept so traces line up across services
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.request_id = rid
        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
