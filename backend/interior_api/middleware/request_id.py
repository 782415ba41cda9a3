"""
Eleven Interior API - Request ID Middleware
============================================

What:  Assigns a correlation ID to each request and echoes it in X-Request-ID.
How:   Honours an incoming X-Request-ID (the dashboard sends one), otherwise
       generates a short UUID; stores it in a ContextVar for loggers and error
       bodies, and in request.state for handlers.
When:  Outer middleware, so rate-limit and auth rejections carry the ID too.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_REQUEST_ID_LENGTH = 64


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Sets request_id_var / request.state.request_id and the response header."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get("X-Request-ID", "").strip()
        # Client IDs are echoed into logs; keep them short
        rid = incoming[:MAX_REQUEST_ID_LENGTH] if incoming else new_request_id()

        # Left set after the call: the catch-all 500 handler runs outside this
        # middleware and still needs the ID
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
