"""
Eleven Interior API - Request Logging Middleware
=================================================

What:  One access-log line per request: method, path, status, duration,
       request ID and the client address the rate limiter keys on.
How:   Level follows the status (5xx ERROR, 4xx WARNING, otherwise INFO) so
       alerting can key off severity.

Not logged: request bodies (inquiries carry names, emails and phone numbers)
and credential headers (X-API-Key, Authorization).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from interior_api.middleware.rate_limit import client_identifier
from interior_api.middleware.request_id import request_id_var

logger = logging.getLogger("interior_api.access")

QUIET_PATHS = ("/health", "/api/health")


def is_quiet_path(path: str) -> bool:
    return any(path == p or path.startswith(p + "/") for p in QUIET_PATHS)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Structured access log. Health probes are skipped (they run every few seconds)."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if is_quiet_path(path):
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = client_identifier(request, request.app.state.settings.trust_proxy_headers)
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        rid = request_id_var.get("")
        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
