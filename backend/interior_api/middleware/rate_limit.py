"""
Eleven Interior API - Rate Limiting Middleware
===============================================

What:  HTTP adapter around RateLimiter: resolves the client id, picks the
       path class, and answers 429 when the limiter denies.
How:   The RateLimiter instance is passed in by create_app(); this middleware
       holds no counters of its own.
When:  After RequestID/logging, before the admin auth gate, so unauthenticated
       floods against /api/admin/* are throttled too.

Exempt:
    - OPTIONS preflight (browsers send one per cross-origin call)
    - health probes and API docs

429 response:
    Retry-After: <seconds>
    {"error": "Rate limit exceeded", "code": "RATE_LIMIT_EXCEEDED" | "RATE_LIMIT_BLOCKED",
     "retryAfter": <seconds>, "request_id": "..."}
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from interior_api.exceptions import RateLimitExceededError
from interior_api.responses import error_response
from interior_api.security.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

EXEMPT_PREFIXES = ("/health", "/api/health")
EXEMPT_PATHS = {"/docs", "/redoc", "/openapi.json", "/docs/oauth2-redirect"}
PRIVILEGED_MARKER = "/admin/"


def is_exempt(path: str) -> bool:
    if path in EXEMPT_PATHS:
        return True
    return any(path == p or path.startswith(p + "/") for p in EXEMPT_PREFIXES)


def is_privileged(path: str) -> bool:
    return PRIVILEGED_MARKER in path


def client_identifier(request: Request, trust_proxy_headers: bool = True) -> str:
    """
    Best-effort client address.

    Order: CF-Connecting-IP, first X-Forwarded-For hop, X-Real-IP, socket peer.
    """
    if trust_proxy_headers:
        cf_ip = request.headers.get("CF-Connecting-IP", "").strip()
        if cf_ip:
            return cf_ip
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
        real_ip = request.headers.get("X-Real-IP", "").strip()
        if real_ip:
            return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: RateLimiter, trust_proxy_headers: bool = True):
        super().__init__(app)
        self.limiter = limiter
        self.trust_proxy_headers = trust_proxy_headers

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if request.method == "OPTIONS" or is_exempt(path):
            return await call_next(request)

        client_id = client_identifier(request, self.trust_proxy_headers)
        decision = self.limiter.check(client_id, privileged=is_privileged(path))

        if not decision.allowed:
            logger.warning(
                "Rate limited %s %s for %s (%s, retry in %ss)",
                request.method, path, client_id, decision.code, decision.retry_after,
            )
            return error_response(
                RateLimitExceededError(retry_after=decision.retry_after, code=decision.code),
                headers={"X-RateLimit-Limit": str(decision.limit), "X-RateLimit-Remaining": "0"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        response.headers["X-RateLimit-Reset"] = str(decision.reset_after)
        return response
