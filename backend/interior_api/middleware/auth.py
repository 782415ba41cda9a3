"""
Eleven Interior API - Admin Authentication Middleware
======================================================

What:  Guards /api/admin/* (and the legacy /api/v1/admin/*) with AuthGate.
How:   Pass → the AuthContext is stored on request.state.auth and the request
       continues. Reject → terminal JSON response; the route never runs.

Boundary mapping (coarse on purpose, no expired-vs-forged oracle):
    SERVER_MISCONFIGURED → 500 CONFIG_ERROR
    MISSING_CREDENTIALS  → 401 MISSING_CREDENTIALS
    anything else        → 401 INVALID_CREDENTIALS
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from interior_api.responses import error_body
from interior_api.security.auth_gate import AuthFailure, AuthGate

PROTECTED_PREFIXES = ("/api/admin/", "/api/v1/admin/")


def is_protected(path: str) -> bool:
    return path.startswith(PROTECTED_PREFIXES) or path.rstrip("/") in ("/api/admin", "/api/v1/admin")


def rejection_response(failure: AuthFailure) -> JSONResponse:
    if failure is AuthFailure.SERVER_MISCONFIGURED:
        return JSONResponse(
            status_code=500,
            content=error_body("Server authentication is not configured", "CONFIG_ERROR"),
        )
    if failure is AuthFailure.MISSING_CREDENTIALS:
        return JSONResponse(
            status_code=401,
            content=error_body(
                "Authentication required. Provide X-API-Key or Authorization: Bearer <token>",
                "MISSING_CREDENTIALS",
            ),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return JSONResponse(
        status_code=401,
        content=error_body("Invalid or expired credentials", "INVALID_CREDENTIALS"),
        headers={"WWW-Authenticate": "Bearer"},
    )


class AdminAuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, gate: AuthGate):
        super().__init__(app)
        self.gate = gate

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not is_protected(request.url.path):
            return await call_next(request)

        decision = self.gate.authorize(request.method, request.headers)
        if not decision.passed:
            return rejection_response(decision.failure)

        request.state.auth = decision.context
        return await call_next(request)
