"""
Request-scoped FastAPI dependencies.

App-wide components (settings, limiter, URL cache) are built in create_app()
and read from request.app.state here, so routes never import globals.
"""

from typing import Optional

from fastapi import Request

from interior_api.config import Settings
from interior_api.middleware.rate_limit import client_identifier
from interior_api.security.auth_gate import AuthContext


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_context(request: Request) -> Optional[AuthContext]:
    """Set by AdminAuthMiddleware on /api/admin/* requests."""
    return getattr(request.state, "auth", None)


def get_client_ip(request: Request) -> str:
    """Same client address the rate limiter keys on."""
    return client_identifier(request, request.app.state.settings.trust_proxy_headers)
