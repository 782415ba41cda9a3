"""
Eleven Interior API - Admin Authentication Gate
================================================

What:  Decides whether a request may reach an admin route.
How:   Checks credentials in a fixed precedence:

    OPTIONS (preflight) ─────────────────────────────▶ pass
    X-API-Key present   ─ key configured? ─ equal? ──▶ pass (api_key)
                                  │            └─────▶ INVALID_KEY
                                  └──────────────────▶ SERVER_MISCONFIGURED
    Authorization: Bearer ─ secret configured? ─ decode ─ fresh ─ signature ─▶ pass (bearer)
    nothing usable  ─────────────────────────────────▶ MISSING_CREDENTIALS

When an X-API-Key header is present it alone decides the outcome; a bearer
token in the same request is ignored.

Who:   AdminAuthMiddleware (HTTP boundary) maps AuthFailure to status + code.
"""

import enum
import hmac
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from interior_api.security.tokens import TokenCodec, TokenFailure

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"
AUTHORIZATION_HEADER = "authorization"
BEARER_PREFIX = "bearer "


class AuthFailure(str, enum.Enum):
    MISSING_CREDENTIALS = "missing_credentials"
    INVALID_KEY = "invalid_key"
    MALFORMED_TOKEN = "malformed_token"
    TOKEN_EXPIRED = "token_expired"
    SIGNATURE_MISMATCH = "signature_mismatch"
    SERVER_MISCONFIGURED = "server_misconfigured"


_TOKEN_FAILURES = {
    TokenFailure.MALFORMED: AuthFailure.MALFORMED_TOKEN,
    TokenFailure.EXPIRED: AuthFailure.TOKEN_EXPIRED,
    TokenFailure.BAD_SIGNATURE: AuthFailure.SIGNATURE_MISMATCH,
}


@dataclass(frozen=True)
class AuthContext:
    """Who the caller is. Attached to request.state.auth for route handlers."""

    method: str  # "api_key" | "bearer"
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> Optional[int]:
        value = self.claims.get("user_id")
        return value if isinstance(value, int) and not isinstance(value, bool) else None

    @property
    def role(self) -> Optional[str]:
        return self.claims.get("role")


@dataclass(frozen=True)
class AuthDecision:
    passed: bool
    failure: Optional[AuthFailure] = None
    context: Optional[AuthContext] = None

    @classmethod
    def allow(cls, context: Optional[AuthContext] = None) -> "AuthDecision":
        return cls(passed=True, context=context)

    @classmethod
    def reject(cls, failure: AuthFailure) -> "AuthDecision":
        return cls(passed=False, failure=failure)


class AuthGate:
    """
    Args:
        api_key:    configured service key ("" when not configured)
        jwt_secret: configured token secret ("" when not configured)
        codec:      TokenCodec used for bearer tokens
    """

    def __init__(self, api_key: str, jwt_secret: str, codec: Optional[TokenCodec] = None):
        self._api_key = api_key or ""
        self._jwt_secret = jwt_secret or ""
        self.codec = codec or TokenCodec()

    def authorize(self, method: str, headers: Mapping[str, str]) -> AuthDecision:
        """Decide for one request. `headers` must support case-insensitive get()."""
        if method.upper() == "OPTIONS":
            return AuthDecision.allow()

        provided_key = headers.get(API_KEY_HEADER)
        if provided_key is not None:
            return self._check_api_key(provided_key)

        authorization = headers.get(AUTHORIZATION_HEADER)
        if authorization and authorization[: len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
            return self._check_bearer(authorization[len(BEARER_PREFIX):].strip())

        return AuthDecision.reject(AuthFailure.MISSING_CREDENTIALS)

    def _check_api_key(self, provided: str) -> AuthDecision:
        if not self._api_key:
            logger.error("X-API-Key presented but ADMIN_API_KEY is not configured")
            return AuthDecision.reject(AuthFailure.SERVER_MISCONFIGURED)
        if hmac.compare_digest(provided.encode("utf-8"), self._api_key.encode("utf-8")):
            return AuthDecision.allow(AuthContext(method="api_key", claims={"role": "admin"}))
        logger.info("Rejected request with invalid API key")
        return AuthDecision.reject(AuthFailure.INVALID_KEY)

    def _check_bearer(self, token: str) -> AuthDecision:
        if not self._jwt_secret:
            logger.error("Bearer token presented but JWT_SECRET is not configured")
            return AuthDecision.reject(AuthFailure.SERVER_MISCONFIGURED)
        if not token:
            return AuthDecision.reject(AuthFailure.MISSING_CREDENTIALS)

        check = self.codec.authenticate(token, self._jwt_secret)
        if check.ok:
            return AuthDecision.allow(AuthContext(method="bearer", claims=dict(check.claims)))

        failure = _TOKEN_FAILURES[check.failure]
        if failure is AuthFailure.SIGNATURE_MISMATCH:
            logger.warning("Bearer token signature mismatch (possible forgery)")
        else:
            logger.info("Rejected bearer token: %s", failure.value)
        return AuthDecision.reject(failure)
