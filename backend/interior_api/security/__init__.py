"""
Request-path primitives with no web-framework dependencies.

    lru_cache.py     LRUCache, MISS sentinel
    rate_limiter.py  RateLimiter, RateLimitRecord, RateLimitDecision
    tokens.py        TokenCodec (HS256 access tokens)
    signing.py       RequestSigner (Cloudinary SHA-1 signatures)
    auth_gate.py     AuthGate (API key / bearer decision)
"""

from interior_api.security.auth_gate import AuthContext, AuthDecision, AuthFailure, AuthGate
from interior_api.security.lru_cache import MISS, LRUCache
from interior_api.security.rate_limiter import RateLimitDecision, RateLimiter, RateLimitRecord
from interior_api.security.signing import SIGNABLE_PARAMS, RequestSigner
from interior_api.security.tokens import DecodedToken, TokenCheck, TokenCodec, TokenFailure

__all__ = [
    "AuthContext",
    "AuthDecision",
    "AuthFailure",
    "AuthGate",
    "DecodedToken",
    "LRUCache",
    "MISS",
    "RateLimitDecision",
    "RateLimitRecord",
    "RateLimiter",
    "RequestSigner",
    "SIGNABLE_PARAMS",
    "TokenCheck",
    "TokenCodec",
    "TokenFailure",
]
