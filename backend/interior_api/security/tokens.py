"""
Eleven Interior API - Signed Access Tokens (HS256 JWT)
=======================================================

What:  Encodes, decodes and verifies `header.payload.signature` access tokens.
How:   python-jose does the JWS work; this module fixes the algorithm to HS256
       and turns every library error into a plain result.

The three checks stay separate:
    decode()      parse only (never trusted on its own)
    is_expired()  freshness against `exp`
    verify()      signature only, `exp` is not looked at

authenticate() runs all three in the required order and is what callers
should use. The individual steps remain public so AuthGate can report
which one failed.
"""

import enum
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from jose import JWSError, JWTError, jws, jwt

ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 24 * 60 * 60

# Real access tokens are a few hundred bytes; anything this large is hostile
MAX_TOKEN_LENGTH = 8192


@dataclass(frozen=True)
class DecodedToken:
    header: Dict[str, Any]
    payload: Dict[str, Any]


class TokenFailure(str, enum.Enum):
    MALFORMED = "malformed"
    EXPIRED = "expired"
    BAD_SIGNATURE = "bad_signature"


@dataclass(frozen=True)
class TokenCheck:
    """Result of TokenCodec.authenticate(): claims on success, failure otherwise."""

    claims: Optional[Dict[str, Any]] = None
    failure: Optional[TokenFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class TokenCodec:
    """
    HS256 token encoder/verifier.

    Expected conditions (malformed input, wrong secret, expiry) never raise;
    they come back as None / False / TokenCheck.failure.
    """

    def __init__(self, clock=time.time):
        self._clock = clock

    def _now(self, now: Optional[int]) -> int:
        return int(self._clock()) if now is None else int(now)

    def encode(
        self,
        claims: Mapping[str, Any],
        secret: str,
        ttl: int = DEFAULT_TTL_SECONDS,
        now: Optional[int] = None,
    ) -> str:
        """Sign claims, adding `iat` and `exp = iat + ttl` (integer seconds)."""
        if ttl <= 0:
            raise ValueError("ttl must be a positive number of seconds")
        if not secret:
            raise ValueError("secret must not be empty")
        issued_at = self._now(now)
        payload = dict(claims)
        payload["iat"] = issued_at
        payload["exp"] = issued_at + int(ttl)
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def decode(self, token: str) -> Optional[DecodedToken]:
        """Parse header and payload without checking the signature."""
        if not self._well_formed(token):
            return None
        try:
            header = jwt.get_unverified_header(token)
            payload = jwt.get_unverified_claims(token)
        except (JWTError, RecursionError):
            return None
        if not isinstance(header, dict) or not isinstance(payload, dict):
            return None
        return DecodedToken(header=header, payload=payload)

    def verify(self, token: str, secret: str) -> bool:
        """True only if the signature matches. Does not look at `exp`."""
        if not secret or not self._well_formed(token):
            return False
        try:
            jws.verify(token, secret, algorithms=[ALGORITHM])
        except (JWSError, RecursionError):
            return False
        return True

    def is_expired(self, payload: Mapping[str, Any], now: Optional[int] = None) -> bool:
        """Expired when `exp` is in the past. A missing or non-integer `exp` counts as expired."""
        exp = payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, int):
            return True
        return exp < self._now(now)

    def authenticate(self, token: str, secret: str, now: Optional[int] = None) -> TokenCheck:
        """Decode, check freshness, then verify. Returns the claims only if all pass."""
        decoded = self.decode(token)
        if decoded is None:
            return TokenCheck(failure=TokenFailure.MALFORMED)
        if self.is_expired(decoded.payload, now):
            return TokenCheck(failure=TokenFailure.EXPIRED)
        if not self.verify(token, secret):
            return TokenCheck(failure=TokenFailure.BAD_SIGNATURE)
        return TokenCheck(claims=decoded.payload)

    @staticmethod
    def _well_formed(token: Any) -> bool:
        """Three non-empty ASCII segments within the size cap."""
        if not isinstance(token, str) or len(token) > MAX_TOKEN_LENGTH:
            return False
        if not token.isascii():
            return False
        parts = token.split(".")
        return len(parts) == 3 and all(parts)
