"""
Eleven Interior API - Cloudinary Request Signing
=================================================

What:  Produces the `signature` field for authenticated Cloudinary calls.
How:   allow-listed params → sorted `k=v` joined by `&` → append the raw
       API secret → SHA-1 → lower-case hex.

SHA-1 is mandated by Cloudinary's upload API. Only allow-listed parameters
take part: Cloudinary signs the same subset server-side, so any extra field
(file, api_key, quality...) in the string would make the signatures differ.
"""

import hashlib
from typing import Any, Iterable, Mapping

SIGNABLE_PARAMS = frozenset({"timestamp", "folder", "public_id", "resource_type", "public_ids"})


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_format_value(v) for v in value)
    return str(value)


class RequestSigner:
    """Pure, stateless signer; one instance can be shared by every request."""

    def __init__(self, allowed_params: Iterable[str] = SIGNABLE_PARAMS):
        self.allowed_params = frozenset(allowed_params)

    def canonical_string(self, params: Mapping[str, Any]) -> str:
        """Sorted `k=v&k=v` of allow-listed, non-None params (secret not included)."""
        pairs = sorted(
            (key, _format_value(value))
            for key, value in params.items()
            if key in self.allowed_params and value is not None
        )
        return "&".join(f"{key}={value}" for key, value in pairs)

    def sign(self, params: Mapping[str, Any], secret: str) -> str:
        to_sign = self.canonical_string(params) + secret
        return hashlib.sha1(to_sign.encode("utf-8")).hexdigest()
