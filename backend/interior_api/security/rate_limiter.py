"""
Eleven Interior API - Windowed Rate Limiter with Block Escalation
==================================================================

What:  Per-client request ceiling over a fixed window. Exceeding the ceiling
       blocks the client for a cool-down period.
How:   One RateLimitRecord per client id, stored in an LRUCache so the number
       of tracked clients stays bounded (least-recently-seen clients fall out).
Who:   RateLimitMiddleware calls check() once per request.
When:  Constructed once in create_app(); never a module global, so tests get
       isolated instances.

State Machine (per client):

    ┌────────┐ count+1 > max           ┌─────────┐
    │ Active │ ──────────────────────▶ │ Blocked │ ── now < block_until ──▶ deny
    └────────┘                         └─────────┘
        ▲  │ window elapsed → reset         │
        │  └─── count+1 <= max → allow      │ now >= block_until
        └───────────────────────────────────┘ (treated as window rollover)

Known imprecision:
    check() is synchronous and never awaits, so a single check cannot be
    interleaved. Requests are still counted when they arrive, not when they
    finish: a cancelled request keeps its increment (the limiter counts
    attempts). Limits are per process; several workers each keep their own
    counters.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from interior_api.security.lru_cache import MISS, LRUCache

logger = logging.getLogger(__name__)

RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
RATE_LIMIT_BLOCKED = "RATE_LIMIT_BLOCKED"
RATE_LIMIT_UNAVAILABLE = "RATE_LIMIT_UNAVAILABLE"


@dataclass
class RateLimitRecord:
    """Counter state for one client."""

    request_count: int
    window_start: float
    is_blocked: bool = False
    block_until: float = 0.0


@dataclass(frozen=True)
class RateLimitDecision:
    """
    Outcome of RateLimiter.check().

    allowed=True carries the quota fields used for X-RateLimit-* headers;
    allowed=False carries retry_after (whole seconds, >= 1) and a code.
    """

    allowed: bool
    limit: int
    remaining: int = 0
    reset_after: int = 0
    retry_after: int = 0
    code: Optional[str] = None

    @classmethod
    def deny(cls, limit: int, retry_after: float, code: str) -> "RateLimitDecision":
        return cls(
            allowed=False,
            limit=limit,
            retry_after=max(1, math.ceil(retry_after)),
            code=code,
        )


class RateLimiter:
    """
    Fixed-window limiter with a higher ceiling for privileged paths.

    Args:
        cache:              LRUCache holding RateLimitRecord values
        window_seconds:     length of a counting window
        max_requests:       ceiling for public paths
        admin_max_requests: ceiling for privileged (admin) paths
        block_seconds:      cool-down applied once a ceiling is exceeded
        error_retry_after:  Retry-After used when the limiter fails internally
        clock:              returns the current time in seconds (time.time)
    """

    def __init__(
        self,
        cache: LRUCache,
        window_seconds: float = 900,
        max_requests: int = 100,
        admin_max_requests: int = 500,
        block_seconds: float = 3600,
        error_retry_after: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        if window_seconds <= 0 or block_seconds <= 0:
            raise ValueError("window_seconds and block_seconds must be positive")
        if max_requests < 1 or admin_max_requests < 1:
            raise ValueError("request ceilings must be >= 1")
        self.cache = cache
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.admin_max_requests = admin_max_requests
        self.block_seconds = block_seconds
        self.error_retry_after = error_retry_after
        self._clock = clock

    def limit_for(self, privileged: bool) -> int:
        return self.admin_max_requests if privileged else self.max_requests

    def check(self, client_id: str, privileged: bool = False) -> RateLimitDecision:
        """
        Count one request for client_id and decide whether it may proceed.

        Never raises. Internal failures deny the request (fail closed) with
        code RATE_LIMIT_UNAVAILABLE.
        """
        limit = self.limit_for(privileged)
        try:
            return self._check(client_id, limit)
        except Exception:
            logger.exception("Rate limiter failure for client %s; denying request", client_id)
            return RateLimitDecision.deny(limit, self.error_retry_after, RATE_LIMIT_UNAVAILABLE)

    def _check(self, client_id: str, limit: int) -> RateLimitDecision:
        now = self._clock()
        record = self.cache.get(client_id)
        if record is MISS:
            record = RateLimitRecord(request_count=0, window_start=now)

        # ── Blocked → Blocked ─────────────────────────────────────────────
        if record.is_blocked and now < record.block_until:
            self.cache.put(client_id, record)
            return RateLimitDecision.deny(limit, record.block_until - now, RATE_LIMIT_BLOCKED)

        # ── Window rollover (also Blocked → Active) ───────────────────────
        if record.is_blocked or now - record.window_start > self.window_seconds:
            record.request_count = 0
            record.window_start = now
            record.is_blocked = False
            record.block_until = 0.0

        record.request_count += 1

        # ── Active → Blocked ──────────────────────────────────────────────
        if record.request_count > limit:
            record.is_blocked = True
            record.block_until = now + self.block_seconds
            self.cache.put(client_id, record)
            logger.warning(
                "Client %s exceeded %d requests per %ss; blocked for %ss",
                client_id, limit, self.window_seconds, self.block_seconds,
            )
            return RateLimitDecision.deny(limit, self.block_seconds, RATE_LIMIT_EXCEEDED)

        self.cache.put(client_id, record)
        reset_after = record.window_start + self.window_seconds - now
        return RateLimitDecision(
            allowed=True,
            limit=limit,
            remaining=limit - record.request_count,
            reset_after=max(0, math.ceil(reset_after)),
        )

    def record_for(self, client_id: str) -> Optional[RateLimitRecord]:
        """Inspect a client's record without counting a request (diagnostics only)."""
        record = self.cache.peek(client_id)
        return None if record is MISS else record
