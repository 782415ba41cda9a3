"""
JSON response builders shared by exception handlers and middleware.

Middleware short-circuits (429, 401) run outside FastAPI's exception
handling, so they build their bodies here instead of raising.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from starlette.responses import JSONResponse

from interior_api.exceptions import (
    INTERNAL_KINDS,
    ErrorKind,
    InteriorAPIError,
    RateLimitExceededError,
)
from interior_api.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_body(message: str, code: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "error": message,
        "code": code,
        "request_id": request_id_var.get(""),
    }
    body.update(extra)
    return body


def error_response(exc: InteriorAPIError, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """Render an application exception using its ErrorKind."""
    headers = dict(headers or {})
    if exc.kind in INTERNAL_KINDS:
        logger.error(
            "[%s] %s: %s | Context: %s",
            request_id_var.get(""), exc.kind.value, exc.message, exc.context,
        )
        message = (
            "Server is misconfigured. Please contact the site administrator."
            if exc.kind is ErrorKind.CONFIGURATION
            else "An internal error occurred. Please try again later."
        )
        body = error_body(message, exc.code)
    else:
        extra: Dict[str, Any] = {}
        if exc.context:
            extra["details"] = exc.context
        if isinstance(exc, RateLimitExceededError):
            extra["retryAfter"] = exc.retry_after
            headers["Retry-After"] = str(exc.retry_after)
        body = error_body(exc.message, exc.code, **extra)
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)
