"""
Eleven Interior API - Exception Taxonomy
=========================================

What:  Application exceptions, each tagged with a closed ErrorKind.
How:   Every exception receives its kind at construction. The single handler in
       main.py looks the kind up in ERROR_RESPONSES to pick the HTTP status and
       default machine-readable code; no isinstance ladders or class-name checks.
Who:   Raised by services, routes and dependencies; rendered by
       interior_api.responses.error_response().

Exception Hierarchy:
    InteriorAPIError (base)
    ├── ValidationError          → 400 VALIDATION_ERROR
    ├── UnauthorizedError        → 401 UNAUTHORIZED
    │   └── SignatureMismatchError → 401 INVALID_CREDENTIALS (logged distinctly)
    ├── ForbiddenError           → 403 FORBIDDEN
    ├── NotFoundError            → 404 NOT_FOUND
    ├── ConflictError            → 409 CONFLICT
    ├── RateLimitExceededError   → 429 RATE_LIMIT_EXCEEDED
    ├── ConfigurationError       → 500 CONFIG_ERROR
    ├── DatabaseError            → 500 DATABASE_ERROR
    └── MediaServiceError        → 502 MEDIA_SERVICE_ERROR
"""

import enum
from typing import Any, Dict, Optional, Tuple


class ErrorKind(str, enum.Enum):
    """Closed set of failure categories understood at the HTTP boundary."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    SIGNATURE_MISMATCH = "signature_mismatch"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    CONFIGURATION = "configuration"
    DATABASE = "database"
    MEDIA_SERVICE = "media_service"


# kind → (HTTP status, default code). Must stay exhaustive over ErrorKind.
ERROR_RESPONSES: Dict[ErrorKind, Tuple[int, str]] = {
    ErrorKind.VALIDATION: (400, "VALIDATION_ERROR"),
    ErrorKind.UNAUTHORIZED: (401, "UNAUTHORIZED"),
    ErrorKind.SIGNATURE_MISMATCH: (401, "INVALID_CREDENTIALS"),
    ErrorKind.FORBIDDEN: (403, "FORBIDDEN"),
    ErrorKind.NOT_FOUND: (404, "NOT_FOUND"),
    ErrorKind.CONFLICT: (409, "CONFLICT"),
    ErrorKind.RATE_LIMITED: (429, "RATE_LIMIT_EXCEEDED"),
    ErrorKind.CONFIGURATION: (500, "CONFIG_ERROR"),
    ErrorKind.DATABASE: (500, "DATABASE_ERROR"),
    ErrorKind.MEDIA_SERVICE: (502, "MEDIA_SERVICE_ERROR"),
}

# Kinds whose message and context are kept server-side
INTERNAL_KINDS = frozenset({ErrorKind.CONFIGURATION, ErrorKind.DATABASE})


class InteriorAPIError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        kind:     ErrorKind fixed by the concrete class (or passed explicitly)
        message:  User-facing description, safe to return for non-internal kinds
        code:     Machine-readable code; defaults to the kind's code
        context:  Extra detail. Returned as `details` for client errors,
                  logged only for internal kinds.
    """

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
        kind: Optional[ErrorKind] = None,
    ):
        if kind is not None:
            self.kind = kind
        self.message = message
        self.context = context or {}
        self.code = code or ERROR_RESPONSES[self.kind][1]
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return ERROR_RESPONSES[self.kind][0]


class ValidationError(InteriorAPIError):
    """
    Client input failed a business rule (bad section, file too large,
    duplicate inquiry, illegal status transition).

    Schema-level errors are handled by FastAPI and answered with 422.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx, code=code)
        self.field = field


class UnauthorizedError(InteriorAPIError):
    """Missing or unusable credentials. Not retryable without new credentials."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(
        self,
        message: str = "Authentication required",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context, code=code)


class SignatureMismatchError(UnauthorizedError):
    """
    A token whose signature does not match.

    Answered exactly like any other bad credential; the separate kind only
    exists so logs can tell forged tokens apart from expired ones.
    """

    kind = ErrorKind.SIGNATURE_MISMATCH

    def __init__(self, message: str = "Invalid credentials", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class ForbiddenError(InteriorAPIError):
    kind = ErrorKind.FORBIDDEN

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context, code=code)


class NotFoundError(InteriorAPIError):
    """
    Requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    NotFoundError so routes never deal with None checks.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(InteriorAPIError):
    kind = ErrorKind.CONFLICT

    def __init__(self, message: str = "Resource already exists", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class RateLimitExceededError(InteriorAPIError):
    """
    Client is over its request ceiling or serving a block.

    Response includes `retryAfter` in the body and a Retry-After header.
    """

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        retry_after: int = 60,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message="Rate limit exceeded", context=context, code=code)
        self.retry_after = retry_after


class ConfigurationError(InteriorAPIError):
    """
    Server-side configuration is missing (no API key, no JWT secret,
    no Cloudinary credentials). Never masked as Unauthorized.
    """

    kind = ErrorKind.CONFIGURATION

    def __init__(
        self,
        message: str = "Server is misconfigured",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(InteriorAPIError):
    """
    Unexpected database failure. The client gets a generic message;
    the SQL error is logged server-side only.
    """

    kind = ErrorKind.DATABASE

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MediaServiceError(InteriorAPIError):
    """
    Cloudinary returned an error, timed out, or could not be reached.

    Calls are not retried automatically: a retried upload can create a
    duplicate asset on the remote side.
    """

    kind = ErrorKind.MEDIA_SERVICE

    def __init__(
        self,
        message: str = "Media service request failed",
        status: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status is not None:
            ctx["upstream_status"] = status
        super().__init__(message=message, context=ctx)
        self.upstream_status = status
