"""
Eleven Interior API - Shared Response Schemas
==============================================

What:  Error, pagination, message and health models reused across routers.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything is stored in UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    Example:
        {
            "error": "Rate limit exceeded",
            "code": "RATE_LIMIT_EXCEEDED",
            "retryAfter": 3600,
            "request_id": "5f1c0a9e2b7d"
        }
    """
    error: str = Field(description="Human-readable error description")
    code: str = Field(description="Machine-readable error code")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
    details: Optional[Any] = Field(default=None, description="Additional error context")


class Pagination(BaseModel):
    total: int = Field(ge=0)
    limit: int = Field(ge=1)
    offset: int = Field(ge=0)
    has_more: bool


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str = Field(description="healthy, degraded or unhealthy")
    version: str
    environment: str
    uptime_seconds: float
    timestamp: datetime


class DependencyStatus(BaseModel):
    status: str
    response_time_ms: Optional[float] = None
    detail: Optional[str] = None


class DetailedHealthResponse(HealthResponse):
    checks: Dict[str, DependencyStatus]
    configuration: Dict[str, bool] = Field(
        description="Which required settings are present (values never exposed)"
    )


class DatabaseHealthResponse(BaseModel):
    status: str
    tables: Dict[str, int] = Field(default_factory=dict)
    timestamp: datetime


class MediaHealthResponse(BaseModel):
    status: str
    configured: bool
    cloud_name: Optional[str] = None
    url_cache: Dict[str, int] = Field(default_factory=dict)
    timestamp: datetime


class FieldError(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(ErrorResponse):
    details: List[FieldError] = Field(default_factory=list)
