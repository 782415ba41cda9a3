"""
Eleven Interior API - Health Check Routes
==========================================

What:  Liveness and dependency checks for monitoring and load balancer probes.
How:   Lightweight probes (SELECT 1, row counts, configuration flags); the
       dependency checks are cached for 30 seconds per check in app.state so
       aggressive probing never hammers the database.
Who:   Docker health checks, load balancers, uptime monitors.

Status levels:
    healthy:   database reachable, media service configured   (HTTP 200)
    degraded:  media service not configured                   (HTTP 200)
    unhealthy: database unreachable                           (HTTP 503)

These paths are exempt from rate limiting and from the access log.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import func, select, text

from interior_api import __version__
from interior_api.config import Settings
from interior_api.database import async_session_factory, engine
from interior_api.dependencies import get_settings
from interior_api.models import AdminUser, ApiCall, Inquiry, MediaMetadata, RefreshToken
from interior_api.schemas.common import (
    DatabaseHealthResponse,
    DependencyStatus,
    DetailedHealthResponse,
    HealthResponse,
    MediaHealthResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

HEALTH_CACHE_TTL = 30.0

COUNTED_TABLES = {
    "inquiries": Inquiry,
    "media_metadata": MediaMetadata,
    "admin_users": AdminUser,
    "refresh_tokens": RefreshToken,
    "api_analytics": ApiCall,
}

_start_time = time.time()


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def cached_check(
    request: Request, name: str, compute: Callable[[], Awaitable[Any]]
) -> Any:
    """Return the stored result for `name` while fresh; recompute otherwise."""
    store: Dict[str, Tuple[float, Any]] = request.app.state.health_cache
    entry = store.get(name)
    now = time.monotonic()
    if entry is not None and entry[0] > now:
        return entry[1]
    result = await compute()
    store[name] = (now + HEALTH_CACHE_TTL, result)
    return result


async def check_database() -> DependencyStatus:
    start = time.perf_counter()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Health check: database unreachable: %s", str(e))
        return DependencyStatus(status="unhealthy", detail="Database unreachable")
    return DependencyStatus(
        status="healthy",
        response_time_ms=round((time.perf_counter() - start) * 1000, 2),
    )


def _base_fields(settings: Settings) -> Dict[str, Any]:
    return {
        "version": __version__,
        "environment": settings.environment,
        "uptime_seconds": round(time.time() - _start_time, 2),
        "timestamp": _now(),
    }


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
@router.get("/api/health", response_model=HealthResponse, include_in_schema=False)
async def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(status="healthy", **_base_fields(settings))


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    responses={503: {"description": "Database unreachable"}},
    summary="Dependency health",
)
async def health_detailed(request: Request, settings: Settings = Depends(get_settings)):
    database = await cached_check(request, "database", check_database)
    media = DependencyStatus(
        status="healthy" if settings.cloudinary_configured else "not_configured"
    )

    if database.status != "healthy":
        overall = "unhealthy"
    elif not settings.cloudinary_configured:
        overall = "degraded"
    else:
        overall = "healthy"

    body = DetailedHealthResponse(
        status=overall,
        checks={"database": database, "cloudinary": media},
        configuration={
            "jwt_secret": bool(settings.jwt_secret),
            "admin_api_key": bool(settings.admin_api_key),
            "cloudinary": settings.cloudinary_configured,
        },
        **_base_fields(settings),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump(mode="json"))
    return body


@router.get(
    "/health/database",
    response_model=DatabaseHealthResponse,
    responses={503: {"description": "Database unreachable"}},
    summary="Table row counts",
)
async def health_database(request: Request):
    async def count_tables() -> DatabaseHealthResponse:
        try:
            async with async_session_factory() as session:
                tables = {}
                for name, model in COUNTED_TABLES.items():
                    tables[name] = (
                        await session.execute(select(func.count()).select_from(model))
                    ).scalar_one()
        except Exception as e:
            logger.warning("Health check: table counts failed: %s", str(e))
            return DatabaseHealthResponse(status="unhealthy", timestamp=_now())
        return DatabaseHealthResponse(status="healthy", tables=tables, timestamp=_now())

    result = await cached_check(request, "database_tables", count_tables)
    if result.status != "healthy":
        return JSONResponse(status_code=503, content=result.model_dump(mode="json"))
    return result


@router.get("/health/cloudinary", response_model=MediaHealthResponse, summary="Media CDN configuration")
async def health_cloudinary(
    request: Request, settings: Settings = Depends(get_settings)
) -> MediaHealthResponse:
    return MediaHealthResponse(
        status="healthy" if settings.cloudinary_configured else "not_configured",
        configured=settings.cloudinary_configured,
        cloud_name=settings.cloudinary_cloud_name or None,
        url_cache=request.app.state.media_url_cache.stats(),
        timestamp=_now(),
    )
