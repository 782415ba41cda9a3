"""
Eleven Interior API - FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app(settings) builds the per-app singletons
       (rate limiter, auth gate, media URL cache), registers middleware,
       exception handlers and routers, and returns the app.
Who:   uvicorn (`uvicorn interior_api.main:app`) and the test suite.
When:  Once at server startup; tests call create_app() with their own Settings.

Application Architecture:
    ┌───────────────────────────────────────────────────────────────┐
    │                        FastAPI App                            │
    │                                                               │
    │  Middleware Chain (outermost first):                          │
    │  CORS → RequestID → Logging → RateLimit → AdminAuth → GZip    │
    │                                                               │
    │  Routes (/api and /api/v1):                                   │
    │  videos │ images │ inquiries │ auth │ admin/*                 │
    │  Health (unprefixed): /health, /api/health, /health/*         │
    │                                                               │
    │  Exception Handlers:                                          │
    │  InteriorAPIError → ErrorKind table │ 422 │ DB → 500 │ 500    │
    └───────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration validation (logged, never fatal)
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from interior_api import __version__
from interior_api.config import Settings, settings as default_settings
from interior_api.database import dispose_engine
from interior_api.exceptions import DatabaseError, InteriorAPIError
from interior_api.middleware.auth import AdminAuthMiddleware
from interior_api.middleware.logging import RequestLoggingMiddleware
from interior_api.middleware.rate_limit import RateLimitMiddleware
from interior_api.middleware.request_id import RequestIDMiddleware, new_request_id, request_id_var
from interior_api.responses import error_body, error_response
from interior_api.routes import auth, health, images, inquiries, videos
from interior_api.security import AuthGate, LRUCache, RateLimiter

logger = logging.getLogger(__name__)

API_PREFIXES = ("/api", "/api/v1")


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure stdlib logging once for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Request IDs are embedded in the access log lines by the middleware.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every query / connection at INFO
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings)
    logger.info("=" * 60)
    logger.info("Eleven Interior API %s starting (%s)", __version__, settings.environment)

    # Misconfiguration is reported, not fatal: health checks and the
    # CONFIG_ERROR responses surface it to operators.
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Eleven Interior API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the standard error body {error, code, request_id, details?}.

    InteriorAPIError        → status/code from its ErrorKind
    RequestValidationError  → 422 VALIDATION_ERROR with per-field messages
    SQLAlchemyError         → 500 DATABASE_ERROR (details logged only)
    Exception (fallback)    → 500 INTERNAL_ERROR
    """

    @app.exception_handler(InteriorAPIError)
    async def handle_app_error(request: Request, exc: InteriorAPIError):
        if exc.status_code < 500:
            logger.info("[%s] %s: %s", request_id_var.get(""), exc.code, exc.message)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=error_body("Request validation failed", "VALIDATION_ERROR", details=details),
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_sqlalchemy_error(request: Request, exc: SQLAlchemyError):
        return error_response(
            DatabaseError("Database operation failed", context={"error": type(exc).__name__})
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Generic 500; the traceback stays in the server log."""
        rid = request_id_var.get("") or new_request_id()
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "An unexpected error occurred. Please try again later.",
                "code": "INTERNAL_ERROR",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Every stateful collaborator is built here and owned by the app instance,
    so two apps (e.g. two tests) never share limiter or cache state.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Eleven Interior API",
        description=(
            "Media, inquiry and admin API for the Eleven Interior website. "
            "Admin routes accept an X-API-Key header or a Bearer access token."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Per-app state ─────────────────────────────────────────────────────
    app.state.settings = settings
    app.state.media_url_cache = LRUCache(settings.media_url_cache_size)
    app.state.health_cache = {}
    limiter = RateLimiter(
        LRUCache(settings.rate_limit_cache_capacity),
        window_seconds=settings.rate_limit_window_seconds,
        max_requests=settings.rate_limit_max_requests,
        admin_max_requests=settings.rate_limit_admin_max_requests,
        block_seconds=settings.rate_limit_block_seconds,
        error_retry_after=settings.rate_limit_error_retry_after,
    )
    gate = AuthGate(api_key=settings.admin_api_key, jwt_secret=settings.jwt_secret)
    app.state.rate_limiter = limiter
    app.state.auth_gate = gate

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first, so this list reads innermost → outermost.
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(AdminAuthMiddleware, gate=gate)
    app.add_middleware(
        RateLimitMiddleware,
        limiter=limiter,
        trust_proxy_headers=settings.trust_proxy_headers,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
        expose_headers=[
            "X-Request-ID",
            "X-Total-Count",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
        max_age=86400,
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    for prefix in API_PREFIXES:
        in_schema = prefix == "/api"
        for module in (videos, images, inquiries):
            app.include_router(module.router, prefix=prefix, include_in_schema=in_schema)
            app.include_router(module.admin_router, prefix=prefix, include_in_schema=in_schema)
        app.include_router(auth.router, prefix=prefix, include_in_schema=in_schema)
        app.include_router(auth.admin_router, prefix=prefix, include_in_schema=in_schema)

    return app


app = create_app()
