"""
Eleven Interior API - Admin Authentication Routes
==================================================

What:  Account endpoints for the admin dashboard.
How:   Thin handlers over AuthService; the heavy lifting (hashing, token
       rotation) lives in the service layer.

Public:
    POST /api/auth/setup        first admin only; 403 afterwards
    POST /api/auth/login        access + refresh tokens
    POST /api/auth/refresh      rotate refresh token
    POST /api/auth/logout       revoke refresh token
Admin (behind AdminAuthMiddleware):
    GET  /api/admin/profile
    GET  /api/admin/api-key             bearer admins only
    POST /api/admin/regenerate-api-key  proposes a key; settings stay untouched
    PUT  /api/admin/change-password
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from interior_api.config import Settings
from interior_api.database import get_db_session
from interior_api.dependencies import get_auth_context, get_settings
from interior_api.exceptions import ConfigurationError, ForbiddenError
from interior_api.schemas.auth import (
    AdminUserResponse,
    ApiKeyResponse,
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RegeneratedApiKeyResponse,
    SetupRequest,
)
from interior_api.schemas.common import ErrorResponse, MessageResponse
from interior_api.security.auth_gate import AuthContext
from interior_api.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])
admin_router = APIRouter(prefix="/admin", tags=["Admin: Account"])


@router.post(
    "/setup",
    response_model=AdminUserResponse,
    status_code=201,
    responses={403: {"description": "An admin already exists", "model": ErrorResponse}},
    summary="Create the first admin account",
)
async def setup_admin(
    body: SetupRequest,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> AdminUserResponse:
    return await auth_service.setup_first_admin(db, body.email, body.password, settings)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Exchange credentials for tokens",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    return await auth_service.login(db, body.email, body.password, settings)


@router.post(
    "/refresh",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Rotate a refresh token",
)
async def refresh(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    return await auth_service.refresh(db, body.refresh_token, settings)


@router.post("/logout", response_model=MessageResponse, summary="Revoke a refresh token")
async def logout(body: RefreshRequest, db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    await auth_service.logout(db, body.refresh_token)
    return MessageResponse(message="Logged out")


# ── Admin account ─────────────────────────────────────────────────────────

@admin_router.get("/profile", response_model=AdminUserResponse, summary="Current admin profile")
async def profile(
    db: AsyncSession = Depends(get_db_session),
    auth: Optional[AuthContext] = Depends(get_auth_context),
) -> AdminUserResponse:
    user = await auth_service.current_user(db, auth)
    return AdminUserResponse.model_validate(user)


@admin_router.get(
    "/api-key",
    response_model=ApiKeyResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Show the service API key",
)
async def show_api_key(
    db: AsyncSession = Depends(get_db_session),
    auth: Optional[AuthContext] = Depends(get_auth_context),
    settings: Settings = Depends(get_settings),
) -> ApiKeyResponse:
    user = await auth_service.current_user(db, auth)
    if user.role != "admin":
        raise ForbiddenError("Admin role required", code="ADMIN_REQUIRED")
    if not settings.admin_api_key:
        raise ConfigurationError("ADMIN_API_KEY is not configured")
    return ApiKeyResponse(
        api_key=settings.admin_api_key,
        usage="Send it as the X-API-Key header on /api/admin/* requests",
    )


@admin_router.post(
    "/regenerate-api-key",
    response_model=RegeneratedApiKeyResponse,
    summary="Generate a replacement service API key",
)
async def regenerate_api_key(
    db: AsyncSession = Depends(get_db_session),
    auth: Optional[AuthContext] = Depends(get_auth_context),
) -> RegeneratedApiKeyResponse:
    user = await auth_service.current_user(db, auth)
    logger.warning("New API key generated by %s; pending deployment", user.email)
    return RegeneratedApiKeyResponse(
        api_key=secrets.token_hex(32),
        message="New API key generated. It is not active until deployed.",
        instructions=[
            "Set ADMIN_API_KEY to the new value in the deployment environment",
            "Restart the API",
            "Update every client that sends X-API-Key",
        ],
    )


@admin_router.put("/change-password", response_model=MessageResponse, summary="Change password")
async def change_password(
    body: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db_session),
    auth: Optional[AuthContext] = Depends(get_auth_context),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    user = await auth_service.current_user(db, auth)
    await auth_service.change_password(db, user, body.current_password, body.new_password, settings)
    return MessageResponse(message="Password changed; please log in again")
