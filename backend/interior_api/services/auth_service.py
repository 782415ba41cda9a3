"""
Eleven Interior API - Admin Account Service
============================================

What:  First-admin setup, login, refresh-token rotation, logout, profile and
       password changes for the admin dashboard.
How:   bcrypt for password hashes, TokenCodec for access tokens, random
       urlsafe strings (stored server-side) for refresh tokens.

Token lifecycle:
    login   → access token (jwt_ttl_seconds) + refresh token (refresh_token_ttl_days)
              any previous refresh token of the user is deactivated
    refresh → presented token must be active and unexpired; it is rotated
    logout  → presented token is deactivated (idempotent)
    change-password → every refresh token of the user is deactivated

bcrypt is CPU-bound; hashing runs in Starlette's threadpool so the event loop
keeps serving other requests.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from interior_api.config import Settings
from interior_api.exceptions import (
    ConfigurationError,
    ForbiddenError,
    UnauthorizedError,
    ValidationError,
)
from interior_api.models.admin import AdminUser, RefreshToken
from interior_api.schemas.auth import AdminUserResponse, LoginResponse, TokenPair
from interior_api.security.auth_gate import AuthContext
from interior_api.security.tokens import TokenCodec

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))


class AuthService:
    def __init__(self, codec: Optional[TokenCodec] = None):
        self.codec = codec or TokenCodec()

    # ── Token helpers ─────────────────────────────────────────────────────
    def issue_access_token(self, user: AdminUser, settings: Settings) -> str:
        if not settings.jwt_secret:
            raise ConfigurationError("JWT_SECRET is not configured")
        claims = {"user_id": user.id, "email": user.email, "role": user.role, "type": "access"}
        return self.codec.encode(claims, settings.jwt_secret, ttl=settings.jwt_ttl_seconds)

    async def _issue_tokens(self, db: AsyncSession, user: AdminUser, settings: Settings) -> TokenPair:
        access_token = self.issue_access_token(user, settings)
        await self._revoke_refresh_tokens(db, user.id)
        refresh = RefreshToken(
            user_id=user.id,
            token=secrets.token_urlsafe(48),
            expires_at=datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_ttl_days),
        )
        db.add(refresh)
        await db.flush()
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh.token,
            expires_in=settings.jwt_ttl_seconds,
        )

    async def _revoke_refresh_tokens(self, db: AsyncSession, user_id: int) -> None:
        await db.execute(
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.is_active.is_(True))
            .values(is_active=False)
        )

    # ── Account lookups ───────────────────────────────────────────────────
    async def current_user(self, db: AsyncSession, auth: Optional[AuthContext]) -> AdminUser:
        """
        The admin behind a bearer token. Service-key callers have no user
        identity and get NOT_AUTHENTICATED.
        """
        if auth is None or auth.method != "bearer" or auth.user_id is None:
            raise UnauthorizedError("User not authenticated", code="NOT_AUTHENTICATED")
        user = await db.get(AdminUser, auth.user_id)
        if user is None or not user.is_active:
            raise UnauthorizedError("User not authenticated", code="NOT_AUTHENTICATED")
        return user

    async def admin_exists(self, db: AsyncSession) -> bool:
        count = (await db.execute(select(func.count()).select_from(AdminUser))).scalar_one()
        return count > 0

    # ── Flows ─────────────────────────────────────────────────────────────
    async def setup_first_admin(
        self, db: AsyncSession, email: str, password: str, settings: Settings
    ) -> AdminUserResponse:
        if await self.admin_exists(db):
            raise ForbiddenError("Admin user already exists", code="ADMIN_EXISTS")
        password_hash = await run_in_threadpool(hash_password, password, settings.bcrypt_rounds)
        user = AdminUser(email=email.lower(), password_hash=password_hash, role="admin")
        db.add(user)
        await db.flush()
        await db.refresh(user)
        logger.info("Initial admin account created: %s", user.email)
        return AdminUserResponse.model_validate(user)

    async def login(
        self, db: AsyncSession, email: str, password: str, settings: Settings
    ) -> LoginResponse:
        user = (
            await db.execute(select(AdminUser).where(AdminUser.email == email.lower()))
        ).scalar_one_or_none()
        valid = (
            user is not None
            and user.is_active
            and await run_in_threadpool(verify_password, password, user.password_hash)
        )
        if not valid:
            logger.info("Failed admin login for %s", email)
            raise UnauthorizedError("Invalid email or password", code="INVALID_CREDENTIALS")

        user.last_login = datetime.now(timezone.utc)
        tokens = await self._issue_tokens(db, user, settings)
        await db.refresh(user)
        logger.info("Admin %s logged in", user.email)
        return LoginResponse(user=AdminUserResponse.model_validate(user), tokens=tokens)

    async def refresh(self, db: AsyncSession, refresh_token: str, settings: Settings) -> LoginResponse:
        now = datetime.now(timezone.utc)
        stored = (
            await db.execute(
                select(RefreshToken).where(
                    RefreshToken.token == refresh_token,
                    RefreshToken.is_active.is_(True),
                    RefreshToken.expires_at > now,
                )
            )
        ).scalar_one_or_none()
        user = await db.get(AdminUser, stored.user_id) if stored is not None else None
        if user is None or not user.is_active:
            raise UnauthorizedError("Invalid or expired refresh token", code="INVALID_REFRESH_TOKEN")

        tokens = await self._issue_tokens(db, user, settings)
        return LoginResponse(user=AdminUserResponse.model_validate(user), tokens=tokens)

    async def logout(self, db: AsyncSession, refresh_token: str) -> None:
        await db.execute(
            update(RefreshToken)
            .where(RefreshToken.token == refresh_token)
            .values(is_active=False)
        )

    async def change_password(
        self,
        db: AsyncSession,
        user: AdminUser,
        current_password: str,
        new_password: str,
        settings: Settings,
    ) -> None:
        if not await run_in_threadpool(verify_password, current_password, user.password_hash):
            raise UnauthorizedError("Current password is incorrect", code="INVALID_CREDENTIALS")
        if current_password == new_password:
            raise ValidationError("New password must differ from the current one", field="new_password")
        user.password_hash = await run_in_threadpool(
            hash_password, new_password, settings.bcrypt_rounds
        )
        await self._revoke_refresh_tokens(db, user.id)
        await db.flush()
        logger.info("Password changed for %s; refresh tokens revoked", user.email)


auth_service = AuthService()
