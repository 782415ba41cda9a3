"""
Eleven Interior API - Admin Account Tests
==========================================

What:  First-admin setup, login, refresh rotation, logout and the account
       endpoints behind /api/admin.

What we test:
    ✅ setup creates exactly one admin, then 403 ADMIN_EXISTS
    ✅ login issues access + refresh tokens; bad credentials are 401
    ✅ refresh rotates (old token stops working); logout revokes
    ✅ profile / api-key need a bearer user, not the service key
    ✅ change-password revokes every refresh token
    ✅ password hashing helpers
"""

import pytest

from interior_api.security.tokens import TokenCodec
from interior_api.services.auth_service import hash_password, verify_password

EMAIL = "owner@eleveninterior.in"
PASSWORD = "correct-horse-battery"


async def setup_admin(client, email=EMAIL, password=PASSWORD):
    return await client.post("/api/auth/setup", json={"email": email, "password": password})


async def login(client, email=EMAIL, password=PASSWORD):
    return await client.post("/api/auth/login", json={"email": email, "password": password})


def bearer(tokens) -> dict:
    return {"Authorization": f"Bearer {tokens['access_token']}"}


class TestPasswordHashing:
    def test_round_trip(self):
        hashed = hash_password("s3cret-pass", rounds=4)
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong-pass", hashed)

    def test_only_first_72_bytes_count(self):
        hashed = hash_password("x" * 72 + "tail-a", rounds=4)
        assert verify_password("x" * 72 + "tail-b", hashed)


class TestSetup:
    @pytest.mark.asyncio
    async def test_first_admin(self, test_client):
        response = await setup_admin(test_client, email="Owner@ElevenInterior.in")
        assert response.status_code == 201
        user = response.json()
        assert user["email"] == EMAIL
        assert user["role"] == "admin"
        assert "password_hash" not in user

    @pytest.mark.asyncio
    async def test_second_setup_forbidden(self, test_client):
        await setup_admin(test_client)
        response = await setup_admin(test_client, email="intruder@example.com")
        assert response.status_code == 403
        assert response.json()["code"] == "ADMIN_EXISTS"

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, test_client):
        response = await setup_admin(test_client, password="short")
        assert response.status_code == 422


class TestLogin:
    @pytest.mark.asyncio
    async def test_issues_tokens(self, test_client, test_settings):
        await setup_admin(test_client)
        response = await login(test_client)
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["last_login"] is not None
        tokens = body["tokens"]
        assert tokens["token_type"] == "Bearer"
        assert tokens["expires_in"] == 86400

        check = TokenCodec().authenticate(tokens["access_token"], test_settings.jwt_secret)
        assert check.ok
        claims = check.claims
        assert claims["email"] == EMAIL
        assert claims["role"] == "admin"
        assert claims["exp"] - claims["iat"] == 86400

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email,password",
        [(EMAIL, "wrong-password"), ("nobody@example.com", PASSWORD)],
    )
    async def test_bad_credentials(self, test_client, email, password):
        await setup_admin(test_client)
        response = await login(test_client, email=email, password=password)
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_CREDENTIALS"


class TestRefreshTokens:
    @pytest.mark.asyncio
    async def test_rotation(self, test_client):
        await setup_admin(test_client)
        first = (await login(test_client)).json()["tokens"]["refresh_token"]

        rotated = await test_client.post("/api/auth/refresh", json={"refresh_token": first})
        assert rotated.status_code == 200
        second = rotated.json()["tokens"]["refresh_token"]
        assert second != first

        reused = await test_client.post("/api/auth/refresh", json={"refresh_token": first})
        assert reused.status_code == 401
        assert reused.json()["code"] == "INVALID_REFRESH_TOKEN"

    @pytest.mark.asyncio
    async def test_new_login_replaces_old_token(self, test_client):
        await setup_admin(test_client)
        first = (await login(test_client)).json()["tokens"]["refresh_token"]
        await login(test_client)
        response = await test_client.post("/api/auth/refresh", json={"refresh_token": first})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_logout_revokes(self, test_client):
        await setup_admin(test_client)
        token = (await login(test_client)).json()["tokens"]["refresh_token"]

        response = await test_client.post("/api/auth/logout", json={"refresh_token": token})
        assert response.json() == {"message": "Logged out"}
        # idempotent
        assert (await test_client.post("/api/auth/logout", json={"refresh_token": token})).status_code == 200

        refreshed = await test_client.post("/api/auth/refresh", json={"refresh_token": token})
        assert refreshed.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_token(self, test_client):
        response = await test_client.post("/api/auth/refresh", json={"refresh_token": "nope"})
        assert response.status_code == 401


class TestAdminAccount:
    @pytest.mark.asyncio
    async def test_profile(self, test_client):
        await setup_admin(test_client)
        tokens = (await login(test_client)).json()["tokens"]
        response = await test_client.get("/api/admin/profile", headers=bearer(tokens))
        assert response.status_code == 200
        assert response.json()["email"] == EMAIL

    @pytest.mark.asyncio
    async def test_service_key_has_no_profile(self, test_client, admin_headers):
        response = await test_client.get("/api/admin/profile", headers=admin_headers)
        assert response.status_code == 401
        assert response.json()["code"] == "NOT_AUTHENTICATED"

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, test_client, test_settings):
        token = TokenCodec().encode({"user_id": 42, "role": "admin"}, test_settings.jwt_secret)
        response = await test_client.get(
            "/api/admin/profile", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["code"] == "NOT_AUTHENTICATED"

    @pytest.mark.asyncio
    async def test_show_api_key(self, test_client, admin_headers):
        await setup_admin(test_client)
        tokens = (await login(test_client)).json()["tokens"]
        response = await test_client.get("/api/admin/api-key", headers=bearer(tokens))
        assert response.status_code == 200
        body = response.json()
        assert body["api_key"] == admin_headers["X-API-Key"]
        assert body["header"] == "X-API-Key"

    @pytest.mark.asyncio
    async def test_regenerate_only_proposes(self, test_client, admin_headers):
        await setup_admin(test_client)
        tokens = (await login(test_client)).json()["tokens"]
        response = await test_client.post("/api/admin/regenerate-api-key", headers=bearer(tokens))
        assert response.status_code == 200
        proposed = response.json()["api_key"]
        assert len(proposed) == 64
        assert proposed != admin_headers["X-API-Key"]
        assert response.json()["instructions"]

        # the configured key keeps working
        still_ok = await test_client.get("/api/admin/inquiries", headers=admin_headers)
        assert still_ok.status_code == 200

    @pytest.mark.asyncio
    async def test_change_password(self, test_client):
        await setup_admin(test_client)
        tokens = (await login(test_client)).json()["tokens"]

        response = await test_client.put(
            "/api/admin/change-password",
            headers=bearer(tokens),
            json={"current_password": PASSWORD, "new_password": "a-brand-new-password"},
        )
        assert response.status_code == 200

        refreshed = await test_client.post(
            "/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert refreshed.status_code == 401
        assert (await login(test_client)).status_code == 401
        assert (await login(test_client, password="a-brand-new-password")).status_code == 200

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, test_client):
        await setup_admin(test_client)
        tokens = (await login(test_client)).json()["tokens"]
        response = await test_client.put(
            "/api/admin/change-password",
            headers=bearer(tokens),
            json={"current_password": "not-it", "new_password": "a-brand-new-password"},
        )
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_change_password_must_differ(self, test_client):
        await setup_admin(test_client)
        tokens = (await login(test_client)).json()["tokens"]
        response = await test_client.put(
            "/api/admin/change-password",
            headers=bearer(tokens),
            json={"current_password": PASSWORD, "new_password": PASSWORD},
        )
        assert response.status_code == 400
