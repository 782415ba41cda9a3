"""
Eleven Interior API - Middleware Chain Tests
=============================================

What:  End-to-end behaviour of the middleware stack through the real app.
How:   HTTPX AsyncClient over ASGITransport; each test gets its own app, so
       limiter state never leaks between tests.

What we test:
    ✅ 429 after the public ceiling, with Retry-After and the standard body
    ✅ X-RateLimit-* headers on allowed responses; health exempt
    ✅ admin auth: 401 MISSING / INVALID, 500 CONFIG_ERROR, preflight passes
    ✅ access log uses the same client address as the rate limiter
    ✅ request IDs and the error-kind table
"""

import logging

import pytest
from httpx import ASGITransport, AsyncClient
from jose.utils import base64url_encode

from interior_api.exceptions import ERROR_RESPONSES, ErrorKind
from interior_api.main import create_app
from interior_api.middleware.rate_limit import client_identifier, is_exempt, is_privileged
from interior_api.security.tokens import TokenCodec


class TestRateLimitMiddleware:
    @pytest.mark.asyncio
    async def test_blocks_after_public_ceiling(self, test_client):
        """The 101st request in a window is rejected for the block duration."""
        headers = {"CF-Connecting-IP": "203.0.113.5"}
        for _ in range(100):
            response = await test_client.get("/api/images/gallery", headers=headers)
            assert response.status_code == 200

        response = await test_client.get("/api/images/gallery", headers=headers)
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "3600"
        body = response.json()
        assert body["error"] == "Rate limit exceeded"
        assert body["code"] == "RATE_LIMIT_EXCEEDED"
        assert body["retryAfter"] == 3600
        assert body["request_id"]

        # Subsequent requests report the remaining block
        again = await test_client.get("/api/images/gallery", headers=headers)
        assert again.status_code == 429
        assert again.json()["code"] == "RATE_LIMIT_BLOCKED"

        # Another client is unaffected
        other = await test_client.get(
            "/api/images/gallery", headers={"CF-Connecting-IP": "203.0.113.6"}
        )
        assert other.status_code == 200

    @pytest.mark.asyncio
    async def test_quota_headers(self, test_client):
        response = await test_client.get(
            "/api/images/gallery", headers={"X-Forwarded-For": "198.51.100.7, 10.0.0.1"}
        )
        assert response.headers["X-RateLimit-Limit"] == "100"
        assert response.headers["X-RateLimit-Remaining"] == "99"
        assert int(response.headers["X-RateLimit-Reset"]) <= 900

    @pytest.mark.asyncio
    async def test_admin_paths_use_admin_ceiling(self, test_client, admin_headers):
        response = await test_client.get("/api/admin/inquiries", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "500"

    @pytest.mark.asyncio
    async def test_health_is_exempt(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        assert "X-RateLimit-Limit" not in response.headers

    def test_path_classification(self):
        assert is_exempt("/health")
        assert is_exempt("/health/detailed")
        assert is_exempt("/api/health")
        assert is_exempt("/docs")
        assert not is_exempt("/healthz")
        assert is_privileged("/api/admin/inquiries")
        assert is_privileged("/api/v1/admin/images/upload")
        assert not is_privileged("/api/images/gallery")


class TestClientIdentifier:
    class _Request:
        def __init__(self, headers, host="10.0.0.9"):
            from starlette.datastructures import Headers

            self.headers = Headers(headers=headers)
            self.client = type("Client", (), {"host": host})() if host else None

    def test_precedence(self):
        request = self._Request(
            {"CF-Connecting-IP": "1.1.1.1", "X-Forwarded-For": "2.2.2.2", "X-Real-IP": "3.3.3.3"}
        )
        assert client_identifier(request) == "1.1.1.1"

    def test_first_forwarded_hop(self):
        request = self._Request({"X-Forwarded-For": " 2.2.2.2 , 9.9.9.9", "X-Real-IP": "3.3.3.3"})
        assert client_identifier(request) == "2.2.2.2"

    def test_real_ip_then_peer(self):
        assert client_identifier(self._Request({"X-Real-IP": "3.3.3.3"})) == "3.3.3.3"
        assert client_identifier(self._Request({})) == "10.0.0.9"

    def test_untrusted_proxy_headers_ignored(self):
        request = self._Request({"CF-Connecting-IP": "1.1.1.1"})
        assert client_identifier(request, trust_proxy_headers=False) == "10.0.0.9"

    def test_unknown_without_peer(self):
        assert client_identifier(self._Request({}, host=None)) == "unknown"


class TestAdminAuthMiddleware:
    @pytest.mark.asyncio
    async def test_missing_credentials(self, test_client):
        response = await test_client.get("/api/admin/inquiries")
        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "MISSING_CREDENTIALS"
        assert body["request_id"] == response.headers["X-Request-ID"]
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_invalid_key(self, test_client):
        response = await test_client.get("/api/admin/inquiries", headers={"X-API-Key": "wrong"})
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_expired_and_forged_tokens_look_the_same(self, test_client, test_settings):
        codec = TokenCodec()
        expired = codec.encode({"user_id": 1}, test_settings.jwt_secret, ttl=1, now=1000)
        forged = codec.encode({"user_id": 1}, "not-the-secret")
        for token in (expired, forged, "garbage"):
            response = await test_client.get(
                "/api/admin/inquiries", headers={"Authorization": f"Bearer {token}"}
            )
            assert response.status_code == 401
            assert response.json()["code"] == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_hostile_token_is_401_not_500(self, test_client):
        nested = base64url_encode(b"[" * 5000 + b"]" * 5000).decode("ascii")
        response = await test_client.get(
            "/api/admin/inquiries", headers={"Authorization": f"Bearer eyJhbGciOiJIUzI1NiJ9.{nested}.abc"}
        )
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_valid_bearer_reaches_route(self, test_client, test_settings):
        token = TokenCodec().encode({"user_id": 1, "role": "admin"}, test_settings.jwt_secret)
        response = await test_client.get(
            "/api/admin/inquiries", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_legacy_v1_prefix_is_protected(self, test_client, admin_headers):
        assert (await test_client.get("/api/v1/admin/inquiries")).status_code == 401
        ok = await test_client.get("/api/v1/admin/inquiries", headers=admin_headers)
        assert ok.status_code == 200

    @pytest.mark.asyncio
    async def test_public_routes_need_no_credentials(self, test_client):
        assert (await test_client.get("/api/images/gallery")).status_code == 200

    @pytest.mark.asyncio
    async def test_preflight_passes(self, test_client):
        response = await test_client.options(
            "/api/admin/inquiries",
            headers={
                "Origin": "https://eleveninterior.example",
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "X-API-Key",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-max-age"] == "86400"
        assert "X-API-Key".lower() in response.headers["access-control-allow-headers"].lower()

    @pytest.mark.asyncio
    async def test_unconfigured_key_is_config_error(self, test_settings, db):
        settings = test_settings.model_copy(update={"admin_api_key": ""})
        transport = ASGITransport(app=create_app(settings))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/admin/inquiries", headers={"X-API-Key": "x"})
        assert response.status_code == 500
        assert response.json()["code"] == "CONFIG_ERROR"


class TestAccessLog:
    @pytest.mark.asyncio
    async def test_logs_the_rate_limit_client_key(self, test_client, caplog):
        with caplog.at_level(logging.INFO, logger="interior_api.access"):
            await test_client.get(
                "/api/images/gallery", headers={"CF-Connecting-IP": "203.0.113.77"}
            )
        lines = [r for r in caplog.records if r.name == "interior_api.access"]
        assert lines
        assert lines[-1].client_ip == "203.0.113.77"
        assert "from 203.0.113.77" in lines[-1].getMessage()

    @pytest.mark.asyncio
    async def test_health_probes_are_not_logged(self, test_client, caplog):
        with caplog.at_level(logging.INFO, logger="interior_api.access"):
            await test_client.get("/health")
        assert not [r for r in caplog.records if r.name == "interior_api.access"]


class TestRequestId:
    @pytest.mark.asyncio
    async def test_generated_when_absent(self, test_client):
        response = await test_client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 12

    @pytest.mark.asyncio
    async def test_incoming_id_echoed_and_truncated(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "a" * 100})
        assert response.headers["X-Request-ID"] == "a" * 64

    @pytest.mark.asyncio
    async def test_error_body_carries_id(self, test_client):
        response = await test_client.get(
            "/api/images/not-a-section", headers={"X-Request-ID": "trace-123"}
        )
        assert response.status_code == 400
        assert response.json()["request_id"] == "trace-123"


class TestErrorTable:
    def test_every_kind_is_mapped(self):
        assert set(ERROR_RESPONSES) == set(ErrorKind)

    @pytest.mark.parametrize(
        "kind,status,code",
        [
            (ErrorKind.VALIDATION, 400, "VALIDATION_ERROR"),
            (ErrorKind.UNAUTHORIZED, 401, "UNAUTHORIZED"),
            (ErrorKind.SIGNATURE_MISMATCH, 401, "INVALID_CREDENTIALS"),
            (ErrorKind.FORBIDDEN, 403, "FORBIDDEN"),
            (ErrorKind.NOT_FOUND, 404, "NOT_FOUND"),
            (ErrorKind.CONFLICT, 409, "CONFLICT"),
            (ErrorKind.RATE_LIMITED, 429, "RATE_LIMIT_EXCEEDED"),
            (ErrorKind.CONFIGURATION, 500, "CONFIG_ERROR"),
            (ErrorKind.DATABASE, 500, "DATABASE_ERROR"),
            (ErrorKind.MEDIA_SERVICE, 502, "MEDIA_SERVICE_ERROR"),
        ],
    )
    def test_mapping(self, kind, status, code):
        assert ERROR_RESPONSES[kind] == (status, code)

    @pytest.mark.asyncio
    async def test_request_validation_is_422(self, test_client):
        response = await test_client.post("/api/inquiries", json={"name": "x"})
        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        fields = {d["field"] for d in body["details"]}
        assert {"email", "phone", "location", "project_description"} <= fields

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic_500(self, app, db, monkeypatch):
        from interior_api.services import inquiry_service as module

        async def boom(*args, **kwargs):
            raise RuntimeError("secret internals")

        monkeypatch.setattr(module.inquiry_service, "get_stats", boom)
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get(
                "/api/admin/inquiries/stats", headers={"X-API-Key": "test-admin-key"}
            )
        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "INTERNAL_ERROR"
        assert "secret internals" not in body["error"]
        assert body["request_id"]
