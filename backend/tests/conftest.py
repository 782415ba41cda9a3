"""
Eleven Interior API - Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment variables are set BEFORE interior_api is imported, so the
       module-level engine points at a throwaway SQLite file. Cloudinary is
       replaced by an httpx.MockTransport; the real CloudinaryService code
       still runs (signing, URL building, error mapping).

Fixture Hierarchy:
    Function-scoped:
    ├── test_settings:   Settings read from the test environment
    ├── fake_cloudinary: records requests, answers like the upload API
    ├── db:              creates / drops every table around a test
    ├── app:             create_app(test_settings) with the media override
    ├── test_client:     HTTPX AsyncClient over ASGITransport
    ├── db_session:      a session for arranging rows directly
    └── admin_headers:   X-API-Key header for /api/admin/*
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
_DB_DIR = tempfile.mkdtemp(prefix="interior_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-jwt-secret-not-for-production-0123456789"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["CLOUDINARY_CLOUD_NAME"] = "demo-cloud"
os.environ["CLOUDINARY_API_KEY"] = "123456789012345"
os.environ["CLOUDINARY_API_SECRET"] = "test-cloudinary-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

import itertools
from typing import Any, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import interior_api.models  # noqa: F401
from interior_api.config import Settings
from interior_api.database import Base, async_session_factory, engine
from interior_api.main import create_app
from interior_api.services.cloudinary_service import CloudinaryService, get_media_service

ADMIN_API_KEY = os.environ["ADMIN_API_KEY"]

class FakeCloudinary:
    """
    MockTransport handler that answers like the Cloudinary upload API.

    Set `fail_with` to (status, message) to make the next calls fail.
    """

    def __init__(self, cloud_name: str = "demo-cloud"):
        self.cloud_name = cloud_name
        self.requests: List[httpx.Request] = []
        self.fail_with: Optional[tuple] = None
        self._ids = itertools.count(1)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            status, message = self.fail_with
            return httpx.Response(status, json={"error": {"message": message}})

        path = request.url.path
        if path.endswith("/upload"):
            return httpx.Response(200, json=self._upload_result(path))
        if path.endswith("/destroy"):
            return httpx.Response(200, json={"result": "ok"})
        if path.endswith("/delete_resources"):
            return httpx.Response(200, json={"deleted": {}})
        return httpx.Response(404, json={"error": {"message": "Resource not found"}})

    def _upload_result(self, path: str) -> Dict[str, Any]:
        resource_type = "video" if "/video/" in path else "image"
        public_id = f"eleven-interior/{resource_type}s/asset_{next(self._ids)}"
        base = f"res.cloudinary.com/{self.cloud_name}/{resource_type}/upload/v1/{public_id}"
        result = {
            "public_id": public_id,
            "url": f"http://{base}",
            "secure_url": f"https://{base}",
            "width": 1920,
            "height": 1080,
            "format": "mp4" if resource_type == "video" else "jpg",
            "bytes": 2048,
        }
        if resource_type == "video":
            result["duration"] = 12.5
        return result

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings() -> Settings:
    """Fresh Settings from the test environment (never the module singleton)."""
    return Settings()


@pytest.fixture
def fake_cloudinary() -> FakeCloudinary:
    return FakeCloudinary()


@pytest_asyncio.fixture
async def db():
    """Create every table before the test and drop them afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def app(test_settings, fake_cloudinary):
    """
    Application wired like production except for the Cloudinary transport.
    """
    application = create_app(test_settings)

    async def media_override():
        async with httpx.AsyncClient(transport=httpx.MockTransport(fake_cloudinary)) as client:
            yield CloudinaryService.from_settings(
                test_settings, client=client, url_cache=application.state.media_url_cache
            )

    application.dependency_overrides[get_media_service] = media_override
    return application


@pytest_asyncio.fixture
async def test_client(app, db):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def db_session(db):
    """Session for arranging rows directly; committed by the test."""
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return {"X-API-Key": ADMIN_API_KEY}


@pytest.fixture
def sample_inquiry() -> Dict[str, str]:
    return {
        "name": "Priya Sharma",
        "email": "Priya.Sharma@Example.com",
        "phone": "+91 98765 43210",
        "location": "Bandra West, Mumbai",
        "project_description": "Full renovation of a three bedroom apartment with a modern look.",
    }
