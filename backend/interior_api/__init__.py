"""
Eleven Interior API - Application Package
==========================================

What: Backend for the Eleven Interior website: media sections (videos, images),
      customer inquiries and admin authentication.
Who:  Imported by uvicorn (interior_api.main:app), Alembic and pytest.

Layering:

    ┌─────────────────────────────────────┐
    │   Middleware (rate limit, auth)     │  ← RateLimiter / AuthGate
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← inquiries, media, admin auth
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

The small reusable primitives (LRUCache, RateLimiter, TokenCodec,
RequestSigner, AuthGate) live in `interior_api.security` and carry no
FastAPI imports, so they can be unit-tested in isolation.
"""

__version__ = "2.0.0"
