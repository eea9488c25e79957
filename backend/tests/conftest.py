"""
ThoughtJar Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before any thoughtjar import, so the
       settings singleton, the engine and the identity verifier are built
       for a throwaway SQLite database and a known HS256 secret.

Fixture Hierarchy:
    Function-scoped:
    ├── mock_db_session: AsyncMock session for service unit tests
    ├── db_schema:       fresh tables in the SQLite test database
    ├── db_session:      real AsyncSession for asserting on stored rows
    ├── fake_verifier:   IdentityVerifier double ("token-<sub>" → <sub>)
    ├── test_client:     HTTPX AsyncClient over the ASGI app, verifier overridden
    └── auth_headers:    builds the Authorization header for a subject
"""

import os
import tempfile
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

TEST_JWT_SECRET = "test-secret-not-for-production"

_db_dir = tempfile.mkdtemp(prefix="thoughtjar_test_")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(_db_dir, "test.db")
os.environ["AUTH_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["LOG_LEVEL"] = "WARNING"
for _var in ("FIREBASE_PROJECT_ID", "AUTH_JWKS_URL", "AUTH_AUDIENCE", "AUTH_ISSUER", "AUTH_JWT_ALGORITHMS"):
    os.environ.pop(_var, None)

from thoughtjar import models  # noqa: E402,F401
from thoughtjar.database import Base, async_session_factory, engine  # noqa: E402
from thoughtjar.exceptions import IdentityVerificationError  # noqa: E402
from thoughtjar.middleware.auth import get_identity_verifier  # noqa: E402
from thoughtjar.services.identity_base import IdentityVerifier, VerifiedIdentity  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Test Doubles
# ══════════════════════════════════════════════════════════════════════════

class FakeIdentityVerifier(IdentityVerifier):
    """
    Accepts "token-<subject>" (email <subject>@example.com) and any token
    registered in `identities`; rejects everything else. Records every
    token it was asked to verify.
    """

    def __init__(self, identities: Optional[Dict[str, VerifiedIdentity]] = None):
        self.identities = identities or {}
        self.calls: List[str] = []

    async def verify(self, token: str) -> VerifiedIdentity:
        self.calls.append(token)
        if token in self.identities:
            return self.identities[token]
        if token.startswith("token-") and len(token) > len("token-"):
            subject = token[len("token-"):]
            return VerifiedIdentity(subject_id=subject, email=f"{subject}@example.com")
        raise IdentityVerificationError("Invalid token", context={"token": token})

    @property
    def is_configured(self) -> bool:
        return True

    async def health_check(self) -> bool:
        return True


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Mock AsyncSession for service unit tests.

    begin_nested() is a plain MagicMock returning an async context manager,
    matching how the real session is used (`async with db.begin_nested():`).
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()

    nested = MagicMock()
    nested.__aenter__ = AsyncMock(return_value=nested)
    nested.__aexit__ = AsyncMock(return_value=False)
    session.begin_nested = MagicMock(return_value=nested)
    return session


@pytest_asyncio.fixture
async def db_schema():
    """Drop and recreate every table, then release pooled connections afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_schema):
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def fake_verifier():
    return FakeIdentityVerifier(
        identities={"anon-token": VerifiedIdentity(subject_id="anon-1", email=None)}
    )


@pytest_asyncio.fixture
async def test_client(db_schema, fake_verifier):
    """
    HTTPX AsyncClient wired straight into the ASGI app.

    The identity verifier is swapped for FakeIdentityVerifier through
    FastAPI's dependency_overrides; the override is removed afterwards.
    """
    from thoughtjar.main import app

    app.dependency_overrides[get_identity_verifier] = lambda: fake_verifier
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_identity_verifier, None)


@pytest.fixture
def auth_headers():
    """
    Usage:
        await test_client.get("/api/thoughts", headers=auth_headers("u1"))
    """
    def _headers(subject: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer token-{subject}"}
    return _headers
