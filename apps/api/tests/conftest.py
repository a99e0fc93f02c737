"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite schema per test
- Bearer token minting for authenticated tests
- HTTPX AsyncClient over the ASGI app
"""
import os
import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Callable, Generator

# Settings are read at import time
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["OPENAI_API_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""
os.environ["MAILGUN_API_KEY"] = ""
os.environ["INTERNAL_SECRET"] = "test-internal-secret"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from clinicops.core.deps import get_db
from clinicops.core.security import create_access_token
from clinicops.db.base import Base
from clinicops.db.enums import Role
from clinicops.db.models import Membership, Organization, User
from clinicops.db.session import SessionLocal, engine
from clinicops.main import app


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Creates every table, yields a session, then drops everything.

    The engine uses a single shared in-memory connection, so app code
    running in the threadpool sees the same data as the test.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_org(db: Session) -> Organization:
    """Create a test organization."""
    org = Organization(
        id=uuid.uuid4(),
        name="Test Clinic",
        slug=f"test-clinic-{uuid.uuid4().hex[:8]}",
    )
    db.add(org)
    db.commit()
    return org


@pytest.fixture(scope="function")
def make_user(db: Session, test_org: Organization) -> Callable[..., User]:
    """Factory for extra users in test_org (or another org)."""
    def _make_user(
        role: Role = Role.STAFF,
        org: Organization | None = None,
        full_name: str | None = None,
        **fields,
    ) -> User:
        user = User(
            id=uuid.uuid4(),
            email=f"user-{uuid.uuid4().hex[:8]}@test.com",
            full_name=full_name or f"{role.value.title()} User",
            **fields,
        )
        db.add(user)
        db.flush()
        db.add(
            Membership(
                user_id=user.id,
                organization_id=(org or test_org).id,
                role=role.value,
            )
        )
        db.commit()
        return user

    return _make_user


@pytest.fixture(scope="function")
def test_user(make_user) -> User:
    """Admin user with membership in test_org."""
    return make_user(Role.ADMIN, full_name="Test Admin")


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    org: Organization
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


@pytest.fixture(scope="function")
def headers_for() -> Callable[[User], dict[str, str]]:
    """Bearer headers for any user; pass to individual requests."""
    return auth_headers


@pytest.fixture(scope="function")
def test_auth(test_user: User, test_org: Organization) -> TestAuth:
    token = create_access_token(test_user.id, test_user.email)
    return TestAuth(user=test_user, org=test_org, token=token)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated client for public endpoints."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(
    db: Session,
    test_auth: TestAuth,
) -> AsyncGenerator[AsyncClient, None]:
    """Client carrying the admin's bearer token."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=test_auth.headers,
    ) as c:
        yield c

    app.dependency_overrides.clear()
