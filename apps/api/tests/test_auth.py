"""Tests for authentication, the error envelope, and the health check."""
import uuid

import jwt
import pytest
from httpx import AsyncClient

from clinicops.core.config import settings
from clinicops.core.security import create_access_token
from clinicops.db.enums import Role


@pytest.mark.asyncio
async def test_health_reports_ok(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["env"] == settings.ENV


@pytest.mark.asyncio
async def test_protected_endpoint_requires_token(client: AsyncClient):
    """Missing bearer token is a 401 in the {"error": ...} envelope."""
    response = await client.get("/auth/me")
    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}


@pytest.mark.asyncio
async def test_bad_signature_is_rejected(client: AsyncClient, test_user):
    token = jwt.encode(
        {"sub": str(test_user.id), "aud": settings.AUTH_JWT_AUDIENCE},
        "not-the-secret",
        algorithm="HS256",
    )
    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid token"


@pytest.mark.asyncio
async def test_unknown_user_is_rejected(client: AsyncClient, db):
    token = create_access_token(uuid.uuid4())
    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["error"] == "User not found"


@pytest.mark.asyncio
async def test_inactive_user_is_rejected(client: AsyncClient, make_user, headers_for):
    user = make_user(is_active=False)
    response = await client.get("/auth/me", headers=headers_for(user))
    assert response.status_code == 401
    assert response.json()["error"] == "Account disabled"


@pytest.mark.asyncio
async def test_user_without_membership_is_forbidden(client: AsyncClient, db):
    from clinicops.db.models import User

    user = User(email="loner@test.com", full_name="Loner")
    db.add(user)
    db.commit()
    token = create_access_token(user.id)
    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403
    assert response.json()["error"] == "No organization membership"


@pytest.mark.asyncio
async def test_me_returns_session(authed_client: AsyncClient, test_auth):
    response = await authed_client.get("/auth/me")
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == test_auth.user.email
    assert data["org_slug"] == test_auth.org.slug
    assert data["role"] == "admin"


@pytest.mark.asyncio
async def test_validation_errors_use_error_envelope(authed_client: AsyncClient):
    response = await authed_client.post("/patients", json={"last_name": "Doe"})
    assert response.status_code == 400
    assert response.json() == {"error": "first_name is required"}


@pytest.mark.asyncio
async def test_response_carries_request_id(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"


# =============================================================================
# Users
# =============================================================================

@pytest.mark.asyncio
async def test_admin_creates_user(authed_client: AsyncClient):
    response = await authed_client.post(
        "/users",
        json={
            "email": "New.Person@Test.com",
            "first_name": "New",
            "last_name": "Person",
            "role": "hr",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new.person@test.com"
    assert data["full_name"] == "New Person"
    assert data["role"] == "hr"

    listing = await authed_client.get("/users")
    assert "new.person@test.com" in [u["email"] for u in listing.json()]


@pytest.mark.asyncio
async def test_duplicate_user_is_conflict(authed_client: AsyncClient, test_auth):
    response = await authed_client.post("/users", json={"email": test_auth.user.email})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_staff_cannot_create_users(client: AsyncClient, make_user, headers_for):
    staff = make_user(Role.STAFF)
    response = await client.post(
        "/users", json={"email": "x@test.com"}, headers=headers_for(staff)
    )
    assert response.status_code == 403
    assert response.json()["error"] == "Insufficient permissions"


@pytest.mark.asyncio
async def test_users_are_org_scoped(authed_client: AsyncClient, make_user, db):
    from clinicops.db.models import Organization

    other_org = Organization(name="Other", slug="other-clinic")
    db.add(other_org)
    db.commit()
    outsider = make_user(Role.STAFF, org=other_org)

    response = await authed_client.get("/users")
    emails = [u["email"] for u in response.json()]
    assert outsider.email not in emails
