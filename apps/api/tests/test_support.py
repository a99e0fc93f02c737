"""Tests for support tickets."""
import pytest
from httpx import AsyncClient

from clinicops.db.enums import Role


@pytest.fixture
def staff(make_user):
    return make_user(Role.STAFF, full_name="Nora Nurse")


@pytest.fixture
async def ticket(client: AsyncClient, staff, headers_for) -> dict:
    response = await client.post(
        "/support/tickets",
        json={"message": "  The calendar will not load on my tablet  "},
        headers=headers_for(staff),
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_create_ticket(ticket, staff):
    assert ticket["status"] == "open"
    assert ticket["subject"] == "The calendar will not load on my tablet"
    assert ticket["user_name"] == "Nora Nurse"
    assert ticket["user_email"] == staff.email
    assert len(ticket["messages"]) == 1
    assert ticket["messages"][0]["is_from_support"] is False


@pytest.mark.asyncio
async def test_subject_is_truncated(authed_client: AsyncClient):
    response = await authed_client.post("/support/tickets", json={"message": "x" * 150})
    assert len(response.json()["subject"]) == 100
    assert len(response.json()["messages"][0]["content"]) == 150


@pytest.mark.asyncio
async def test_message_required(authed_client: AsyncClient):
    response = await authed_client.post("/support/tickets", json={"message": "   "})
    assert response.status_code == 400
    assert response.json() == {"error": "Message is required"}


@pytest.mark.asyncio
async def test_admin_pickup_and_reply(
    authed_client: AsyncClient, client: AsyncClient, ticket, staff, headers_for
):
    opened = await authed_client.get(f"/support/tickets/{ticket['id']}")
    assert opened.json()["status"] == "in_progress"

    reply = await authed_client.post(
        f"/support/tickets/{ticket['id']}/messages", json={"content": "Try clearing the cache"}
    )
    assert reply.status_code == 201
    assert reply.json()["is_from_support"] is True

    follow_up = await client.post(
        f"/support/tickets/{ticket['id']}/messages",
        json={"content": "That worked"},
        headers=headers_for(staff),
    )
    assert follow_up.json()["is_from_support"] is False

    detail = await client.get(f"/support/tickets/{ticket['id']}", headers=headers_for(staff))
    assert [m["content"] for m in detail.json()["messages"]] == [
        "The calendar will not load on my tablet",
        "Try clearing the cache",
        "That worked",
    ]


@pytest.mark.asyncio
async def test_owner_view_does_not_pick_up(client: AsyncClient, ticket, staff, headers_for):
    response = await client.get(f"/support/tickets/{ticket['id']}", headers=headers_for(staff))
    assert response.json()["status"] == "open"


@pytest.mark.asyncio
async def test_admin_own_ticket_is_not_from_support(authed_client: AsyncClient):
    ticket = (await authed_client.post("/support/tickets", json={"message": "Printer"})).json()
    reply = await authed_client.post(
        f"/support/tickets/{ticket['id']}/messages", json={"content": "Still broken"}
    )
    assert reply.json()["is_from_support"] is False


@pytest.mark.asyncio
async def test_listing_visibility(
    authed_client: AsyncClient, client: AsyncClient, ticket, make_user, headers_for
):
    other = make_user(Role.STAFF)
    await client.post("/support/tickets", json={"message": "Other issue"}, headers=headers_for(other))

    own = await client.get("/support/tickets", headers=headers_for(other))
    assert [t["subject"] for t in own.json()] == ["Other issue"]

    everything = await authed_client.get("/support/tickets")
    assert len(everything.json()) == 2

    filtered = await authed_client.get("/support/tickets", params={"status": "in_progress"})
    assert filtered.json() == []


@pytest.mark.asyncio
async def test_other_staff_cannot_read(client: AsyncClient, ticket, make_user, headers_for):
    other = make_user(Role.STAFF)
    response = await client.get(f"/support/tickets/{ticket['id']}", headers=headers_for(other))
    assert response.status_code == 403
    assert response.json() == {"error": "Access denied"}


@pytest.mark.asyncio
async def test_status_changes(
    authed_client: AsyncClient, client: AsyncClient, ticket, staff, headers_for
):
    denied = await client.patch(
        f"/support/tickets/{ticket['id']}", json={"status": "closed"}, headers=headers_for(staff)
    )
    assert denied.status_code == 403

    resolved = await authed_client.patch(f"/support/tickets/{ticket['id']}", json={"status": "resolved"})
    assert resolved.json()["status"] == "resolved"
    assert resolved.json()["resolved_at"] is not None

    await authed_client.patch(f"/support/tickets/{ticket['id']}", json={"status": "closed"})
    closed = await client.post(
        f"/support/tickets/{ticket['id']}/messages",
        json={"content": "One more thing"},
        headers=headers_for(staff),
    )
    assert closed.status_code == 400
    assert closed.json() == {"error": "Ticket is closed"}


@pytest.mark.asyncio
async def test_unknown_ticket(authed_client: AsyncClient):
    response = await authed_client.get("/support/tickets/00000000-0000-0000-0000-000000000001")
    assert response.status_code == 404
    assert response.json() == {"error": "Ticket not found"}
