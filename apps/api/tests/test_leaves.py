"""Tests for leave requests, reviews, balances, and the team calendar."""
from datetime import date

import pytest
from httpx import AsyncClient

from clinicops.db.enums import Role
from clinicops.db.models import User
from clinicops.services.leave_service import count_days


def test_count_days_is_inclusive():
    assert count_days(date(2026, 3, 2), date(2026, 3, 6)) == 5
    assert count_days(date(2026, 3, 2), date(2026, 3, 2)) == 1
    # Reversed ranges are not folded into a positive count
    assert count_days(date(2026, 3, 6), date(2026, 3, 2)) < 1


@pytest.mark.asyncio
async def test_balance_defaults(authed_client: AsyncClient, test_auth):
    response = await authed_client.get("/leaves/balance")
    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == str(test_auth.user.id)
    assert data["annual"] == {"total": 30, "used": 0, "remaining": 30}
    assert data["sick"]["remaining"] == 90


@pytest.mark.asyncio
async def test_request_over_balance_is_rejected(authed_client: AsyncClient):
    """31 inclusive days against a 30-day annual balance."""
    response = await authed_client.post(
        "/leaves",
        json={"leave_type": "annual", "start_date": "2026-07-01", "end_date": "2026-07-31"},
    )
    assert response.status_code == 400
    assert response.json() == {
        "error": "Insufficient annual leave balance. Available: 30 days"
    }


@pytest.mark.asyncio
async def test_end_before_start_is_rejected(authed_client: AsyncClient):
    response = await authed_client.post(
        "/leaves",
        json={"leave_type": "sick", "start_date": "2026-07-05", "end_date": "2026-07-01"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "End date must be on or after start date"


@pytest.mark.asyncio
async def test_unpaid_leave_skips_balance_check(authed_client: AsyncClient):
    response = await authed_client.post(
        "/leaves",
        json={"leave_type": "unpaid", "start_date": "2026-01-01", "end_date": "2026-12-31"},
    )
    assert response.status_code == 201
    assert response.json()["days_count"] == 365


@pytest.mark.asyncio
async def test_approval_increments_used_days(
    client: AsyncClient, make_user, headers_for, db
):
    staff = make_user(Role.STAFF)
    hr = make_user(Role.HR)

    created = await client.post(
        "/leaves",
        json={
            "leave_type": "annual",
            "start_date": "2026-08-03",
            "end_date": "2026-08-07",
            "reason": "Family trip",
        },
        headers=headers_for(staff),
    )
    assert created.status_code == 201
    leave = created.json()
    assert leave["status"] == "pending"
    assert leave["days_count"] == 5

    reviewed = await client.patch(
        f"/leaves/{leave['id']}",
        json={"status": "approved", "review_notes": "Enjoy"},
        headers=headers_for(hr),
    )
    assert reviewed.status_code == 200
    assert reviewed.json()["status"] == "approved"
    assert reviewed.json()["reviewed_by"] == str(hr.id)

    db.expire_all()
    assert db.get(User, staff.id).annual_leave_used == 5

    balance = await client.get("/leaves/balance", headers=headers_for(staff))
    assert balance.json()["annual"]["remaining"] == 25


@pytest.mark.asyncio
async def test_rejection_leaves_balance_alone(client: AsyncClient, make_user, headers_for, db):
    staff = make_user(Role.STAFF)
    manager = make_user(Role.MANAGER)
    leave = (
        await client.post(
            "/leaves",
            json={"leave_type": "sick", "start_date": "2026-02-02", "end_date": "2026-02-03"},
            headers=headers_for(staff),
        )
    ).json()

    response = await client.patch(
        f"/leaves/{leave['id']}", json={"status": "rejected"}, headers=headers_for(manager)
    )
    assert response.json()["status"] == "rejected"
    db.expire_all()
    assert db.get(User, staff.id).sick_leave_used == 0


@pytest.mark.asyncio
async def test_request_is_reviewed_once(authed_client: AsyncClient):
    leave = (
        await authed_client.post(
            "/leaves",
            json={"leave_type": "annual", "start_date": "2026-09-01", "end_date": "2026-09-01"},
        )
    ).json()
    first = await authed_client.patch(f"/leaves/{leave['id']}", json={"status": "approved"})
    assert first.status_code == 200

    second = await authed_client.patch(f"/leaves/{leave['id']}", json={"status": "rejected"})
    assert second.status_code == 400
    assert second.json()["error"] == "Only pending leave requests can be updated"


@pytest.mark.asyncio
async def test_review_status_must_be_decision(authed_client: AsyncClient):
    leave = (
        await authed_client.post(
            "/leaves",
            json={"leave_type": "annual", "start_date": "2026-09-01", "end_date": "2026-09-01"},
        )
    ).json()
    response = await authed_client.patch(f"/leaves/{leave['id']}", json={"status": "pending"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_staff_cannot_review(client: AsyncClient, make_user, headers_for):
    staff = make_user(Role.STAFF)
    leave = (
        await client.post(
            "/leaves",
            json={"leave_type": "annual", "start_date": "2026-09-01", "end_date": "2026-09-01"},
            headers=headers_for(staff),
        )
    ).json()
    response = await client.patch(
        f"/leaves/{leave['id']}", json={"status": "approved"}, headers=headers_for(staff)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_staff_sees_only_own_leaves(client: AsyncClient, make_user, headers_for):
    alice = make_user(Role.STAFF, full_name="Alice")
    bob = make_user(Role.STAFF, full_name="Bob")
    for user in (alice, bob):
        await client.post(
            "/leaves",
            json={"leave_type": "annual", "start_date": "2026-10-01", "end_date": "2026-10-02"},
            headers=headers_for(user),
        )

    own = await client.get("/leaves", params={"all": "true"}, headers=headers_for(alice))
    assert [leave["user_name"] for leave in own.json()] == ["Alice"]

    other = await client.get("/leaves", params={"user_id": str(bob.id)}, headers=headers_for(alice))
    assert other.status_code == 403


@pytest.mark.asyncio
async def test_reviewer_lists_all(authed_client: AsyncClient, make_user, headers_for, client):
    staff = make_user(Role.STAFF)
    await client.post(
        "/leaves",
        json={"leave_type": "annual", "start_date": "2026-10-01", "end_date": "2026-10-02"},
        headers=headers_for(staff),
    )
    response = await authed_client.get("/leaves", params={"all": "true", "status": "pending"})
    assert [leave["user_id"] for leave in response.json()] == [str(staff.id)]


@pytest.mark.asyncio
async def test_hr_files_for_others_but_staff_cannot(client: AsyncClient, make_user, headers_for):
    staff = make_user(Role.STAFF)
    other = make_user(Role.STAFF)
    hr = make_user(Role.HR)
    payload = {
        "leave_type": "sick",
        "start_date": "2026-03-02",
        "end_date": "2026-03-02",
        "user_id": str(other.id),
    }

    denied = await client.post("/leaves", json=payload, headers=headers_for(staff))
    assert denied.status_code == 403

    allowed = await client.post("/leaves", json=payload, headers=headers_for(hr))
    assert allowed.status_code == 201
    assert allowed.json()["user_id"] == str(other.id)


@pytest.mark.asyncio
async def test_staff_cannot_read_others_balance(client: AsyncClient, make_user, headers_for):
    staff = make_user(Role.STAFF)
    other = make_user(Role.STAFF)
    response = await client.get(
        "/leaves/balance", params={"user_id": str(other.id)}, headers=headers_for(staff)
    )
    assert response.status_code == 403


# =============================================================================
# Team calendar
# =============================================================================

@pytest.mark.asyncio
async def test_team_events_filter_by_range(authed_client: AsyncClient):
    for day, title in (("2026-05-01", "Audit"), ("2026-05-20", "Launch"), ("2026-06-10", "Offsite")):
        response = await authed_client.post(
            "/team-events",
            json={"title": title, "event_type": "milestone", "event_date": day},
        )
        assert response.status_code == 201

    response = await authed_client.get(
        "/team-events", params={"start": "2026-05-01", "end": "2026-05-31"}
    )
    data = response.json()
    assert [e["title"] for e in data] == ["Audit", "Launch"]
    assert data[0]["priority"] == "medium"
