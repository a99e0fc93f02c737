"""Tests for tasks and the dashboard counters."""
from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from clinicops.db.enums import Role


@pytest.mark.asyncio
async def test_create_defaults_to_caller(authed_client: AsyncClient, test_auth):
    response = await authed_client.post("/tasks", json={"title": "Call lab"})
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["assigned_user_id"] == str(test_auth.user.id)
    assert data["completed_at"] is None


@pytest.mark.asyncio
async def test_unknown_assignee_is_404(authed_client: AsyncClient):
    response = await authed_client.post(
        "/tasks",
        json={"title": "Call lab", "assigned_user_id": "00000000-0000-0000-0000-000000000001"},
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Assignee not found"}


@pytest.mark.asyncio
async def test_completion_stamps_and_clears(authed_client: AsyncClient):
    task = (await authed_client.post("/tasks", json={"title": "File notes"})).json()

    done = await authed_client.patch(f"/tasks/{task['id']}", json={"status": "completed"})
    assert done.json()["completed_at"] is not None

    reopened = await authed_client.patch(f"/tasks/{task['id']}", json={"status": "in_progress"})
    assert reopened.json()["status"] == "in_progress"
    assert reopened.json()["completed_at"] is None


@pytest.mark.asyncio
async def test_filter_by_assignee(authed_client: AsyncClient, make_user):
    staff = make_user(Role.STAFF)
    await authed_client.post("/tasks", json={"title": "Mine"})
    await authed_client.post("/tasks", json={"title": "Theirs", "assigned_user_id": str(staff.id)})

    response = await authed_client.get("/tasks", params={"assigned_user_id": str(staff.id)})
    assert [t["title"] for t in response.json()] == ["Theirs"]


@pytest.mark.asyncio
async def test_stats(authed_client: AsyncClient):
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    tomorrow = (date.today() + timedelta(days=1)).isoformat()

    await authed_client.post("/tasks", json={"title": "Late", "activity_date": yesterday})
    await authed_client.post(
        "/tasks", json={"title": "Working", "status": "in_progress", "activity_date": tomorrow}
    )
    await authed_client.post(
        "/tasks", json={"title": "Done", "status": "completed", "activity_date": yesterday}
    )

    response = await authed_client.get("/tasks/stats")
    assert response.status_code == 200
    assert response.json() == {
        "finished_today": 1,
        "pending": 1,
        "in_progress": 1,
        "overdue": 1,
    }


@pytest.mark.asyncio
async def test_delete(authed_client: AsyncClient):
    task = (await authed_client.post("/tasks", json={"title": "Temp"})).json()
    response = await authed_client.delete(f"/tasks/{task['id']}")
    assert response.status_code == 204
    assert (await authed_client.get("/tasks")).json() == []
