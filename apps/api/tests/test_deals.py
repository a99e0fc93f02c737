"""Tests for deal stages, deals, and the stage-change workflow hook."""
import uuid

import pytest
from httpx import AsyncClient

from clinicops.db.enums import Role
from clinicops.db.models import EmailLog


async def _patient(client: AsyncClient, email: str | None = "pat@example.com") -> dict:
    response = await client.post(
        "/patients", json={"first_name": "Nour", "last_name": "Khalil", "email": email}
    )
    assert response.status_code == 201
    return response.json()


async def _stage(client: AsyncClient, name: str, **fields) -> dict:
    response = await client.post("/deal-stages", json={"name": name, **fields})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_stages_are_sorted(authed_client: AsyncClient):
    await _stage(authed_client, "Won", stage_type="won", sort_order=2)
    await _stage(authed_client, "New", sort_order=0, is_default=True)

    response = await authed_client.get("/deal-stages")
    assert [s["name"] for s in response.json()] == ["New", "Won"]


@pytest.mark.asyncio
async def test_staff_cannot_create_stages(client: AsyncClient, make_user, headers_for):
    staff = make_user(Role.STAFF)
    response = await client.post(
        "/deal-stages", json={"name": "New"}, headers=headers_for(staff)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_deal_defaults_to_default_stage(authed_client: AsyncClient):
    patient = await _patient(authed_client)
    default = await _stage(authed_client, "New", is_default=True)

    response = await authed_client.post(
        "/deals", json={"patient_id": patient["id"], "title": "Consultation"}
    )
    assert response.status_code == 201
    data = response.json()
    assert data["stage_id"] == default["id"]
    assert data["stage_name"] == "New"
    assert data["workflow_result"] is None


@pytest.mark.asyncio
async def test_deal_requires_known_patient(authed_client: AsyncClient):
    response = await authed_client.post(
        "/deals",
        json={"patient_id": "00000000-0000-0000-0000-000000000000", "title": "X"},
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Patient not found"


@pytest.mark.asyncio
async def test_stage_change_runs_matching_workflow(authed_client: AsyncClient, db):
    patient = await _patient(authed_client)
    new = await _stage(authed_client, "New", is_default=True)
    won = await _stage(authed_client, "Won", stage_type="won")

    response = await authed_client.post(
        "/workflows",
        json={
            "name": "Welcome",
            "config": {"to_stage_id": won["id"]},
            "actions": [
                {
                    "action_type": "draft_email_patient",
                    "config": {
                        "subject_template": "Moved to {{ to_stage.name }}",
                        "body_template": "Hi {{ patient.first_name }}",
                    },
                }
            ],
        },
    )
    assert response.status_code == 201

    deal = (
        await authed_client.post(
            "/deals", json={"patient_id": patient["id"], "title": "Surgery", "stage_id": new["id"]}
        )
    ).json()

    response = await authed_client.patch(f"/deals/{deal['id']}", json={"stage_id": won["id"]})
    assert response.status_code == 200
    data = response.json()
    assert data["stage_name"] == "Won"
    assert data["workflow_result"] == {"ok": True, "workflows": 1, "actions_run": 1}

    email = db.query(EmailLog).filter(EmailLog.deal_id == uuid.UUID(deal["id"])).one()
    assert email.subject == "Moved to Won"
    assert email.body == "Hi Nour"
    assert email.to_address == "pat@example.com"


@pytest.mark.asyncio
async def test_non_stage_update_does_not_run_workflows(authed_client: AsyncClient):
    patient = await _patient(authed_client)
    await _stage(authed_client, "New", is_default=True)
    deal = (
        await authed_client.post("/deals", json={"patient_id": patient["id"], "title": "A"})
    ).json()

    response = await authed_client.patch(f"/deals/{deal['id']}", json={"title": "B"})
    assert response.status_code == 200
    assert response.json()["title"] == "B"
    assert response.json()["workflow_result"] is None


@pytest.mark.asyncio
async def test_delete_deal(authed_client: AsyncClient):
    patient = await _patient(authed_client)
    deal = (
        await authed_client.post("/deals", json={"patient_id": patient["id"], "title": "A"})
    ).json()

    assert (await authed_client.delete(f"/deals/{deal['id']}")).status_code == 204
    assert (await authed_client.get(f"/deals/{deal['id']}")).status_code == 404
