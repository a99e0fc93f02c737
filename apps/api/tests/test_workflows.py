"""Tests for the deal_stage_changed workflow engine and email tooling."""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from clinicops.core.config import settings
from clinicops.db.enums import EmailStatus
from clinicops.db.models import Deal, DealStage, EmailLog, Patient, Workflow, WorkflowAction
from clinicops.services import email_service
from clinicops.services.workflow_engine import MAX_RECURRING_SENDS, compute_send_times

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


# =============================================================================
# Send-time expansion
# =============================================================================

def test_immediate_send_is_now():
    assert compute_send_times({}, NOW) == [NOW]
    assert compute_send_times({"send_mode": "immediate"}, NOW) == [NOW]


def test_delay_adds_minutes():
    assert compute_send_times({"send_mode": "delay", "delay_minutes": 90}, NOW) == [
        NOW + timedelta(minutes=90)
    ]


def test_recurring_expands_every_n_days():
    times = compute_send_times(
        {"send_mode": "recurring", "recurring_every_days": 7, "recurring_times": 3}, NOW
    )
    assert times == [NOW, NOW + timedelta(days=7), NOW + timedelta(days=14)]


def test_recurring_is_capped():
    times = compute_send_times(
        {"send_mode": "recurring", "recurring_every_days": 1, "recurring_times": 500}, NOW
    )
    assert len(times) == MAX_RECURRING_SENDS


def test_bad_numbers_fall_back_to_defaults():
    times = compute_send_times(
        {"send_mode": "recurring", "recurring_every_days": "x", "recurring_times": -2}, NOW
    )
    assert times == [NOW]


def test_recurring_without_interval_sends_once_now():
    assert compute_send_times({"send_mode": "recurring", "recurring_times": 5}, NOW) == [NOW]
    assert compute_send_times({"send_mode": "recurring", "recurring_every_days": 3}, NOW) == [NOW]


def test_delay_without_minutes_sends_now():
    assert compute_send_times({"send_mode": "delay"}, NOW) == [NOW]
    assert compute_send_times({"send_mode": "delay", "delay_minutes": 0}, NOW) == [NOW]


# =============================================================================
# Trigger endpoint
# =============================================================================

@pytest.fixture
def pipeline(db, test_org):
    """A patient, two stages, a deal, and a recurring email workflow."""
    patient = Patient(
        organization_id=test_org.id, first_name="Maya", last_name="Aziz", email="maya@example.com"
    )
    new = DealStage(organization_id=test_org.id, name="New", is_default=True)
    booked = DealStage(organization_id=test_org.id, name="Consultation Booked", sort_order=1)
    db.add_all([patient, new, booked])
    db.flush()
    deal = Deal(
        organization_id=test_org.id,
        patient_id=patient.id,
        stage_id=booked.id,
        title="Dental implant",
        pipeline="Dental",
    )
    workflow = Workflow(
        organization_id=test_org.id,
        name="Reminders",
        trigger_type="deal_stage_changed",
        config={"to_stage_id": str(booked.id), "pipeline": "dental"},
    )
    workflow.actions = [
        WorkflowAction(
            action_type="draft_email_patient",
            config={
                "subject_template": "Reminder for {{ deal.title }}",
                "send_mode": "recurring",
                "recurring_every_days": 2,
                "recurring_times": 3,
            },
        )
    ]
    db.add_all([deal, workflow])
    db.commit()
    return {"patient": patient, "new": new, "booked": booked, "deal": deal, "workflow": workflow}


def _event(pipeline) -> dict:
    return {
        "deal_id": str(pipeline["deal"].id),
        "patient_id": str(pipeline["patient"].id),
        "from_stage_id": str(pipeline["new"].id),
        "to_stage_id": str(pipeline["booked"].id),
        "pipeline": "Dental",
    }


@pytest.mark.asyncio
async def test_trigger_with_internal_secret(client: AsyncClient, pipeline, db):
    response = await client.post(
        "/workflows/deal-stage-changed",
        json=_event(pipeline),
        headers={"X-Internal-Secret": settings.INTERNAL_SECRET},
    )
    assert response.status_code == 200
    assert response.json() == {"ok": True, "workflows": 1, "actions_run": 3}

    emails = (
        db.query(EmailLog)
        .filter(EmailLog.deal_id == pipeline["deal"].id)
        .order_by(EmailLog.sent_at.asc())
        .all()
    )
    assert [e.subject for e in emails] == ["Reminder for Dental implant"] * 3
    # First send is due now; the rest wait for their delivery time
    assert [e.status for e in emails[1:]] == [EmailStatus.QUEUED.value] * 2


@pytest.mark.asyncio
async def test_trigger_rejects_wrong_secret(client: AsyncClient, pipeline):
    response = await client.post(
        "/workflows/deal-stage-changed",
        json=_event(pipeline),
        headers={"X-Internal-Secret": "wrong"},
    )
    assert response.status_code == 403
    assert response.json()["error"] == "Invalid internal secret"


@pytest.mark.asyncio
async def test_trigger_requires_auth(client: AsyncClient, pipeline):
    response = await client.post("/workflows/deal-stage-changed", json=_event(pipeline))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_trigger_with_session(authed_client: AsyncClient, pipeline):
    response = await authed_client.post("/workflows/deal-stage-changed", json=_event(pipeline))
    assert response.status_code == 200
    assert response.json()["workflows"] == 1


@pytest.mark.asyncio
async def test_pipeline_filter_must_match(authed_client: AsyncClient, pipeline):
    event = _event(pipeline)
    event["pipeline"] = "Cosmetic"
    response = await authed_client.post("/workflows/deal-stage-changed", json=event)
    assert response.json() == {"ok": True, "workflows": 0, "actions_run": 0}


@pytest.mark.asyncio
async def test_missing_pipeline_does_not_filter(authed_client: AsyncClient, pipeline):
    event = _event(pipeline)
    event["pipeline"] = None
    response = await authed_client.post("/workflows/deal-stage-changed", json=event)
    assert response.json() == {"ok": True, "workflows": 1, "actions_run": 3}


@pytest.mark.asyncio
async def test_inactive_workflows_are_skipped(authed_client: AsyncClient, pipeline, db):
    pipeline["workflow"].active = False
    db.commit()
    response = await authed_client.post("/workflows/deal-stage-changed", json=_event(pipeline))
    assert response.json()["workflows"] == 0


@pytest.mark.asyncio
async def test_patient_without_email_sends_nothing(authed_client: AsyncClient, pipeline, db):
    pipeline["patient"].email = None
    db.commit()
    response = await authed_client.post("/workflows/deal-stage-changed", json=_event(pipeline))
    assert response.json() == {"ok": True, "workflows": 1, "actions_run": 0}


@pytest.mark.asyncio
async def test_unknown_deal_is_404(authed_client: AsyncClient, pipeline):
    event = _event(pipeline)
    event["deal_id"] = str(uuid.uuid4())
    response = await authed_client.post("/workflows/deal-stage-changed", json=event)
    assert response.status_code == 404
    assert response.json()["error"] == "Deal not found"


# =============================================================================
# CRUD
# =============================================================================

@pytest.mark.asyncio
async def test_update_replaces_actions(authed_client: AsyncClient):
    created = (
        await authed_client.post(
            "/workflows",
            json={
                "name": "Flow",
                "actions": [
                    {"action_type": "draft_email_patient"},
                    {"action_type": "generate_postop_doc"},
                ],
            },
        )
    ).json()
    assert len(created["actions"]) == 2

    response = await authed_client.patch(
        f"/workflows/{created['id']}",
        json={"active": False, "actions": [{"action_type": "draft_email_insurance"}]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["active"] is False
    assert [a["action_type"] for a in data["actions"]] == ["draft_email_insurance"]

    assert (await authed_client.delete(f"/workflows/{created['id']}")).status_code == 204
    assert (await authed_client.get("/workflows")).json() == []


# =============================================================================
# Email tooling
# =============================================================================

@pytest.fixture
def mailgun(monkeypatch):
    """Configure Mailgun and capture outgoing sends instead of calling the API."""
    sent: list[dict] = []

    async def fake_send(**kwargs):
        sent.append(kwargs)
        return {"success": True, "message_id": "<msg@mailgun>"}

    monkeypatch.setattr(settings, "MAILGUN_API_KEY", "key-test")
    monkeypatch.setattr(settings, "MAILGUN_DOMAIN", "mg.example.com")
    monkeypatch.setattr(email_service, "_send_mailgun_email", fake_send)
    return sent


@pytest.mark.asyncio
async def test_send_test_email_without_provider(authed_client: AsyncClient):
    response = await authed_client.post(
        "/workflows/send-test-email", json={"to": "qa@example.com"}
    )
    assert response.status_code == 503
    assert response.json()["error"] == "Email provider not configured"


@pytest.mark.asyncio
async def test_send_test_email_renders_sample_data(authed_client: AsyncClient, mailgun):
    response = await authed_client.post(
        "/workflows/send-test-email",
        json={
            "to": "qa@example.com",
            "subject_template": "Hello {{ patient.first_name }}",
            "body_template": "Stage: {{ to_stage.name }}",
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["subject"] == "Hello Test"
    assert data["html"] == "Stage: Request processed"
    assert mailgun[0]["to_email"] == "qa@example.com"
    assert mailgun[0]["reply_to"].startswith("reply+")


@pytest.mark.asyncio
async def test_send_test_email_empty_html_placeholder(authed_client: AsyncClient, mailgun):
    response = await authed_client.post(
        "/workflows/send-test-email",
        json={"to": "qa@example.com", "use_html": True, "body_html_template": "<script></script>"},
    )
    assert response.json()["html"] == "<p>(Empty HTML body)</p>"


@pytest.mark.asyncio
async def test_send_email_requires_fields(authed_client: AsyncClient):
    response = await authed_client.post(
        "/emails/send", json={"to": "a@example.com", "subject": "  ", "html": "<p>x</p>"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "to, subject, and html are required"


@pytest.mark.asyncio
async def test_send_email_provider_failure_is_502(authed_client: AsyncClient, monkeypatch, db):
    async def failing_send(**kwargs):
        return {"success": False, "error": "Mailgun API error: 400"}

    monkeypatch.setattr(settings, "MAILGUN_API_KEY", "key-test")
    monkeypatch.setattr(settings, "MAILGUN_DOMAIN", "mg.example.com")
    monkeypatch.setattr(email_service, "_send_mailgun_email", failing_send)

    response = await authed_client.post(
        "/emails/send", json={"to": "a@example.com", "subject": "Hi", "html": "<p>x</p>"}
    )
    assert response.status_code == 502
    email = db.query(EmailLog).one()
    assert email.status == EmailStatus.FAILED.value
    assert email.error == "Mailgun API error: 400"


@pytest.mark.asyncio
async def test_inbound_reply_links_to_original(authed_client: AsyncClient, mailgun, db):
    patient = (
        await authed_client.post("/patients", json={"first_name": "R", "last_name": "S"})
    ).json()
    sent = (
        await authed_client.post(
            "/emails/send",
            json={
                "to": "r@example.com",
                "subject": "Hi",
                "html": "<p>x</p>",
                "patient_id": patient["id"],
            },
        )
    ).json()

    response = await authed_client.post(
        "/emails/inbound/mailgun",
        data={
            "recipient": f"Clinic <reply+{sent['id']}@mg.example.com>",
            "sender": "r@example.com",
            "subject": "Re: Hi",
            "stripped-text": "Thanks!",
        },
    )
    assert response.status_code == 200

    listing = await authed_client.get("/emails", params={"patient_id": patient["id"]})
    directions = sorted(e["direction"] for e in listing.json())
    assert directions == ["inbound", "outbound"]


@pytest.mark.asyncio
async def test_inbound_signature_checked(client: AsyncClient, monkeypatch, db):
    monkeypatch.setattr(settings, "MAILGUN_WEBHOOK_SIGNING_KEY", "signing-key")
    response = await client.post(
        "/emails/inbound/mailgun",
        json={
            "recipient": "someone@example.com",
            "signature": {"timestamp": "1", "token": "t", "signature": "bad"},
        },
    )
    assert response.status_code == 403
    assert response.json()["error"] == "Invalid signature"
