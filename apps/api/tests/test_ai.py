"""Tests for the AI helper endpoints and their fallbacks."""
from datetime import date

import pytest
from httpx import AsyncClient

from clinicops.db.enums import TeamEventPriority, WorkloadLevel
from clinicops.db.models import DailyQuote, TeamScheduleEvent
from clinicops.services import ai_service
from clinicops.services.ai_provider import AIUnavailableError, ChatMessage, get_provider


@pytest.fixture
def ai_reply(monkeypatch):
    """Make every provider round trip answer with the given text."""
    calls = []

    def _install(text: str):
        def fake_complete(system_prompt, user_prompt, **kwargs):
            calls.append(user_prompt)
            return text

        monkeypatch.setattr(ai_service, "_complete", fake_complete)
        return calls

    return _install


def _event(priority: TeamEventPriority) -> TeamScheduleEvent:
    return TeamScheduleEvent(title="x", event_type="deadline", event_date=date.today(), priority=priority.value)


def test_workload_level():
    assert ai_service.workload_level(0, []) == WorkloadLevel.LOW
    assert ai_service.workload_level(3, []) == WorkloadLevel.LOW
    assert ai_service.workload_level(4, []) == WorkloadLevel.MEDIUM
    assert ai_service.workload_level(1, [_event(TeamEventPriority.LOW)]) == WorkloadLevel.MEDIUM
    assert ai_service.workload_level(11, []) == WorkloadLevel.HIGH
    assert ai_service.workload_level(0, [_event(TeamEventPriority.CRITICAL)]) == WorkloadLevel.HIGH


def test_parse_json_object_handles_fences_and_noise():
    assert ai_service.parse_json_object('```json\n{"a": 1}\n```') == {"a": 1}
    assert ai_service.parse_json_object('Sure! {"a": 2} hope that helps') == {"a": 2}
    assert ai_service.parse_json_object("no json here") is None
    assert ai_service.parse_json_object("[1, 2]") is None


# =============================================================================
# Daily quote
# =============================================================================

@pytest.mark.asyncio
async def test_quote_fallback_is_not_cached(authed_client: AsyncClient, db):
    response = await authed_client.get("/ai/daily-quote")
    assert response.status_code == 200
    assert response.json() == {"quote": ai_service.QUOTE_FALLBACK, "cached": False}
    assert db.query(DailyQuote).count() == 0


@pytest.mark.asyncio
async def test_quote_is_cached_per_day(authed_client: AsyncClient, ai_reply):
    calls = ai_reply('"Small steps still move you forward."')

    first = await authed_client.get("/ai/daily-quote")
    assert first.json() == {"quote": "Small steps still move you forward.", "cached": False}

    second = await authed_client.get("/ai/daily-quote")
    assert second.json() == {"quote": "Small steps still move you forward.", "cached": True}
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_quote_provider_error_falls_back(authed_client: AsyncClient, monkeypatch):
    def broken(*args, **kwargs):
        raise AIUnavailableError("down")

    monkeypatch.setattr(ai_service, "_complete", broken)
    response = await authed_client.get("/ai/daily-quote")
    assert response.json()["quote"] == ai_service.QUOTE_FALLBACK


# =============================================================================
# Leave recommendation
# =============================================================================

@pytest.mark.asyncio
async def test_recommendation_fallback_still_reports_workload(authed_client: AsyncClient):
    for i in range(4):
        await authed_client.post("/tasks", json={"title": f"Task {i}"})

    response = await authed_client.get("/ai/leave-recommendation")
    assert response.status_code == 200
    data = response.json()
    assert data["recommendation"] == ai_service.RECOMMENDATION_FALLBACK
    assert data["workload_level"] == "medium"
    assert data["pending_tasks"] == 4
    assert data["upcoming_events"] == 0
    assert data["annual_remaining"] == 30


@pytest.mark.asyncio
async def test_recommendation_uses_provider_text(authed_client: AsyncClient, ai_reply):
    calls = ai_reply("Take a long weekend next month.")
    await authed_client.post(
        "/team-events",
        json={
            "title": "Inspection",
            "event_type": "deadline",
            "event_date": date.today().isoformat(),
            "priority": "critical",
        },
    )

    data = (await authed_client.get("/ai/leave-recommendation")).json()
    assert data["recommendation"] == "Take a long weekend next month."
    assert data["workload_level"] == "high"
    assert data["upcoming_events"] == 1
    assert "Inspection" in calls[0]


# =============================================================================
# Content generation
# =============================================================================

@pytest.mark.asyncio
async def test_description_fallback(authed_client: AsyncClient):
    response = await authed_client.post(
        "/ai/generate-description",
        json={"context": "Logo redesign", "project_name": "Rebrand", "type": "quote"},
    )
    assert response.status_code == 200
    assert response.json() == {"description": "Quote for Rebrand: Logo redesign"}

    response = await authed_client.post("/ai/generate-description", json={"context": "Audit"})
    assert response.json() == {"description": "Invoice for this project: Audit"}


@pytest.mark.asyncio
async def test_description_requires_context(authed_client: AsyncClient):
    response = await authed_client.post("/ai/generate-description", json={"context": "   "})
    assert response.status_code == 400
    assert response.json() == {"error": "Context is required"}


@pytest.mark.asyncio
async def test_generate_email_fallback(authed_client: AsyncClient):
    response = await authed_client.post(
        "/workflows/generate-email", json={"description": "Consultation reminder"}
    )
    assert response.status_code == 200
    assert response.json() == {
        "subject": ai_service.EMAIL_FALLBACK_SUBJECT,
        "html": ai_service.EMAIL_FALLBACK_HTML,
    }


@pytest.mark.asyncio
async def test_generate_email_requires_description(authed_client: AsyncClient):
    response = await authed_client.post("/workflows/generate-email", json={"description": ""})
    assert response.status_code == 400
    assert response.json() == {"error": "Description is required"}


@pytest.mark.asyncio
async def test_generate_email_parses_and_sanitizes(authed_client: AsyncClient, ai_reply):
    ai_reply(
        '```json\n{"subject": "See you soon", '
        '"html": "<p>Hi {{ patient.first_name }}</p><script>alert(1)</script>"}\n```'
    )
    response = await authed_client.post(
        "/workflows/generate-email",
        json={"description": "Reminder", "variables": ["patient.first_name"]},
    )
    data = response.json()
    assert data["subject"] == "See you soon"
    assert "<script>" not in data["html"]
    assert "{{ patient.first_name }}" in data["html"]


@pytest.mark.asyncio
async def test_generate_email_plain_text_reply(authed_client: AsyncClient, ai_reply):
    ai_reply("Thanks for visiting us.")
    response = await authed_client.post("/workflows/generate-email", json={"description": "Thanks"})
    assert response.json() == {
        "subject": ai_service.EMAIL_FALLBACK_SUBJECT,
        "html": "<p>Thanks for visiting us.</p>",
    }


# =============================================================================
# Providers
# =============================================================================

def test_gemini_request_shape():
    provider = get_provider("gemini", "k")
    url, kwargs = provider.build_request(
        [ChatMessage("system", "Be brief"), ChatMessage("user", "Hi"), ChatMessage("assistant", "Hello")],
        "gemini-2.0-flash",
        0.5,
        100,
    )
    assert url.endswith("/models/gemini-2.0-flash:generateContent")
    assert kwargs["params"] == {"key": "k"}
    body = kwargs["json"]
    assert body["systemInstruction"] == {"parts": [{"text": "Be brief"}]}
    assert [c["role"] for c in body["contents"]] == ["user", "model"]
    assert body["generationConfig"] == {"temperature": 0.5, "maxOutputTokens": 100}


def test_openai_parse_and_unknown_provider():
    provider = get_provider("openai", "k")
    assert provider.default_model == "gpt-4o-mini"
    reply = provider.parse_response({"choices": [{"message": {"content": "ok"}}]}, "gpt-4o-mini")
    assert reply.content == "ok"
    assert reply.prompt_tokens == 0

    with pytest.raises(ValueError):
        get_provider("llama", "k")
