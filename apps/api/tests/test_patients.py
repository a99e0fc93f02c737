"""Tests for patient records and the public lead form."""
import pytest
from httpx import AsyncClient

from clinicops.db.models import Patient, PatientInsurance


async def _create_patient(client: AsyncClient, **overrides) -> dict:
    payload = {"first_name": "Amira", "last_name": "Haddad", "email": "Amira@Example.com"}
    payload.update(overrides)
    response = await client.post("/patients", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_and_get_patient(authed_client: AsyncClient):
    created = await _create_patient(authed_client)
    assert created["email"] == "amira@example.com"
    assert created["source"] == "manual"

    response = await authed_client.get(f"/patients/{created['id']}")
    assert response.status_code == 200
    assert response.json()["first_name"] == "Amira"


@pytest.mark.asyncio
async def test_search_patients(authed_client: AsyncClient):
    await _create_patient(authed_client)
    await _create_patient(authed_client, first_name="Omar", last_name="Saleh", email=None, phone="+971 555")

    response = await authed_client.get("/patients", params={"q": "omar"})
    names = [p["first_name"] for p in response.json()]
    assert names == ["Omar"]

    response = await authed_client.get("/patients", params={"q": "+971"})
    assert [p["first_name"] for p in response.json()] == ["Omar"]


@pytest.mark.asyncio
async def test_patch_only_applies_sent_fields(authed_client: AsyncClient):
    created = await _create_patient(authed_client, town="Dubai")
    response = await authed_client.patch(
        f"/patients/{created['id']}", json={"profession": "Architect"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["profession"] == "Architect"
    assert data["town"] == "Dubai"


@pytest.mark.asyncio
async def test_delete_patient(authed_client: AsyncClient):
    created = await _create_patient(authed_client)
    response = await authed_client.delete(f"/patients/{created['id']}")
    assert response.status_code == 204

    response = await authed_client.get(f"/patients/{created['id']}")
    assert response.status_code == 404
    assert response.json() == {"error": "Patient not found"}


@pytest.mark.asyncio
async def test_insurance_roundtrip(authed_client: AsyncClient):
    created = await _create_patient(authed_client)
    response = await authed_client.post(
        f"/patients/{created['id']}/insurances",
        json={"provider_name": "Daman", "card_number": "123", "insurance_type": "Gold"},
    )
    assert response.status_code == 201

    response = await authed_client.get(f"/patients/{created['id']}/insurances")
    assert [i["provider_name"] for i in response.json()] == ["Daman"]


# =============================================================================
# Public lead form
# =============================================================================

def _lead_payload(**overrides) -> dict:
    payload = {
        "consent_accepted": True,
        "first_name": "Lina",
        "last_name": "Nasser",
        "email": "LINA@example.com",
        "phone_code": "+971",
        "phone_number": "501234567",
        "language": "en",
        "contact_preference": "whatsapp",
        "insurance": {"provider_name": "AXA", "card_number": "C-1", "type": "Silver"},
        "health": {"allergies": "none"},
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_lead_requires_consent(client: AsyncClient, test_org):
    response = await client.post(
        f"/public/{test_org.slug}/leads", json=_lead_payload(consent_accepted=False)
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Consent is required"


@pytest.mark.asyncio
async def test_lead_requires_contact(client: AsyncClient, test_org):
    response = await client.post(
        f"/public/{test_org.slug}/leads",
        json=_lead_payload(email=None, phone_number=None),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Email or phone is required"


@pytest.mark.asyncio
async def test_lead_unknown_org(client: AsyncClient, db):
    response = await client.post("/public/nope/leads", json=_lead_payload())
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_lead_creates_patient_with_snapshot(client: AsyncClient, test_org, db):
    response = await client.post(f"/public/{test_org.slug}/leads", json=_lead_payload())
    assert response.status_code == 201

    patient = db.query(Patient).filter(Patient.organization_id == test_org.id).one()
    assert patient.email == "lina@example.com"
    assert patient.phone == "+971 501234567"
    assert patient.source == "lead_form"
    assert "[Lead form]" in patient.notes
    assert "whatsapp" in patient.notes
    insurance = db.query(PatientInsurance).filter(PatientInsurance.patient_id == patient.id).one()
    assert insurance.insurance_type == "Silver"


@pytest.mark.asyncio
async def test_returning_lead_updates_existing_patient(client: AsyncClient, test_org, db):
    await client.post(f"/public/{test_org.slug}/leads", json=_lead_payload())
    response = await client.post(
        f"/public/{test_org.slug}/leads",
        json=_lead_payload(
            town="Abu Dhabi",
            insurance={"provider_name": "AXA", "card_number": "C-2", "type": "Gold"},
        ),
    )
    assert response.status_code == 201

    patients = db.query(Patient).filter(Patient.organization_id == test_org.id).all()
    assert len(patients) == 1
    assert patients[0].town == "Abu Dhabi"
    assert patients[0].notes.count("[Lead form]") == 2
    insurances = db.query(PatientInsurance).filter(PatientInsurance.patient_id == patients[0].id).all()
    assert [i.card_number for i in insurances] == ["C-2"]


@pytest.mark.asyncio
async def test_lead_lookup_matches_by_phone(client: AsyncClient, test_org):
    await client.post(f"/public/{test_org.slug}/leads", json=_lead_payload(email=None))
    response = await client.post(
        f"/public/{test_org.slug}/leads/lookup",
        json={"phone_code": "+971", "phone_number": "501234567"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["patient"]["first_name"] == "Lina"
    assert data["insurance"]["provider_name"] == "AXA"


@pytest.mark.asyncio
async def test_lead_lookup_without_match(client: AsyncClient, test_org):
    response = await client.post(
        f"/public/{test_org.slug}/leads/lookup", json={"email": "nobody@example.com"}
    )
    assert response.status_code == 200
    assert response.json() == {"patient": None, "insurance": None}
