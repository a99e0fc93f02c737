"""Tests for projects, invoices, quotes, and PDF output."""
import pytest
from httpx import AsyncClient

from clinicops.db.models import Organization
from clinicops.schemas.project import InvoiceItemIn
from clinicops.services import project_service

ITEMS = [
    {"description": "Consultation package", "quantity": 2, "unit_price": 100},
    {"description": "Lab work", "quantity": 1, "unit_price": 50.5},
]


@pytest.fixture
async def project(authed_client: AsyncClient) -> dict:
    response = await authed_client.post(
        "/projects",
        json={"name": "Rebrand", "client_name": "Acme Dental", "client_email": "ops@acme.test"},
    )
    assert response.status_code == 201
    return response.json()


def test_compute_totals():
    items = [InvoiceItemIn(**item) for item in ITEMS]
    assert project_service.compute_totals(items, discount=10.5, tax_rate=5) == {
        "subtotal": 250.5,
        "discount": 10.5,
        "tax_amount": 12.0,
        "total": 252.0,
    }
    assert project_service.compute_totals([], discount=0, tax_rate=5)["total"] == 0


@pytest.mark.asyncio
async def test_project_crud(authed_client: AsyncClient, project):
    response = await authed_client.patch(f"/projects/{project['id']}", json={"status": "completed"})
    assert response.json()["status"] == "completed"
    assert response.json()["name"] == "Rebrand"

    listed = await authed_client.get("/projects")
    assert [p["id"] for p in listed.json()] == [project["id"]]

    deleted = await authed_client.delete(f"/projects/{project['id']}")
    assert deleted.status_code == 204
    missing = await authed_client.get(f"/projects/{project['id']}")
    assert missing.json() == {"error": "Project not found"}


@pytest.mark.asyncio
async def test_create_invoice_computes_totals(authed_client: AsyncClient, project):
    response = await authed_client.post(
        f"/projects/{project['id']}/invoices",
        json={"items": ITEMS, "discount": 10.5, "currency": "aed"},
    )
    assert response.status_code == 201
    invoice = response.json()
    assert invoice["invoice_number"] == "INV-000001"
    assert invoice["status"] == "draft"
    assert invoice["client_name"] == "Acme Dental"
    assert invoice["currency"] == "AED"
    assert invoice["subtotal"] == 250.5
    assert invoice["tax_amount"] == 12.0
    assert invoice["total"] == 252.0
    assert [i["amount"] for i in invoice["items"]] == [200, 50.5]
    assert [i["sort_order"] for i in invoice["items"]] == [0, 1]


@pytest.mark.asyncio
async def test_invoice_requires_items(authed_client: AsyncClient, project):
    response = await authed_client.post(f"/projects/{project['id']}/invoices", json={"items": []})
    assert response.status_code == 400
    assert response.json() == {"error": "At least one item is required"}


@pytest.mark.asyncio
async def test_numbering_is_per_type_and_org(
    authed_client: AsyncClient, project, db, make_user, headers_for, client
):
    url = f"/projects/{project['id']}/invoices"
    first = await authed_client.post(url, json={"items": ITEMS})
    second = await authed_client.post(url, json={"items": ITEMS})
    quote = await authed_client.post(url, json={"items": ITEMS, "invoice_type": "quote"})
    assert first.json()["invoice_number"] == "INV-000001"
    assert second.json()["invoice_number"] == "INV-000002"
    assert quote.json()["invoice_number"] == "QUO-000001"

    # Gaps left by deletes are not reused
    await authed_client.delete(f"/invoices/{first.json()['id']}")
    third = await authed_client.post(url, json={"items": ITEMS})
    assert third.json()["invoice_number"] == "INV-000003"

    other_org = Organization(name="Other Clinic", slug="other-clinic")
    db.add(other_org)
    db.commit()
    outsider = make_user(org=other_org)
    other_project = (
        await client.post("/projects", json={"name": "Theirs"}, headers=headers_for(outsider))
    ).json()
    theirs = await client.post(
        f"/projects/{other_project['id']}/invoices",
        json={"items": ITEMS},
        headers=headers_for(outsider),
    )
    assert theirs.json()["invoice_number"] == "INV-000001"

    hidden = await client.get(f"/invoices/{second.json()['id']}", headers=headers_for(outsider))
    assert hidden.status_code == 404


@pytest.mark.asyncio
async def test_update_items_recomputes(authed_client: AsyncClient, project):
    invoice = (
        await authed_client.post(f"/projects/{project['id']}/invoices", json={"items": ITEMS})
    ).json()

    response = await authed_client.patch(
        f"/invoices/{invoice['id']}",
        json={"items": [{"description": "Single visit", "quantity": 1, "unit_price": 200}]},
    )
    data = response.json()
    assert data["subtotal"] == 200
    assert data["total"] == 210
    assert len(data["items"]) == 1

    response = await authed_client.patch(f"/invoices/{invoice['id']}", json={"tax_rate": 0})
    assert response.json()["total"] == 200


@pytest.mark.asyncio
async def test_only_quotes_can_be_accepted(authed_client: AsyncClient, project):
    invoice = (
        await authed_client.post(f"/projects/{project['id']}/invoices", json={"items": ITEMS})
    ).json()
    response = await authed_client.patch(f"/invoices/{invoice['id']}", json={"status": "accepted"})
    assert response.status_code == 400
    assert response.json() == {"error": "Only quotes can be accepted"}


@pytest.mark.asyncio
async def test_convert_accepted_quote(authed_client: AsyncClient, project):
    quote = (
        await authed_client.post(
            f"/projects/{project['id']}/invoices",
            json={"items": ITEMS, "invoice_type": "quote", "notes": "Valid 30 days"},
        )
    ).json()

    early = await authed_client.post(f"/invoices/{quote['id']}/convert")
    assert early.status_code == 400
    assert early.json() == {"error": "Only accepted quotes can be converted"}

    await authed_client.patch(f"/invoices/{quote['id']}", json={"status": "accepted"})
    response = await authed_client.post(f"/invoices/{quote['id']}/convert")
    assert response.status_code == 201
    invoice = response.json()
    assert invoice["invoice_type"] == "invoice"
    assert invoice["invoice_number"] == "INV-000001"
    assert invoice["status"] == "draft"
    assert invoice["source_quote_id"] == quote["id"]
    assert invoice["total"] == quote["total"]
    assert [i["description"] for i in invoice["items"]] == [i["description"] for i in ITEMS]


@pytest.mark.asyncio
async def test_pdf_download(authed_client: AsyncClient, project):
    invoice = (
        await authed_client.post(
            f"/projects/{project['id']}/invoices",
            json={"items": ITEMS, "client_address": "12 Marina Walk\nDubai", "notes": "Thanks & welcome"},
        )
    ).json()

    response = await authed_client.get(f"/invoices/{invoice['id']}/pdf")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="INV-000001.pdf"' in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")
