"""Tests for client accounts, ad-hoc requirements, and the statement of account."""
import csv
import io
import uuid
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from clinicops.db.models import AccountAdhocRequirement, AccountClient, Organization
from clinicops.services import account_service


@pytest.fixture
async def account(authed_client: AsyncClient) -> dict:
    response = await authed_client.post(
        "/accounts/clients",
        json={
            "client_name": "  Acme Dental ",
            "industry": "Healthcare",
            "client_type": "high_maintenance",
            "contract_type": "12_month",
            "services_signed": ["SEO Services", "Website Maintenance"],
            "retainer_fee": 5000,
            "service_based_fee": 1500,
            "currency": "aed",
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
async def adhoc_items(authed_client: AsyncClient, account) -> list[dict]:
    url = f"/accounts/clients/{account['id']}/adhoc"
    first = await authed_client.post(
        url,
        json={
            "date_requested": "2026-03-02",
            "description": "Extra social posts",
            "amount": 250.5,
            "status": "completed",
        },
    )
    second = await authed_client.post(
        url,
        json={
            "date_requested": "2026-03-10",
            "description": "Landing page, urgent",
            "service_date_start": "2026-03-11",
            "service_date_end": "2026-03-12",
            "amount": 750,
        },
    )
    assert first.status_code == second.status_code == 201
    return [first.json(), second.json()]


# =============================================================================
# Clients
# =============================================================================

@pytest.mark.asyncio
async def test_create_client(account):
    assert account["client_name"] == "Acme Dental"
    assert account["currency"] == "AED"
    assert account["client_category"] == "active_retainer"
    assert account["contract_type"] == "12_month"
    assert account["services_signed"] == ["SEO Services", "Website Maintenance"]


@pytest.mark.asyncio
async def test_blank_client_name(authed_client: AsyncClient):
    response = await authed_client.post("/accounts/clients", json={"client_name": "   "})
    assert response.status_code == 400
    assert response.json() == {"error": "Client name is required"}


@pytest.mark.asyncio
async def test_list_clients_search_and_category(authed_client: AsyncClient, account):
    await authed_client.post(
        "/accounts/clients",
        json={"client_name": "Bright Smiles", "client_category": "project_based"},
    )

    everyone = (await authed_client.get("/accounts/clients")).json()
    assert [c["client_name"] for c in everyone] == ["Acme Dental", "Bright Smiles"]

    found = (await authed_client.get("/accounts/clients", params={"search": "health"})).json()
    assert [c["client_name"] for c in found] == ["Acme Dental"]

    projects = (
        await authed_client.get("/accounts/clients", params={"category": "project_based"})
    ).json()
    assert [c["client_name"] for c in projects] == ["Bright Smiles"]


@pytest.mark.asyncio
async def test_update_client(authed_client: AsyncClient, account):
    response = await authed_client.patch(
        f"/accounts/clients/{account['id']}",
        json={"retainer_fee": 6000, "client_type": "standard", "industry": None},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["retainer_fee"] == 6000
    assert data["client_type"] == "standard"
    assert data["industry"] is None
    assert data["service_based_fee"] == 1500


@pytest.mark.asyncio
async def test_delete_client_removes_requirements(authed_client: AsyncClient, account, adhoc_items, db):
    response = await authed_client.delete(f"/accounts/clients/{account['id']}")
    assert response.status_code == 204

    missing = await authed_client.get(f"/accounts/clients/{account['id']}")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Client not found"}
    assert db.query(AccountAdhocRequirement).count() == 0


@pytest.mark.asyncio
async def test_clients_are_org_scoped(
    client: AsyncClient, authed_client: AsyncClient, account, make_user, headers_for, db
):
    other_org = Organization(name="Other Agency", slug="other-agency")
    db.add(other_org)
    db.commit()
    outsider = make_user(org=other_org)

    response = await client.get(
        f"/accounts/clients/{account['id']}", headers=headers_for(outsider)
    )
    assert response.status_code == 404
    listed = await client.get("/accounts/clients", headers=headers_for(outsider))
    assert listed.json() == []


# =============================================================================
# Ad-hoc requirements
# =============================================================================

@pytest.mark.asyncio
async def test_adhoc_listed_newest_first(authed_client: AsyncClient, account, adhoc_items):
    listed = (await authed_client.get(f"/accounts/clients/{account['id']}/adhoc")).json()
    assert [a["description"] for a in listed] == ["Landing page, urgent", "Extra social posts"]
    assert all(a["currency"] == "AED" for a in listed)
    assert listed[0]["status"] == "pending"


@pytest.mark.asyncio
async def test_adhoc_validation(authed_client: AsyncClient, account):
    url = f"/accounts/clients/{account['id']}/adhoc"
    blank = await authed_client.post(url, json={"description": "  "})
    assert blank.status_code == 400
    assert blank.json() == {"error": "Description is required"}

    reversed_dates = await authed_client.post(
        url,
        json={
            "description": "Shoot",
            "service_date_start": "2026-03-05",
            "service_date_end": "2026-03-01",
        },
    )
    assert reversed_dates.status_code == 400

    dated = await authed_client.post(url, json={"description": "Shoot"})
    assert dated.status_code == 201
    assert dated.json()["date_requested"]


@pytest.mark.asyncio
async def test_update_and_delete_adhoc(authed_client: AsyncClient, adhoc_items):
    pending = adhoc_items[1]
    response = await authed_client.patch(
        f"/accounts/adhoc/{pending['id']}", json={"status": "completed", "amount": 800}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["amount"] == 800

    bad_dates = await authed_client.patch(
        f"/accounts/adhoc/{pending['id']}", json={"service_date_end": "2026-03-01"}
    )
    assert bad_dates.status_code == 400

    deleted = await authed_client.delete(f"/accounts/adhoc/{pending['id']}")
    assert deleted.status_code == 204
    missing = await authed_client.patch(f"/accounts/adhoc/{pending['id']}", json={"amount": 1})
    assert missing.status_code == 404
    assert missing.json() == {"error": "Requirement not found"}


@pytest.mark.asyncio
async def test_unknown_client_adhoc_is_404(authed_client: AsyncClient):
    response = await authed_client.get(f"/accounts/clients/{uuid.uuid4()}/adhoc")
    assert response.status_code == 404


# =============================================================================
# Statement of account
# =============================================================================

@pytest.mark.asyncio
async def test_statement_totals_and_period(authed_client: AsyncClient, account, adhoc_items, db):
    client_row = db.get(AccountClient, uuid.UUID(account["id"]))
    now = datetime(2026, 3, 15, 8, 30, tzinfo=timezone.utc)

    statement = account_service.build_statement(db, client_row, now=now)
    assert statement.period == "March 2026"
    assert statement.currency == "AED"
    assert statement.fees.model_dump() == {
        "retainer": 5000,
        "service_based": 1500,
        "adhoc": 1000.5,
        "total": 7500.5,
    }
    assert account_service.statement_filename(statement, "csv") == "SOA_Acme_Dental_2026-03-15.csv"


@pytest.mark.asyncio
async def test_statement_csv_export(authed_client: AsyncClient, account, adhoc_items):
    response = await authed_client.get(f"/accounts/clients/{account['id']}/soa")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="SOA_Acme_Dental_')
    assert disposition.endswith('.csv"')

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["Statement of Account - Acme Dental"]
    assert rows[1][0].startswith("Period: ")
    assert rows[5:10] == [
        ["Service", "Amount (AED)"],
        ["Retainer Fee", "5000.00"],
        ["Service Based Fee", "1500.00"],
        ["Ad-Hoc Total", "1000.50"],
        ["TOTAL", "7500.50"],
    ]
    assert rows[11:] == [
        ["AD-HOC REQUIREMENTS"],
        ["Date Requested", "Description", "Service Dates", "Amount", "Status"],
        ["2026-03-10", "Landing page, urgent", "2026-03-11 - 2026-03-12", "750.00", "pending"],
        ["2026-03-02", "Extra social posts", "", "250.50", "completed"],
    ]


@pytest.mark.asyncio
async def test_statement_csv_neutralises_formulas(authed_client: AsyncClient, account):
    await authed_client.post(
        f"/accounts/clients/{account['id']}/adhoc",
        json={"date_requested": "2026-03-01", "description": "=HYPERLINK(\"x\")", "amount": 10},
    )
    response = await authed_client.get(f"/accounts/clients/{account['id']}/soa")
    last_row = list(csv.reader(io.StringIO(response.text)))[-1]
    assert last_row[1] == "'=HYPERLINK(\"x\")"


@pytest.mark.asyncio
async def test_statement_json_and_pdf(authed_client: AsyncClient, account, adhoc_items):
    url = f"/accounts/clients/{account['id']}/soa"

    data = (await authed_client.get(url, params={"format": "json"})).json()
    assert data["client"]["name"] == "Acme Dental"
    assert data["client"]["contract_type"] == "12_month"
    assert data["fees"]["total"] == 7500.5
    assert len(data["adhoc_items"]) == 2

    pdf = await authed_client.get(url, params={"format": "pdf"})
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.headers["content-disposition"].endswith('.pdf"')
    assert pdf.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_statement_without_adhoc_items(authed_client: AsyncClient, account):
    url = f"/accounts/clients/{account['id']}/soa"
    data = (await authed_client.get(url, params={"format": "json"})).json()
    assert data["fees"] == {"retainer": 5000, "service_based": 1500, "adhoc": 0, "total": 6500}

    pdf = await authed_client.get(url, params={"format": "pdf"})
    assert pdf.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_statement_rejects_unknown_format(authed_client: AsyncClient, account):
    response = await authed_client.get(
        f"/accounts/clients/{account['id']}/soa", params={"format": "xlsx"}
    )
    assert response.status_code == 400
