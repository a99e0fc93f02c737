"""Tests for marketing inputs, report snapshots, and public report links."""
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from clinicops.core.config import settings
from clinicops.db.enums import Role
from clinicops.db.models import MarketingReport, Organization
from clinicops.services.marketing_service import compute_report_data


@pytest.fixture
async def project(authed_client: AsyncClient) -> dict:
    return (await authed_client.post("/projects", json={"name": "Spring Campaign"})).json()


@pytest.fixture
async def march_data(authed_client: AsyncClient, project) -> None:
    base = f"/projects/{project['id']}/marketing"
    expenses = [
        {"channel": "google_ads", "amount": 300, "spend_date": "2026-03-05", "clicks": 100, "impressions": 2000},
        {"channel": "meta_ads", "amount": 200, "spend_date": "2026-03-10", "clicks": 50, "impressions": 3000},
        {"channel": "google_ads", "amount": 999, "spend_date": "2026-04-02"},
    ]
    leads = [
        {"channel": "google_ads", "lead_date": "2026-03-01", "converted": True, "revenue": 1200},
        {"channel": "google_ads", "lead_date": "2026-03-15"},
        {"channel": "google_ads", "lead_date": "2026-03-31"},
        {"channel": "meta_ads", "lead_date": "2026-03-20", "converted": True, "revenue": 300},
        {"channel": "meta_ads", "lead_date": "2026-02-28", "converted": True, "revenue": 5000},
    ]
    for expense in expenses:
        assert (await authed_client.post(f"{base}/expenses", json=expense)).status_code == 201
    for lead in leads:
        assert (await authed_client.post(f"{base}/leads", json=lead)).status_code == 201


@pytest.fixture
async def report(authed_client: AsyncClient, project, march_data) -> dict:
    response = await authed_client.post(
        f"/projects/{project['id']}/marketing/reports",
        json={"title": "March", "date_start": "2026-03-01", "date_end": "2026-03-31"},
    )
    assert response.status_code == 201
    return response.json()


def test_report_data_with_no_inputs():
    data = compute_report_data([], [])
    assert data["cpl"] == 0
    assert data["roas"] == 0
    assert data["conversion_rate"] == 0
    assert data["ctr"] == 0
    assert data["channels"] == []


@pytest.mark.asyncio
async def test_campaigns(authed_client: AsyncClient, project):
    base = f"/projects/{project['id']}/marketing/campaigns"
    bad = await authed_client.post(
        base,
        json={"name": "Q2", "channel": "email", "start_date": "2026-05-01", "end_date": "2026-04-01"},
    )
    assert bad.status_code == 400
    assert bad.json() == {"error": "End date must be on or after start date"}

    created = await authed_client.post(base, json={"name": "Q2", "channel": "email", "budget": 1000})
    assert created.status_code == 201
    campaign = created.json()

    expense = await authed_client.post(
        f"/projects/{project['id']}/marketing/expenses",
        json={"channel": "email", "amount": 50, "spend_date": "2026-05-02", "campaign_id": campaign["id"]},
    )
    assert expense.json()["campaign_id"] == campaign["id"]
    assert expense.json()["clicks"] == 0

    listed = await authed_client.get(base)
    assert [c["name"] for c in listed.json()] == ["Q2"]


@pytest.mark.asyncio
async def test_unknown_campaign(authed_client: AsyncClient, project):
    response = await authed_client.post(
        f"/projects/{project['id']}/marketing/leads",
        json={
            "channel": "organic",
            "lead_date": "2026-03-01",
            "campaign_id": "00000000-0000-0000-0000-000000000001",
        },
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Campaign not found"}


@pytest.mark.asyncio
async def test_report_snapshot_metrics(report):
    assert report["is_published"] is False
    assert report["public_token"] is None
    assert report["report_data"] == {
        "total_spend": 500,
        "total_leads": 4,
        "converted_leads": 2,
        "cpl": 125,
        "total_revenue": 1500,
        "roas": 3,
        "conversion_rate": 50,
        "total_clicks": 150,
        "total_impressions": 5000,
        "ctr": 3,
        "channels": [
            {"channel": "google_ads", "spend": 300, "leads": 3, "revenue": 1200, "cpl": 100},
            {"channel": "meta_ads", "spend": 200, "leads": 1, "revenue": 300, "cpl": 200},
        ],
    }


@pytest.mark.asyncio
async def test_report_is_frozen(authed_client: AsyncClient, project, report):
    await authed_client.post(
        f"/projects/{project['id']}/marketing/expenses",
        json={"channel": "google_ads", "amount": 1000, "spend_date": "2026-03-06"},
    )
    fetched = await authed_client.get(f"/marketing/reports/{report['id']}")
    assert fetched.json()["report_data"]["total_spend"] == 500


@pytest.mark.asyncio
async def test_report_date_range(authed_client: AsyncClient, project):
    response = await authed_client.post(
        f"/projects/{project['id']}/marketing/reports",
        json={"title": "Bad", "date_start": "2026-03-31", "date_end": "2026-03-01"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_publish_and_read_publicly(authed_client: AsyncClient, client: AsyncClient, report):
    published = await authed_client.post(f"/marketing/reports/{report['id']}/publish")
    assert published.status_code == 200
    data = published.json()
    assert data["is_published"] is True
    assert data["public_expires_at"] is None
    token = data["public_token"]

    public = await client.get(f"/public/reports/{token}")
    assert public.status_code == 200
    body = public.json()
    assert body["title"] == "March"
    assert body["project_name"] == "Spring Campaign"
    assert body["report_data"]["total_leads"] == 4
    assert "id" not in body
    assert "public_token" not in body

    unpublished = await authed_client.post(f"/marketing/reports/{report['id']}/unpublish")
    assert unpublished.json()["is_published"] is False
    hidden = await client.get(f"/public/reports/{token}")
    assert hidden.status_code == 404
    assert hidden.json() == {"error": "Report not found"}

    republished = await authed_client.post(f"/marketing/reports/{report['id']}/publish")
    assert republished.json()["public_token"] == token
    assert (await client.get(f"/public/reports/{token}")).status_code == 200


@pytest.mark.asyncio
async def test_publish_with_ttl(authed_client: AsyncClient, report, monkeypatch):
    monkeypatch.setattr(settings, "PUBLIC_REPORT_TTL_DAYS", 7)
    data = (await authed_client.post(f"/marketing/reports/{report['id']}/publish")).json()
    assert data["public_expires_at"] is not None


@pytest.mark.asyncio
async def test_expired_link_is_gone(authed_client: AsyncClient, client: AsyncClient, report, db):
    token = (await authed_client.post(f"/marketing/reports/{report['id']}/publish")).json()[
        "public_token"
    ]
    row = db.query(MarketingReport).filter(MarketingReport.public_token == token).one()
    row.public_expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()

    response = await client.get(f"/public/reports/{token}")
    assert response.status_code == 410
    assert response.json() == {"error": "Report link has expired"}


@pytest.mark.asyncio
async def test_unknown_token(client: AsyncClient):
    response = await client.get("/public/reports/not-a-token")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_reports_scoped_to_org(
    client: AsyncClient, report, db, make_user, headers_for
):
    other_org = Organization(name="Elsewhere", slug="elsewhere")
    db.add(other_org)
    db.commit()
    outsider = make_user(Role.ADMIN, org=other_org)

    response = await client.get(f"/marketing/reports/{report['id']}", headers=headers_for(outsider))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_report(authed_client: AsyncClient, project, report):
    response = await authed_client.delete(f"/marketing/reports/{report['id']}")
    assert response.status_code == 204
    listed = await authed_client.get(f"/projects/{project['id']}/marketing/reports")
    assert listed.json() == []
