"""
Marketing service - spend and lead logging plus report snapshots.

A report freezes the metrics for its date range at creation time; later
expense or lead edits do not change an existing report.
"""

import logging
import secrets
from collections import defaultdict
from datetime import timedelta
from typing import Any
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from clinicops.core.config import settings
from clinicops.db.base import as_utc, utcnow
from clinicops.db.models import (
    MarketingCampaign,
    MarketingExpenseLog,
    MarketingLead,
    MarketingReport,
    Project,
)
from clinicops.schemas.marketing import (
    CampaignCreate,
    ExpenseCreate,
    LeadCreate,
    PublicReport,
    ReportCreate,
)

logger = logging.getLogger(__name__)

PUBLIC_TOKEN_BYTES = 24


def _ratio(numerator: float, denominator: float, scale: float = 1) -> float:
    """numerator / denominator * scale, 0 for a zero denominator, rounded to 2 dp."""
    if not denominator:
        return 0
    return round(numerator / denominator * scale, 2)


def _require_campaign(db: Session, project: Project, campaign_id: UUID | None) -> None:
    if not campaign_id:
        return
    exists = (
        db.query(MarketingCampaign.id)
        .filter(MarketingCampaign.id == campaign_id, MarketingCampaign.project_id == project.id)
        .first()
    )
    if not exists:
        raise HTTPException(status_code=404, detail="Campaign not found")


# =============================================================================
# Inputs
# =============================================================================

def list_campaigns(db: Session, project: Project) -> list[MarketingCampaign]:
    return (
        db.query(MarketingCampaign)
        .filter(MarketingCampaign.project_id == project.id)
        .order_by(MarketingCampaign.created_at.desc())
        .all()
    )


def create_campaign(db: Session, project: Project, data: CampaignCreate) -> MarketingCampaign:
    if data.start_date and data.end_date and data.end_date < data.start_date:
        raise HTTPException(status_code=400, detail="End date must be on or after start date")
    campaign = MarketingCampaign(
        organization_id=project.organization_id,
        project_id=project.id,
        name=data.name,
        channel=data.channel.value,
        budget=data.budget,
        start_date=data.start_date,
        end_date=data.end_date,
    )
    db.add(campaign)
    db.commit()
    db.refresh(campaign)
    return campaign


def list_expenses(db: Session, project: Project) -> list[MarketingExpenseLog]:
    return (
        db.query(MarketingExpenseLog)
        .filter(MarketingExpenseLog.project_id == project.id)
        .order_by(MarketingExpenseLog.spend_date.desc())
        .all()
    )


def create_expense(db: Session, project: Project, data: ExpenseCreate) -> MarketingExpenseLog:
    _require_campaign(db, project, data.campaign_id)
    expense = MarketingExpenseLog(
        organization_id=project.organization_id,
        project_id=project.id,
        campaign_id=data.campaign_id,
        channel=data.channel.value,
        amount=data.amount,
        spend_date=data.spend_date,
        clicks=data.clicks,
        impressions=data.impressions,
        notes=data.notes,
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


def list_leads(db: Session, project: Project) -> list[MarketingLead]:
    return (
        db.query(MarketingLead)
        .filter(MarketingLead.project_id == project.id)
        .order_by(MarketingLead.lead_date.desc())
        .all()
    )


def create_lead(db: Session, project: Project, data: LeadCreate) -> MarketingLead:
    _require_campaign(db, project, data.campaign_id)
    lead = MarketingLead(
        organization_id=project.organization_id,
        project_id=project.id,
        campaign_id=data.campaign_id,
        channel=data.channel.value,
        lead_date=data.lead_date,
        name=data.name,
        converted=data.converted,
        revenue=data.revenue,
    )
    db.add(lead)
    db.commit()
    db.refresh(lead)
    return lead


# =============================================================================
# Reports
# =============================================================================

def compute_report_data(
    expenses: list[MarketingExpenseLog], leads: list[MarketingLead]
) -> dict[str, Any]:
    """Totals and the per-channel breakdown for one set of expenses and leads."""
    total_spend = round(sum(float(e.amount or 0) for e in expenses), 2)
    total_clicks = sum(e.clicks or 0 for e in expenses)
    total_impressions = sum(e.impressions or 0 for e in expenses)
    total_leads = len(leads)
    converted_leads = sum(1 for lead in leads if lead.converted)
    total_revenue = round(sum(float(lead.revenue or 0) for lead in leads), 2)

    per_channel: dict[str, dict[str, float]] = defaultdict(
        lambda: {"spend": 0.0, "leads": 0, "revenue": 0.0}
    )
    for expense in expenses:
        per_channel[expense.channel]["spend"] += float(expense.amount or 0)
    for lead in leads:
        per_channel[lead.channel]["leads"] += 1
        per_channel[lead.channel]["revenue"] += float(lead.revenue or 0)

    channels = [
        {
            "channel": channel,
            "spend": round(values["spend"], 2),
            "leads": int(values["leads"]),
            "revenue": round(values["revenue"], 2),
            "cpl": _ratio(values["spend"], values["leads"]),
        }
        for channel, values in sorted(per_channel.items())
    ]

    return {
        "total_spend": total_spend,
        "total_leads": total_leads,
        "converted_leads": converted_leads,
        "cpl": _ratio(total_spend, total_leads),
        "total_revenue": total_revenue,
        "roas": _ratio(total_revenue, total_spend),
        "conversion_rate": _ratio(converted_leads, total_leads, 100),
        "total_clicks": total_clicks,
        "total_impressions": total_impressions,
        "ctr": _ratio(total_clicks, total_impressions, 100),
        "channels": channels,
    }


def list_reports(db: Session, project: Project) -> list[MarketingReport]:
    return (
        db.query(MarketingReport)
        .filter(MarketingReport.project_id == project.id)
        .order_by(MarketingReport.created_at.desc())
        .all()
    )


def get_report_or_404(db: Session, org_id: UUID, report_id: UUID) -> MarketingReport:
    report = (
        db.query(MarketingReport)
        .filter(MarketingReport.id == report_id, MarketingReport.organization_id == org_id)
        .first()
    )
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


def create_report(
    db: Session, project: Project, user_id: UUID, data: ReportCreate
) -> MarketingReport:
    """
    Snapshot metrics for [date_start, date_end].

    Raises:
        HTTPException 400: date_end before date_start
    """
    if data.date_end < data.date_start:
        raise HTTPException(status_code=400, detail="End date must be on or after start date")

    expenses = (
        db.query(MarketingExpenseLog)
        .filter(
            MarketingExpenseLog.project_id == project.id,
            MarketingExpenseLog.spend_date >= data.date_start,
            MarketingExpenseLog.spend_date <= data.date_end,
        )
        .all()
    )
    leads = (
        db.query(MarketingLead)
        .filter(
            MarketingLead.project_id == project.id,
            MarketingLead.lead_date >= data.date_start,
            MarketingLead.lead_date <= data.date_end,
        )
        .all()
    )

    report = MarketingReport(
        organization_id=project.organization_id,
        project_id=project.id,
        title=data.title,
        date_start=data.date_start,
        date_end=data.date_end,
        report_data=compute_report_data(expenses, leads),
        created_by_user_id=user_id,
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    return report


def delete_report(db: Session, report: MarketingReport) -> None:
    db.delete(report)
    db.commit()


def publish_report(db: Session, report: MarketingReport) -> MarketingReport:
    """
    Make the report readable at /public/reports/{token}.

    An existing token is reused so shared links survive unpublish/republish.
    """
    now = utcnow()
    if not report.public_token:
        report.public_token = secrets.token_urlsafe(PUBLIC_TOKEN_BYTES)
    report.is_published = True
    report.published_at = now
    ttl_days = settings.PUBLIC_REPORT_TTL_DAYS
    report.public_expires_at = now + timedelta(days=ttl_days) if ttl_days > 0 else None
    db.commit()
    db.refresh(report)
    logger.info("Marketing report published", extra={"report_id": str(report.id)})
    return report


def unpublish_report(db: Session, report: MarketingReport) -> MarketingReport:
    report.is_published = False
    db.commit()
    db.refresh(report)
    return report


def get_public_report(db: Session, token: str) -> PublicReport:
    """
    Raises:
        HTTPException 404: Unknown or unpublished token
        HTTPException 410: Link past its expiry
    """
    report = (
        db.query(MarketingReport)
        .filter(MarketingReport.public_token == token, MarketingReport.is_published.is_(True))
        .first()
    )
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    expires_at = as_utc(report.public_expires_at)
    if expires_at is not None and expires_at <= utcnow():
        raise HTTPException(status_code=410, detail="Report link has expired")

    project = db.query(Project).filter(Project.id == report.project_id).first()
    return PublicReport(
        title=report.title,
        project_name=project.name if project else None,
        date_start=report.date_start,
        date_end=report.date_end,
        report_data=report.report_data or {},
        published_at=report.published_at,
    )
