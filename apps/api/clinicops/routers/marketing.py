"""Marketing router - spend/lead logging and report snapshots."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.schemas.auth import UserSession
from clinicops.schemas.marketing import (
    CampaignCreate,
    CampaignRead,
    ExpenseCreate,
    ExpenseRead,
    LeadCreate,
    LeadRead,
    ReportCreate,
    ReportRead,
)
from clinicops.services import marketing_service, project_service

router = APIRouter(tags=["marketing"])


@router.get("/projects/{project_id}/marketing/campaigns", response_model=list[CampaignRead])
def list_campaigns(
    project_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    project = project_service.get_project_or_404(db, session.org_id, project_id)
    return marketing_service.list_campaigns(db, project)


@router.post(
    "/projects/{project_id}/marketing/campaigns", response_model=CampaignRead, status_code=201
)
def create_campaign(
    project_id: UUID,
    data: CampaignCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    project = project_service.get_project_or_404(db, session.org_id, project_id)
    return marketing_service.create_campaign(db, project, data)


@router.get("/projects/{project_id}/marketing/expenses", response_model=list[ExpenseRead])
def list_expenses(
    project_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    project = project_service.get_project_or_404(db, session.org_id, project_id)
    return marketing_service.list_expenses(db, project)


@router.post(
    "/projects/{project_id}/marketing/expenses", response_model=ExpenseRead, status_code=201
)
def create_expense(
    project_id: UUID,
    data: ExpenseCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    project = project_service.get_project_or_404(db, session.org_id, project_id)
    return marketing_service.create_expense(db, project, data)


@router.get("/projects/{project_id}/marketing/leads", response_model=list[LeadRead])
def list_leads(
    project_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    project = project_service.get_project_or_404(db, session.org_id, project_id)
    return marketing_service.list_leads(db, project)


@router.post("/projects/{project_id}/marketing/leads", response_model=LeadRead, status_code=201)
def create_lead(
    project_id: UUID,
    data: LeadCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    project = project_service.get_project_or_404(db, session.org_id, project_id)
    return marketing_service.create_lead(db, project, data)


# =============================================================================
# Reports
# =============================================================================

@router.get("/projects/{project_id}/marketing/reports", response_model=list[ReportRead])
def list_reports(
    project_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    project = project_service.get_project_or_404(db, session.org_id, project_id)
    return marketing_service.list_reports(db, project)


@router.post(
    "/projects/{project_id}/marketing/reports", response_model=ReportRead, status_code=201
)
def create_report(
    project_id: UUID,
    data: ReportCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Snapshot spend, lead, and revenue metrics for the date range."""
    project = project_service.get_project_or_404(db, session.org_id, project_id)
    return marketing_service.create_report(db, project, session.user_id, data)


@router.get("/marketing/reports/{report_id}", response_model=ReportRead)
def get_report(
    report_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return marketing_service.get_report_or_404(db, session.org_id, report_id)


@router.delete("/marketing/reports/{report_id}", status_code=204)
def delete_report(
    report_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    report = marketing_service.get_report_or_404(db, session.org_id, report_id)
    marketing_service.delete_report(db, report)


@router.post("/marketing/reports/{report_id}/publish", response_model=ReportRead)
def publish_report(
    report_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    report = marketing_service.get_report_or_404(db, session.org_id, report_id)
    return marketing_service.publish_report(db, report)


@router.post("/marketing/reports/{report_id}/unpublish", response_model=ReportRead)
def unpublish_report(
    report_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    report = marketing_service.get_report_or_404(db, session.org_id, report_id)
    return marketing_service.unpublish_report(db, report)
