"""Projects router - projects and their invoices/quotes."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.schemas.auth import UserSession
from clinicops.schemas.project import (
    InvoiceCreate,
    InvoiceRead,
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
)
from clinicops.services import project_service

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=list[ProjectRead])
def list_projects(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return project_service.list_projects(db, session.org_id)


@router.post("", response_model=ProjectRead, status_code=201)
def create_project(
    data: ProjectCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return project_service.create_project(db, session.org_id, session.user_id, data)


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(
    project_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return project_service.get_project_or_404(db, session.org_id, project_id)


@router.patch("/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    project = project_service.get_project_or_404(db, session.org_id, project_id)
    return project_service.update_project(db, project, data)


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    project = project_service.get_project_or_404(db, session.org_id, project_id)
    project_service.delete_project(db, project)


@router.get("/{project_id}/invoices", response_model=list[InvoiceRead])
def list_project_invoices(
    project_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    project = project_service.get_project_or_404(db, session.org_id, project_id)
    return project_service.list_invoices(db, session.org_id, project.id)


@router.post("/{project_id}/invoices", response_model=InvoiceRead, status_code=201)
def create_project_invoice(
    project_id: UUID,
    data: InvoiceCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Create an invoice or quote. Numbers are assigned per org and type."""
    project = project_service.get_project_or_404(db, session.org_id, project_id)
    return project_service.create_invoice(db, project, data)
