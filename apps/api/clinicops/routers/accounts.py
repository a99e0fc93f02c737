"""Accounts router - retainer clients, ad-hoc requirements, and SOA export."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.db.enums import ClientCategory, StatementFormat
from clinicops.schemas.account import (
    AccountClientCreate,
    AccountClientRead,
    AccountClientUpdate,
    AdhocCreate,
    AdhocRead,
    AdhocUpdate,
    StatementRead,
)
from clinicops.schemas.auth import UserSession
from clinicops.services import account_service, pdf_service, user_service

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("/clients", response_model=list[AccountClientRead])
def list_clients(
    search: str | None = Query(None, max_length=100),
    category: ClientCategory | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return account_service.list_clients(
        db, session.org_id, search=search, category=category.value if category else None
    )


@router.post("/clients", response_model=AccountClientRead, status_code=201)
def create_client(
    data: AccountClientCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return account_service.create_client(db, session.org_id, session.user_id, data)


@router.get("/clients/{client_id}", response_model=AccountClientRead)
def get_client(
    client_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return account_service.get_client_or_404(db, session.org_id, client_id)


@router.patch("/clients/{client_id}", response_model=AccountClientRead)
def update_client(
    client_id: UUID,
    data: AccountClientUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    client = account_service.get_client_or_404(db, session.org_id, client_id)
    return account_service.update_client(db, client, data)


@router.delete("/clients/{client_id}", status_code=204)
def delete_client(
    client_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    client = account_service.get_client_or_404(db, session.org_id, client_id)
    account_service.delete_client(db, client)


# =============================================================================
# Ad-hoc requirements
# =============================================================================

@router.get("/clients/{client_id}/adhoc", response_model=list[AdhocRead])
def list_adhoc(
    client_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    client = account_service.get_client_or_404(db, session.org_id, client_id)
    return account_service.list_adhoc(db, client)


@router.post("/clients/{client_id}/adhoc", response_model=AdhocRead, status_code=201)
def create_adhoc(
    client_id: UUID,
    data: AdhocCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    client = account_service.get_client_or_404(db, session.org_id, client_id)
    return account_service.create_adhoc(db, client, session.user_id, data)


@router.patch("/adhoc/{adhoc_id}", response_model=AdhocRead)
def update_adhoc(
    adhoc_id: UUID,
    data: AdhocUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    adhoc = account_service.get_adhoc_or_404(db, session.org_id, adhoc_id)
    return account_service.update_adhoc(db, adhoc, data)


@router.delete("/adhoc/{adhoc_id}", status_code=204)
def delete_adhoc(
    adhoc_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    adhoc = account_service.get_adhoc_or_404(db, session.org_id, adhoc_id)
    account_service.delete_adhoc(db, adhoc)


# =============================================================================
# Statement of account
# =============================================================================

@router.get("/clients/{client_id}/soa", response_model=StatementRead)
def export_statement(
    client_id: UUID,
    export_format: StatementFormat = Query(StatementFormat.CSV, alias="format"),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Statement of account for the current month.

    csv (default) and pdf download as attachments; json returns the
    statement body.
    """
    client = account_service.get_client_or_404(db, session.org_id, client_id)
    statement = account_service.build_statement(db, client)

    if export_format == StatementFormat.JSON:
        return statement

    if export_format == StatementFormat.PDF:
        org = user_service.get_organization(db, session.org_id)
        content = pdf_service.create_statement_pdf(
            statement, org_name=org.name if org else "Organization"
        )
        media_type = "application/pdf"
    else:
        content = account_service.statement_csv(statement)
        media_type = "text/csv"

    filename = account_service.statement_filename(statement, export_format.value)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
