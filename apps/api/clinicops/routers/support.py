"""Support router - in-app help widget tickets."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db, require_roles
from clinicops.db.enums import ROLES_CAN_MANAGE_SUPPORT, SupportTicketStatus
from clinicops.schemas.auth import UserSession
from clinicops.schemas.support import (
    SupportMessageCreate,
    SupportMessageRead,
    TicketCreate,
    TicketDetail,
    TicketRead,
    TicketStatusUpdate,
)
from clinicops.services import support_service

router = APIRouter(prefix="/support/tickets", tags=["support"])


@router.post("", response_model=TicketDetail, status_code=201)
def create_ticket(
    data: TicketCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return support_service.create_ticket(db, session, data.message)


@router.get("", response_model=list[TicketRead])
def list_tickets(
    status: SupportTicketStatus | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Own tickets, or every ticket in the org for support admins."""
    return support_service.list_tickets(db, session, status)


@router.get("/{ticket_id}", response_model=TicketDetail)
def get_ticket(
    ticket_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return support_service.open_ticket(db, session, ticket_id)


@router.post("/{ticket_id}/messages", response_model=SupportMessageRead, status_code=201)
def post_message(
    ticket_id: UUID,
    data: SupportMessageCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    ticket = support_service.get_ticket_for_session(db, session, ticket_id)
    return support_service.add_message(db, session, ticket, data.content)


@router.patch("/{ticket_id}", response_model=TicketRead)
def update_ticket_status(
    ticket_id: UUID,
    data: TicketStatusUpdate,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE_SUPPORT)),
    db: Session = Depends(get_db),
):
    ticket = support_service.get_ticket_for_session(db, session, ticket_id)
    return support_service.set_status(db, ticket, data.status)
