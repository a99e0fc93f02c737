"""Support service - widget tickets and their conversation."""

import logging
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from clinicops.core.deps import can_manage_support
from clinicops.db.base import utcnow
from clinicops.db.enums import SupportTicketStatus
from clinicops.db.models import SupportMessage, SupportTicket
from clinicops.schemas.auth import UserSession

logger = logging.getLogger(__name__)

SUBJECT_MAX_LENGTH = 100


def _require_text(value: str, detail: str) -> str:
    text = (value or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail=detail)
    return text


def create_ticket(db: Session, session: UserSession, message: str) -> SupportTicket:
    """Open a ticket; the first message doubles as the subject."""
    content = _require_text(message, "Message is required")
    ticket = SupportTicket(
        organization_id=session.org_id,
        user_id=session.user_id,
        user_email=session.email,
        user_name=session.display_name,
        subject=content[:SUBJECT_MAX_LENGTH],
        status=SupportTicketStatus.OPEN.value,
    )
    ticket.messages.append(
        SupportMessage(
            content=content,
            is_from_support=False,
            sender_email=session.email,
            sender_name=session.display_name,
        )
    )
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    logger.info("Support ticket opened", extra={"ticket_id": str(ticket.id)})
    return ticket


def list_tickets(
    db: Session, session: UserSession, status: SupportTicketStatus | None = None
) -> list[SupportTicket]:
    query = db.query(SupportTicket).filter(SupportTicket.organization_id == session.org_id)
    if not can_manage_support(session):
        query = query.filter(SupportTicket.user_id == session.user_id)
    if status:
        query = query.filter(SupportTicket.status == status.value)
    return query.order_by(SupportTicket.updated_at.desc()).all()


def get_ticket_for_session(db: Session, session: UserSession, ticket_id: UUID) -> SupportTicket:
    """
    Raises:
        HTTPException 404: Ticket not in org
        HTTPException 403: Neither owner nor support admin
    """
    ticket = (
        db.query(SupportTicket)
        .filter(SupportTicket.id == ticket_id, SupportTicket.organization_id == session.org_id)
        .first()
    )
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    if ticket.user_id != session.user_id and not can_manage_support(session):
        raise HTTPException(status_code=403, detail="Access denied")
    return ticket


def open_ticket(db: Session, session: UserSession, ticket_id: UUID) -> SupportTicket:
    """Fetch a ticket; an admin viewing an open ticket picks it up."""
    ticket = get_ticket_for_session(db, session, ticket_id)
    if can_manage_support(session) and ticket.status == SupportTicketStatus.OPEN.value:
        ticket.status = SupportTicketStatus.IN_PROGRESS.value
        db.commit()
        db.refresh(ticket)
    return ticket


def add_message(
    db: Session, session: UserSession, ticket: SupportTicket, content: str
) -> SupportMessage:
    text = _require_text(content, "Content is required")
    if ticket.status == SupportTicketStatus.CLOSED.value:
        raise HTTPException(status_code=400, detail="Ticket is closed")

    from_support = can_manage_support(session) and ticket.user_id != session.user_id
    message = SupportMessage(
        ticket_id=ticket.id,
        content=text,
        is_from_support=from_support,
        sender_email=session.email,
        sender_name=session.display_name,
    )
    db.add(message)
    ticket.updated_at = utcnow()
    db.commit()
    db.refresh(message)
    return message


def set_status(db: Session, ticket: SupportTicket, status: SupportTicketStatus) -> SupportTicket:
    ticket.status = status.value
    if status == SupportTicketStatus.RESOLVED:
        ticket.resolved_at = utcnow()
    db.commit()
    db.refresh(ticket)
    return ticket
