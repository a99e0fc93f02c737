"""Emails router - direct sends, the email log, and the Mailgun inbound webhook."""

import json
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.schemas.auth import UserSession
from clinicops.schemas.email import EmailRead, EmailSendRequest, InboundEmailAck
from clinicops.services import deal_service, email_service, patient_service

router = APIRouter(prefix="/emails", tags=["emails"])
logger = logging.getLogger(__name__)


@router.post("/send", response_model=EmailRead)
def send_email(
    data: EmailSendRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Send one email through Mailgun and log it.

    503 when Mailgun is not configured, 502 when the provider rejects it.
    """
    to_email = data.to.strip()
    subject = data.subject.strip()
    html = data.html.strip()
    if not to_email or not subject or not html:
        raise HTTPException(status_code=400, detail="to, subject, and html are required")

    if data.patient_id:
        patient_service.get_patient_or_404(db, session.org_id, data.patient_id)
    if data.deal_id:
        deal_service.get_deal_or_404(db, session.org_id, data.deal_id)

    return email_service.send_email(
        db,
        org_id=session.org_id,
        to_email=to_email,
        subject=subject,
        html=html,
        patient_id=data.patient_id,
        deal_id=data.deal_id,
    )


@router.get("", response_model=list[EmailRead])
def list_emails(
    patient_id: UUID | None = Query(None),
    deal_id: UUID | None = Query(None),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return email_service.list_emails(db, session.org_id, patient_id=patient_id, deal_id=deal_id)


@router.post("/inbound/mailgun", response_model=InboundEmailAck)
async def receive_mailgun_inbound(
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Mailgun routes webhook for patient replies.

    Accepts form-encoded (Mailgun default) or JSON bodies. The signature is
    checked when MAILGUN_WEBHOOK_SIGNING_KEY is set.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="Invalid JSON")
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid payload")
        fields = {k: v for k, v in payload.items() if isinstance(v, str)}
        signature = payload.get("signature")
        if isinstance(signature, dict):
            fields.update({k: str(v) for k, v in signature.items()})
    else:
        form = await request.form()
        fields = {k: v for k, v in form.items() if isinstance(v, str)}

    if not email_service.verify_webhook_signature(
        fields.get("timestamp"), fields.get("token"), fields.get("signature")
    ):
        logger.warning("Mailgun inbound signature mismatch")
        raise HTTPException(status_code=403, detail="Invalid signature")

    email_log = email_service.record_inbound_email(db, fields)
    return InboundEmailAck(ok=True, email_id=email_log.id)
