"""
Email logging and delivery through Mailgun.

Every send writes an `emails` row first; that row's id becomes the reply
routing address (reply+{id}@domain) so inbound replies can be linked back
to the patient and deal.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any
from uuid import UUID

import httpx
from fastapi import HTTPException
from sqlalchemy.orm import Session

from clinicops.core.async_utils import run_async
from clinicops.core.config import settings
from clinicops.db.base import as_utc, utcnow
from clinicops.db.enums import EmailDirection, EmailStatus
from clinicops.db.models import EmailLog
from clinicops.services.http_service import request_with_retries
from clinicops.services.template_service import text_to_html

logger = logging.getLogger(__name__)

MAILGUN_TIMEOUT_SECONDS = 20.0
MAILGUN_MAX_ATTEMPTS = 3
REPLY_PREFIX = "reply+"
EMAIL_ADDRESS_PATTERN = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)


def reply_to_address(email_id: UUID) -> str:
    return f"{REPLY_PREFIX}{email_id}@{settings.MAILGUN_DOMAIN}"


async def _send_mailgun_email(
    *,
    to_email: str,
    subject: str,
    html: str,
    reply_to: str | None = None,
    deliver_at: datetime | None = None,
) -> dict[str, Any]:
    """POST one message to Mailgun. Never raises; returns success/error."""
    if not settings.mailgun_configured:
        return {"success": False, "error": "Email provider not configured"}

    data: dict[str, str] = {
        "from": settings.mailgun_from,
        "to": to_email,
        "subject": subject,
        "html": html,
    }
    if reply_to:
        data["h:Reply-To"] = reply_to
    if deliver_at and deliver_at > utcnow():
        data["o:deliverytime"] = format_datetime(deliver_at.astimezone(timezone.utc), usegmt=True)

    url = f"{settings.MAILGUN_BASE_URL.rstrip('/')}/v3/{settings.MAILGUN_DOMAIN}/messages"
    try:
        async with httpx.AsyncClient(timeout=MAILGUN_TIMEOUT_SECONDS) as client:

            async def request_fn() -> httpx.Response:
                return await client.post(url, auth=("api", settings.MAILGUN_API_KEY), data=data)

            response = await request_with_retries(
                request_fn, label="mailgun", max_attempts=MAILGUN_MAX_ATTEMPTS
            )
    except httpx.HTTPError as exc:
        return {"success": False, "error": f"Mailgun request failed: {exc}"}

    if 200 <= response.status_code < 300:
        message_id = None
        try:
            message_id = response.json().get("id")
        except ValueError:
            pass
        return {"success": True, "message_id": message_id}

    return {"success": False, "error": f"Mailgun API error: {response.status_code}"}


def log_outbound_email(
    db: Session,
    *,
    org_id: UUID | None,
    to_email: str,
    subject: str,
    html: str,
    patient_id: UUID | None = None,
    deal_id: UUID | None = None,
    scheduled_at: datetime | None = None,
) -> EmailLog:
    """Insert the outbound row. Future sends are 'queued', others 'sent'."""
    send_at = scheduled_at or utcnow()
    status = EmailStatus.QUEUED if send_at > utcnow() else EmailStatus.SENT
    email_log = EmailLog(
        organization_id=org_id,
        patient_id=patient_id,
        deal_id=deal_id,
        to_address=to_email,
        from_address=settings.mailgun_from if settings.MAILGUN_DOMAIN else None,
        subject=subject,
        body=html,
        status=status.value,
        direction=EmailDirection.OUTBOUND.value,
        sent_at=send_at,
    )
    db.add(email_log)
    db.commit()
    db.refresh(email_log)
    return email_log


def dispatch_email(db: Session, email_log: EmailLog) -> dict[str, Any]:
    """
    Hand a logged email to Mailgun and record the outcome on the row.
    
    Failures are recorded and returned, not raised.
    """
    result = run_async(
        _send_mailgun_email(
            to_email=email_log.to_address,
            subject=email_log.subject,
            html=email_log.body,
            reply_to=reply_to_address(email_log.id),
            deliver_at=as_utc(email_log.sent_at),
        )
    )
    if result.get("success"):
        email_log.provider_message_id = result.get("message_id")
    else:
        email_log.status = EmailStatus.FAILED.value
        email_log.error = result.get("error")
        logger.warning(
            "Email send failed",
            extra={"email_id": str(email_log.id), "error": result.get("error")},
        )
    db.commit()
    return result


def send_email(
    db: Session,
    *,
    org_id: UUID,
    to_email: str,
    subject: str,
    html: str,
    patient_id: UUID | None = None,
    deal_id: UUID | None = None,
) -> EmailLog:
    """
    Send an email now, surfacing provider problems to the caller.
    
    Raises:
        HTTPException 503: Mailgun not configured
        HTTPException 502: Mailgun rejected the send
    """
    if not settings.mailgun_configured:
        raise HTTPException(status_code=503, detail="Email provider not configured")

    email_log = log_outbound_email(
        db,
        org_id=org_id,
        to_email=to_email,
        subject=subject,
        html=html,
        patient_id=patient_id,
        deal_id=deal_id,
    )
    result = dispatch_email(db, email_log)
    if not result.get("success"):
        raise HTTPException(status_code=502, detail="Failed to send email")
    return email_log


def list_emails(
    db: Session,
    org_id: UUID,
    patient_id: UUID | None = None,
    deal_id: UUID | None = None,
    limit: int = 100,
) -> list[EmailLog]:
    query = db.query(EmailLog).filter(EmailLog.organization_id == org_id)
    if patient_id:
        query = query.filter(EmailLog.patient_id == patient_id)
    if deal_id:
        query = query.filter(EmailLog.deal_id == deal_id)
    return query.order_by(EmailLog.created_at.desc()).limit(limit).all()


# =============================================================================
# Inbound (Mailgun routes webhook)
# =============================================================================

def verify_webhook_signature(timestamp: str | None, token: str | None, signature: str | None) -> bool:
    """
    Check Mailgun's HMAC-SHA256(timestamp + token) signature.
    
    With no signing key configured every request is accepted.
    """
    key = settings.MAILGUN_WEBHOOK_SIGNING_KEY
    if not key:
        return True
    if not (timestamp and token and signature):
        return False
    expected = hmac.new(key.encode(), f"{timestamp}{token}".encode(), hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


def extract_first_email(value: str | None) -> str | None:
    if not value:
        return None
    match = EMAIL_ADDRESS_PATTERN.search(value)
    return match.group(0) if match else None


def _original_email_id(recipient_email: str | None) -> UUID | None:
    if not recipient_email:
        return None
    local_part = recipient_email.split("@")[0]
    if not local_part.startswith(REPLY_PREFIX):
        return None
    try:
        return UUID(local_part[len(REPLY_PREFIX):])
    except ValueError:
        return None


def _parse_timestamp(timestamp: str | None) -> datetime:
    if timestamp:
        try:
            return datetime.fromtimestamp(float(timestamp), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            pass
    return utcnow()


def record_inbound_email(db: Session, fields: dict[str, Any]) -> EmailLog:
    """
    Store an inbound reply, linked to the original outbound email's
    patient/deal/org when the recipient is a reply+{id} address.
    """
    recipient = fields.get("recipient")
    recipient_email = extract_first_email(recipient)

    org_id = patient_id = deal_id = None
    original_id = _original_email_id(recipient_email)
    if original_id:
        original = db.query(EmailLog).filter(EmailLog.id == original_id).first()
        if original:
            org_id = original.organization_id
            patient_id = original.patient_id
            deal_id = original.deal_id

    body_html = fields.get("stripped-html") or fields.get("body-html")
    body_text = fields.get("stripped-text") or fields.get("body-plain")
    if body_html and body_html.strip():
        body = body_html
    elif body_text and body_text.strip():
        body = text_to_html(body_text)
    else:
        body = "<p>(no content)</p>"

    subject = fields.get("subject")
    email_log = EmailLog(
        organization_id=org_id,
        patient_id=patient_id,
        deal_id=deal_id,
        to_address=recipient_email or recipient or "",
        from_address=fields.get("sender"),
        subject=subject if subject and subject.strip() else "(no subject)",
        body=body,
        status=EmailStatus.SENT.value,
        direction=EmailDirection.INBOUND.value,
        sent_at=_parse_timestamp(fields.get("timestamp")),
    )
    db.add(email_log)
    db.commit()
    db.refresh(email_log)
    return email_log
