"""Pydantic schemas for email sending and the email log."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from clinicops.db.enums import EmailDirection, EmailStatus


class EmailSendRequest(BaseModel):
    to: str = Field(..., max_length=320)
    subject: str = Field(..., max_length=998)
    html: str
    patient_id: UUID | None = None
    deal_id: UUID | None = None


class EmailRead(BaseModel):
    id: UUID
    patient_id: UUID | None
    deal_id: UUID | None
    to_address: str
    from_address: str | None
    subject: str
    body: str
    status: EmailStatus
    direction: EmailDirection
    provider_message_id: str | None
    error: str | None
    sent_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class InboundEmailAck(BaseModel):
    ok: bool = True
    email_id: UUID
