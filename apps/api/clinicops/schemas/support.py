"""Pydantic schemas for the support widget."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from clinicops.db.enums import SupportTicketStatus


class TicketCreate(BaseModel):
    message: str = ""


class SupportMessageCreate(BaseModel):
    content: str = ""


class TicketStatusUpdate(BaseModel):
    status: SupportTicketStatus


class SupportMessageRead(BaseModel):
    id: UUID
    content: str
    is_from_support: bool
    sender_email: str | None
    sender_name: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class TicketRead(BaseModel):
    id: UUID
    user_id: UUID | None
    user_email: str
    user_name: str | None
    subject: str
    status: SupportTicketStatus
    resolved_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TicketDetail(TicketRead):
    messages: list[SupportMessageRead] = Field(default_factory=list)
