"""Pydantic schemas for marketing spend, leads, and reports."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from clinicops.db.enums import MarketingChannel


class CampaignCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    channel: MarketingChannel
    budget: float | None = Field(None, ge=0)
    start_date: date | None = None
    end_date: date | None = None


class CampaignRead(BaseModel):
    id: UUID
    project_id: UUID
    name: str
    channel: MarketingChannel
    budget: float | None
    start_date: date | None
    end_date: date | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ExpenseCreate(BaseModel):
    channel: MarketingChannel
    amount: float = Field(..., ge=0)
    spend_date: date
    campaign_id: UUID | None = None
    clicks: int = Field(0, ge=0)
    impressions: int = Field(0, ge=0)
    notes: str | None = None


class ExpenseRead(BaseModel):
    id: UUID
    project_id: UUID
    campaign_id: UUID | None
    channel: MarketingChannel
    amount: float
    spend_date: date
    clicks: int
    impressions: int
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class LeadCreate(BaseModel):
    channel: MarketingChannel
    lead_date: date
    campaign_id: UUID | None = None
    name: str | None = Field(None, max_length=255)
    converted: bool = False
    revenue: float = Field(0, ge=0)


class LeadRead(BaseModel):
    id: UUID
    project_id: UUID
    campaign_id: UUID | None
    channel: MarketingChannel
    lead_date: date
    name: str | None
    converted: bool
    revenue: float
    created_at: datetime

    model_config = {"from_attributes": True}


class ReportCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    date_start: date
    date_end: date


class ReportRead(BaseModel):
    id: UUID
    project_id: UUID
    title: str
    date_start: date
    date_end: date
    report_data: dict[str, Any]
    is_published: bool
    public_token: str | None
    public_expires_at: datetime | None
    published_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class PublicReport(BaseModel):
    """What anonymous viewers of a shared link get. No internal ids."""
    title: str
    project_name: str | None
    date_start: date
    date_end: date
    report_data: dict[str, Any]
    published_at: datetime | None
