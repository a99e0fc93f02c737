"""Pydantic schemas for leave management."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from clinicops.db.enums import (
    LeaveStatus,
    LeaveType,
    TeamEventPriority,
    TeamEventType,
    WorkloadLevel,
)


class LeaveCreate(BaseModel):
    """Leave request. user_id defaults to the caller."""
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str | None = Field(None, max_length=2000)
    user_id: UUID | None = None


class LeaveReview(BaseModel):
    status: LeaveStatus
    review_notes: str | None = Field(None, max_length=2000)


class LeaveRead(BaseModel):
    id: UUID
    user_id: UUID
    user_name: str | None = None
    leave_type: LeaveType
    start_date: date
    end_date: date
    days_count: float
    reason: str | None
    status: LeaveStatus
    reviewed_by: UUID | None
    reviewed_at: datetime | None
    review_notes: str | None
    created_at: datetime


class BalanceBucket(BaseModel):
    total: float
    used: float
    remaining: float


class LeaveBalance(BaseModel):
    user_id: UUID
    annual: BalanceBucket
    sick: BalanceBucket


class TeamEventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    event_type: TeamEventType
    event_date: date
    priority: TeamEventPriority = TeamEventPriority.MEDIUM


class TeamEventRead(BaseModel):
    id: UUID
    title: str
    description: str | None
    event_type: TeamEventType
    event_date: date
    priority: TeamEventPriority
    created_at: datetime

    model_config = {"from_attributes": True}


class LeaveRecommendation(BaseModel):
    recommendation: str
    workload_level: WorkloadLevel
    pending_tasks: int
    upcoming_events: int
    annual_remaining: float
    sick_remaining: float
