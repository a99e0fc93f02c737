"""Pydantic schemas for tasks."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from clinicops.db.enums import TaskStatus


class TaskCreate(BaseModel):
    """Request to create a task."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    status: TaskStatus = TaskStatus.PENDING
    assigned_user_id: UUID | None = None
    activity_date: date | None = None


class TaskUpdate(BaseModel):
    """Request to update a task (partial)."""
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus | None = None
    assigned_user_id: UUID | None = None
    activity_date: date | None = None


class TaskRead(BaseModel):
    id: UUID
    title: str
    description: str | None
    status: TaskStatus
    assigned_user_id: UUID | None
    created_by_user_id: UUID | None
    activity_date: date | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskStats(BaseModel):
    finished_today: int
    pending: int
    in_progress: int
    overdue: int
