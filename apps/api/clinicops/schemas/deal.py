"""Pydantic schemas for deals and pipeline stages."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from clinicops.db.enums import DealStageType
from clinicops.schemas.workflow import WorkflowRunResult


class DealStageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    stage_type: DealStageType = DealStageType.OPEN
    sort_order: int = 0
    is_default: bool = False


class DealStageRead(BaseModel):
    id: UUID
    name: str
    stage_type: DealStageType
    sort_order: int
    is_default: bool

    model_config = {"from_attributes": True}


class DealCreate(BaseModel):
    patient_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    stage_id: UUID | None = None
    pipeline: str | None = Field(None, max_length=100)
    service: str | None = Field(None, max_length=150)
    contact_label: str | None = Field(None, max_length=100)
    location: str | None = Field(None, max_length=150)
    value: float | None = Field(None, ge=0)
    notes: str | None = None


class DealUpdate(BaseModel):
    """Partial update. Changing stage_id fires deal_stage_changed workflows."""
    title: str | None = Field(None, min_length=1, max_length=255)
    stage_id: UUID | None = None
    pipeline: str | None = Field(None, max_length=100)
    service: str | None = Field(None, max_length=150)
    contact_label: str | None = Field(None, max_length=100)
    location: str | None = Field(None, max_length=150)
    value: float | None = Field(None, ge=0)
    notes: str | None = None


class DealRead(BaseModel):
    id: UUID
    patient_id: UUID
    stage_id: UUID | None
    stage_name: str | None = None
    title: str
    pipeline: str | None
    service: str | None
    contact_label: str | None
    location: str | None
    value: float | None
    notes: str | None
    created_at: datetime
    updated_at: datetime
    workflow_result: WorkflowRunResult | None = None
