"""Pydantic schemas for workflow automation."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from clinicops.db.enums import WorkflowActionType, WorkflowTriggerType


class WorkflowActionIn(BaseModel):
    action_type: WorkflowActionType
    config: dict[str, Any] = Field(default_factory=dict)
    sort_order: int = 0


class WorkflowActionRead(BaseModel):
    id: UUID
    action_type: WorkflowActionType
    config: dict[str, Any]
    sort_order: int

    model_config = {"from_attributes": True}


class WorkflowCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    trigger_type: WorkflowTriggerType = WorkflowTriggerType.DEAL_STAGE_CHANGED
    active: bool = True
    config: dict[str, Any] = Field(
        default_factory=dict,
        description="Filters: to_stage_id, from_stage_id, pipeline",
    )
    actions: list[WorkflowActionIn] = Field(default_factory=list)


class WorkflowUpdate(BaseModel):
    """Partial update. When `actions` is sent it replaces the whole list."""
    name: str | None = Field(None, min_length=1, max_length=150)
    active: bool | None = None
    config: dict[str, Any] | None = None
    actions: list[WorkflowActionIn] | None = None


class WorkflowRead(BaseModel):
    id: UUID
    name: str
    trigger_type: WorkflowTriggerType
    active: bool
    config: dict[str, Any]
    actions: list[WorkflowActionRead]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Triggers
# =============================================================================

class DealStageChangedEvent(BaseModel):
    deal_id: UUID
    patient_id: UUID
    to_stage_id: UUID
    from_stage_id: UUID | None = None
    pipeline: str | None = None


class WorkflowRunResult(BaseModel):
    ok: bool = True
    workflows: int = 0
    actions_run: int = 0


# =============================================================================
# Email tooling
# =============================================================================

class SendTestEmailRequest(BaseModel):
    to: EmailStr
    subject_template: str | None = None
    body_template: str | None = None
    body_html_template: str | None = None
    use_html: bool = False


class SendTestEmailResponse(BaseModel):
    ok: bool = True
    email_id: UUID
    subject: str
    html: str


class GenerateEmailRequest(BaseModel):
    description: str = Field(..., max_length=2000)
    tone: str | None = Field(None, max_length=100)
    variables: list[str] = Field(default_factory=list)


class GenerateEmailResponse(BaseModel):
    subject: str
    html: str
