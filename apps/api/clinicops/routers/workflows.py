"""Workflows router - automation rules, the stage-change trigger, and email tooling."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db, get_trigger_caller, require_roles
from clinicops.db.enums import ROLES_CAN_MANAGE_PIPELINE
from clinicops.schemas.auth import UserSession
from clinicops.schemas.workflow import (
    DealStageChangedEvent,
    GenerateEmailRequest,
    GenerateEmailResponse,
    SendTestEmailRequest,
    SendTestEmailResponse,
    WorkflowCreate,
    WorkflowRead,
    WorkflowRunResult,
    WorkflowUpdate,
)
from clinicops.services import ai_service, workflow_engine, workflow_service

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.post("/deal-stage-changed", response_model=WorkflowRunResult)
def deal_stage_changed(
    event: DealStageChangedEvent,
    caller: UserSession | None = Depends(get_trigger_caller),
    db: Session = Depends(get_db),
):
    """
    Run deal_stage_changed workflows for one stage move.

    Called by internal jobs (X-Internal-Secret) or by a signed-in user.
    """
    org_id = caller.org_id if caller else None
    return workflow_engine.run_deal_stage_changed(db, event, org_id=org_id)


@router.post("/send-test-email", response_model=SendTestEmailResponse)
def send_test_email(
    data: SendTestEmailRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Render a draft against sample data and send it to `to`."""
    return workflow_engine.send_test_email(db, session.org_id, data)


@router.post("/generate-email", response_model=GenerateEmailResponse)
def generate_email(
    data: GenerateEmailRequest,
    session: UserSession = Depends(get_current_session),
):
    return ai_service.generate_email(data)


# =============================================================================
# CRUD
# =============================================================================

@router.get("", response_model=list[WorkflowRead])
def list_workflows(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return workflow_service.list_workflows(db, session.org_id)


@router.post("", response_model=WorkflowRead, status_code=201)
def create_workflow(
    data: WorkflowCreate,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE_PIPELINE)),
    db: Session = Depends(get_db),
):
    return workflow_service.create_workflow(db, session.org_id, data)


@router.get("/{workflow_id}", response_model=WorkflowRead)
def get_workflow(
    workflow_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return workflow_service.get_workflow_or_404(db, session.org_id, workflow_id)


@router.patch("/{workflow_id}", response_model=WorkflowRead)
def update_workflow(
    workflow_id: UUID,
    data: WorkflowUpdate,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE_PIPELINE)),
    db: Session = Depends(get_db),
):
    workflow = workflow_service.get_workflow_or_404(db, session.org_id, workflow_id)
    return workflow_service.update_workflow(db, workflow, data)


@router.delete("/{workflow_id}", status_code=204)
def delete_workflow(
    workflow_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE_PIPELINE)),
    db: Session = Depends(get_db),
):
    workflow = workflow_service.get_workflow_or_404(db, session.org_id, workflow_id)
    workflow_service.delete_workflow(db, workflow)
