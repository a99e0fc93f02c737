"""Workflow service - CRUD for automation rules and their actions."""

from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from clinicops.db.models import Workflow, WorkflowAction
from clinicops.schemas.workflow import WorkflowActionIn, WorkflowCreate, WorkflowUpdate


def list_workflows(db: Session, org_id: UUID) -> list[Workflow]:
    return (
        db.query(Workflow)
        .filter(Workflow.organization_id == org_id)
        .order_by(Workflow.created_at.desc())
        .all()
    )


def get_workflow_or_404(db: Session, org_id: UUID, workflow_id: UUID) -> Workflow:
    workflow = (
        db.query(Workflow)
        .filter(Workflow.id == workflow_id, Workflow.organization_id == org_id)
        .first()
    )
    if not workflow:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return workflow


def _build_actions(actions: list[WorkflowActionIn]) -> list[WorkflowAction]:
    return [
        WorkflowAction(
            action_type=action.action_type.value,
            config=action.config,
            sort_order=action.sort_order if action.sort_order else index,
        )
        for index, action in enumerate(actions)
    ]


def create_workflow(db: Session, org_id: UUID, data: WorkflowCreate) -> Workflow:
    workflow = Workflow(
        organization_id=org_id,
        name=data.name,
        trigger_type=data.trigger_type.value,
        active=data.active,
        config=data.config,
    )
    workflow.actions = _build_actions(data.actions)
    db.add(workflow)
    db.commit()
    db.refresh(workflow)
    return workflow


def update_workflow(db: Session, workflow: Workflow, data: WorkflowUpdate) -> Workflow:
    update_data = data.model_dump(exclude_unset=True, exclude={"actions"})
    for field, value in update_data.items():
        if value is None:
            continue
        setattr(workflow, field, value)

    if data.actions is not None:
        # delete-orphan removes the old rows
        workflow.actions = _build_actions(data.actions)

    db.commit()
    db.refresh(workflow)
    return workflow


def delete_workflow(db: Session, workflow: Workflow) -> None:
    db.delete(workflow)
    db.commit()
