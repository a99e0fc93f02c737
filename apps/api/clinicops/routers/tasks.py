"""Tasks router."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.db.enums import TaskStatus
from clinicops.schemas.auth import UserSession
from clinicops.schemas.task import TaskCreate, TaskRead, TaskStats, TaskUpdate
from clinicops.services import task_service

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskRead])
def list_tasks(
    assigned_user_id: UUID | None = Query(None),
    status: TaskStatus | None = Query(None),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return task_service.list_tasks(
        db, session.org_id, assigned_user_id=assigned_user_id, status=status
    )


@router.get("/stats", response_model=TaskStats)
def get_task_stats(
    user_id: UUID | None = Query(None, description="Defaults to the caller"),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return task_service.get_task_stats(db, session.org_id, user_id or session.user_id)


@router.post("", response_model=TaskRead, status_code=201)
def create_task(
    data: TaskCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return task_service.create_task(db, session.org_id, session.user_id, data)


@router.patch("/{task_id}", response_model=TaskRead)
def update_task(
    task_id: UUID,
    data: TaskUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    task = task_service.get_task_or_404(db, session.org_id, task_id)
    return task_service.update_task(db, session.org_id, task, data)


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    task = task_service.get_task_or_404(db, session.org_id, task_id)
    task_service.delete_task(db, task)
