"""Task service - business logic for task management."""

from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from clinicops.db.base import utcnow
from clinicops.db.enums import TaskStatus
from clinicops.db.models import Task
from clinicops.schemas.task import TaskCreate, TaskStats, TaskUpdate
from clinicops.services import user_service


def _require_assignee(db: Session, org_id: UUID, user_id: UUID | None) -> None:
    if user_id and not user_service.get_org_user(db, org_id, user_id):
        raise HTTPException(status_code=404, detail="Assignee not found")


def list_tasks(
    db: Session,
    org_id: UUID,
    assigned_user_id: UUID | None = None,
    status: TaskStatus | None = None,
) -> list[Task]:
    query = db.query(Task).filter(Task.organization_id == org_id)
    if assigned_user_id:
        query = query.filter(Task.assigned_user_id == assigned_user_id)
    if status:
        query = query.filter(Task.status == status.value)
    return query.order_by(Task.activity_date.asc(), Task.created_at.desc()).all()


def get_task_or_404(db: Session, org_id: UUID, task_id: UUID) -> Task:
    task = db.query(Task).filter(Task.id == task_id, Task.organization_id == org_id).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def create_task(db: Session, org_id: UUID, user_id: UUID, data: TaskCreate) -> Task:
    _require_assignee(db, org_id, data.assigned_user_id)
    task = Task(
        organization_id=org_id,
        created_by_user_id=user_id,
        title=data.title,
        description=data.description,
        status=data.status.value,
        assigned_user_id=data.assigned_user_id or user_id,
        activity_date=data.activity_date,
        completed_at=utcnow() if data.status == TaskStatus.COMPLETED else None,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(db: Session, org_id: UUID, task: Task, data: TaskUpdate) -> Task:
    """
    Update task fields.
    
    Moving into completed stamps completed_at; moving out clears it.
    """
    update_data = data.model_dump(exclude_unset=True)
    if "assigned_user_id" in update_data:
        _require_assignee(db, org_id, update_data["assigned_user_id"])

    clearable_fields = {"description", "assigned_user_id", "activity_date"}
    for field, value in update_data.items():
        if value is None and field not in clearable_fields:
            continue
        if field == "status":
            if value == TaskStatus.COMPLETED and task.status != TaskStatus.COMPLETED.value:
                task.completed_at = utcnow()
            elif value != TaskStatus.COMPLETED:
                task.completed_at = None
            value = value.value
        setattr(task, field, value)

    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, task: Task) -> None:
    db.delete(task)
    db.commit()


def count_open_tasks(db: Session, org_id: UUID, user_id: UUID) -> int:
    """Tasks assigned to the user that are not completed."""
    return (
        db.query(func.count(Task.id))
        .filter(
            Task.organization_id == org_id,
            Task.assigned_user_id == user_id,
            Task.status != TaskStatus.COMPLETED.value,
        )
        .scalar()
        or 0
    )


def get_task_stats(db: Session, org_id: UUID, user_id: UUID, today: date | None = None) -> TaskStats:
    """
    Dashboard counters for one assignee.
    
    overdue = activity_date before today and not completed.
    """
    today = today or utcnow().date()
    day_start = datetime.combine(today, time.min, tzinfo=timezone.utc)
    day_end = day_start + timedelta(days=1)

    base = db.query(func.count(Task.id)).filter(
        Task.organization_id == org_id,
        Task.assigned_user_id == user_id,
    )
    finished_today = base.filter(
        Task.status == TaskStatus.COMPLETED.value,
        Task.completed_at >= day_start,
        Task.completed_at < day_end,
    ).scalar()
    pending = base.filter(Task.status == TaskStatus.PENDING.value).scalar()
    in_progress = base.filter(Task.status == TaskStatus.IN_PROGRESS.value).scalar()
    overdue = base.filter(
        Task.status != TaskStatus.COMPLETED.value,
        Task.activity_date < today,
    ).scalar()

    return TaskStats(
        finished_today=finished_today or 0,
        pending=pending or 0,
        in_progress=in_progress or 0,
        overdue=overdue or 0,
    )
