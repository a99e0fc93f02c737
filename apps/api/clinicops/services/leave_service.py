"""Leave service - requests, reviews, balances, and the team calendar."""

import logging
from datetime import date
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload

from clinicops.core.config import settings
from clinicops.db.base import utcnow
from clinicops.db.enums import LeaveStatus, LeaveType
from clinicops.db.models import LeaveRequest, TeamScheduleEvent, User
from clinicops.schemas.leave import (
    BalanceBucket,
    LeaveBalance,
    LeaveCreate,
    LeaveRead,
    LeaveReview,
    TeamEventCreate,
)

logger = logging.getLogger(__name__)

# leave_type -> (total column, used column) on User
BALANCE_FIELDS = {
    LeaveType.ANNUAL: ("annual_leave_total", "annual_leave_used"),
    LeaveType.SICK: ("sick_leave_total", "sick_leave_used"),
}


def _format_days(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"


def count_days(start_date: date, end_date: date) -> int:
    """Inclusive calendar days between two dates."""
    return (end_date - start_date).days + 1


def _bucket(user: User | None, leave_type: LeaveType) -> BalanceBucket:
    defaults = {
        LeaveType.ANNUAL: settings.DEFAULT_ANNUAL_LEAVE_DAYS,
        LeaveType.SICK: settings.DEFAULT_SICK_LEAVE_DAYS,
    }
    total_field, used_field = BALANCE_FIELDS[leave_type]
    total = float(getattr(user, total_field) if user else defaults[leave_type])
    used = float(getattr(user, used_field) if user else 0)
    return BalanceBucket(total=total, used=used, remaining=total - used)


def get_balance(user: User) -> LeaveBalance:
    return LeaveBalance(
        user_id=user.id,
        annual=_bucket(user, LeaveType.ANNUAL),
        sick=_bucket(user, LeaveType.SICK),
    )


def list_leaves(
    db: Session,
    org_id: UUID,
    user_id: UUID | None = None,
    status: LeaveStatus | None = None,
) -> list[LeaveRequest]:
    query = (
        db.query(LeaveRequest)
        .options(joinedload(LeaveRequest.user))
        .filter(LeaveRequest.organization_id == org_id)
    )
    if user_id:
        query = query.filter(LeaveRequest.user_id == user_id)
    if status:
        query = query.filter(LeaveRequest.status == status.value)
    return query.order_by(LeaveRequest.created_at.desc()).all()


def create_leave(db: Session, org_id: UUID, user: User, data: LeaveCreate) -> LeaveRequest:
    """
    File a pending leave request.
    
    Raises:
        HTTPException 400: Bad date range, or not enough balance
    """
    if data.end_date < data.start_date:
        raise HTTPException(status_code=400, detail="End date must be on or after start date")

    days = count_days(data.start_date, data.end_date)

    if data.leave_type in BALANCE_FIELDS:
        available = _bucket(user, data.leave_type).remaining
        if days > available:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"Insufficient {data.leave_type.value} leave balance. "
                    f"Available: {_format_days(available)} days"
                ),
            )

    leave = LeaveRequest(
        organization_id=org_id,
        user_id=user.id,
        leave_type=data.leave_type.value,
        start_date=data.start_date,
        end_date=data.end_date,
        days_count=days,
        reason=data.reason,
        status=LeaveStatus.PENDING.value,
    )
    db.add(leave)
    db.commit()
    db.refresh(leave)
    return leave


def review_leave(
    db: Session,
    org_id: UUID,
    leave_id: UUID,
    reviewer_id: UUID,
    data: LeaveReview,
) -> LeaveRequest:
    """
    Approve or reject a pending request.
    
    Approval adds days_count to the user's used balance for that type.
    
    Raises:
        HTTPException 400: Bad status, or request already reviewed
        HTTPException 404: Request not found
    """
    if data.status not in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
        raise HTTPException(status_code=400, detail="Status must be approved or rejected")

    leave = (
        db.query(LeaveRequest)
        .filter(LeaveRequest.id == leave_id, LeaveRequest.organization_id == org_id)
        .with_for_update()
        .first()
    )
    if not leave:
        raise HTTPException(status_code=404, detail="Leave request not found")
    if leave.status != LeaveStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="Only pending leave requests can be updated")

    leave.status = data.status.value
    leave.reviewed_by = reviewer_id
    leave.reviewed_at = utcnow()
    leave.review_notes = data.review_notes

    leave_type = LeaveType(leave.leave_type)
    if data.status == LeaveStatus.APPROVED and leave_type in BALANCE_FIELDS:
        user = db.query(User).filter(User.id == leave.user_id).with_for_update().first()
        if user:
            _, used_field = BALANCE_FIELDS[leave_type]
            setattr(user, used_field, float(getattr(user, used_field) or 0) + float(leave.days_count))

    db.commit()
    db.refresh(leave)
    logger.info(
        "Leave request reviewed",
        extra={"leave_id": str(leave.id), "status": leave.status, "reviewer_id": str(reviewer_id)},
    )
    return leave


def to_leave_read(leave: LeaveRequest) -> LeaveRead:
    return LeaveRead(
        id=leave.id,
        user_id=leave.user_id,
        user_name=leave.user.display_name if leave.user else None,
        leave_type=leave.leave_type,
        start_date=leave.start_date,
        end_date=leave.end_date,
        days_count=float(leave.days_count),
        reason=leave.reason,
        status=leave.status,
        reviewed_by=leave.reviewed_by,
        reviewed_at=leave.reviewed_at,
        review_notes=leave.review_notes,
        created_at=leave.created_at,
    )


# =============================================================================
# Team calendar
# =============================================================================

def list_team_events(
    db: Session,
    org_id: UUID,
    start: date | None = None,
    end: date | None = None,
) -> list[TeamScheduleEvent]:
    query = db.query(TeamScheduleEvent).filter(TeamScheduleEvent.organization_id == org_id)
    if start:
        query = query.filter(TeamScheduleEvent.event_date >= start)
    if end:
        query = query.filter(TeamScheduleEvent.event_date <= end)
    return query.order_by(TeamScheduleEvent.event_date.asc()).all()


def create_team_event(
    db: Session, org_id: UUID, user_id: UUID, data: TeamEventCreate
) -> TeamScheduleEvent:
    event = TeamScheduleEvent(
        organization_id=org_id,
        title=data.title,
        description=data.description,
        event_type=data.event_type.value,
        event_date=data.event_date,
        priority=data.priority.value,
        created_by=user_id,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event
