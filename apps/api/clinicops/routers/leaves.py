"""Leaves router - requests, reviews, and balances."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from clinicops.core.deps import (
    can_file_leave_for_others,
    can_view_all_leave,
    get_current_session,
    get_db,
    require_roles,
)
from clinicops.db.enums import LeaveStatus, ROLES_CAN_REVIEW_LEAVE
from clinicops.db.models import User
from clinicops.schemas.auth import UserSession
from clinicops.schemas.leave import LeaveBalance, LeaveCreate, LeaveRead, LeaveReview
from clinicops.services import leave_service, user_service

router = APIRouter(prefix="/leaves", tags=["leaves"])


def _resolve_target_user(db: Session, session: UserSession, user_id: UUID | None) -> User:
    """The caller, or an org user the caller was allowed to name."""
    target_id = user_id or session.user_id
    user = user_service.get_org_user(db, session.org_id, target_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("", response_model=list[LeaveRead])
def list_leaves(
    user_id: UUID | None = Query(None),
    status: LeaveStatus | None = Query(None),
    all: bool = Query(False, description="Every request in the org (reviewers only)"),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Leave requests, newest first.

    Staff only ever see their own. Reviewers may pass all=true or another user_id.
    """
    if can_view_all_leave(session):
        filter_user_id = None if all and not user_id else (user_id or session.user_id)
    else:
        if user_id and user_id != session.user_id:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        filter_user_id = session.user_id

    leaves = leave_service.list_leaves(db, session.org_id, user_id=filter_user_id, status=status)
    return [leave_service.to_leave_read(leave) for leave in leaves]


@router.get("/balance", response_model=LeaveBalance)
def get_balance(
    user_id: UUID | None = Query(None),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    if user_id and user_id != session.user_id and not can_view_all_leave(session):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    user = _resolve_target_user(db, session, user_id)
    return leave_service.get_balance(user)


@router.post("", response_model=LeaveRead, status_code=201)
def create_leave(
    data: LeaveCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """File a leave request for yourself (or, for admin/hr, for someone else)."""
    if data.user_id and data.user_id != session.user_id and not can_file_leave_for_others(session):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    user = _resolve_target_user(db, session, data.user_id)
    leave = leave_service.create_leave(db, session.org_id, user, data)
    return leave_service.to_leave_read(leave)


@router.patch("/{leave_id}", response_model=LeaveRead)
def review_leave(
    leave_id: UUID,
    data: LeaveReview,
    session: UserSession = Depends(require_roles(ROLES_CAN_REVIEW_LEAVE)),
    db: Session = Depends(get_db),
):
    leave = leave_service.review_leave(db, session.org_id, leave_id, session.user_id, data)
    return leave_service.to_leave_read(leave)
