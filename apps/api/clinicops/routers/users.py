"""Users router - org directory and admin provisioning."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db, require_roles
from clinicops.db.enums import ROLES_CAN_MANAGE_USERS
from clinicops.schemas.auth import UserSession
from clinicops.schemas.user import UserCreate, UserRead
from clinicops.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserRead])
def list_users(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """All users in the caller's organization, by name."""
    return user_service.list_users(db, session.org_id)


@router.post("", response_model=UserRead, status_code=201)
def create_user(
    data: UserCreate,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE_USERS)),
    db: Session = Depends(get_db),
):
    user, membership = user_service.create_user(db, session.org_id, data)
    return user_service.to_user_read(user, membership.role)
