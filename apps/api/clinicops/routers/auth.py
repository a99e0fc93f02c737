"""Session info for the caller (auth itself lives with the hosted provider)."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.db.models import User
from clinicops.schemas.auth import MeResponse, UserSession
from clinicops.services import user_service

router = APIRouter()


@router.get("/me", response_model=MeResponse)
def get_me(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Current user, organization, and role."""
    user = db.query(User).filter(User.id == session.user_id).first()
    org = user_service.get_organization(db, session.org_id)
    if not user or not org:
        raise HTTPException(status_code=404, detail="User not found")
    return MeResponse(
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
        designation=user.designation,
        avatar_url=user.avatar_url,
        org_id=org.id,
        org_name=org.name,
        org_slug=org.slug,
        role=session.role,
    )
