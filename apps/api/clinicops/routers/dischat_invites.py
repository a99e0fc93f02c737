"""Team chat router - invite links."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.core.rate_limit import PUBLIC_LIMIT, limiter
from clinicops.schemas.auth import UserSession
from clinicops.schemas.dischat import InviteCreate, InviteResponse, JoinResponse, ServerRead
from clinicops.services import dischat_service

router = APIRouter(prefix="/dischat/invites", tags=["dischat"])


@router.post("", response_model=InviteResponse, status_code=201)
def create_invite(
    data: InviteCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    invite = dischat_service.create_invite(db, session.org_id, session.user_id, data)
    return InviteResponse(invite=dischat_service.to_invite_read(db, invite))


@router.get("/{code}", response_model=InviteResponse)
@limiter.limit(PUBLIC_LIMIT)
def get_invite(
    request: Request,
    code: str,
    db: Session = Depends(get_db),
):
    """Anonymous invite preview. 410 once expired or used up."""
    invite = dischat_service.get_valid_invite(db, code)
    return InviteResponse(invite=dischat_service.to_invite_read(db, invite))


@router.post("/{code}/join", response_model=JoinResponse)
def join_invite(
    code: str,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    server, member = dischat_service.join_with_invite(db, session.org_id, session.user_id, code)
    return JoinResponse(
        success=True,
        server=ServerRead.model_validate(server),
        membership=dischat_service.to_member_read(member),
    )
