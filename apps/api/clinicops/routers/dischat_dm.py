"""Team chat router - direct messages."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.schemas.auth import UserSession
from clinicops.schemas.dischat import (
    DmCreate,
    DmCreateResponse,
    DmListResponse,
    DmMessageListResponse,
    DmMessageRead,
    DmMessageResponse,
    MessageCreate,
)
from clinicops.services import dm_service

router = APIRouter(prefix="/dischat/dm", tags=["dischat"])


@router.get("", response_model=DmListResponse)
def list_dms(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    direct, groups = dm_service.list_dms(db, session.org_id, session.user_id)
    return DmListResponse(
        dms=[dm_service.to_dm_read(dm, session.user_id) for dm in direct],
        group_dms=[dm_service.to_dm_read(dm, session.user_id) for dm in groups],
    )


@router.post("", response_model=DmCreateResponse, status_code=201)
def create_dm(
    data: DmCreate,
    response: Response,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Open (or reopen) a DM. An existing 1:1 DM comes back with 200 and created=false."""
    dm, created = dm_service.create_dm(db, session.org_id, session.user_id, data)
    if not created:
        response.status_code = 200
    return DmCreateResponse(dm=dm_service.to_dm_read(dm, session.user_id), created=created)


@router.get("/{dm_id}/messages", response_model=DmMessageListResponse)
def list_dm_messages(
    dm_id: UUID,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    before: UUID | None = Query(None),
    after: UUID | None = Query(None),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    messages = dm_service.list_dm_messages(
        db, session.org_id, session.user_id, dm_id, limit=limit, before=before, after=after
    )
    return DmMessageListResponse(messages=[DmMessageRead.model_validate(m) for m in messages])


@router.post("/{dm_id}/messages", response_model=DmMessageResponse, status_code=201)
def send_dm_message(
    dm_id: UUID,
    data: MessageCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    message = dm_service.send_dm_message(db, session.org_id, session.user_id, dm_id, data)
    return DmMessageResponse(message=DmMessageRead.model_validate(message))
