"""Team chat router - channel messages and threads."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.schemas.auth import UserSession
from clinicops.schemas.dischat import (
    ChannelRead,
    MessageCreate,
    MessageListResponse,
    MessageRead,
    MessageResponse,
    MessageUpdate,
    SuccessResponse,
    ThreadCreate,
    ThreadCreateResponse,
    ThreadListResponse,
    ThreadRead,
    ThreadWithChannel,
)
from clinicops.services import chat_message_service

router = APIRouter(prefix="/dischat", tags=["dischat"])


@router.get("/channels/{channel_id}/messages", response_model=MessageListResponse)
def list_channel_messages(
    channel_id: UUID,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    before: UUID | None = Query(None, description="Message id cursor"),
    after: UUID | None = Query(None, description="Message id cursor"),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Messages in chronological order, newest page first."""
    messages = chat_message_service.list_messages(
        db, session.org_id, session.user_id, channel_id, limit=limit, before=before, after=after
    )
    return MessageListResponse(messages=[MessageRead.model_validate(m) for m in messages])


@router.post("/channels/{channel_id}/messages", response_model=MessageResponse, status_code=201)
def send_channel_message(
    channel_id: UUID,
    data: MessageCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    message = chat_message_service.send_message(
        db, session.org_id, session.user_id, channel_id, data
    )
    return MessageResponse(message=MessageRead.model_validate(message))


@router.patch("/messages/{message_id}", response_model=MessageResponse)
def edit_message(
    message_id: UUID,
    data: MessageUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    message = chat_message_service.edit_message(
        db, session.org_id, session.user_id, message_id, data.content
    )
    return MessageResponse(message=MessageRead.model_validate(message))


@router.delete("/messages/{message_id}", response_model=SuccessResponse)
def delete_message(
    message_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    chat_message_service.delete_message(db, session.org_id, session.user_id, message_id)
    return SuccessResponse()


# =============================================================================
# Threads
# =============================================================================

@router.post("/threads", response_model=ThreadCreateResponse, status_code=201)
def create_thread(
    data: ThreadCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    thread, channel = chat_message_service.create_thread(
        db, session.org_id, session.user_id, data
    )
    return ThreadCreateResponse(
        thread=ThreadRead.model_validate(thread),
        channel=ChannelRead.model_validate(channel),
    )


@router.get("/threads", response_model=ThreadListResponse)
def list_threads(
    channel_id: UUID,
    include_archived: bool = Query(False),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    threads = chat_message_service.list_threads(
        db, session.org_id, session.user_id, channel_id, include_archived=include_archived
    )
    return ThreadListResponse(
        threads=[
            ThreadWithChannel(
                **ThreadRead.model_validate(t).model_dump(),
                thread_channel=ChannelRead.model_validate(t.channel) if t.channel else None,
            )
            for t in threads
        ]
    )
