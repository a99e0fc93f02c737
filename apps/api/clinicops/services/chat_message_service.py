"""Channel messages and threads."""

import logging
import re
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from clinicops.db.base import utcnow
from clinicops.db.enums import (
    DEFAULT_THREAD_ARCHIVE_MINUTES,
    MESSAGEABLE_CHANNEL_TYPES,
    ChannelType,
    MessageType,
)
from clinicops.db.models import ChatChannel, ChatMessage, ChatThread
from clinicops.schemas.dischat import MessageCreate, ThreadCreate
from clinicops.services import dischat_service

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"<@([\w-]+)>")
DEFAULT_PAGE_SIZE = 50


def parse_mentions(content: str) -> tuple[list[str], bool]:
    """User ids from <@id> tokens, plus whether @everyone/@here appears."""
    mentions = MENTION_PATTERN.findall(content)
    mention_everyone = "@everyone" in content or "@here" in content
    return mentions, mention_everyone


def clean_content(content: str | None) -> str:
    text = (content or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Message content is required")
    return text


def page_by_cursor(query, model, before_id: UUID | None, after_id: UUID | None, limit: int) -> list:
    """
    Newest `limit` rows around message-id cursors, returned oldest first.

    Unknown cursor ids are ignored.
    """
    if before_id:
        anchor = query.session.query(model.created_at).filter(model.id == before_id).scalar()
        if anchor is not None:
            query = query.filter(model.created_at < anchor)
    if after_id:
        anchor = query.session.query(model.created_at).filter(model.id == after_id).scalar()
        if anchor is not None:
            query = query.filter(model.created_at > anchor)
    rows = query.order_by(model.created_at.desc()).limit(limit).all()
    rows.reverse()
    return rows


# =============================================================================
# Channel messages
# =============================================================================

def list_messages(
    db: Session,
    org_id: UUID,
    user_id: UUID,
    channel_id: UUID,
    limit: int = DEFAULT_PAGE_SIZE,
    before: UUID | None = None,
    after: UUID | None = None,
) -> list[ChatMessage]:
    channel = dischat_service.get_channel_or_404(db, org_id, channel_id)
    dischat_service.require_member(db, channel.server_id, user_id)

    query = (
        db.query(ChatMessage)
        .options(selectinload(ChatMessage.author))
        .filter(ChatMessage.channel_id == channel.id, ChatMessage.is_deleted.is_(False))
    )
    return page_by_cursor(query, ChatMessage, before, after, limit)


def send_message(
    db: Session, org_id: UUID, user_id: UUID, channel_id: UUID, data: MessageCreate
) -> ChatMessage:
    """
    Post to a text or announcement channel.

    Raises:
        HTTPException 400: Empty content or non-text channel
        HTTPException 403: Not a member, or timed out
        HTTPException 404: Channel not found
    """
    content = clean_content(data.content)
    channel = dischat_service.get_channel_or_404(db, org_id, channel_id)
    if channel.channel_type not in MESSAGEABLE_CHANNEL_TYPES:
        raise HTTPException(status_code=400, detail="Cannot send messages to this channel type")

    member = dischat_service.require_member(db, channel.server_id, user_id)
    if dischat_service.is_timed_out(member):
        raise HTTPException(status_code=403, detail="You are timed out from this server")

    mentions, mention_everyone = parse_mentions(content)
    now = utcnow()
    message = ChatMessage(
        channel_id=channel.id,
        author_id=user_id,
        content=content,
        message_type=(MessageType.REPLY if data.reply_to_id else MessageType.DEFAULT).value,
        reply_to_id=data.reply_to_id,
        mentions=mentions,
        mention_everyone=mention_everyone,
        created_at=now,
    )
    db.add(message)
    channel.last_message_at = now
    db.commit()
    db.refresh(message)
    return message


def _get_message_or_404(db: Session, org_id: UUID, message_id: UUID) -> tuple[ChatMessage, ChatChannel]:
    message = (
        db.query(ChatMessage)
        .filter(ChatMessage.id == message_id, ChatMessage.is_deleted.is_(False))
        .first()
    )
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    try:
        channel = dischat_service.get_channel_or_404(db, org_id, message.channel_id)
    except HTTPException:
        raise HTTPException(status_code=404, detail="Message not found")
    return message, channel


def edit_message(db: Session, org_id: UUID, user_id: UUID, message_id: UUID, content: str) -> ChatMessage:
    message, _ = _get_message_or_404(db, org_id, message_id)
    if message.author_id != user_id:
        raise HTTPException(status_code=403, detail="You can only edit your own messages")

    message.content = clean_content(content)
    message.mentions, message.mention_everyone = parse_mentions(message.content)
    message.edited_at = utcnow()
    db.commit()
    db.refresh(message)
    return message


def delete_message(db: Session, org_id: UUID, user_id: UUID, message_id: UUID) -> None:
    """Soft delete. Allowed for the author and for server owners/admins."""
    message, channel = _get_message_or_404(db, org_id, message_id)
    if message.author_id != user_id:
        member = dischat_service.get_member(db, channel.server_id, user_id)
        if not dischat_service.is_owner_or_admin(db, member):
            raise HTTPException(status_code=403, detail="Insufficient permissions")
    message.is_deleted = True
    db.commit()


# =============================================================================
# Threads
# =============================================================================

def create_thread(
    db: Session, org_id: UUID, user_id: UUID, data: ThreadCreate
) -> tuple[ChatThread, ChatChannel]:
    """
    Create a thread: a new text channel plus the chat_threads row linking it
    to the parent. If the link row cannot be written the new channel is
    removed again.

    Raises:
        HTTPException 400: Blank name
        HTTPException 403: Not a member
        HTTPException 404: Parent channel not found
        HTTPException 500: Thread row could not be created
    """
    name = data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Channel ID and name are required")

    parent = dischat_service.get_channel_or_404(db, org_id, data.channel_id)
    dischat_service.require_member(db, parent.server_id, user_id)

    archive_minutes = data.auto_archive_duration or DEFAULT_THREAD_ARCHIVE_MINUTES
    thread_channel = ChatChannel(
        server_id=parent.server_id,
        category_id=parent.category_id,
        name=dischat_service.slugify_channel_name(name),
        channel_type=ChannelType.TEXT.value,
        default_auto_archive_duration=archive_minutes,
    )
    db.add(thread_channel)
    db.commit()
    db.refresh(thread_channel)
    thread_channel_id = thread_channel.id

    thread = ChatThread(
        channel_id=thread_channel_id,
        parent_channel_id=parent.id,
        owner_id=user_id,
        message_id=data.message_id,
        name=name,
        auto_archive_duration=archive_minutes,
    )
    try:
        db.add(thread)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Thread insert failed, removing thread channel",
            extra={"channel_id": str(thread_channel_id)},
        )
        db.query(ChatChannel).filter(ChatChannel.id == thread_channel_id).delete(
            synchronize_session=False
        )
        db.commit()
        raise HTTPException(status_code=500, detail="Failed to create thread")

    if data.message_id:
        db.query(ChatMessage).filter(
            ChatMessage.id == data.message_id,
            ChatMessage.channel_id == parent.id,
        ).update(
            {"thread_id": thread_channel_id, "message_type": MessageType.THREAD_STARTER.value},
            synchronize_session=False,
        )
        db.commit()

    db.refresh(thread)
    db.refresh(thread_channel)
    return thread, thread_channel


def list_threads(
    db: Session, org_id: UUID, user_id: UUID, channel_id: UUID, include_archived: bool = False
) -> list[ChatThread]:
    parent = dischat_service.get_channel_or_404(db, org_id, channel_id)
    dischat_service.require_member(db, parent.server_id, user_id)

    query = (
        db.query(ChatThread)
        .options(selectinload(ChatThread.channel))
        .filter(ChatThread.parent_channel_id == parent.id)
    )
    if not include_archived:
        query = query.filter(ChatThread.is_archived.is_(False))
    return query.order_by(ChatThread.created_at.desc()).all()
