"""Direct messages - 1:1 and group DMs within an organization."""

import logging
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from clinicops.db.base import utcnow
from clinicops.db.enums import MessageType
from clinicops.db.models import DmChannel, DmMember, DmMessage
from clinicops.schemas.dischat import DmCreate, DmRead, MessageCreate, UserBrief
from clinicops.services import user_service
from clinicops.services.chat_message_service import clean_content, page_by_cursor, parse_mentions

logger = logging.getLogger(__name__)


def ordered_pair(a: UUID, b: UUID) -> tuple[UUID, UUID]:
    """Canonical (user1, user2) ordering for a 1:1 DM."""
    return (a, b) if str(a) < str(b) else (b, a)


def to_dm_read(dm: DmChannel, viewer_id: UUID) -> DmRead:
    other = None
    if not dm.is_group:
        other_user = dm.user2 if dm.user1_id == viewer_id else dm.user1
        other = UserBrief.model_validate(other_user) if other_user else None
    return DmRead(
        id=dm.id,
        is_group=dm.is_group,
        name=dm.name,
        user1_id=dm.user1_id,
        user2_id=dm.user2_id,
        owner_id=dm.owner_id,
        last_message_at=dm.last_message_at,
        created_at=dm.created_at,
        other_user=other,
        members=[UserBrief.model_validate(m.user) for m in dm.members if m.user] if dm.is_group else [],
    )


def list_dms(db: Session, org_id: UUID, user_id: UUID) -> tuple[list[DmChannel], list[DmChannel]]:
    """(1:1 DMs, group DMs), most recently active first, never-used last."""
    order = DmChannel.last_message_at.desc().nulls_last()
    direct = (
        db.query(DmChannel)
        .options(selectinload(DmChannel.user1), selectinload(DmChannel.user2))
        .filter(
            DmChannel.organization_id == org_id,
            DmChannel.is_group.is_(False),
            or_(DmChannel.user1_id == user_id, DmChannel.user2_id == user_id),
        )
        .order_by(order, DmChannel.created_at.desc())
        .all()
    )
    groups = (
        db.query(DmChannel)
        .options(selectinload(DmChannel.members).selectinload(DmMember.user))
        .join(DmMember, DmMember.dm_channel_id == DmChannel.id)
        .filter(
            DmChannel.organization_id == org_id,
            DmChannel.is_group.is_(True),
            DmMember.user_id == user_id,
        )
        .order_by(order, DmChannel.created_at.desc())
        .all()
    )
    return direct, groups


def _require_org_user(db: Session, org_id: UUID, user_id: UUID) -> None:
    if not user_service.get_org_user(db, org_id, user_id):
        raise HTTPException(status_code=404, detail="User not found")


def create_dm(db: Session, org_id: UUID, user_id: UUID, data: DmCreate) -> tuple[DmChannel, bool]:
    """
    Open a DM. Returns (dm, created).

    A 1:1 DM is idempotent: asking again returns the existing channel.
    More than one recipient_ids always creates a new group DM.

    Raises:
        HTTPException 400: Missing recipient, or DM with yourself
        HTTPException 404: Recipient not in the organization
    """
    if len(data.recipient_ids) > 1:
        participant_ids = [user_id]
        for recipient_id in data.recipient_ids:
            if recipient_id not in participant_ids:
                _require_org_user(db, org_id, recipient_id)
                participant_ids.append(recipient_id)

        dm = DmChannel(
            organization_id=org_id,
            is_group=True,
            name=data.name,
            owner_id=user_id,
            members=[DmMember(user_id=pid) for pid in participant_ids],
        )
        db.add(dm)
        db.commit()
        db.refresh(dm)
        logger.info("Group DM created", extra={"dm_id": str(dm.id), "members": len(participant_ids)})
        return dm, True

    recipient_id = data.recipient_id or (data.recipient_ids[0] if data.recipient_ids else None)
    if not recipient_id:
        raise HTTPException(status_code=400, detail="Recipient ID is required")
    if recipient_id == user_id:
        raise HTTPException(status_code=400, detail="Cannot create DM with yourself")
    _require_org_user(db, org_id, recipient_id)

    user1_id, user2_id = ordered_pair(user_id, recipient_id)
    existing = (
        db.query(DmChannel)
        .filter(DmChannel.user1_id == user1_id, DmChannel.user2_id == user2_id)
        .first()
    )
    if existing:
        return existing, False

    dm = DmChannel(organization_id=org_id, user1_id=user1_id, user2_id=user2_id, is_group=False)
    db.add(dm)
    db.commit()
    db.refresh(dm)
    return dm, True


def get_dm_for_user(db: Session, org_id: UUID, user_id: UUID, dm_id: UUID) -> DmChannel:
    """
    Raises:
        HTTPException 403: Caller is not a participant
        HTTPException 404: DM not found
    """
    dm = (
        db.query(DmChannel)
        .filter(DmChannel.id == dm_id, DmChannel.organization_id == org_id)
        .first()
    )
    if not dm:
        raise HTTPException(status_code=404, detail="DM not found")

    if dm.is_group:
        allowed = (
            db.query(DmMember.id)
            .filter(DmMember.dm_channel_id == dm.id, DmMember.user_id == user_id)
            .first()
            is not None
        )
    else:
        allowed = user_id in (dm.user1_id, dm.user2_id)
    if not allowed:
        raise HTTPException(status_code=403, detail="Access denied")
    return dm


def list_dm_messages(
    db: Session,
    org_id: UUID,
    user_id: UUID,
    dm_id: UUID,
    limit: int = 50,
    before: UUID | None = None,
    after: UUID | None = None,
) -> list[DmMessage]:
    dm = get_dm_for_user(db, org_id, user_id, dm_id)
    query = (
        db.query(DmMessage)
        .options(selectinload(DmMessage.author))
        .filter(DmMessage.dm_channel_id == dm.id, DmMessage.is_deleted.is_(False))
    )
    return page_by_cursor(query, DmMessage, before, after, limit)


def send_dm_message(
    db: Session, org_id: UUID, user_id: UUID, dm_id: UUID, data: MessageCreate
) -> DmMessage:
    dm = get_dm_for_user(db, org_id, user_id, dm_id)
    content = clean_content(data.content)

    mentions, mention_everyone = parse_mentions(content)
    now = utcnow()
    message = DmMessage(
        dm_channel_id=dm.id,
        author_id=user_id,
        content=content,
        message_type=(MessageType.REPLY if data.reply_to_id else MessageType.DEFAULT).value,
        reply_to_id=data.reply_to_id,
        mentions=mentions,
        mention_everyone=mention_everyone,
        created_at=now,
    )
    db.add(message)
    dm.last_message_at = now
    db.commit()
    db.refresh(message)
    return message
