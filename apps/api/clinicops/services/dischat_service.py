"""
Team chat service - servers, roles, members, channels, and invites.

Every lookup is scoped to the caller's organization through the server row;
a server from another org behaves as missing.
"""

import logging
import re
import secrets
import string
from datetime import timedelta
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from clinicops.db.base import as_utc, utcnow
from clinicops.db.enums import (
    DEFAULT_ROLE_COLOR,
    DEFAULT_ROLE_NAME,
    DEFAULT_ROLE_PERMISSIONS,
    ChannelType,
    ChatPermission,
)
from clinicops.db.models import (
    ChatCategory,
    ChatChannel,
    ChatInvite,
    ChatMember,
    ChatMemberRole,
    ChatRole,
    ChatServer,
    Membership,
    User,
)
from clinicops.schemas.dischat import (
    CategoryRead,
    ChannelCreate,
    ChannelRead,
    ChannelUpdate,
    InviteCreate,
    InviteRead,
    InviteServer,
    MemberRead,
    MemberUpdate,
    RoleCreate,
    RoleRead,
    RoleUpdate,
    ServerCreate,
    ServerDetail,
    ServerRead,
    ServerUpdate,
    UserBrief,
)
from clinicops.services import user_service

logger = logging.getLogger(__name__)

INVITE_CODE_LENGTH = 8
INVITE_CODE_ALPHABET = string.ascii_letters + string.digits
INVITE_CANDIDATE_LIMIT = 20
DEFAULT_CATEGORY_NAME = "Text Channels"


# =============================================================================
# Permission helpers
# =============================================================================

def get_member(db: Session, server_id: UUID, user_id: UUID) -> ChatMember | None:
    return (
        db.query(ChatMember)
        .filter(ChatMember.server_id == server_id, ChatMember.user_id == user_id)
        .first()
    )


def is_member(db: Session, server_id: UUID, user_id: UUID) -> bool:
    return get_member(db, server_id, user_id) is not None


def is_owner_or_admin(db: Session, member: ChatMember | None) -> bool:
    """Owner, or holder of any role with the ADMINISTRATOR bit."""
    if member is None:
        return False
    if member.is_owner:
        return True
    permissions = (
        db.query(ChatRole.permissions)
        .join(ChatMemberRole, ChatMemberRole.role_id == ChatRole.id)
        .filter(ChatMemberRole.member_id == member.id)
        .all()
    )
    return any(int(bits) & ChatPermission.ADMINISTRATOR for (bits,) in permissions)


def require_member(db: Session, server_id: UUID, user_id: UUID) -> ChatMember:
    member = get_member(db, server_id, user_id)
    if not member:
        raise HTTPException(status_code=403, detail="Not a member of this server")
    return member


def require_owner_or_admin(db: Session, server_id: UUID, user_id: UUID) -> ChatMember:
    member = get_member(db, server_id, user_id)
    if not is_owner_or_admin(db, member):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return member


def is_timed_out(member: ChatMember) -> bool:
    until = as_utc(member.communication_disabled_until)
    return until is not None and until > utcnow()


def slugify_channel_name(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


def to_member_read(member: ChatMember) -> MemberRead:
    return MemberRead(
        id=member.id,
        user_id=member.user_id,
        nickname=member.nickname,
        is_owner=member.is_owner,
        communication_disabled_until=member.communication_disabled_until,
        joined_at=member.joined_at,
        user=UserBrief.model_validate(member.user) if member.user else None,
        role_ids=[link.role_id for link in member.role_links],
    )


def _get_default_role(db: Session, server_id: UUID) -> ChatRole | None:
    return (
        db.query(ChatRole)
        .filter(ChatRole.server_id == server_id, ChatRole.is_default.is_(True))
        .first()
    )


def add_member(db: Session, server: ChatServer, user_id: UUID) -> ChatMember:
    """Add a member holding the default role. Caller commits."""
    member = ChatMember(server_id=server.id, user_id=user_id)
    db.add(member)
    db.flush()
    default_role = _get_default_role(db, server.id)
    if default_role:
        db.add(ChatMemberRole(member_id=member.id, role_id=default_role.id))
    return member


# =============================================================================
# Servers
# =============================================================================

def get_server_or_404(db: Session, org_id: UUID, server_id: UUID) -> ChatServer:
    server = (
        db.query(ChatServer)
        .filter(ChatServer.id == server_id, ChatServer.organization_id == org_id)
        .first()
    )
    if not server:
        raise HTTPException(status_code=404, detail="Server not found")
    return server


def list_servers(db: Session, org_id: UUID, user_id: UUID) -> list[ChatServer]:
    return (
        db.query(ChatServer)
        .join(ChatMember, ChatMember.server_id == ChatServer.id)
        .filter(ChatServer.organization_id == org_id, ChatMember.user_id == user_id)
        .order_by(ChatServer.created_at.asc())
        .all()
    )


def create_server(db: Session, org_id: UUID, user_id: UUID, data: ServerCreate) -> ChatServer:
    """
    Create a server with its scaffolding: owner membership, @everyone role,
    a "Text Channels" category, and #general / voice channels.
    """
    name = data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Server name is required")

    server = ChatServer(
        organization_id=org_id,
        owner_id=user_id,
        name=name,
        description=data.description,
        icon_url=data.icon_url,
    )
    db.add(server)
    db.flush()

    db.add(ChatMember(server_id=server.id, user_id=user_id, is_owner=True))
    db.add(
        ChatRole(
            server_id=server.id,
            name=DEFAULT_ROLE_NAME,
            color=DEFAULT_ROLE_COLOR,
            permissions=DEFAULT_ROLE_PERMISSIONS,
            position=0,
            is_default=True,
        )
    )
    category = ChatCategory(server_id=server.id, name=DEFAULT_CATEGORY_NAME, position=0)
    db.add(category)
    db.flush()

    db.add_all(
        [
            ChatChannel(
                server_id=server.id,
                category_id=category.id,
                name="general",
                channel_type=ChannelType.TEXT.value,
                position=0,
            ),
            ChatChannel(
                server_id=server.id,
                category_id=category.id,
                name="voice",
                channel_type=ChannelType.VOICE.value,
                position=1,
            ),
        ]
    )
    db.commit()
    db.refresh(server)
    logger.info("Chat server created", extra={"server_id": str(server.id)})
    return server


def get_server_detail(db: Session, server: ChatServer, user_id: UUID) -> ServerDetail:
    current = require_member(db, server.id, user_id)

    channels = (
        db.query(ChatChannel)
        .filter(ChatChannel.server_id == server.id)
        .order_by(ChatChannel.position.asc(), ChatChannel.created_at.asc())
        .all()
    )
    categories = (
        db.query(ChatCategory)
        .filter(ChatCategory.server_id == server.id)
        .order_by(ChatCategory.position.asc())
        .all()
    )
    members = (
        db.query(ChatMember)
        .options(selectinload(ChatMember.user), selectinload(ChatMember.role_links))
        .filter(ChatMember.server_id == server.id)
        .order_by(ChatMember.joined_at.asc())
        .all()
    )
    roles = (
        db.query(ChatRole)
        .filter(ChatRole.server_id == server.id)
        .order_by(ChatRole.position.desc())
        .all()
    )
    return ServerDetail(
        server=ServerRead.model_validate(server),
        channels=[ChannelRead.model_validate(c) for c in channels],
        categories=[CategoryRead.model_validate(c) for c in categories],
        members=[to_member_read(m) for m in members],
        roles=[RoleRead.model_validate(r) for r in roles],
        current_member=to_member_read(current),
    )


def update_server(db: Session, server: ChatServer, user_id: UUID, data: ServerUpdate) -> ChatServer:
    require_owner_or_admin(db, server.id, user_id)
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if field in ("name", "is_public", "verification_level") and value is None:
            continue
        setattr(server, field, value)
    db.commit()
    db.refresh(server)
    return server


def delete_server(db: Session, server: ChatServer, user_id: UUID) -> None:
    """Owner only. Channels, roles, members, messages, threads, and invites go with it."""
    if server.owner_id != user_id:
        raise HTTPException(status_code=403, detail="Only the server owner can delete the server")
    db.delete(server)
    db.commit()
    logger.info("Chat server deleted", extra={"server_id": str(server.id)})


# =============================================================================
# Roles
# =============================================================================

def list_roles(db: Session, server: ChatServer, user_id: UUID) -> list[ChatRole]:
    require_member(db, server.id, user_id)
    return (
        db.query(ChatRole)
        .filter(ChatRole.server_id == server.id)
        .order_by(ChatRole.position.desc())
        .all()
    )


def get_role_or_404(db: Session, server_id: UUID, role_id: UUID) -> ChatRole:
    role = db.query(ChatRole).filter(ChatRole.id == role_id, ChatRole.server_id == server_id).first()
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    return role


def create_role(db: Session, server: ChatServer, user_id: UUID, data: RoleCreate) -> ChatRole:
    require_owner_or_admin(db, server.id, user_id)
    max_position = (
        db.query(func.max(ChatRole.position)).filter(ChatRole.server_id == server.id).scalar()
    )
    role = ChatRole(
        server_id=server.id,
        name=data.name,
        color=data.color,
        permissions=data.permissions,
        position=(max_position if max_position is not None else 0) + 1,
        is_hoisted=data.is_hoisted,
        is_mentionable=data.is_mentionable,
    )
    db.add(role)
    db.commit()
    db.refresh(role)
    return role


def update_role(
    db: Session, server: ChatServer, user_id: UUID, role_id: UUID, data: RoleUpdate
) -> ChatRole:
    """The default role can be recolored or re-permissioned but not renamed."""
    require_owner_or_admin(db, server.id, user_id)
    role = get_role_or_404(db, server.id, role_id)
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None:
            continue
        if field == "name" and role.is_default:
            continue
        setattr(role, field, value)
    db.commit()
    db.refresh(role)
    return role


def delete_role(db: Session, server: ChatServer, user_id: UUID, role_id: UUID) -> None:
    require_owner_or_admin(db, server.id, user_id)
    role = get_role_or_404(db, server.id, role_id)
    if role.is_default:
        raise HTTPException(status_code=400, detail="Cannot delete the default role")
    db.delete(role)
    db.commit()


# =============================================================================
# Members
# =============================================================================

def get_member_or_404(db: Session, server_id: UUID, member_id: UUID) -> ChatMember:
    member = (
        db.query(ChatMember)
        .filter(ChatMember.id == member_id, ChatMember.server_id == server_id)
        .first()
    )
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    return member


def assign_role(
    db: Session, server: ChatServer, user_id: UUID, member_id: UUID, role_id: UUID
) -> ChatMember:
    require_owner_or_admin(db, server.id, user_id)
    member = get_member_or_404(db, server.id, member_id)
    role = get_role_or_404(db, server.id, role_id)

    existing = (
        db.query(ChatMemberRole)
        .filter(ChatMemberRole.member_id == member.id, ChatMemberRole.role_id == role.id)
        .first()
    )
    if not existing:
        db.add(ChatMemberRole(member_id=member.id, role_id=role.id))
        db.commit()
    db.refresh(member)
    return member


def remove_role(
    db: Session, server: ChatServer, user_id: UUID, member_id: UUID, role_id: UUID
) -> ChatMember:
    require_owner_or_admin(db, server.id, user_id)
    member = get_member_or_404(db, server.id, member_id)
    role = get_role_or_404(db, server.id, role_id)
    db.query(ChatMemberRole).filter(
        ChatMemberRole.member_id == member.id, ChatMemberRole.role_id == role.id
    ).delete(synchronize_session=False)
    db.commit()
    db.refresh(member)
    return member


def update_member(
    db: Session, server: ChatServer, user_id: UUID, member_id: UUID, data: MemberUpdate
) -> ChatMember:
    """
    Set a nickname or a timeout.

    Raises:
        HTTPException 400: Timing out the owner
    """
    require_owner_or_admin(db, server.id, user_id)
    member = get_member_or_404(db, server.id, member_id)
    update_data = data.model_dump(exclude_unset=True)

    if "nickname" in update_data:
        member.nickname = update_data["nickname"]
    if "communication_disabled_until" in update_data:
        until = update_data["communication_disabled_until"]
        if until is not None and member.is_owner:
            raise HTTPException(status_code=400, detail="Cannot time out the server owner")
        member.communication_disabled_until = as_utc(until)

    db.commit()
    db.refresh(member)
    return member


# =============================================================================
# Channels
# =============================================================================

def get_channel_or_404(db: Session, org_id: UUID, channel_id: UUID) -> ChatChannel:
    channel = (
        db.query(ChatChannel)
        .join(ChatServer, ChatServer.id == ChatChannel.server_id)
        .filter(ChatChannel.id == channel_id, ChatServer.organization_id == org_id)
        .first()
    )
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")
    return channel


def _next_channel_position(db: Session, server_id: UUID, category_id: UUID | None) -> int:
    query = db.query(func.max(ChatChannel.position)).filter(ChatChannel.server_id == server_id)
    if category_id:
        query = query.filter(ChatChannel.category_id == category_id)
    else:
        query = query.filter(ChatChannel.category_id.is_(None))
    highest = query.scalar()
    return highest + 1 if highest is not None else 0


def create_channel(db: Session, org_id: UUID, user_id: UUID, data: ChannelCreate) -> ChatChannel:
    server = get_server_or_404(db, org_id, data.server_id)
    require_owner_or_admin(db, server.id, user_id)

    name = slugify_channel_name(data.name)
    if not name:
        raise HTTPException(status_code=400, detail="Channel name is required")

    if data.category_id:
        category = (
            db.query(ChatCategory)
            .filter(ChatCategory.id == data.category_id, ChatCategory.server_id == server.id)
            .first()
        )
        if not category:
            raise HTTPException(status_code=404, detail="Category not found")

    channel = ChatChannel(
        server_id=server.id,
        category_id=data.category_id,
        name=name,
        topic=data.topic,
        channel_type=data.channel_type.value,
        position=_next_channel_position(db, server.id, data.category_id),
        is_private=data.is_private,
    )
    db.add(channel)
    db.commit()
    db.refresh(channel)
    return channel


def update_channel(db: Session, channel: ChatChannel, user_id: UUID, data: ChannelUpdate) -> ChatChannel:
    require_owner_or_admin(db, channel.server_id, user_id)
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if field in ("name", "position", "is_private") and value is None:
            continue
        if field == "name":
            value = slugify_channel_name(value)
        setattr(channel, field, value)
    db.commit()
    db.refresh(channel)
    return channel


def delete_channel(db: Session, channel: ChatChannel, user_id: UUID) -> None:
    require_owner_or_admin(db, channel.server_id, user_id)
    db.delete(channel)
    db.commit()


def invite_user_to_channel(
    db: Session,
    org_id: UUID,
    channel: ChatChannel,
    user_id: UUID,
    target_user_id: UUID | None,
    email: str | None,
) -> tuple[bool, str]:
    """
    Add an org user to the channel's server.

    Returns (already_member, message).
    """
    server = get_server_or_404(db, org_id, channel.server_id)
    require_owner_or_admin(db, server.id, user_id)

    target = None
    if target_user_id:
        target = user_service.get_org_user(db, org_id, target_user_id)
    elif email and email.strip():
        target = user_service.get_org_user_by_email(db, org_id, email.strip())
    if not target:
        raise HTTPException(status_code=404, detail="User not found")

    if is_member(db, server.id, target.id):
        return True, "User is already a member of this server"

    add_member(db, server, target.id)
    db.commit()
    return False, f"User invited to channel #{channel.name}"


def list_invite_candidates(
    db: Session, org_id: UUID, channel: ChatChannel, user_id: UUID, search: str | None = None
) -> list[User]:
    """Org users who are not yet in the channel's server."""
    require_member(db, channel.server_id, user_id)
    member_ids = select(ChatMember.user_id).where(ChatMember.server_id == channel.server_id)
    query = (
        db.query(User)
        .join(Membership, Membership.user_id == User.id)
        .filter(
            Membership.organization_id == org_id,
            User.is_active.is_(True),
            User.id.not_in(member_ids),
        )
    )
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(User.full_name.ilike(pattern), User.email.ilike(pattern)))
    return query.order_by(User.full_name.asc()).limit(INVITE_CANDIDATE_LIMIT).all()


# =============================================================================
# Invites
# =============================================================================

def _generate_invite_code(db: Session) -> str:
    while True:
        code = "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))
        if not db.query(ChatInvite.id).filter(ChatInvite.code == code).first():
            return code


def create_invite(db: Session, org_id: UUID, user_id: UUID, data: InviteCreate) -> ChatInvite:
    server = get_server_or_404(db, org_id, data.server_id)
    require_member(db, server.id, user_id)

    if data.channel_id:
        channel = get_channel_or_404(db, org_id, data.channel_id)
        if channel.server_id != server.id:
            raise HTTPException(status_code=404, detail="Channel not found")

    invite = ChatInvite(
        code=_generate_invite_code(db),
        server_id=server.id,
        channel_id=data.channel_id,
        inviter_id=user_id,
        max_uses=data.max_uses,
        max_age_seconds=data.max_age_seconds,
        is_temporary=data.is_temporary,
        expires_at=(
            utcnow() + timedelta(seconds=data.max_age_seconds) if data.max_age_seconds > 0 else None
        ),
    )
    db.add(invite)
    db.commit()
    db.refresh(invite)
    return invite


def get_valid_invite(db: Session, code: str) -> ChatInvite:
    """
    Raises:
        HTTPException 404: Unknown code
        HTTPException 410: Expired or used up
    """
    invite = db.query(ChatInvite).filter(ChatInvite.code == code).first()
    if not invite:
        raise HTTPException(status_code=404, detail="Invite not found")
    expires_at = as_utc(invite.expires_at)
    if expires_at is not None and expires_at <= utcnow():
        raise HTTPException(status_code=410, detail="Invite has expired")
    if invite.max_uses and invite.uses >= invite.max_uses:
        raise HTTPException(status_code=410, detail="Invite has reached maximum uses")
    return invite


def to_invite_read(db: Session, invite: ChatInvite) -> InviteRead:
    server = db.query(ChatServer).filter(ChatServer.id == invite.server_id).first()
    member_count = (
        db.query(func.count(ChatMember.id)).filter(ChatMember.server_id == invite.server_id).scalar()
    )
    return InviteRead(
        id=invite.id,
        code=invite.code,
        server_id=invite.server_id,
        channel_id=invite.channel_id,
        inviter_id=invite.inviter_id,
        max_uses=invite.max_uses,
        uses=invite.uses,
        max_age_seconds=invite.max_age_seconds,
        is_temporary=invite.is_temporary,
        expires_at=invite.expires_at,
        created_at=invite.created_at,
        server=(
            InviteServer(
                id=server.id,
                name=server.name,
                icon_url=server.icon_url,
                member_count=member_count or 0,
            )
            if server
            else None
        ),
    )


def join_with_invite(db: Session, org_id: UUID, user_id: UUID, code: str) -> tuple[ChatServer, ChatMember]:
    """
    Raises:
        HTTPException 400: Already a member
        HTTPException 404/410: See get_valid_invite
    """
    invite = get_valid_invite(db, code)
    server = db.query(ChatServer).filter(ChatServer.id == invite.server_id).first()
    if not server or server.organization_id != org_id:
        raise HTTPException(status_code=404, detail="Invite not found")
    if is_member(db, server.id, user_id):
        raise HTTPException(status_code=400, detail="Already a member of this server")

    member = add_member(db, server, user_id)
    invite.uses = (invite.uses or 0) + 1
    db.commit()
    db.refresh(member)
    logger.info(
        "Joined chat server via invite",
        extra={"server_id": str(server.id), "invite_code": invite.code},
    )
    return server, member
