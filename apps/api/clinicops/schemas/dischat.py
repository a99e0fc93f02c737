"""Pydantic schemas for team chat (servers, channels, messages, DMs, invites)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from clinicops.db.enums import ChannelType, MessageType


class UserBrief(BaseModel):
    id: UUID
    full_name: str | None = None
    avatar_url: str | None = None

    model_config = {"from_attributes": True}


class SuccessResponse(BaseModel):
    success: bool = True


# =============================================================================
# Servers
# =============================================================================

class ServerCreate(BaseModel):
    name: str = Field(..., max_length=100)
    description: str | None = Field(None, max_length=1000)
    icon_url: str | None = Field(None, max_length=500)


class ServerUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=1000)
    icon_url: str | None = Field(None, max_length=500)
    banner_url: str | None = Field(None, max_length=500)
    is_public: bool | None = None
    verification_level: int | None = Field(None, ge=0, le=4)


class ServerRead(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    description: str | None
    icon_url: str | None
    banner_url: str | None
    is_public: bool
    verification_level: int
    created_at: datetime

    model_config = {"from_attributes": True}


class CategoryRead(BaseModel):
    id: UUID
    name: str
    position: int

    model_config = {"from_attributes": True}


class ChannelRead(BaseModel):
    id: UUID
    server_id: UUID
    category_id: UUID | None
    name: str
    topic: str | None
    channel_type: ChannelType
    position: int
    is_private: bool
    default_auto_archive_duration: int | None
    last_message_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class RoleRead(BaseModel):
    id: UUID
    server_id: UUID
    name: str
    color: str
    permissions: int
    position: int
    is_hoisted: bool
    is_mentionable: bool
    is_default: bool

    model_config = {"from_attributes": True}


class MemberRead(BaseModel):
    id: UUID
    user_id: UUID
    nickname: str | None
    is_owner: bool
    communication_disabled_until: datetime | None
    joined_at: datetime
    user: UserBrief | None = None
    role_ids: list[UUID] = Field(default_factory=list)


class ServerListResponse(BaseModel):
    servers: list[ServerRead]


class ServerResponse(BaseModel):
    server: ServerRead


class ServerDetail(BaseModel):
    server: ServerRead
    channels: list[ChannelRead]
    categories: list[CategoryRead]
    members: list[MemberRead]
    roles: list[RoleRead]
    current_member: MemberRead


# =============================================================================
# Roles & members
# =============================================================================

class RoleCreate(BaseModel):
    name: str = Field("new role", min_length=1, max_length=100)
    color: str = Field("#99AAB5", pattern=r"^#[0-9A-Fa-f]{6}$")
    permissions: int = Field(0, ge=0)
    is_hoisted: bool = False
    is_mentionable: bool = False


class RoleUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    color: str | None = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    permissions: int | None = Field(None, ge=0)
    position: int | None = Field(None, ge=0)
    is_hoisted: bool | None = None
    is_mentionable: bool | None = None


class RoleListResponse(BaseModel):
    roles: list[RoleRead]


class RoleResponse(BaseModel):
    role: RoleRead


class MemberUpdate(BaseModel):
    """Nickname and/or timeout. A null timeout lifts it."""
    nickname: str | None = Field(None, max_length=100)
    communication_disabled_until: datetime | None = None


class MemberResponse(BaseModel):
    member: MemberRead


# =============================================================================
# Channels
# =============================================================================

class ChannelCreate(BaseModel):
    server_id: UUID
    name: str = Field(..., max_length=100)
    channel_type: ChannelType
    category_id: UUID | None = None
    topic: str | None = Field(None, max_length=1024)
    is_private: bool = False


class ChannelUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    topic: str | None = Field(None, max_length=1024)
    position: int | None = Field(None, ge=0)
    category_id: UUID | None = None
    is_private: bool | None = None


class ChannelResponse(BaseModel):
    channel: ChannelRead


class ChannelInviteRequest(BaseModel):
    user_id: UUID | None = None
    email: str | None = Field(None, max_length=320)


class ChannelInviteResponse(BaseModel):
    success: bool = True
    message: str
    already_member: bool = False


class InviteCandidate(BaseModel):
    id: UUID
    full_name: str | None
    email: str
    avatar_url: str | None

    model_config = {"from_attributes": True}


class InviteCandidatesResponse(BaseModel):
    users: list[InviteCandidate]


# =============================================================================
# Messages & threads
# =============================================================================

class MessageCreate(BaseModel):
    content: str = Field(..., max_length=4000)
    reply_to_id: UUID | None = None


class MessageUpdate(BaseModel):
    content: str = Field(..., max_length=4000)


class MessageRead(BaseModel):
    id: UUID
    channel_id: UUID
    author_id: UUID
    author: UserBrief | None = None
    content: str
    message_type: MessageType
    reply_to_id: UUID | None
    thread_id: UUID | None
    mentions: list[str]
    mention_everyone: bool
    edited_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageListResponse(BaseModel):
    messages: list[MessageRead]


class MessageResponse(BaseModel):
    message: MessageRead


class ThreadCreate(BaseModel):
    channel_id: UUID
    name: str = Field(..., max_length=100)
    message_id: UUID | None = None
    auto_archive_duration: int | None = Field(None, ge=60, le=10080)


class ThreadRead(BaseModel):
    id: UUID
    channel_id: UUID
    parent_channel_id: UUID
    owner_id: UUID
    message_id: UUID | None
    name: str
    auto_archive_duration: int
    is_archived: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ThreadWithChannel(ThreadRead):
    thread_channel: ChannelRead | None = None


class ThreadCreateResponse(BaseModel):
    thread: ThreadRead
    channel: ChannelRead


class ThreadListResponse(BaseModel):
    threads: list[ThreadWithChannel]


# =============================================================================
# Direct messages
# =============================================================================

class DmCreate(BaseModel):
    """recipient_id for a 1:1 DM; two or more recipient_ids for a group DM."""
    recipient_id: UUID | None = None
    recipient_ids: list[UUID] = Field(default_factory=list)
    name: str | None = Field(None, max_length=100)


class DmRead(BaseModel):
    id: UUID
    is_group: bool
    name: str | None
    user1_id: UUID | None
    user2_id: UUID | None
    owner_id: UUID | None
    last_message_at: datetime | None
    created_at: datetime
    other_user: UserBrief | None = None
    members: list[UserBrief] = Field(default_factory=list)


class DmListResponse(BaseModel):
    dms: list[DmRead]
    group_dms: list[DmRead]


class DmCreateResponse(BaseModel):
    dm: DmRead
    created: bool


class DmMessageRead(BaseModel):
    id: UUID
    dm_channel_id: UUID
    author_id: UUID
    author: UserBrief | None = None
    content: str
    message_type: MessageType
    reply_to_id: UUID | None
    mentions: list[str]
    mention_everyone: bool
    edited_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class DmMessageListResponse(BaseModel):
    messages: list[DmMessageRead]


class DmMessageResponse(BaseModel):
    message: DmMessageRead


# =============================================================================
# Invites
# =============================================================================

class InviteCreate(BaseModel):
    server_id: UUID
    channel_id: UUID | None = None
    max_uses: int = Field(0, ge=0, description="0 = unlimited")
    max_age_seconds: int = Field(0, ge=0, description="0 = never expires")
    is_temporary: bool = False


class InviteServer(BaseModel):
    id: UUID
    name: str
    icon_url: str | None
    member_count: int


class InviteRead(BaseModel):
    id: UUID
    code: str
    server_id: UUID
    channel_id: UUID | None
    inviter_id: UUID
    max_uses: int
    uses: int
    max_age_seconds: int
    is_temporary: bool
    expires_at: datetime | None
    created_at: datetime
    server: InviteServer | None = None


class InviteResponse(BaseModel):
    invite: InviteRead


class JoinResponse(BaseModel):
    success: bool = True
    server: ServerRead
    membership: MemberRead
