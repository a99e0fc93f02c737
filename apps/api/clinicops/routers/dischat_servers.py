"""Team chat router - servers, roles, members, and channels."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.schemas.auth import UserSession
from clinicops.schemas.dischat import (
    ChannelCreate,
    ChannelInviteRequest,
    ChannelInviteResponse,
    ChannelRead,
    ChannelResponse,
    ChannelUpdate,
    InviteCandidate,
    InviteCandidatesResponse,
    MemberResponse,
    MemberUpdate,
    RoleCreate,
    RoleListResponse,
    RoleRead,
    RoleResponse,
    RoleUpdate,
    ServerCreate,
    ServerDetail,
    ServerListResponse,
    ServerRead,
    ServerResponse,
    ServerUpdate,
    SuccessResponse,
)
from clinicops.services import dischat_service

router = APIRouter(prefix="/dischat", tags=["dischat"])


# =============================================================================
# Servers
# =============================================================================

@router.get("/servers", response_model=ServerListResponse)
def list_servers(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    servers = dischat_service.list_servers(db, session.org_id, session.user_id)
    return ServerListResponse(servers=[ServerRead.model_validate(s) for s in servers])


@router.post("/servers", response_model=ServerResponse, status_code=201)
def create_server(
    data: ServerCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    server = dischat_service.create_server(db, session.org_id, session.user_id, data)
    return ServerResponse(server=ServerRead.model_validate(server))


@router.get("/servers/{server_id}", response_model=ServerDetail)
def get_server(
    server_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    server = dischat_service.get_server_or_404(db, session.org_id, server_id)
    return dischat_service.get_server_detail(db, server, session.user_id)


@router.patch("/servers/{server_id}", response_model=ServerResponse)
def update_server(
    server_id: UUID,
    data: ServerUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    server = dischat_service.get_server_or_404(db, session.org_id, server_id)
    server = dischat_service.update_server(db, server, session.user_id, data)
    return ServerResponse(server=ServerRead.model_validate(server))


@router.delete("/servers/{server_id}", response_model=SuccessResponse)
def delete_server(
    server_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    server = dischat_service.get_server_or_404(db, session.org_id, server_id)
    dischat_service.delete_server(db, server, session.user_id)
    return SuccessResponse()


# =============================================================================
# Roles
# =============================================================================

@router.get("/servers/{server_id}/roles", response_model=RoleListResponse)
def list_roles(
    server_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    server = dischat_service.get_server_or_404(db, session.org_id, server_id)
    roles = dischat_service.list_roles(db, server, session.user_id)
    return RoleListResponse(roles=[RoleRead.model_validate(r) for r in roles])


@router.post("/servers/{server_id}/roles", response_model=RoleResponse, status_code=201)
def create_role(
    server_id: UUID,
    data: RoleCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    server = dischat_service.get_server_or_404(db, session.org_id, server_id)
    role = dischat_service.create_role(db, server, session.user_id, data)
    return RoleResponse(role=RoleRead.model_validate(role))


@router.patch("/servers/{server_id}/roles/{role_id}", response_model=RoleResponse)
def update_role(
    server_id: UUID,
    role_id: UUID,
    data: RoleUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    server = dischat_service.get_server_or_404(db, session.org_id, server_id)
    role = dischat_service.update_role(db, server, session.user_id, role_id, data)
    return RoleResponse(role=RoleRead.model_validate(role))


@router.delete("/servers/{server_id}/roles/{role_id}", response_model=SuccessResponse)
def delete_role(
    server_id: UUID,
    role_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    server = dischat_service.get_server_or_404(db, session.org_id, server_id)
    dischat_service.delete_role(db, server, session.user_id, role_id)
    return SuccessResponse()


# =============================================================================
# Members
# =============================================================================

@router.patch("/servers/{server_id}/members/{member_id}", response_model=MemberResponse)
def update_member(
    server_id: UUID,
    member_id: UUID,
    data: MemberUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Nickname or timeout (communication_disabled_until)."""
    server = dischat_service.get_server_or_404(db, session.org_id, server_id)
    member = dischat_service.update_member(db, server, session.user_id, member_id, data)
    return MemberResponse(member=dischat_service.to_member_read(member))


@router.post(
    "/servers/{server_id}/members/{member_id}/roles/{role_id}",
    response_model=MemberResponse,
)
def assign_member_role(
    server_id: UUID,
    member_id: UUID,
    role_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    server = dischat_service.get_server_or_404(db, session.org_id, server_id)
    member = dischat_service.assign_role(db, server, session.user_id, member_id, role_id)
    return MemberResponse(member=dischat_service.to_member_read(member))


@router.delete(
    "/servers/{server_id}/members/{member_id}/roles/{role_id}",
    response_model=MemberResponse,
)
def remove_member_role(
    server_id: UUID,
    member_id: UUID,
    role_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    server = dischat_service.get_server_or_404(db, session.org_id, server_id)
    member = dischat_service.remove_role(db, server, session.user_id, member_id, role_id)
    return MemberResponse(member=dischat_service.to_member_read(member))


# =============================================================================
# Channels
# =============================================================================

@router.post("/channels", response_model=ChannelResponse, status_code=201)
def create_channel(
    data: ChannelCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    channel = dischat_service.create_channel(db, session.org_id, session.user_id, data)
    return ChannelResponse(channel=ChannelRead.model_validate(channel))


@router.patch("/channels/{channel_id}", response_model=ChannelResponse)
def update_channel(
    channel_id: UUID,
    data: ChannelUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    channel = dischat_service.get_channel_or_404(db, session.org_id, channel_id)
    channel = dischat_service.update_channel(db, channel, session.user_id, data)
    return ChannelResponse(channel=ChannelRead.model_validate(channel))


@router.delete("/channels/{channel_id}", response_model=SuccessResponse)
def delete_channel(
    channel_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    channel = dischat_service.get_channel_or_404(db, session.org_id, channel_id)
    dischat_service.delete_channel(db, channel, session.user_id)
    return SuccessResponse()


@router.post("/channels/{channel_id}/invite", response_model=ChannelInviteResponse)
def invite_to_channel(
    channel_id: UUID,
    data: ChannelInviteRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Add an org user (by id or email) to the channel's server."""
    channel = dischat_service.get_channel_or_404(db, session.org_id, channel_id)
    already_member, message = dischat_service.invite_user_to_channel(
        db, session.org_id, channel, session.user_id, data.user_id, data.email
    )
    return ChannelInviteResponse(success=True, message=message, already_member=already_member)


@router.get("/channels/{channel_id}/invite", response_model=InviteCandidatesResponse)
def list_channel_invite_candidates(
    channel_id: UUID,
    search: str | None = Query(None, max_length=100),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    channel = dischat_service.get_channel_or_404(db, session.org_id, channel_id)
    users = dischat_service.list_invite_candidates(
        db, session.org_id, channel, session.user_id, search=search
    )
    return InviteCandidatesResponse(users=[InviteCandidate.model_validate(u) for u in users])
