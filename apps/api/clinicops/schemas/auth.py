"""Session schemas. Tokens come from the hosted auth provider; only the session lives here."""

from uuid import UUID

from pydantic import BaseModel

from clinicops.db.enums import Role


class UserSession(BaseModel):
    """
    Caller context resolved by get_current_session.

    One user belongs to exactly one organization, so org_id and role come
    straight from the membership row.
    """
    user_id: UUID
    org_id: UUID
    role: Role
    email: str
    display_name: str


class MeResponse(BaseModel):
    user_id: UUID
    email: str
    display_name: str
    designation: str | None = None
    avatar_url: str | None = None
    org_id: UUID
    org_name: str
    org_slug: str
    role: Role
