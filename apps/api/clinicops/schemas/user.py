"""Pydantic schemas for users."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from clinicops.db.enums import Role


class UserCreate(BaseModel):
    """Admin request to add a user to the organization."""
    email: EmailStr
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)
    role: Role = Role.STAFF
    designation: str | None = Field(None, max_length=255)


class UserRead(BaseModel):
    id: UUID
    full_name: str | None
    email: str
    role: Role | None = None
    designation: str | None = None
