"""Organization, user, and membership models."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Numeric, String, Uuid, func, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinicops.db.base import Base, utcnow


class Organization(Base):
    """A tenant. Every business row hangs off one of these."""
    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    memberships: Mapped[list["Membership"]] = relationship(
        back_populates="organization",
        cascade="all, delete-orphan",
    )


class User(Base):
    """
    Application user.

    The id matches the `sub` claim issued by the hosted auth provider.
    No passwords stored here.
    """
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    designation: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )

    # Leave balances (days)
    annual_leave_total: Mapped[float] = mapped_column(
        Numeric(5, 1, asdecimal=False), default=30, server_default="30", nullable=False
    )
    annual_leave_used: Mapped[float] = mapped_column(
        Numeric(5, 1, asdecimal=False), default=0, server_default="0", nullable=False
    )
    sick_leave_total: Mapped[float] = mapped_column(
        Numeric(5, 1, asdecimal=False), default=90, server_default="90", nullable=False
    )
    sick_leave_used: Mapped[float] = mapped_column(
        Numeric(5, 1, asdecimal=False), default=0, server_default="0", nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    membership: Mapped["Membership | None"] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        uselist=False,
    )

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


class Membership(Base):
    """
    Links a user to an organization with a role.

    Constraint: UNIQUE(user_id) enforces ONE organization per user.
    """
    __tablename__ = "memberships"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), index=True, nullable=False
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    user: Mapped["User"] = relationship(back_populates="membership")
    organization: Mapped["Organization"] = relationship(back_populates="memberships")
