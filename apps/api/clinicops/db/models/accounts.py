"""Client accounts (retainers) and their ad-hoc billable requirements."""

import uuid
from datetime import date, datetime

from sqlalchemy import Date, ForeignKey, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinicops.db.base import Base, JSONType, utcnow


class AccountClient(Base):
    __tablename__ = "account_clients"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), index=True, nullable=False
    )
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    industry: Mapped[str | None] = mapped_column(String(100), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    client_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    client_category: Mapped[str] = mapped_column(
        String(30), default="active_retainer", nullable=False
    )
    client_since: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    services_signed: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    contract_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    invoice_due_day: Mapped[str | None] = mapped_column(String(20), nullable=True)
    retainer_fee: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), default=0, nullable=False
    )
    service_based_fee: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), default=0, nullable=False
    )
    currency: Mapped[str] = mapped_column(String(3), default="AED", nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    adhoc_requirements: Mapped[list["AccountAdhocRequirement"]] = relationship(
        back_populates="client",
        cascade="all, delete-orphan",
    )


class AccountAdhocRequirement(Base):
    """Work requested outside the retainer, billed on top of it."""
    __tablename__ = "account_adhoc_requirements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("account_clients.id", ondelete="CASCADE"), index=True, nullable=False
    )
    date_requested: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    service_date_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    service_date_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="AED", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    client: Mapped["AccountClient"] = relationship(back_populates="adhoc_requirements")
