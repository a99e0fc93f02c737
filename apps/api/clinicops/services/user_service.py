"""User service - org user directory and provisioning."""

from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from clinicops.core.config import settings
from clinicops.db.models import Membership, Organization, User
from clinicops.schemas.user import UserCreate, UserRead


def get_org_user(db: Session, org_id: UUID, user_id: UUID) -> User | None:
    """User by id, only if they belong to the organization."""
    return (
        db.query(User)
        .join(Membership, Membership.user_id == User.id)
        .filter(User.id == user_id, Membership.organization_id == org_id)
        .first()
    )


def get_org_user_by_email(db: Session, org_id: UUID, email: str) -> User | None:
    return (
        db.query(User)
        .join(Membership, Membership.user_id == User.id)
        .filter(User.email == email.strip().lower(), Membership.organization_id == org_id)
        .first()
    )


def list_users(db: Session, org_id: UUID) -> list[UserRead]:
    rows = (
        db.query(User, Membership.role)
        .join(Membership, Membership.user_id == User.id)
        .filter(Membership.organization_id == org_id)
        .order_by(User.full_name.asc())
        .all()
    )
    return [to_user_read(user, role) for user, role in rows]


def create_user(db: Session, org_id: UUID, data: UserCreate) -> tuple[User, Membership]:
    """
    Create a user profile plus membership.
    
    Raises:
        HTTPException 409: Email already registered
    """
    email = data.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="User already exists")

    full_name = f"{data.first_name.strip()} {data.last_name.strip()}".strip() or None
    user = User(
        email=email,
        full_name=full_name,
        designation=data.designation,
        annual_leave_total=settings.DEFAULT_ANNUAL_LEAVE_DAYS,
        sick_leave_total=settings.DEFAULT_SICK_LEAVE_DAYS,
    )
    db.add(user)
    db.flush()

    membership = Membership(
        user_id=user.id,
        organization_id=org_id,
        role=data.role.value,
    )
    db.add(membership)
    db.commit()
    db.refresh(user)
    return user, membership


def get_organization(db: Session, org_id: UUID) -> Organization | None:
    return db.query(Organization).filter(Organization.id == org_id).first()


def get_organization_by_slug(db: Session, slug: str) -> Organization | None:
    return db.query(Organization).filter(Organization.slug == slug).first()


def to_user_read(user: User, role: str | None = None) -> UserRead:
    return UserRead(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        role=role,
        designation=user.designation,
    )
