"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator
from uuid import UUID

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from clinicops.core.config import settings
from clinicops.core.security import decode_access_token, extract_bearer_token, verify_secret
from clinicops.db.session import SessionLocal


INTERNAL_SECRET_HEADER = "X-Internal-Secret"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    
    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Get authenticated user from the bearer token.
    
    Validates:
    - Authorization header carries a bearer token
    - JWT is valid, unexpired, and meant for this audience
    - User exists and is active
    
    Raises:
        HTTPException 401: Authentication failed
    """
    # Import here to avoid circular imports
    from clinicops.db.models import User
    
    token = extract_bearer_token(request.headers.get("Authorization"))
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    
    try:
        payload = decode_access_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")
    
    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token")
    
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    
    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account disabled")
    
    return user


def get_current_session(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Get full session context: user_id, org_id, role.
    
    This is the PRIMARY auth dependency for most endpoints.
    
    Raises:
        HTTPException 401: Not authenticated
        HTTPException 403: No membership or unknown role
    """
    from clinicops.db.models import Membership
    from clinicops.db.enums import Role
    from clinicops.schemas.auth import UserSession
    
    user = get_current_user(request, db)
    
    membership = db.query(Membership).filter(
        Membership.user_id == user.id
    ).first()
    
    if not membership:
        raise HTTPException(status_code=403, detail="No organization membership")
    
    # Validate role is a known enum value - return 403 not 500
    if not Role.has_value(membership.role):
        raise HTTPException(
            status_code=403,
            detail=f"Unknown role '{membership.role}'. Contact administrator."
        )
    
    request.state.user_id = str(user.id)
    request.state.org_id = str(membership.organization_id)
    
    return UserSession(
        user_id=user.id,
        org_id=membership.organization_id,
        role=Role(membership.role),
        email=user.email,
        display_name=user.display_name,
    )


def require_roles(allowed_roles):
    """
    Dependency factory for role-based authorization.
    
    Usage:
        @router.post("/admin", dependencies=[Depends(require_roles([Role.ADMIN]))])
    """
    def dependency(request: Request, db: Session = Depends(get_db)):
        session = get_current_session(request, db)
        if session.role not in allowed_roles:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return session
    return dependency


def get_trigger_caller(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Auth for webhook-style trigger endpoints.
    
    Internal callers present X-Internal-Secret and get None back (no session,
    org comes from the payload). Anyone else must hold a normal session.
    """
    provided = request.headers.get(INTERNAL_SECRET_HEADER)
    if provided is not None:
        if not verify_secret(provided, settings.INTERNAL_SECRET):
            raise HTTPException(status_code=403, detail="Invalid internal secret")
        return None
    return get_current_session(request, db)


# =============================================================================
# Permission Check Helpers (use enum sets from db.enums)
# =============================================================================

def can_view_all_leave(session) -> bool:
    from clinicops.db.enums import ROLES_CAN_VIEW_ALL_LEAVE
    return session.role in ROLES_CAN_VIEW_ALL_LEAVE


def can_file_leave_for_others(session) -> bool:
    from clinicops.db.enums import ROLES_CAN_FILE_LEAVE_FOR_OTHERS
    return session.role in ROLES_CAN_FILE_LEAVE_FOR_OTHERS


def can_manage_support(session) -> bool:
    from clinicops.db.enums import ROLES_CAN_MANAGE_SUPPORT
    return session.role in ROLES_CAN_MANAGE_SUPPORT
