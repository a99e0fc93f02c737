"""Public router - shared marketing report links (no auth)."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from clinicops.core.deps import get_db
from clinicops.core.rate_limit import PUBLIC_LIMIT, limiter
from clinicops.schemas.marketing import PublicReport
from clinicops.services import marketing_service

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/reports/{token}", response_model=PublicReport)
@limiter.limit(PUBLIC_LIMIT)
def get_public_report(
    request: Request,
    token: str,
    db: Session = Depends(get_db),
):
    return marketing_service.get_public_report(db, token)
