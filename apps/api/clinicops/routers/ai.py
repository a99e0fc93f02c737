"""AI helper endpoints. Each one answers with a canned fallback when the provider is down."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.schemas.ai import (
    DailyQuoteResponse,
    GenerateDescriptionRequest,
    GenerateDescriptionResponse,
)
from clinicops.schemas.auth import UserSession
from clinicops.schemas.leave import LeaveRecommendation
from clinicops.services import ai_service, user_service

router = APIRouter(prefix="/ai", tags=["ai"])


@router.get("/daily-quote", response_model=DailyQuoteResponse)
def daily_quote(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return ai_service.get_daily_quote(db, session.user_id)


@router.get("/leave-recommendation", response_model=LeaveRecommendation)
def leave_recommendation(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    user = user_service.get_org_user(db, session.org_id, session.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return ai_service.get_leave_recommendation(db, session.org_id, user)


@router.post("/generate-description", response_model=GenerateDescriptionResponse)
def generate_description(
    data: GenerateDescriptionRequest,
    session: UserSession = Depends(get_current_session),
):
    return GenerateDescriptionResponse(description=ai_service.generate_invoice_description(data))
