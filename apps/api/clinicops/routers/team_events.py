"""Team calendar router."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.schemas.auth import UserSession
from clinicops.schemas.leave import TeamEventCreate, TeamEventRead
from clinicops.services import leave_service

router = APIRouter(prefix="/team-events", tags=["team-events"])


@router.get("", response_model=list[TeamEventRead])
def list_team_events(
    start: date | None = Query(None),
    end: date | None = Query(None),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return leave_service.list_team_events(db, session.org_id, start=start, end=end)


@router.post("", response_model=TeamEventRead, status_code=201)
def create_team_event(
    data: TeamEventCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return leave_service.create_team_event(db, session.org_id, session.user_id, data)
