"""Deals router - pipeline stages and deals."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db, require_roles
from clinicops.db.enums import ROLES_CAN_MANAGE_PIPELINE
from clinicops.schemas.auth import UserSession
from clinicops.schemas.deal import DealCreate, DealRead, DealStageCreate, DealStageRead, DealUpdate
from clinicops.schemas.workflow import DealStageChangedEvent
from clinicops.services import deal_service, workflow_engine

router = APIRouter(tags=["deals"])


# =============================================================================
# Stages
# =============================================================================

@router.get("/deal-stages", response_model=list[DealStageRead])
def list_stages(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return deal_service.list_stages(db, session.org_id)


@router.post("/deal-stages", response_model=DealStageRead, status_code=201)
def create_stage(
    data: DealStageCreate,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE_PIPELINE)),
    db: Session = Depends(get_db),
):
    return deal_service.create_stage(db, session.org_id, data)


# =============================================================================
# Deals
# =============================================================================

@router.get("/deals", response_model=list[DealRead])
def list_deals(
    patient_id: UUID | None = Query(None),
    stage_id: UUID | None = Query(None),
    pipeline: str | None = Query(None),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    deals = deal_service.list_deals(
        db, session.org_id, patient_id=patient_id, stage_id=stage_id, pipeline=pipeline
    )
    return [deal_service.to_deal_read(deal) for deal in deals]


@router.post("/deals", response_model=DealRead, status_code=201)
def create_deal(
    data: DealCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    deal = deal_service.create_deal(db, session.org_id, session.user_id, data)
    return deal_service.to_deal_read(deal)


@router.get("/deals/{deal_id}", response_model=DealRead)
def get_deal(
    deal_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return deal_service.to_deal_read(deal_service.get_deal_or_404(db, session.org_id, deal_id))


@router.patch("/deals/{deal_id}", response_model=DealRead)
def update_deal(
    deal_id: UUID,
    data: DealUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Update a deal.

    A stage change runs matching deal_stage_changed workflows before the
    response is returned; the summary comes back as workflow_result.
    """
    deal = deal_service.get_deal_or_404(db, session.org_id, deal_id)
    deal, previous_stage_id = deal_service.update_deal(db, deal, data)

    workflow_result = None
    if deal.stage_id and deal.stage_id != previous_stage_id:
        event = DealStageChangedEvent(
            deal_id=deal.id,
            patient_id=deal.patient_id,
            from_stage_id=previous_stage_id,
            to_stage_id=deal.stage_id,
            pipeline=deal.pipeline,
        )
        workflow_result = workflow_engine.run_deal_stage_changed(db, event, org_id=session.org_id)
        db.refresh(deal)

    return deal_service.to_deal_read(deal, workflow_result)


@router.delete("/deals/{deal_id}", status_code=204)
def delete_deal(
    deal_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    deal = deal_service.get_deal_or_404(db, session.org_id, deal_id)
    deal_service.delete_deal(db, deal)
