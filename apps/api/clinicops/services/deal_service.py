"""Deal service - pipeline stages and deals."""

from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from clinicops.db.models import Deal, DealStage
from clinicops.schemas.deal import DealCreate, DealRead, DealStageCreate, DealUpdate
from clinicops.schemas.workflow import WorkflowRunResult
from clinicops.services import patient_service


# =============================================================================
# Stages
# =============================================================================

def list_stages(db: Session, org_id: UUID) -> list[DealStage]:
    return (
        db.query(DealStage)
        .filter(DealStage.organization_id == org_id)
        .order_by(DealStage.sort_order.asc(), DealStage.created_at.asc())
        .all()
    )


def get_stage(db: Session, org_id: UUID, stage_id: UUID) -> DealStage | None:
    return (
        db.query(DealStage)
        .filter(DealStage.id == stage_id, DealStage.organization_id == org_id)
        .first()
    )


def get_default_stage(db: Session, org_id: UUID) -> DealStage | None:
    """Stage flagged is_default, else the first by sort_order."""
    stage = (
        db.query(DealStage)
        .filter(DealStage.organization_id == org_id, DealStage.is_default.is_(True))
        .first()
    )
    if stage:
        return stage
    stages = list_stages(db, org_id)
    return stages[0] if stages else None


def create_stage(db: Session, org_id: UUID, data: DealStageCreate) -> DealStage:
    if data.is_default:
        # Only one default per org
        db.query(DealStage).filter(
            DealStage.organization_id == org_id,
            DealStage.is_default.is_(True),
        ).update({DealStage.is_default: False})
    stage = DealStage(
        organization_id=org_id,
        name=data.name,
        stage_type=data.stage_type.value,
        sort_order=data.sort_order,
        is_default=data.is_default,
    )
    db.add(stage)
    db.commit()
    db.refresh(stage)
    return stage


# =============================================================================
# Deals
# =============================================================================

def list_deals(
    db: Session,
    org_id: UUID,
    patient_id: UUID | None = None,
    stage_id: UUID | None = None,
    pipeline: str | None = None,
) -> list[Deal]:
    query = db.query(Deal).filter(Deal.organization_id == org_id)
    if patient_id:
        query = query.filter(Deal.patient_id == patient_id)
    if stage_id:
        query = query.filter(Deal.stage_id == stage_id)
    if pipeline:
        query = query.filter(Deal.pipeline == pipeline)
    return query.order_by(Deal.created_at.desc()).all()


def get_deal_or_404(db: Session, org_id: UUID, deal_id: UUID) -> Deal:
    deal = (
        db.query(Deal)
        .filter(Deal.id == deal_id, Deal.organization_id == org_id)
        .first()
    )
    if not deal:
        raise HTTPException(status_code=404, detail="Deal not found")
    return deal


def _require_stage(db: Session, org_id: UUID, stage_id: UUID) -> DealStage:
    stage = get_stage(db, org_id, stage_id)
    if not stage:
        raise HTTPException(status_code=404, detail="Stage not found")
    return stage


def create_deal(db: Session, org_id: UUID, user_id: UUID, data: DealCreate) -> Deal:
    patient_service.get_patient_or_404(db, org_id, data.patient_id)

    if data.stage_id:
        stage = _require_stage(db, org_id, data.stage_id)
    else:
        stage = get_default_stage(db, org_id)

    deal = Deal(
        organization_id=org_id,
        patient_id=data.patient_id,
        stage_id=stage.id if stage else None,
        title=data.title,
        pipeline=data.pipeline,
        service=data.service,
        contact_label=data.contact_label,
        location=data.location,
        value=data.value,
        notes=data.notes,
        created_by_user_id=user_id,
    )
    db.add(deal)
    db.commit()
    db.refresh(deal)
    return deal


def update_deal(db: Session, deal: Deal, data: DealUpdate) -> tuple[Deal, UUID | None]:
    """
    Apply a partial update.
    
    Returns (deal, previous_stage_id) so the caller can tell whether the
    stage moved.
    """
    previous_stage_id = deal.stage_id
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("stage_id"):
        _require_stage(db, deal.organization_id, update_data["stage_id"])

    for field, value in update_data.items():
        if field == "title" and value is None:
            continue
        setattr(deal, field, value)

    db.commit()
    db.refresh(deal)
    return deal, previous_stage_id


def delete_deal(db: Session, deal: Deal) -> None:
    db.delete(deal)
    db.commit()


def to_deal_read(deal: Deal, workflow_result: WorkflowRunResult | None = None) -> DealRead:
    return DealRead(
        id=deal.id,
        patient_id=deal.patient_id,
        stage_id=deal.stage_id,
        stage_name=deal.stage.name if deal.stage else None,
        title=deal.title,
        pipeline=deal.pipeline,
        service=deal.service,
        contact_label=deal.contact_label,
        location=deal.location,
        value=deal.value,
        notes=deal.notes,
        created_at=deal.created_at,
        updated_at=deal.updated_at,
        workflow_result=workflow_result,
    )
