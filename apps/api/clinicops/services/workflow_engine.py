"""
Workflow engine for deal stage changes.

Matches active deal_stage_changed workflows against the event, renders each
email action against the patient/deal/stage context, and logs one `emails`
row per scheduled send. Delayed and recurring sends are expanded up front
into future-dated rows; Mailgun holds them until their delivery time.
"""

import logging
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from clinicops.core.config import settings
from clinicops.db.base import utcnow
from clinicops.db.enums import EmailSendMode, WorkflowActionType, WorkflowTriggerType
from clinicops.db.models import Deal, DealStage, Patient, Workflow, WorkflowAction
from clinicops.schemas.workflow import (
    DealStageChangedEvent,
    SendTestEmailRequest,
    SendTestEmailResponse,
    WorkflowRunResult,
)
from clinicops.services import email_service
from clinicops.services.template_service import render_email_body, render_template, text_to_html

logger = logging.getLogger(__name__)

MAX_RECURRING_SENDS = 30

DEFAULT_SUBJECT_TEMPLATE = "Your information request has been processed"
DEFAULT_BODY_TEMPLATE = "\n".join(
    [
        "Hi {{patient.first_name}}",
        "",
        "We wanted to let you know that your request for information has now been processed.",
        "",
        "Deal: {{deal.title}}",
        "Pipeline: {{deal.pipeline}}",
        "",
        "Best regards,",
        "Your clinic team",
    ]
)


def _matches(workflow: Workflow, event: DealStageChangedEvent) -> bool:
    """Every filter set on the workflow config must agree with the event."""
    config = workflow.config or {}

    to_stage_id = config.get("to_stage_id")
    if to_stage_id and str(to_stage_id) != str(event.to_stage_id):
        return False

    from_stage_id = config.get("from_stage_id")
    if from_stage_id and str(from_stage_id) != str(event.from_stage_id):
        return False

    # A payload without a pipeline does not narrow the match
    pipeline = config.get("pipeline")
    if pipeline and event.pipeline and str(pipeline).lower() != event.pipeline.lower():
        return False

    return True


def _stage_context(stage: DealStage | None) -> dict[str, Any] | None:
    if not stage:
        return None
    return {"id": str(stage.id), "name": stage.name, "type": stage.stage_type}


def build_context(
    patient: Patient,
    deal: Deal,
    from_stage: DealStage | None,
    to_stage: DealStage | None,
) -> dict[str, Any]:
    """Nested template context for {{ patient.first_name }} style variables."""
    return {
        "patient": {
            "id": str(patient.id),
            "first_name": patient.first_name,
            "last_name": patient.last_name,
            "email": patient.email,
            "phone": patient.phone,
        },
        "deal": {
            "id": str(deal.id),
            "title": deal.title,
            "pipeline": deal.pipeline,
            "notes": deal.notes,
        },
        "from_stage": _stage_context(from_stage),
        "to_stage": _stage_context(to_stage),
    }


def _positive_int(value: Any) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def compute_send_times(config: dict[str, Any], now: datetime) -> list[datetime]:
    """
    Expand an action's send_mode into concrete send times.
    
    - immediate: [now]
    - delay: [now + delay_minutes]
    - recurring: now + i * every_days for i in range(times), times capped at 30

    A recurring or delay action without valid positive numbers sends once, now.
    """
    mode = config.get("send_mode") or EmailSendMode.IMMEDIATE.value

    if mode == EmailSendMode.RECURRING.value:
        every_days = _positive_int(config.get("recurring_every_days"))
        times = _positive_int(config.get("recurring_times"))
        if every_days and times:
            times = min(times, MAX_RECURRING_SENDS)
            return [now + timedelta(days=i * every_days) for i in range(times)]

    if mode == EmailSendMode.DELAY.value:
        delay_minutes = _positive_int(config.get("delay_minutes"))
        if delay_minutes:
            return [now + timedelta(minutes=delay_minutes)]

    return [now]


def _run_patient_email_action(
    db: Session,
    action: WorkflowAction,
    context: dict[str, Any],
    *,
    patient: Patient,
    deal: Deal,
) -> int:
    """Returns the number of emails logged (0 when the patient has no email)."""
    if not patient.email:
        logger.info(
            "Skipping workflow email, patient has no email",
            extra={"action_id": str(action.id), "patient_id": str(patient.id)},
        )
        return 0

    config = action.config or {}
    subject = render_template(
        config.get("subject_template") or DEFAULT_SUBJECT_TEMPLATE, context
    )
    html = render_email_body(
        context,
        body_template=config.get("body_template") or DEFAULT_BODY_TEMPLATE,
        body_html_template=config.get("body_html_template"),
        use_html=bool(config.get("use_html")),
    )

    sent = 0
    for send_at in compute_send_times(config, utcnow()):
        email_log = email_service.log_outbound_email(
            db,
            org_id=deal.organization_id,
            to_email=patient.email,
            subject=subject,
            html=html,
            patient_id=patient.id,
            deal_id=deal.id,
            scheduled_at=send_at,
        )
        if settings.mailgun_configured:
            email_service.dispatch_email(db, email_log)
        sent += 1
    return sent


def run_deal_stage_changed(
    db: Session,
    event: DealStageChangedEvent,
    org_id: UUID | None = None,
) -> WorkflowRunResult:
    """
    Fire deal_stage_changed workflows for one stage move.
    
    org_id scopes the lookup for session callers; internal callers pass
    None and the deal's own organization is used.
    
    Raises:
        HTTPException 404: Deal or patient not found
    """
    deal_query = db.query(Deal).filter(Deal.id == event.deal_id)
    if org_id:
        deal_query = deal_query.filter(Deal.organization_id == org_id)
    deal = deal_query.first()
    if not deal:
        raise HTTPException(status_code=404, detail="Deal not found")

    patient = (
        db.query(Patient)
        .filter(Patient.id == event.patient_id, Patient.organization_id == deal.organization_id)
        .first()
    )
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")

    stage_ids = [sid for sid in (event.from_stage_id, event.to_stage_id) if sid]
    stages = {
        stage.id: stage
        for stage in db.query(DealStage).filter(
            DealStage.id.in_(stage_ids),
            DealStage.organization_id == deal.organization_id,
        )
    }

    candidates = (
        db.query(Workflow)
        .filter(
            Workflow.organization_id == deal.organization_id,
            Workflow.trigger_type == WorkflowTriggerType.DEAL_STAGE_CHANGED.value,
            Workflow.active.is_(True),
        )
        .order_by(Workflow.created_at.asc())
        .all()
    )
    matched = [wf for wf in candidates if _matches(wf, event)]
    if not matched:
        return WorkflowRunResult(ok=True, workflows=0, actions_run=0)

    context = build_context(
        patient,
        deal,
        stages.get(event.from_stage_id) if event.from_stage_id else None,
        stages.get(event.to_stage_id),
    )

    actions_run = 0
    for workflow in matched:
        for action in sorted(workflow.actions, key=lambda a: a.sort_order):
            if action.action_type == WorkflowActionType.DRAFT_EMAIL_PATIENT.value:
                actions_run += _run_patient_email_action(
                    db, action, context, patient=patient, deal=deal
                )
            else:
                logger.info(
                    "Workflow action type has no executor, skipping",
                    extra={"action_type": action.action_type, "workflow_id": str(workflow.id)},
                )

    logger.info(
        "Deal stage workflows ran",
        extra={
            "deal_id": str(deal.id),
            "workflows": len(matched),
            "actions_run": actions_run,
        },
    )
    return WorkflowRunResult(ok=True, workflows=len(matched), actions_run=actions_run)


# =============================================================================
# Test send
# =============================================================================

def sample_context(to_email: str) -> dict[str, Any]:
    return {
        "patient": {
            "id": "test-patient-id",
            "first_name": "Test",
            "last_name": "Patient",
            "email": to_email,
            "phone": "+41000000000",
        },
        "deal": {
            "id": "test-deal-id",
            "title": "Sample procedure",
            "pipeline": "Test pipeline",
            "notes": "Sample notes for test email.",
        },
        "from_stage": {"id": "from-stage-id", "name": "Request for information", "type": "open"},
        "to_stage": {"id": "to-stage-id", "name": "Request processed", "type": "open"},
    }


def render_test_email(data: SendTestEmailRequest) -> tuple[str, str]:
    """Render subject/html against sample data, with placeholders for empty bodies."""
    context = sample_context(data.to)
    subject = render_template(data.subject_template or DEFAULT_SUBJECT_TEMPLATE, context)

    if data.use_html and data.body_html_template and data.body_html_template.strip():
        html = render_email_body(
            context, body_template=None, body_html_template=data.body_html_template, use_html=True
        )
        if not html.strip():
            html = "<p>(Empty HTML body)</p>"
    else:
        body_template = data.body_template if data.body_template is not None else DEFAULT_BODY_TEMPLATE
        rendered = render_template(body_template, context)
        html = text_to_html(rendered or "(Empty body)")
    return subject, html


def send_test_email(db: Session, org_id: UUID, data: SendTestEmailRequest) -> SendTestEmailResponse:
    subject, html = render_test_email(data)
    email_log = email_service.send_email(
        db, org_id=org_id, to_email=data.to, subject=subject, html=html
    )
    return SendTestEmailResponse(ok=True, email_id=email_log.id, subject=subject, html=html)
