"""
Public lead form endpoints (unauthenticated).

The organization is picked by slug in the path; an unknown slug is a 404.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from clinicops.core.deps import get_db
from clinicops.core.rate_limit import PUBLIC_LIMIT, limiter
from clinicops.db.models import Organization
from clinicops.schemas.patient import (
    InsuranceRead,
    LeadContact,
    LeadLookupResponse,
    LeadSubmit,
    LeadSubmitResponse,
    PatientRead,
)
from clinicops.services import patient_service, user_service

router = APIRouter(prefix="/public/{org_slug}/leads", tags=["leads"])


def _get_org_or_404(db: Session, org_slug: str) -> Organization:
    org = user_service.get_organization_by_slug(db, org_slug)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


@router.post("/lookup", response_model=LeadLookupResponse)
@limiter.limit(PUBLIC_LIMIT)
def lookup_lead(
    request: Request,
    org_slug: str,
    data: LeadContact,
    db: Session = Depends(get_db),
):
    """Prefill the form for a returning patient."""
    org = _get_org_or_404(db, org_slug)
    patient = patient_service.find_existing_patient(db, org.id, data)
    if not patient:
        return LeadLookupResponse()
    insurance = patient_service.latest_insurance(db, patient.id)
    return LeadLookupResponse(
        patient=PatientRead.model_validate(patient),
        insurance=InsuranceRead.model_validate(insurance) if insurance else None,
    )


@router.post("", response_model=LeadSubmitResponse, status_code=201)
@limiter.limit(PUBLIC_LIMIT)
def submit_lead(
    request: Request,
    org_slug: str,
    data: LeadSubmit,
    db: Session = Depends(get_db),
):
    org = _get_org_or_404(db, org_slug)
    patient = patient_service.submit_lead(db, org.id, data)
    return LeadSubmitResponse(patient_id=patient.id)
