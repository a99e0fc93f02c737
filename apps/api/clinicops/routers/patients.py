"""Patients router - records and insurance."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.schemas.auth import UserSession
from clinicops.schemas.patient import (
    InsuranceCreate,
    InsuranceRead,
    PatientCreate,
    PatientRead,
    PatientUpdate,
)
from clinicops.services import patient_service

router = APIRouter(prefix="/patients", tags=["patients"])


@router.get("", response_model=list[PatientRead])
def list_patients(
    q: str | None = Query(None, description="Search name, email, or phone"),
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return patient_service.list_patients(db, session.org_id, q=q, limit=limit)


@router.post("", response_model=PatientRead, status_code=201)
def create_patient(
    data: PatientCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return patient_service.create_patient(db, session.org_id, data)


@router.get("/{patient_id}", response_model=PatientRead)
def get_patient(
    patient_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return patient_service.get_patient_or_404(db, session.org_id, patient_id)


@router.patch("/{patient_id}", response_model=PatientRead)
def update_patient(
    patient_id: UUID,
    data: PatientUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    patient = patient_service.get_patient_or_404(db, session.org_id, patient_id)
    return patient_service.update_patient(db, patient, data)


@router.delete("/{patient_id}", status_code=204)
def delete_patient(
    patient_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    patient = patient_service.get_patient_or_404(db, session.org_id, patient_id)
    patient_service.delete_patient(db, patient)


@router.get("/{patient_id}/insurances", response_model=list[InsuranceRead])
def list_insurances(
    patient_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    patient = patient_service.get_patient_or_404(db, session.org_id, patient_id)
    return patient_service.list_insurances(db, patient)


@router.post("/{patient_id}/insurances", response_model=InsuranceRead, status_code=201)
def add_insurance(
    patient_id: UUID,
    data: InsuranceCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    patient = patient_service.get_patient_or_404(db, session.org_id, patient_id)
    return patient_service.add_insurance(db, patient, data)
