"""Patient service - records, insurance, and public lead intake."""

import json
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from clinicops.db.base import utcnow
from clinicops.db.enums import PatientSource
from clinicops.db.models import Patient, PatientInsurance
from clinicops.schemas.patient import (
    InsuranceCreate,
    LeadContact,
    LeadSubmit,
    PatientCreate,
    PatientUpdate,
)


def list_patients(
    db: Session,
    org_id: UUID,
    q: str | None = None,
    limit: int = 50,
) -> list[Patient]:
    query = db.query(Patient).filter(Patient.organization_id == org_id)
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        query = query.filter(
            or_(
                Patient.first_name.ilike(pattern),
                Patient.last_name.ilike(pattern),
                Patient.email.ilike(pattern),
                Patient.phone.ilike(pattern),
            )
        )
    return query.order_by(Patient.created_at.desc()).limit(limit).all()


def get_patient(db: Session, org_id: UUID, patient_id: UUID) -> Patient | None:
    return (
        db.query(Patient)
        .filter(Patient.id == patient_id, Patient.organization_id == org_id)
        .first()
    )


def get_patient_or_404(db: Session, org_id: UUID, patient_id: UUID) -> Patient:
    patient = get_patient(db, org_id, patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient


def create_patient(db: Session, org_id: UUID, data: PatientCreate) -> Patient:
    values = data.model_dump()
    values["source"] = data.source.value
    if values.get("email"):
        values["email"] = values["email"].lower()
    patient = Patient(organization_id=org_id, **values)
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


def update_patient(db: Session, patient: Patient, data: PatientUpdate) -> Patient:
    """Apply only explicitly sent fields (exclude_unset)."""
    for field, value in data.model_dump(exclude_unset=True).items():
        if field in ("first_name", "last_name", "source") and value is None:
            continue
        if field == "source":
            value = value.value
        if field == "email" and value:
            value = value.lower()
        setattr(patient, field, value)
    db.commit()
    db.refresh(patient)
    return patient


def delete_patient(db: Session, patient: Patient) -> None:
    db.delete(patient)
    db.commit()


def list_insurances(db: Session, patient: Patient) -> list[PatientInsurance]:
    return (
        db.query(PatientInsurance)
        .filter(PatientInsurance.patient_id == patient.id)
        .order_by(PatientInsurance.created_at.desc())
        .all()
    )


def add_insurance(db: Session, patient: Patient, data: InsuranceCreate) -> PatientInsurance:
    insurance = PatientInsurance(patient_id=patient.id, **data.model_dump())
    db.add(insurance)
    db.commit()
    db.refresh(insurance)
    return insurance


def latest_insurance(db: Session, patient_id: UUID) -> PatientInsurance | None:
    return (
        db.query(PatientInsurance)
        .filter(PatientInsurance.patient_id == patient_id)
        .order_by(PatientInsurance.created_at.desc())
        .first()
    )


# =============================================================================
# Public lead form
# =============================================================================

def _normalized_contact(contact: LeadContact) -> tuple[str | None, str | None]:
    """Lowercased email and "{code} {number}" phone, or None for each."""
    email = (contact.email or "").strip().lower() or None
    number = (contact.phone_number or "").strip()
    code = (contact.phone_code or "").strip()
    phone = f"{code} {number}".strip() if number else None
    return email, phone


def find_existing_patient(db: Session, org_id: UUID, contact: LeadContact) -> Patient | None:
    """
    Dedupe a lead against existing patients.
    
    Email match (case-insensitive) wins; phone is the fallback.
    
    Raises:
        HTTPException 400: Neither email nor phone provided
    """
    email, phone = _normalized_contact(contact)
    if not email and not phone:
        raise HTTPException(status_code=400, detail="Email or phone is required")

    base = db.query(Patient).filter(Patient.organization_id == org_id)
    if email:
        patient = base.filter(func.lower(Patient.email) == email).first()
        if patient:
            return patient
    if phone:
        return base.filter(Patient.phone == phone).first()
    return None


def submit_lead(db: Session, org_id: UUID, data: LeadSubmit) -> Patient:
    """
    Create or update a patient from the public lead form.
    
    Raises:
        HTTPException 400: Consent missing, or no contact info
    """
    if not data.consent_accepted:
        raise HTTPException(status_code=400, detail="Consent is required")

    email, phone = _normalized_contact(data)
    patient = find_existing_patient(db, org_id, data)

    values = {
        "first_name": data.first_name.strip(),
        "last_name": data.last_name.strip(),
        "email": email,
        "phone": phone,
        "nationality": data.nationality,
        "street_address": data.street_address,
        "postal_code": data.postal_code,
        "town": data.town,
        "profession": data.profession,
        "current_employer": data.current_employer,
        "language_preference": data.language,
        "source": PatientSource.LEAD_FORM.value,
    }
    if data.dob:
        values["dob"] = data.dob
    if data.marital_status:
        values["marital_status"] = data.marital_status

    if patient:
        for field, value in values.items():
            setattr(patient, field, value)
    else:
        patient = Patient(organization_id=org_id, **values)
        db.add(patient)
    db.flush()

    insurance = data.insurance
    if insurance and insurance.provider_name and insurance.card_number and insurance.type:
        existing = latest_insurance(db, patient.id)
        if existing:
            existing.provider_name = insurance.provider_name
            existing.card_number = insurance.card_number
            existing.insurance_type = insurance.type
        else:
            db.add(
                PatientInsurance(
                    patient_id=patient.id,
                    provider_name=insurance.provider_name,
                    card_number=insurance.card_number,
                    insurance_type=insurance.type,
                )
            )

    snapshot = {
        "submitted_at": utcnow().isoformat(),
        "language": data.language,
        "contact_preference": data.contact_preference,
        "health": data.health,
    }
    entry = f"\n\n[Lead form] {json.dumps(snapshot, indent=2)}"
    patient.notes = ((patient.notes or "") + entry).strip()

    db.commit()
    db.refresh(patient)
    return patient
