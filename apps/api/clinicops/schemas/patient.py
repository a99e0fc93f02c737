"""Pydantic schemas for patients and the public lead form."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from clinicops.db.enums import PatientSource


class PatientBase(BaseModel):
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    dob: date | None = None
    gender: str | None = Field(None, max_length=30)
    nationality: str | None = Field(None, max_length=100)
    street_address: str | None = Field(None, max_length=255)
    postal_code: str | None = Field(None, max_length=30)
    town: str | None = Field(None, max_length=100)
    profession: str | None = Field(None, max_length=150)
    current_employer: str | None = Field(None, max_length=150)
    marital_status: str | None = Field(None, max_length=30)
    language_preference: str | None = Field(None, max_length=30)
    notes: str | None = None


class PatientCreate(PatientBase):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    source: PatientSource = PatientSource.MANUAL


class PatientUpdate(PatientBase):
    """Partial update; only fields that are sent are applied."""
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    source: PatientSource | None = None


class PatientRead(PatientBase):
    id: UUID
    first_name: str
    last_name: str
    email: str | None = None
    source: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InsuranceCreate(BaseModel):
    provider_name: str = Field(..., min_length=1, max_length=150)
    card_number: str = Field(..., min_length=1, max_length=100)
    insurance_type: str = Field(..., min_length=1, max_length=50)


class InsuranceRead(InsuranceCreate):
    id: UUID
    patient_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Public lead form
# =============================================================================

class LeadContact(BaseModel):
    email: str | None = None
    phone_code: str | None = None
    phone_number: str | None = None


class LeadLookupResponse(BaseModel):
    patient: PatientRead | None = None
    insurance: InsuranceRead | None = None


class LeadInsurance(BaseModel):
    provider_name: str | None = None
    card_number: str | None = None
    type: str | None = None


class LeadSubmit(LeadContact):
    consent_accepted: bool = False
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)
    dob: date | None = None
    marital_status: str | None = None
    nationality: str | None = None
    street_address: str | None = None
    postal_code: str | None = None
    town: str | None = None
    profession: str | None = None
    current_employer: str | None = None
    language: str | None = None
    contact_preference: str | None = None
    insurance: LeadInsurance | None = None
    health: dict[str, Any] | None = None


class LeadSubmitResponse(BaseModel):
    patient_id: UUID
