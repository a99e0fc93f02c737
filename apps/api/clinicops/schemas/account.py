"""Pydantic schemas for client accounts and statements of account."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from clinicops.db.enums import AdhocStatus, ClientCategory, ClientType, ContractType


# =============================================================================
# Clients
# =============================================================================

class AccountClientCreate(BaseModel):
    client_name: str = Field(..., max_length=255)
    industry: str | None = Field(None, max_length=100)
    avatar_url: str | None = Field(None, max_length=500)
    client_type: ClientType | None = None
    client_category: ClientCategory = ClientCategory.ACTIVE_RETAINER
    client_since: date | None = None
    end_date: date | None = None
    services_signed: list[str] = Field(default_factory=list)
    contract_type: ContractType | None = None
    invoice_due_day: str | None = Field(None, max_length=20)
    retainer_fee: float = Field(0, ge=0)
    service_based_fee: float = Field(0, ge=0)
    currency: str = Field("AED", min_length=3, max_length=3)
    notes: str | None = None


class AccountClientUpdate(BaseModel):
    client_name: str | None = Field(None, max_length=255)
    industry: str | None = Field(None, max_length=100)
    avatar_url: str | None = Field(None, max_length=500)
    client_type: ClientType | None = None
    client_category: ClientCategory | None = None
    client_since: date | None = None
    end_date: date | None = None
    services_signed: list[str] | None = None
    contract_type: ContractType | None = None
    invoice_due_day: str | None = Field(None, max_length=20)
    retainer_fee: float | None = Field(None, ge=0)
    service_based_fee: float | None = Field(None, ge=0)
    currency: str | None = Field(None, min_length=3, max_length=3)
    notes: str | None = None


class AccountClientRead(BaseModel):
    id: UUID
    client_name: str
    industry: str | None
    avatar_url: str | None
    client_type: ClientType | None
    client_category: ClientCategory
    client_since: date | None
    end_date: date | None
    services_signed: list[str]
    contract_type: ContractType | None
    invoice_due_day: str | None
    retainer_fee: float
    service_based_fee: float
    currency: str
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Ad-hoc requirements
# =============================================================================

class AdhocCreate(BaseModel):
    date_requested: date | None = None  # Defaults to today
    description: str = Field(..., max_length=2000)
    service_date_start: date | None = None
    service_date_end: date | None = None
    amount: float = Field(0, ge=0)
    status: AdhocStatus = AdhocStatus.PENDING
    notes: str | None = None


class AdhocUpdate(BaseModel):
    date_requested: date | None = None
    description: str | None = Field(None, max_length=2000)
    service_date_start: date | None = None
    service_date_end: date | None = None
    amount: float | None = Field(None, ge=0)
    status: AdhocStatus | None = None
    notes: str | None = None


class AdhocRead(BaseModel):
    id: UUID
    client_id: UUID
    date_requested: date
    description: str
    service_date_start: date | None
    service_date_end: date | None
    amount: float
    currency: str
    status: AdhocStatus
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Statement of account
# =============================================================================

class StatementClient(BaseModel):
    id: UUID
    name: str
    industry: str | None
    contract_type: ContractType | None
    client_since: date | None


class StatementFees(BaseModel):
    retainer: float
    service_based: float
    adhoc: float
    total: float


class StatementRead(BaseModel):
    client: StatementClient
    period: str  # e.g. "March 2026"
    currency: str
    fees: StatementFees
    adhoc_items: list[AdhocRead]
    generated_at: datetime
