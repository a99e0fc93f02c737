"""Pydantic schemas for projects, invoices, and quotes."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from clinicops.db.enums import InvoiceStatus, InvoiceType, ProjectStatus


# =============================================================================
# Projects
# =============================================================================

class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    client_name: str | None = Field(None, max_length=255)
    client_email: str | None = Field(None, max_length=320)
    description: str | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    budget: float | None = Field(None, ge=0)


class ProjectUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    client_name: str | None = Field(None, max_length=255)
    client_email: str | None = Field(None, max_length=320)
    description: str | None = None
    status: ProjectStatus | None = None
    budget: float | None = Field(None, ge=0)


class ProjectRead(BaseModel):
    id: UUID
    name: str
    client_name: str | None
    client_email: str | None
    description: str | None
    status: ProjectStatus
    budget: float | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Invoices
# =============================================================================

class InvoiceItemIn(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: float = Field(1, ge=0)
    unit_price: float = 0


class InvoiceItemRead(BaseModel):
    id: UUID
    description: str
    quantity: float
    unit_price: float
    amount: float
    sort_order: int

    model_config = {"from_attributes": True}


class InvoiceCreate(BaseModel):
    invoice_type: InvoiceType = InvoiceType.INVOICE
    client_name: str | None = Field(None, max_length=255)
    client_email: str | None = Field(None, max_length=320)
    client_address: str | None = None
    issue_date: date | None = None
    due_date: date | None = None
    discount: float = Field(0, ge=0)
    tax_rate: float = Field(5, ge=0, le=100)
    currency: str = Field("AED", min_length=3, max_length=3)
    notes: str | None = None
    items: list[InvoiceItemIn] = Field(default_factory=list)


class InvoiceUpdate(BaseModel):
    """Partial update. Sending `items` replaces them and recomputes totals."""
    status: InvoiceStatus | None = None
    client_name: str | None = Field(None, max_length=255)
    client_email: str | None = Field(None, max_length=320)
    client_address: str | None = None
    issue_date: date | None = None
    due_date: date | None = None
    discount: float | None = Field(None, ge=0)
    tax_rate: float | None = Field(None, ge=0, le=100)
    currency: str | None = Field(None, min_length=3, max_length=3)
    notes: str | None = None
    items: list[InvoiceItemIn] | None = None


class InvoiceRead(BaseModel):
    id: UUID
    project_id: UUID
    invoice_number: str
    invoice_type: InvoiceType
    status: InvoiceStatus
    client_name: str | None
    client_email: str | None
    client_address: str | None
    issue_date: date
    due_date: date | None
    subtotal: float
    discount: float
    tax_rate: float
    tax_amount: float
    total: float
    currency: str
    notes: str | None
    source_quote_id: UUID | None
    items: list[InvoiceItemRead]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
