"""Project service - projects, invoices, and quotes."""

import logging
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from clinicops.db.base import utcnow
from clinicops.db.enums import INVOICE_NUMBER_PREFIXES, InvoiceStatus, InvoiceType
from clinicops.db.models import Invoice, InvoiceItem, Project
from clinicops.schemas.project import (
    InvoiceCreate,
    InvoiceItemIn,
    InvoiceUpdate,
    ProjectCreate,
    ProjectUpdate,
)

logger = logging.getLogger(__name__)

INVOICE_NUMBER_DIGITS = 6


# =============================================================================
# Projects
# =============================================================================

def list_projects(db: Session, org_id: UUID) -> list[Project]:
    return (
        db.query(Project)
        .filter(Project.organization_id == org_id)
        .order_by(Project.created_at.desc())
        .all()
    )


def get_project_or_404(db: Session, org_id: UUID, project_id: UUID) -> Project:
    project = (
        db.query(Project)
        .filter(Project.id == project_id, Project.organization_id == org_id)
        .first()
    )
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def create_project(db: Session, org_id: UUID, user_id: UUID, data: ProjectCreate) -> Project:
    project = Project(
        organization_id=org_id,
        created_by_user_id=user_id,
        name=data.name,
        client_name=data.client_name,
        client_email=data.client_email,
        description=data.description,
        status=data.status.value,
        budget=data.budget,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


def update_project(db: Session, project: Project, data: ProjectUpdate) -> Project:
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if field in ("name", "status") and value is None:
            continue
        if field == "status":
            value = value.value
        setattr(project, field, value)
    db.commit()
    db.refresh(project)
    return project


def delete_project(db: Session, project: Project) -> None:
    db.delete(project)
    db.commit()


# =============================================================================
# Invoice math
# =============================================================================

def compute_totals(
    items: list[InvoiceItemIn], discount: float, tax_rate: float
) -> dict[str, float]:
    """
    subtotal = sum(quantity * unit_price)
    tax_amount = (subtotal - discount) * tax_rate / 100
    total = subtotal - discount + tax_amount
    """
    subtotal = round(sum(item.quantity * item.unit_price for item in items), 2)
    discount = round(discount or 0, 2)
    tax_amount = round((subtotal - discount) * (tax_rate or 0) / 100, 2)
    total = round(subtotal - discount + tax_amount, 2)
    return {
        "subtotal": subtotal,
        "discount": discount,
        "tax_amount": tax_amount,
        "total": total,
    }


def _build_items(items: list[InvoiceItemIn]) -> list[InvoiceItem]:
    return [
        InvoiceItem(
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            amount=round(item.quantity * item.unit_price, 2),
            sort_order=index,
        )
        for index, item in enumerate(items)
    ]


def _apply_totals(invoice: Invoice, items: list[InvoiceItemIn]) -> None:
    totals = compute_totals(items, invoice.discount, invoice.tax_rate)
    for field, value in totals.items():
        setattr(invoice, field, value)


def next_invoice_number(db: Session, org_id: UUID, invoice_type: InvoiceType) -> str:
    """Next INV-000001 / QUO-000001 style number for this org and type."""
    prefix = INVOICE_NUMBER_PREFIXES[invoice_type]
    numbers = (
        db.query(Invoice.invoice_number)
        .filter(
            Invoice.organization_id == org_id,
            Invoice.invoice_number.like(f"{prefix}-%"),
        )
        .all()
    )
    highest = 0
    for (number,) in numbers:
        suffix = number.split("-", 1)[-1]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}-{highest + 1:0{INVOICE_NUMBER_DIGITS}d}"


# =============================================================================
# Invoices
# =============================================================================

def list_invoices(db: Session, org_id: UUID, project_id: UUID) -> list[Invoice]:
    return (
        db.query(Invoice)
        .options(selectinload(Invoice.items))
        .filter(Invoice.organization_id == org_id, Invoice.project_id == project_id)
        .order_by(Invoice.created_at.desc())
        .all()
    )


def get_invoice_or_404(db: Session, org_id: UUID, invoice_id: UUID) -> Invoice:
    invoice = (
        db.query(Invoice)
        .options(selectinload(Invoice.items))
        .filter(Invoice.id == invoice_id, Invoice.organization_id == org_id)
        .first()
    )
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


def create_invoice(db: Session, project: Project, data: InvoiceCreate) -> Invoice:
    """
    Create an invoice or quote under a project.

    Raises:
        HTTPException 400: No line items
    """
    if not data.items:
        raise HTTPException(status_code=400, detail="At least one item is required")

    invoice = Invoice(
        organization_id=project.organization_id,
        project_id=project.id,
        invoice_number=next_invoice_number(db, project.organization_id, data.invoice_type),
        invoice_type=data.invoice_type.value,
        status=InvoiceStatus.DRAFT.value,
        client_name=data.client_name or project.client_name,
        client_email=data.client_email or project.client_email,
        client_address=data.client_address,
        issue_date=data.issue_date or utcnow().date(),
        due_date=data.due_date,
        discount=data.discount,
        tax_rate=data.tax_rate,
        currency=data.currency.upper(),
        notes=data.notes,
        items=_build_items(data.items),
    )
    _apply_totals(invoice, data.items)
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    logger.info(
        "Invoice created",
        extra={"invoice_id": str(invoice.id), "invoice_number": invoice.invoice_number},
    )
    return invoice


def update_invoice(db: Session, invoice: Invoice, data: InvoiceUpdate) -> Invoice:
    """
    Raises:
        HTTPException 400: Accepting a non-quote, or emptying the item list
    """
    update_data = data.model_dump(exclude_unset=True)

    status = update_data.pop("status", None)
    if status is not None:
        if status == InvoiceStatus.ACCEPTED and invoice.invoice_type != InvoiceType.QUOTE.value:
            raise HTTPException(status_code=400, detail="Only quotes can be accepted")
        invoice.status = status.value

    items = update_data.pop("items", None)
    if items is not None and not data.items:
        raise HTTPException(status_code=400, detail="At least one item is required")

    for field, value in update_data.items():
        if field in ("discount", "tax_rate", "currency") and value is None:
            continue
        if field == "currency":
            value = value.upper()
        setattr(invoice, field, value)

    if data.items is not None:
        invoice.items = _build_items(data.items)
        _apply_totals(invoice, data.items)
    elif "discount" in update_data or "tax_rate" in update_data:
        current = [
            InvoiceItemIn(description=i.description, quantity=i.quantity, unit_price=i.unit_price)
            for i in invoice.items
        ]
        _apply_totals(invoice, current)

    db.commit()
    db.refresh(invoice)
    return invoice


def convert_quote(db: Session, quote: Invoice) -> Invoice:
    """
    Turn an accepted quote into a new draft invoice with the same items.

    Raises:
        HTTPException 400: Not an accepted quote
    """
    if quote.invoice_type != InvoiceType.QUOTE.value or quote.status != InvoiceStatus.ACCEPTED.value:
        raise HTTPException(status_code=400, detail="Only accepted quotes can be converted")

    items = [
        InvoiceItemIn(description=i.description, quantity=i.quantity, unit_price=i.unit_price)
        for i in quote.items
    ]
    invoice = Invoice(
        organization_id=quote.organization_id,
        project_id=quote.project_id,
        invoice_number=next_invoice_number(db, quote.organization_id, InvoiceType.INVOICE),
        invoice_type=InvoiceType.INVOICE.value,
        status=InvoiceStatus.DRAFT.value,
        client_name=quote.client_name,
        client_email=quote.client_email,
        client_address=quote.client_address,
        issue_date=utcnow().date(),
        due_date=quote.due_date,
        discount=quote.discount,
        tax_rate=quote.tax_rate,
        currency=quote.currency,
        notes=quote.notes,
        source_quote_id=quote.id,
        items=_build_items(items),
    )
    _apply_totals(invoice, items)
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    logger.info(
        "Quote converted to invoice",
        extra={"quote_id": str(quote.id), "invoice_id": str(invoice.id)},
    )
    return invoice


def delete_invoice(db: Session, invoice: Invoice) -> None:
    db.delete(invoice)
    db.commit()
