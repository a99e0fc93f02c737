"""Invoices router - read, edit, convert, render."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from clinicops.core.deps import get_current_session, get_db
from clinicops.schemas.auth import UserSession
from clinicops.schemas.project import InvoiceRead, InvoiceUpdate
from clinicops.services import pdf_service, project_service, user_service

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("/{invoice_id}", response_model=InvoiceRead)
def get_invoice(
    invoice_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return project_service.get_invoice_or_404(db, session.org_id, invoice_id)


@router.patch("/{invoice_id}", response_model=InvoiceRead)
def update_invoice(
    invoice_id: UUID,
    data: InvoiceUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    invoice = project_service.get_invoice_or_404(db, session.org_id, invoice_id)
    return project_service.update_invoice(db, invoice, data)


@router.post("/{invoice_id}/convert", response_model=InvoiceRead, status_code=201)
def convert_quote(
    invoice_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Accepted quote -> new draft invoice."""
    quote = project_service.get_invoice_or_404(db, session.org_id, invoice_id)
    return project_service.convert_quote(db, quote)


@router.get("/{invoice_id}/pdf")
def download_invoice_pdf(
    invoice_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    invoice = project_service.get_invoice_or_404(db, session.org_id, invoice_id)
    org = user_service.get_organization(db, session.org_id)
    pdf_bytes = pdf_service.create_invoice_pdf(invoice, org_name=org.name if org else "Organization")

    filename = f"{invoice.invoice_number}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/{invoice_id}", status_code=204)
def delete_invoice(
    invoice_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    invoice = project_service.get_invoice_or_404(db, session.org_id, invoice_id)
    project_service.delete_invoice(db, invoice)
