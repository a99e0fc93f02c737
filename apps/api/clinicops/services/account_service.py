"""
Account service - retainer clients, ad-hoc requirements, and the monthly
statement of account (SOA).

The statement is computed on request: retainer fee + service-based fee +
the sum of every ad-hoc requirement on the client.
"""

import csv
import io
import logging
import re
from datetime import date, datetime
from typing import Any, Sequence
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from clinicops.db.base import utcnow
from clinicops.db.models import AccountAdhocRequirement, AccountClient
from clinicops.schemas.account import (
    AccountClientCreate,
    AccountClientUpdate,
    AdhocCreate,
    AdhocRead,
    AdhocUpdate,
    StatementClient,
    StatementFees,
    StatementRead,
)

logger = logging.getLogger(__name__)

CSV_DANGEROUS_PREFIXES = ("=", "+", "-", "@")
ENUM_FIELDS = ("client_type", "client_category", "contract_type", "status")


def _apply_updates(obj: Any, update_data: dict[str, Any], required: Sequence[str]) -> None:
    for field, value in update_data.items():
        if field in required and value is None:
            continue
        if field in ENUM_FIELDS and value is not None:
            value = value.value
        setattr(obj, field, value)


# =============================================================================
# Clients
# =============================================================================

def list_clients(
    db: Session,
    org_id: UUID,
    search: str | None = None,
    category: str | None = None,
) -> list[AccountClient]:
    query = db.query(AccountClient).filter(AccountClient.organization_id == org_id)
    if category:
        query = query.filter(AccountClient.client_category == category)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(AccountClient.client_name.ilike(pattern), AccountClient.industry.ilike(pattern))
        )
    return query.order_by(AccountClient.client_name.asc()).all()


def get_client_or_404(db: Session, org_id: UUID, client_id: UUID) -> AccountClient:
    client = (
        db.query(AccountClient)
        .filter(AccountClient.id == client_id, AccountClient.organization_id == org_id)
        .first()
    )
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


def create_client(
    db: Session, org_id: UUID, user_id: UUID, data: AccountClientCreate
) -> AccountClient:
    name = data.client_name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Client name is required")

    client = AccountClient(
        organization_id=org_id,
        created_by_user_id=user_id,
        client_name=name,
        industry=data.industry,
        avatar_url=data.avatar_url,
        client_type=data.client_type.value if data.client_type else None,
        client_category=data.client_category.value,
        client_since=data.client_since,
        end_date=data.end_date,
        services_signed=data.services_signed,
        contract_type=data.contract_type.value if data.contract_type else None,
        invoice_due_day=data.invoice_due_day,
        retainer_fee=data.retainer_fee,
        service_based_fee=data.service_based_fee,
        currency=data.currency.upper(),
        notes=data.notes,
    )
    db.add(client)
    db.commit()
    db.refresh(client)
    logger.info("Account client created", extra={"client_id": str(client.id)})
    return client


def update_client(db: Session, client: AccountClient, data: AccountClientUpdate) -> AccountClient:
    update_data = data.model_dump(exclude_unset=True)
    if "client_name" in update_data and update_data["client_name"] is not None:
        update_data["client_name"] = update_data["client_name"].strip()
        if not update_data["client_name"]:
            raise HTTPException(status_code=400, detail="Client name is required")
    if update_data.get("currency"):
        update_data["currency"] = update_data["currency"].upper()

    _apply_updates(
        client,
        update_data,
        required=(
            "client_name", "client_category", "services_signed",
            "retainer_fee", "service_based_fee", "currency",
        ),
    )
    db.commit()
    db.refresh(client)
    return client


def delete_client(db: Session, client: AccountClient) -> None:
    """Ad-hoc requirements go with the client."""
    db.delete(client)
    db.commit()


# =============================================================================
# Ad-hoc requirements
# =============================================================================

def _check_service_dates(start: date | None, end: date | None) -> None:
    if start and end and end < start:
        raise HTTPException(
            status_code=400, detail="Service end date must be on or after the start date"
        )


def list_adhoc(db: Session, client: AccountClient) -> list[AccountAdhocRequirement]:
    """Newest request first."""
    return (
        db.query(AccountAdhocRequirement)
        .filter(AccountAdhocRequirement.client_id == client.id)
        .order_by(
            AccountAdhocRequirement.date_requested.desc(),
            AccountAdhocRequirement.created_at.desc(),
        )
        .all()
    )


def get_adhoc_or_404(db: Session, org_id: UUID, adhoc_id: UUID) -> AccountAdhocRequirement:
    adhoc = (
        db.query(AccountAdhocRequirement)
        .join(AccountClient, AccountClient.id == AccountAdhocRequirement.client_id)
        .filter(AccountAdhocRequirement.id == adhoc_id, AccountClient.organization_id == org_id)
        .first()
    )
    if not adhoc:
        raise HTTPException(status_code=404, detail="Requirement not found")
    return adhoc


def create_adhoc(
    db: Session, client: AccountClient, user_id: UUID, data: AdhocCreate
) -> AccountAdhocRequirement:
    """Billed in the client's currency."""
    description = data.description.strip()
    if not description:
        raise HTTPException(status_code=400, detail="Description is required")
    _check_service_dates(data.service_date_start, data.service_date_end)

    adhoc = AccountAdhocRequirement(
        client_id=client.id,
        created_by_user_id=user_id,
        date_requested=data.date_requested or utcnow().date(),
        description=description,
        service_date_start=data.service_date_start,
        service_date_end=data.service_date_end,
        amount=data.amount,
        currency=client.currency,
        status=data.status.value,
        notes=data.notes,
    )
    db.add(adhoc)
    db.commit()
    db.refresh(adhoc)
    return adhoc


def update_adhoc(
    db: Session, adhoc: AccountAdhocRequirement, data: AdhocUpdate
) -> AccountAdhocRequirement:
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("description") is not None:
        update_data["description"] = update_data["description"].strip()
        if not update_data["description"]:
            raise HTTPException(status_code=400, detail="Description is required")

    start = update_data.get("service_date_start", adhoc.service_date_start)
    end = update_data.get("service_date_end", adhoc.service_date_end)
    _check_service_dates(start, end)

    _apply_updates(
        adhoc, update_data, required=("date_requested", "description", "amount", "status")
    )
    db.commit()
    db.refresh(adhoc)
    return adhoc


def delete_adhoc(db: Session, adhoc: AccountAdhocRequirement) -> None:
    db.delete(adhoc)
    db.commit()


# =============================================================================
# Statement of account
# =============================================================================

def build_statement(
    db: Session, client: AccountClient, now: datetime | None = None
) -> StatementRead:
    now = now or utcnow()
    items = list_adhoc(db, client)
    retainer = round(client.retainer_fee or 0, 2)
    service_based = round(client.service_based_fee or 0, 2)
    adhoc_total = round(sum(item.amount or 0 for item in items), 2)

    return StatementRead(
        client=StatementClient(
            id=client.id,
            name=client.client_name,
            industry=client.industry,
            contract_type=client.contract_type,
            client_since=client.client_since,
        ),
        period=now.strftime("%B %Y"),
        currency=client.currency,
        fees=StatementFees(
            retainer=retainer,
            service_based=service_based,
            adhoc=adhoc_total,
            total=round(retainer + service_based + adhoc_total, 2),
        ),
        adhoc_items=[AdhocRead.model_validate(item) for item in items],
        generated_at=now,
    )


def statement_filename(statement: StatementRead, extension: str) -> str:
    """SOA_<client name with underscores>_<YYYY-MM-DD>.<ext>"""
    name = re.sub(r"\s+", "_", statement.client.name.strip())
    return f"SOA_{name}_{statement.generated_at.date().isoformat()}.{extension}"


def _csv_safe(value: Any) -> str:
    text = "" if value is None else str(value)
    if text.startswith(CSV_DANGEROUS_PREFIXES):
        return f"'{text}"
    return text


def _amount(value: float) -> str:
    return f"{value:.2f}"


def format_service_dates(item: AdhocRead) -> str:
    if not item.service_date_start:
        return ""
    end = item.service_date_end.isoformat() if item.service_date_end else ""
    return f"{item.service_date_start.isoformat()} - {end}"


def statement_csv(statement: StatementRead) -> str:
    """
    Two sections: the fee breakdown with its total, then one row per
    ad-hoc requirement.
    """
    output = io.StringIO()
    writer = csv.writer(output)
    fees = statement.fees

    writer.writerow([f"Statement of Account - {statement.client.name}"])
    writer.writerow([f"Period: {statement.period}"])
    writer.writerow([f"Generated: {statement.generated_at.date().isoformat()}"])
    writer.writerow([])
    writer.writerow(["SERVICE BREAKDOWN"])
    writer.writerow(["Service", f"Amount ({statement.currency})"])
    writer.writerow(["Retainer Fee", _amount(fees.retainer)])
    writer.writerow(["Service Based Fee", _amount(fees.service_based)])
    writer.writerow(["Ad-Hoc Total", _amount(fees.adhoc)])
    writer.writerow(["TOTAL", _amount(fees.total)])
    writer.writerow([])
    writer.writerow(["AD-HOC REQUIREMENTS"])
    writer.writerow(["Date Requested", "Description", "Service Dates", "Amount", "Status"])
    for item in statement.adhoc_items:
        writer.writerow(
            [
                item.date_requested.isoformat(),
                _csv_safe(item.description),
                format_service_dates(item),
                _amount(item.amount),
                item.status.value,
            ]
        )
    return output.getvalue()
