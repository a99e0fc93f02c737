"""Project and invoicing enums."""

from enum import Enum


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class InvoiceType(str, Enum):
    INVOICE = "invoice"
    QUOTE = "quote"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    ACCEPTED = "accepted"  # Quotes only


INVOICE_NUMBER_PREFIXES = {
    InvoiceType.INVOICE: "INV",
    InvoiceType.QUOTE: "QUO",
}
