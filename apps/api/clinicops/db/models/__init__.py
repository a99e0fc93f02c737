"""SQLAlchemy models, grouped by domain."""

from clinicops.db.models.accounts import AccountAdhocRequirement, AccountClient
from clinicops.db.models.auth import Membership, Organization, User
from clinicops.db.models.deals import Deal, DealStage
from clinicops.db.models.dischat import (
    ChatCategory,
    ChatChannel,
    ChatInvite,
    ChatMember,
    ChatMemberRole,
    ChatMessage,
    ChatRole,
    ChatServer,
    ChatThread,
    DmChannel,
    DmMember,
    DmMessage,
)
from clinicops.db.models.email import EmailLog
from clinicops.db.models.leaves import DailyQuote, LeaveRequest, TeamScheduleEvent
from clinicops.db.models.marketing import (
    MarketingCampaign,
    MarketingExpenseLog,
    MarketingLead,
    MarketingReport,
)
from clinicops.db.models.patients import Patient, PatientInsurance
from clinicops.db.models.projects import Invoice, InvoiceItem, Project
from clinicops.db.models.support import SupportMessage, SupportTicket
from clinicops.db.models.tasks import Task
from clinicops.db.models.workflows import Workflow, WorkflowAction

__all__ = [
    "AccountAdhocRequirement",
    "AccountClient",
    "ChatCategory",
    "ChatChannel",
    "ChatInvite",
    "ChatMember",
    "ChatMemberRole",
    "ChatMessage",
    "ChatRole",
    "ChatServer",
    "ChatThread",
    "DailyQuote",
    "Deal",
    "DealStage",
    "DmChannel",
    "DmMember",
    "DmMessage",
    "EmailLog",
    "Invoice",
    "InvoiceItem",
    "LeaveRequest",
    "MarketingCampaign",
    "MarketingExpenseLog",
    "MarketingLead",
    "MarketingReport",
    "Membership",
    "Organization",
    "Patient",
    "PatientInsurance",
    "Project",
    "SupportMessage",
    "SupportTicket",
    "Task",
    "TeamScheduleEvent",
    "User",
    "Workflow",
    "WorkflowAction",
]
