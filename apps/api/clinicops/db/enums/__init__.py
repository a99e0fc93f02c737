"""Enum definitions for application constants."""

from clinicops.db.enums.accounts import (
    AdhocStatus,
    ClientCategory,
    ClientType,
    ContractType,
    StatementFormat,
)
from clinicops.db.enums.auth import (
    ROLES_CAN_FILE_LEAVE_FOR_OTHERS,
    ROLES_CAN_MANAGE_PIPELINE,
    ROLES_CAN_MANAGE_SUPPORT,
    ROLES_CAN_MANAGE_USERS,
    ROLES_CAN_REVIEW_LEAVE,
    ROLES_CAN_VIEW_ALL_LEAVE,
    Role,
)
from clinicops.db.enums.deals import DEFAULT_DEAL_STAGES, DealStageType
from clinicops.db.enums.dischat import (
    DEFAULT_ROLE_COLOR,
    DEFAULT_ROLE_NAME,
    DEFAULT_ROLE_PERMISSIONS,
    DEFAULT_THREAD_ARCHIVE_MINUTES,
    MESSAGEABLE_CHANNEL_TYPES,
    ChannelType,
    ChatPermission,
    MessageType,
)
from clinicops.db.enums.email import EmailDirection, EmailStatus
from clinicops.db.enums.leaves import (
    LeaveStatus,
    LeaveType,
    TeamEventPriority,
    TeamEventType,
    WorkloadLevel,
)
from clinicops.db.enums.marketing import MarketingChannel
from clinicops.db.enums.patients import PatientSource
from clinicops.db.enums.projects import (
    INVOICE_NUMBER_PREFIXES,
    InvoiceStatus,
    InvoiceType,
    ProjectStatus,
)
from clinicops.db.enums.support import SupportTicketStatus
from clinicops.db.enums.tasks import TaskStatus
from clinicops.db.enums.workflows import (
    EmailSendMode,
    WorkflowActionType,
    WorkflowTriggerType,
)

__all__ = [
    "AdhocStatus",
    "ChannelType",
    "ChatPermission",
    "ClientCategory",
    "ClientType",
    "ContractType",
    "DEFAULT_DEAL_STAGES",
    "DEFAULT_ROLE_COLOR",
    "DEFAULT_ROLE_NAME",
    "DEFAULT_ROLE_PERMISSIONS",
    "DEFAULT_THREAD_ARCHIVE_MINUTES",
    "DealStageType",
    "EmailDirection",
    "EmailSendMode",
    "EmailStatus",
    "INVOICE_NUMBER_PREFIXES",
    "InvoiceStatus",
    "InvoiceType",
    "LeaveStatus",
    "LeaveType",
    "MESSAGEABLE_CHANNEL_TYPES",
    "MarketingChannel",
    "MessageType",
    "PatientSource",
    "ProjectStatus",
    "ROLES_CAN_FILE_LEAVE_FOR_OTHERS",
    "ROLES_CAN_MANAGE_PIPELINE",
    "ROLES_CAN_MANAGE_SUPPORT",
    "ROLES_CAN_MANAGE_USERS",
    "ROLES_CAN_REVIEW_LEAVE",
    "ROLES_CAN_VIEW_ALL_LEAVE",
    "Role",
    "StatementFormat",
    "SupportTicketStatus",
    "TaskStatus",
    "TeamEventPriority",
    "TeamEventType",
    "WorkflowActionType",
    "WorkflowTriggerType",
    "WorkloadLevel",
]
