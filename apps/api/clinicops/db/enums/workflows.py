"""Workflow automation enums."""

from enum import Enum


class WorkflowTriggerType(str, Enum):
    DEAL_STAGE_CHANGED = "deal_stage_changed"


class WorkflowActionType(str, Enum):
    DRAFT_EMAIL_PATIENT = "draft_email_patient"
    DRAFT_EMAIL_INSURANCE = "draft_email_insurance"
    GENERATE_POSTOP_DOC = "generate_postop_doc"


class EmailSendMode(str, Enum):
    """When a workflow email goes out."""

    IMMEDIATE = "immediate"
    DELAY = "delay"
    RECURRING = "recurring"
