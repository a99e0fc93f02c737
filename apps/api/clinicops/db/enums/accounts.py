"""Client account enums."""

from enum import Enum


class ClientType(str, Enum):
    """How much hands-on attention the client needs."""
    HIGH_MAINTENANCE = "high_maintenance"
    MID_MAINTENANCE = "mid_maintenance"
    LOW_MAINTENANCE = "low_maintenance"
    STANDARD = "standard"


class ClientCategory(str, Enum):
    ACTIVE_RETAINER = "active_retainer"
    PROJECT_BASED = "project_based"


class ContractType(str, Enum):
    SERVICE_BASED = "service_based"
    THREE_MONTH = "3_month"
    SIX_MONTH = "6_month"
    TWELVE_MONTH = "12_month"
    PROJECT_BASED = "project_based"


class AdhocStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class StatementFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
    PDF = "pdf"
