"""Email log enums."""

from enum import Enum


class EmailStatus(str, Enum):
    QUEUED = "queued"
    SENT = "sent"
    FAILED = "failed"


class EmailDirection(str, Enum):
    OUTBOUND = "outbound"
    INBOUND = "inbound"
