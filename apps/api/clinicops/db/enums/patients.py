"""Patient enums."""

from enum import Enum


class PatientSource(str, Enum):
    MANUAL = "manual"
    EVENT = "event"
    META = "meta"
    GOOGLE = "google"
    LEAD_FORM = "lead_form"
