"""Deal pipeline enums."""

from enum import Enum


class DealStageType(str, Enum):
    """Whether a stage is still in play or terminal."""

    OPEN = "open"
    WON = "won"
    LOST = "lost"


# Seeded by `clinicops seed-stages`
DEFAULT_DEAL_STAGES = [
    ("New", DealStageType.OPEN, True),
    ("Contacted", DealStageType.OPEN, False),
    ("Consultation Booked", DealStageType.OPEN, False),
    ("Won", DealStageType.WON, False),
    ("Lost", DealStageType.LOST, False),
]
