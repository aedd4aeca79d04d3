"""Inter-vivos gifts and their hotchpot treatment."""

from succession_modules.gifts.models import (
    ContestOutcome,
    GiftCondition,
    GiftConditionStatus,
    GiftConditionType,
    GiftHotchpotStatus,
    GiftLedgerEntry,
    GiftLegalStatus,
    GiftType,
)
from succession_modules.gifts.workflows import (
    CONDITION_WORKFLOW,
    HOTCHPOT_WORKFLOW,
    LEGAL_STATUS_WORKFLOW,
)

__all__ = [
    "CONDITION_WORKFLOW",
    "ContestOutcome",
    "GiftCondition",
    "GiftConditionStatus",
    "GiftConditionType",
    "GiftHotchpotStatus",
    "GiftLedgerEntry",
    "GiftLegalStatus",
    "GiftType",
    "HOTCHPOT_WORKFLOW",
    "LEGAL_STATUS_WORKFLOW",
]
