"""Estate liabilities and their statutory payment state."""

from succession_engines.debt_priority import DebtType, StatutoryTier
from succession_modules.debts.models import (
    DebtLedgerEntry,
    DebtPayment,
    DebtStatus,
    DisputeOutcome,
    VerificationStatus,
)
from succession_modules.debts.workflows import DEBT_WORKFLOW

__all__ = [
    "DEBT_WORKFLOW",
    "DebtLedgerEntry",
    "DebtPayment",
    "DebtStatus",
    "DebtType",
    "DisputeOutcome",
    "StatutoryTier",
    "VerificationStatus",
]
