"""
Module: succession_engines.debt_priority
Responsibility:
    Statutory priority tiering of estate liabilities and limitation-window
    arithmetic. Decides which of four tiers a debt belongs to, the date on
    which it becomes statute-barred, and the order in which outstanding
    debts must be paid.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import succession_kernel.

Invariants enforced:
    - Tiering is total and deterministic:
        funeral / testamentary expenses            -> tier 1
        any other secured debt                     -> tier 2
        taxes, land rates, employee wages          -> tier 3
        everything else                            -> tier 4
    - A debt is statute-barred when the as-of date is strictly after the
      incurred date plus the limitation window in calendar years.
      29 February rolls back to 28 February in non-leap years.
    - Payment order: lower tier number first, then oldest incurred date,
      then debt id.

Failure modes:
    - ValidationError for a non-positive limitation window.

Audit relevance:
    The priority order is what the estate service enforces when paying
    debts; a payment out of order is a legal-rule violation.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum, IntEnum

from succession_engines.tracer import traced_engine
from succession_kernel.exceptions import ValidationError
from succession_kernel.logging_config import get_logger

logger = get_logger("engines.debt_priority")


class DebtType(Enum):
    """Catalogue of estate liabilities."""
    FUNERAL_EXPENSE = "funeral_expense"
    TESTAMENTARY_EXPENSE = "testamentary_expense"
    MORTGAGE = "mortgage"
    PERSONAL_LOAN = "personal_loan"
    CREDIT_CARD = "credit_card"
    BUSINESS_DEBT = "business_debt"
    TAX_OBLIGATION = "tax_obligation"
    LAND_RATES = "land_rates"
    EMPLOYEE_WAGES = "employee_wages"
    MEDICAL_BILL = "medical_bill"
    UTILITY_BILLS = "utility_bills"
    COURT_FINES = "court_fines"
    OTHER = "other"


class StatutoryTier(IntEnum):
    """Payment priority; lower pays first."""
    FUNERAL_TESTAMENTARY = 1
    SECURED = 2
    TAXES_RATES_WAGES = 3
    UNSECURED = 4


_TIER_ONE_TYPES = frozenset({DebtType.FUNERAL_EXPENSE, DebtType.TESTAMENTARY_EXPENSE})
_TIER_THREE_TYPES = frozenset({
    DebtType.TAX_OBLIGATION,
    DebtType.LAND_RATES,
    DebtType.EMPLOYEE_WAGES,
})


@dataclass(frozen=True)
class PriorityCandidate:
    """Minimal view of a debt for ordering."""

    debt_id: str
    tier: StatutoryTier
    incurred_date: date
    is_outstanding: bool = True


def add_years(start: date, years: int) -> date:
    """Same calendar day ``years`` later; 29 Feb maps to 28 Feb when needed."""
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        return start.replace(year=start.year + years, day=28)


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


class DebtPriorityClassifier:
    """
    Pure statutory classifier.

    Contract:
        Stateless; all dates are explicit parameters.
    """

    def classify(self, debt_type: DebtType, is_secured: bool) -> StatutoryTier:
        if debt_type in _TIER_ONE_TYPES:
            return StatutoryTier.FUNERAL_TESTAMENTARY
        if is_secured:
            return StatutoryTier.SECURED
        if debt_type in _TIER_THREE_TYPES:
            return StatutoryTier.TAXES_RATES_WAGES
        return StatutoryTier.UNSECURED

    def limitation_date(self, incurred_date: date | datetime, limitation_years: int) -> date:
        if limitation_years <= 0:
            raise ValidationError(
                "limitation_years", f"must be positive, got {limitation_years}"
            )
        return add_years(_as_date(incurred_date), limitation_years)

    def is_statute_barred(
        self,
        incurred_date: date | datetime,
        limitation_years: int,
        as_of: date | datetime,
    ) -> bool:
        barred = _as_date(as_of) > self.limitation_date(incurred_date, limitation_years)
        logger.debug(
            "limitation_window_checked",
            extra={
                "incurred_date": _as_date(incurred_date).isoformat(),
                "limitation_years": limitation_years,
                "as_of": _as_date(as_of).isoformat(),
                "statute_barred": barred,
            },
        )
        return barred

    def sort_key(self, candidate: PriorityCandidate) -> tuple[int, date, str]:
        return (int(candidate.tier), candidate.incurred_date, candidate.debt_id)

    @traced_engine("debt_priority", "1.0", fingerprint_fields=("candidates",))
    def order(self, *, candidates: Iterable[PriorityCandidate]) -> list[PriorityCandidate]:
        """Statutory payment order."""
        return sorted(candidates, key=self.sort_key)

    def first_blocking(
        self,
        target: PriorityCandidate,
        candidates: Iterable[PriorityCandidate],
    ) -> PriorityCandidate | None:
        """
        Highest-priority outstanding debt in a strictly better tier than target.

        Debts in the same tier are paid pari passu and never block each other.
        """
        blockers = [
            c for c in candidates
            if c.is_outstanding
            and c.debt_id != target.debt_id
            and int(c.tier) < int(target.tier)
        ]
        if not blockers:
            return None
        return min(blockers, key=self.sort_key)
