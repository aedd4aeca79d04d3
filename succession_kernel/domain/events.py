"""
Emitted facts -- flat records describing what happened to an estate.

Responsibility:
    Ledger entities and the estate service record facts as they change
    state. Each fact is a frozen, flat record of {estate_id, relevant ids
    and amounts, occurred_at}. Publication and transport belong to the
    caller; this module only defines the shapes.

Invariants enforced:
    - Facts are immutable once recorded
    - ``to_record()`` yields only str/int/bool/None values and flat Money
      as ``{"amount", "currency"}`` sub-records
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar

from succession_kernel.domain.values import Money, Percentage


@dataclass(frozen=True)
class EstateFact:
    """Base class for every emitted fact."""

    fact_type: ClassVar[str] = "estate_fact"

    estate_id: str
    occurred_at: datetime

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"fact_type": self.fact_type}
        for f in fields(self):
            record[f.name] = _flatten(getattr(self, f.name))
        return record


def _flatten(value: Any) -> Any:
    if isinstance(value, (Money, Percentage)):
        return value.to_record()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return [_flatten(v) for v in value]
    return value


@dataclass(frozen=True)
class GiftHotchpotCalculated(EstateFact):
    fact_type: ClassVar[str] = "gift_hotchpot_calculated"

    gift_id: str
    original_value: Money
    adjusted_value: Money
    annual_rate: Decimal
    years_elapsed: Decimal
    method: str


@dataclass(frozen=True)
class GiftReclaimed(EstateFact):
    fact_type: ClassVar[str] = "gift_reclaimed"

    gift_id: str
    value: Money
    reason: str


@dataclass(frozen=True)
class DebtReclassified(EstateFact):
    fact_type: ClassVar[str] = "debt_reclassified"

    debt_id: str
    previous_tier: int
    new_tier: int
    reason: str


@dataclass(frozen=True)
class DebtPaymentRecorded(EstateFact):
    fact_type: ClassVar[str] = "debt_payment_recorded"

    debt_id: str
    amount_applied: Money
    amount_tendered: Money
    outstanding_balance: Money
    status: str


@dataclass(frozen=True)
class DebtStatuteBarred(EstateFact):
    fact_type: ClassVar[str] = "debt_statute_barred"

    debt_id: str
    outstanding_balance: Money
    limitation_years: int
    as_of: date


@dataclass(frozen=True)
class TaxCleared(EstateFact):
    fact_type: ClassVar[str] = "tax_cleared"

    certificate_number: str
    total_liability: Money
    total_paid: Money


@dataclass(frozen=True)
class EstateFrozen(EstateFact):
    fact_type: ClassVar[str] = "estate_frozen"

    deceased_ref: str
    date_of_death: date
    death_certificate_ref: str


@dataclass(frozen=True)
class EstateUnfrozen(EstateFact):
    fact_type: ClassVar[str] = "estate_unfrozen"

    reason: str
    actor_id: str


@dataclass(frozen=True)
class ConflictReportGenerated(EstateFact):
    fact_type: ClassVar[str] = "conflict_report_generated"

    assignment_count: int
    conflict_count: int
    warning_count: int
    risk_score: int
    has_conflicts: bool
