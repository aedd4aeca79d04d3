"""
Tax Compliance Gate (``succession_modules.tax.models``).

Responsibility
--------------
Tracks an estate's liabilities under four fixed tax heads and the payments
made against them, and exposes ``is_cleared_for_distribution``: the single
predicate every distribution workflow consults before releasing an asset.

Architecture position
---------------------
**Modules layer** -- stateful ledger entity driven by
``succession_modules.tax.workflows.TAX_WORKFLOW``.

Invariants enforced
-------------------
* ``total_paid <= total_liability`` at all times; an assessment below what
  has already been paid and a payment above the remaining balance are both
  rejected.
* CLEARED requires a zero remaining balance and a non-empty certificate.
* EXEMPT requires total liability below the policy's exemption threshold.
* Nothing changes once CLEARED or EXEMPT.

Failure modes
-------------
* ``ValidationError`` for malformed amounts, references or heads.
* ``InvalidTransitionError`` when the status forbids the operation.
* ``TaxBalanceOutstandingError`` when clearing with a positive balance.
* ``OverpaymentError`` for a payment above the remaining balance.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from succession_config.schema import SuccessionPolicy
from succession_kernel.domain.audit_trail import AuditTrail
from succession_kernel.domain.clock import Clock, SystemClock
from succession_kernel.domain.events import EstateFact, TaxCleared
from succession_kernel.domain.recording import RecordingMixin
from succession_kernel.domain.values import Currency, Money
from succession_kernel.exceptions import (
    InvalidTransitionError,
    OverpaymentError,
    PreconditionError,
    ReasonTooShortError,
    TaxBalanceOutstandingError,
    ValidationError,
)
from succession_kernel.logging_config import get_logger
from succession_modules.tax.workflows import TAX_WORKFLOW

logger = get_logger("modules.tax.models")


class TaxHead(Enum):
    INCOME_TAX = "income_tax"
    CAPITAL_GAINS_TAX = "capital_gains_tax"
    STAMP_DUTY = "stamp_duty"
    OTHER_LEVIES = "other_levies"


class TaxStatus(Enum):
    """Tax states.  Must align with ``workflows.TAX_WORKFLOW.states``."""
    PENDING = "pending"
    ASSESSED = "assessed"
    PARTIALLY_PAID = "partially_paid"
    CLEARED = "cleared"
    DISPUTED = "disputed"
    EXEMPT = "exempt"


@dataclass(frozen=True)
class TaxPayment:
    amount: Money
    reference: str
    paid_at: datetime


@dataclass(eq=False)
class TaxComplianceGate(RecordingMixin):
    """Liability and payment tracker with a binary distribution gate."""

    estate_id: str
    policy: SuccessionPolicy = field(default_factory=SuccessionPolicy, repr=False)
    clock: Clock = field(default_factory=SystemClock, repr=False)

    liabilities: dict[TaxHead, Money] = field(init=False)
    total_paid: Money = field(init=False)
    status: TaxStatus = field(init=False, default=TaxStatus.PENDING)
    assessment_reference: str | None = field(init=False, default=None)
    assessed_by: str | None = field(init=False, default=None)
    certificate_number: str | None = field(init=False, default=None)
    certificate_issued_by: str | None = field(init=False, default=None)
    cleared_at: datetime | None = field(init=False, default=None)
    exemption_reason: str | None = field(init=False, default=None)
    dispute_reason: str | None = field(init=False, default=None)
    payments: list[TaxPayment] = field(init=False, default_factory=list, repr=False)
    audit: AuditTrail = field(init=False, default_factory=AuditTrail, repr=False)
    facts: list[EstateFact] = field(init=False, default_factory=list, repr=False)

    def __post_init__(self) -> None:
        zero = Money.zero(self.policy.currency)
        self.liabilities = {head: zero for head in TaxHead}
        self.total_paid = zero

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def currency(self) -> Currency:
        return self.total_paid.currency

    @property
    def total_liability(self) -> Money:
        total = Money.zero(self.currency)
        for amount in self.liabilities.values():
            total = total + amount
        return total

    @property
    def remaining_balance(self) -> Money:
        return self.total_liability - self.total_paid

    @property
    def is_cleared_for_distribution(self) -> bool:
        return self.status in (TaxStatus.CLEARED, TaxStatus.EXEMPT)

    def _next_state(self, action: str) -> TaxStatus:
        try:
            t = TAX_WORKFLOW.require_transition(self.estate_id, self.status.value, action)
        except InvalidTransitionError:
            logger.warning(
                "tax_transition_rejected",
                extra={"estate_id": self.estate_id, "from_state": self.status.value, "action": action},
            )
            raise
        return TaxStatus(t.to_state)

    def _check_money(self, amount: Money, field_name: str) -> None:
        if amount.currency != self.currency:
            raise ValidationError(
                field_name, f"expected {self.currency.code}, got {amount.currency.code}"
            )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def record_assessment(
        self,
        liabilities: Mapping[TaxHead, Money],
        reference: str,
        assessed_by: str,
    ) -> None:
        """Replace the liabilities under all four heads; missing heads become zero."""
        if not reference or not reference.strip():
            raise ValidationError("assessment reference", "is required")
        zero = Money.zero(self.currency)
        assessed: dict[TaxHead, Money] = {}
        for head in TaxHead:
            amount = liabilities.get(head, zero)
            self._check_money(amount, head.value)
            assessed[head] = amount
        unknown = set(liabilities) - set(TaxHead)
        if unknown:
            raise ValidationError("liabilities", f"unknown tax heads: {sorted(map(str, unknown))}")

        total = zero
        for amount in assessed.values():
            total = total + amount
        if total < self.total_paid:
            raise ValidationError(
                "liabilities",
                f"assessed total {total} is below the {self.total_paid} already paid",
            )
        next_status = self._next_state("assess")

        self.liabilities = assessed
        self.assessment_reference = reference.strip()
        self.assessed_by = assessed_by
        self.status = next_status
        self._note(assessed_by, "Tax assessment recorded", reference=reference, total=total)
        logger.info(
            "tax_assessment_recorded",
            extra={
                "estate_id": self.estate_id,
                "total_liability": str(total.amount),
                "reference": self.assessment_reference,
            },
        )

    def record_payment(self, amount: Money, reference: str, paid_by: str = "system") -> TaxPayment:
        if not amount.is_positive:
            raise ValidationError("payment amount", "must be greater than zero")
        self._check_money(amount, "payment currency")
        if not reference or not reference.strip():
            raise ValidationError("payment reference", "is required")
        next_status = self._next_state("pay")
        if amount > self.remaining_balance:
            logger.warning(
                "tax_overpayment_rejected",
                extra={
                    "estate_id": self.estate_id,
                    "amount": str(amount.amount),
                    "remaining": str(self.remaining_balance.amount),
                },
            )
            raise OverpaymentError(self.estate_id, str(amount), str(self.remaining_balance))

        payment = TaxPayment(amount=amount, reference=reference.strip(), paid_at=self.clock.now())
        self.total_paid = self.total_paid + amount
        self.payments.append(payment)
        self.status = next_status
        self._note(paid_by, "Tax payment recorded", amount=amount, reference=payment.reference)
        logger.info(
            "tax_payment_recorded",
            extra={
                "estate_id": self.estate_id,
                "amount": str(amount.amount),
                "remaining": str(self.remaining_balance.amount),
            },
        )
        return payment

    def mark_as_cleared(self, certificate_number: str, issued_by: str) -> None:
        if not certificate_number or not certificate_number.strip():
            raise ValidationError("certificate_number", "a clearance certificate is required")
        if self.status == TaxStatus.DISPUTED:
            raise PreconditionError(
                "tax_compliance", self.estate_id, "clear", self.status.value,
                "resolve the dispute first",
            )
        remaining = self.remaining_balance
        if remaining.is_positive:
            raise TaxBalanceOutstandingError(self.estate_id, str(remaining))
        next_status = self._next_state("clear")

        now = self.clock.now()
        self.status = next_status
        self.certificate_number = certificate_number.strip()
        self.certificate_issued_by = issued_by
        self.cleared_at = now
        self._note(issued_by, "Tax clearance certificate recorded", certificate=self.certificate_number)
        self._record(
            TaxCleared(
                estate_id=self.estate_id,
                occurred_at=now,
                certificate_number=self.certificate_number,
                total_liability=self.total_liability,
                total_paid=self.total_paid,
            )
        )
        logger.info(
            "tax_cleared",
            extra={"estate_id": self.estate_id, "certificate_number": self.certificate_number},
        )

    def mark_as_exempt(self, reason: str, approved_by: str = "system") -> None:
        minimum = self.policy.minimum_reason_length
        if not reason or len(reason.strip()) < minimum:
            raise ReasonTooShortError("exemption reason", minimum)
        threshold = self.policy.exemption_threshold_money
        if self.total_liability >= threshold:
            raise PreconditionError(
                "tax_compliance", self.estate_id, "exempt", self.status.value,
                f"total liability {self.total_liability} is not below {threshold}",
            )
        self.status = self._next_state("exempt")
        self.exemption_reason = reason.strip()
        self._note(approved_by, "Estate exempted from tax clearance", reason=self.exemption_reason)
        logger.info("tax_exempted", extra={"estate_id": self.estate_id})

    def dispute(self, reason: str, disputed_by: str = "system") -> None:
        minimum = self.policy.minimum_reason_length
        if not reason or len(reason.strip()) < minimum:
            raise ReasonTooShortError("dispute reason", minimum)
        self.status = self._next_state("dispute")
        self.dispute_reason = reason.strip()
        self._note(disputed_by, "Tax assessment disputed", reason=self.dispute_reason)
        logger.info("tax_disputed", extra={"estate_id": self.estate_id})

    def resolve_dispute(self, resolved_by: str = "system", notes: str = "") -> None:
        """Return to ASSESSED, or PARTIALLY_PAID when payments exist."""
        action = "resolve_paid" if self.total_paid.is_positive else "resolve"
        self.status = self._next_state(action)
        self.dispute_reason = None
        self._note(resolved_by, "Tax dispute resolved", notes=notes)
        logger.info(
            "tax_dispute_resolved",
            extra={"estate_id": self.estate_id, "status": self.status.value},
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "estate_id": self.estate_id,
            "status": self.status.value,
            "liabilities": {h.value: m.to_record() for h, m in self.liabilities.items()},
            "total_paid": self.total_paid.to_record(),
            "assessment_reference": self.assessment_reference,
            "certificate_number": self.certificate_number,
            "exemption_reason": self.exemption_reason,
        }
