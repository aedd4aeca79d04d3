"""
Debt Ledger Models (``succession_modules.debts.models``).

Responsibility
--------------
``DebtLedgerEntry`` records one estate liability: its statutory priority
tier, its payment state, disputes, write-offs, limitation window and the
prerequisites an executor must satisfy before paying it from the estate.

Architecture position
---------------------
**Modules layer** -- stateful ledger entity. Tiering and limitation
arithmetic are delegated to ``succession_engines.debt_priority``; legal
edges come from ``succession_modules.debts.workflows``.

Invariants enforced
-------------------
* ``outstanding_balance <= principal`` always.
* ``total_paid + outstanding_balance + total_discharged == principal``;
  ``total_discharged`` is zero unless part of the debt was extinguished
  without payment (write-off, settled dispute), so
  ``total_paid + outstanding_balance == principal`` holds for every debt
  that has only been paid.
* The tier is classified once at creation; only ``reclassify`` changes it
  and it refuses to move a tier-1 debt.
* Every operation validates before mutating.

Failure modes
-------------
* ``ValidationError`` for malformed amounts or text.
* ``InvalidTransitionError`` when the status forbids the operation.
* ``TierOneWriteOffError`` / ``TaxWriteOffApprovalRequiredError`` /
  ``TierOneReclassificationError`` for statutory breaches.
* ``OverpaymentError`` only under the ``reject`` overpayment policy.

Audit relevance
---------------
Overpayment clamps are policy-level adjustments: applied, logged at
WARNING and written to ``audit`` with the discrepancy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from succession_config.schema import OverpaymentPolicy, SuccessionPolicy
from succession_engines.debt_priority import (
    DebtPriorityClassifier,
    DebtType,
    PriorityCandidate,
    StatutoryTier,
)
from succession_kernel.domain.audit_trail import AuditTrail
from succession_kernel.domain.clock import Clock, SystemClock
from succession_kernel.domain.events import (
    DebtPaymentRecorded,
    DebtReclassified,
    DebtStatuteBarred,
    EstateFact,
)
from succession_kernel.domain.recording import RecordingMixin
from succession_kernel.domain.values import Money
from succession_kernel.exceptions import (
    InvalidTransitionError,
    OverpaymentError,
    PreconditionError,
    ReasonTooShortError,
    TaxWriteOffApprovalRequiredError,
    TierOneReclassificationError,
    TierOneWriteOffError,
    ValidationError,
)
from succession_kernel.logging_config import get_logger
from succession_modules.debts.workflows import DEBT_WORKFLOW

logger = get_logger("modules.debts.models")

_classifier = DebtPriorityClassifier()


class DebtStatus(Enum):
    """Debt states.  Must align with ``workflows.DEBT_WORKFLOW.states``."""
    OUTSTANDING = "outstanding"
    PARTIALLY_PAID = "partially_paid"
    SETTLED = "settled"
    DISPUTED = "disputed"
    WRITTEN_OFF = "written_off"
    STATUTE_BARRED = "statute_barred"


class VerificationStatus(Enum):
    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    REJECTED = "rejected"


class DisputeOutcome(Enum):
    UPHELD = "upheld"
    DISMISSED = "dismissed"
    SETTLED = "settled"


_PAYABLE_STATUSES = frozenset({DebtStatus.OUTSTANDING, DebtStatus.PARTIALLY_PAID})


@dataclass(frozen=True)
class DebtPayment:
    """One payment as tendered and as applied."""

    amount_tendered: Money
    amount_applied: Money
    paid_by: str
    reference: str
    paid_at: datetime

    @property
    def was_clamped(self) -> bool:
        return self.amount_applied < self.amount_tendered


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


@dataclass(eq=False)
class DebtLedgerEntry(RecordingMixin):
    """
    One estate liability.

    Contract:
        Status moves only along ``DEBT_WORKFLOW`` edges. ``can_be_paid`` is
        the single gate any payment-execution workflow consults.
    """

    debt_id: str
    estate_id: str
    debt_type: DebtType
    creditor_name: str
    description: str
    principal: Money
    incurred_date: date
    is_secured: bool = False
    security_details: str | None = None
    policy: SuccessionPolicy = field(default_factory=SuccessionPolicy, repr=False)
    clock: Clock = field(default_factory=SystemClock, repr=False)

    outstanding_balance: Money = field(init=False)
    total_paid: Money = field(init=False)
    total_discharged: Money = field(init=False)
    statutory_tier: StatutoryTier = field(init=False)
    limitation_years: int = field(init=False)
    status: DebtStatus = field(init=False, default=DebtStatus.OUTSTANDING)
    verification_status: VerificationStatus = field(init=False, default=VerificationStatus.UNVERIFIED)
    court_approval_ref: str | None = field(init=False, default=None)
    included_in_inventory: bool = field(init=False, default=False)
    payment_authorized_by: str | None = field(init=False, default=None)
    dispute_reason: str | None = field(init=False, default=None)
    write_off_reason: str | None = field(init=False, default=None)
    authority_approval_ref: str | None = field(init=False, default=None)
    payments: list[DebtPayment] = field(init=False, default_factory=list, repr=False)
    audit: AuditTrail = field(init=False, default_factory=AuditTrail, repr=False)
    facts: list[EstateFact] = field(init=False, default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if not self.creditor_name or not self.creditor_name.strip():
            raise ValidationError("creditor_name", "is required")
        if not self.description or not self.description.strip():
            raise ValidationError("description", "is required")
        if not self.principal.is_positive:
            raise ValidationError("principal", "must be greater than zero")
        if _as_date(self.incurred_date) > self.clock.today():
            raise ValidationError("incurred_date", "cannot be in the future")
        if self.is_secured and self.security_details is not None and not self.security_details.strip():
            raise ValidationError("security_details", "must not be blank")

        zero = Money.zero(self.principal.currency)
        self.outstanding_balance = self.principal
        self.total_paid = zero
        self.total_discharged = zero
        self.statutory_tier = _classifier.classify(self.debt_type, self.is_secured)
        self.limitation_years = self.policy.limitation_years(self.is_secured)

        logger.info(
            "debt_recorded",
            extra={
                "debt_id": self.debt_id,
                "estate_id": self.estate_id,
                "debt_type": self.debt_type.value,
                "principal": str(self.principal.amount),
                "currency": self.principal.currency.code,
                "statutory_tier": int(self.statutory_tier),
                "limitation_years": self.limitation_years,
            },
        )

    # -------------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------------

    @classmethod
    def funeral_expense(
        cls, debt_id: str, estate_id: str, provider: str, amount: Money,
        incurred_date: date, **kwargs: Any,
    ) -> DebtLedgerEntry:
        return cls(
            debt_id=debt_id,
            estate_id=estate_id,
            debt_type=DebtType.FUNERAL_EXPENSE,
            creditor_name=provider,
            description=f"Funeral expenses - {provider}",
            principal=amount,
            incurred_date=incurred_date,
            **kwargs,
        )

    @classmethod
    def tax_obligation(
        cls, debt_id: str, estate_id: str, amount: Money, incurred_date: date,
        tax_description: str = "Tax due to the revenue authority", **kwargs: Any,
    ) -> DebtLedgerEntry:
        return cls(
            debt_id=debt_id,
            estate_id=estate_id,
            debt_type=DebtType.TAX_OBLIGATION,
            creditor_name="Kenya Revenue Authority",
            description=tax_description,
            principal=amount,
            incurred_date=incurred_date,
            **kwargs,
        )

    @classmethod
    def mortgage(
        cls, debt_id: str, estate_id: str, lender: str, amount: Money,
        incurred_date: date, property_ref: str, **kwargs: Any,
    ) -> DebtLedgerEntry:
        return cls(
            debt_id=debt_id,
            estate_id=estate_id,
            debt_type=DebtType.MORTGAGE,
            creditor_name=lender,
            description=f"Mortgage secured on {property_ref}",
            principal=amount,
            incurred_date=incurred_date,
            is_secured=True,
            security_details=property_ref,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @property
    def is_tax_debt(self) -> bool:
        return self.debt_type == DebtType.TAX_OBLIGATION

    @property
    def requires_court_approval(self) -> bool:
        return self.debt_type == DebtType.COURT_FINES

    @property
    def is_terminal(self) -> bool:
        return DEBT_WORKFLOW.is_terminal(self.status.value)

    @property
    def is_outstanding(self) -> bool:
        return self.status in _PAYABLE_STATUSES

    @property
    def limitation_date(self) -> date:
        return _classifier.limitation_date(self.incurred_date, self.limitation_years)

    @property
    def balances_reconcile(self) -> bool:
        return (
            self.total_paid + self.outstanding_balance + self.total_discharged == self.principal
        )

    def _require_reason(self, field_name: str, reason: str | None) -> str:
        minimum = self.policy.minimum_reason_length
        if not reason or len(reason.strip()) < minimum:
            raise ReasonTooShortError(field_name, minimum)
        return reason.strip()

    def _next_state(self, action: str) -> DebtStatus:
        try:
            t = DEBT_WORKFLOW.require_transition(self.debt_id, self.status.value, action)
        except InvalidTransitionError:
            logger.warning(
                "debt_transition_rejected",
                extra={"debt_id": self.debt_id, "from_state": self.status.value, "action": action},
            )
            raise
        return DebtStatus(t.to_state)

    def priority_candidate(self) -> PriorityCandidate:
        return PriorityCandidate(
            debt_id=self.debt_id,
            tier=self.statutory_tier,
            incurred_date=_as_date(self.incurred_date),
            is_outstanding=self.is_outstanding,
        )

    # -------------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------------

    def record_payment(
        self, amount: Money, paid_by: str, reference: str = "",
    ) -> DebtPayment:
        """
        Apply a payment.

        Under the clamp policy an amount above the outstanding balance is
        reduced to the balance and the discrepancy is written to the audit
        trail. Under the reject policy it raises ``OverpaymentError``.
        """
        if not amount.is_positive:
            raise ValidationError("payment amount", "must be greater than zero")
        if amount.currency != self.principal.currency:
            raise ValidationError(
                "payment currency",
                f"expected {self.principal.currency.code}, got {amount.currency.code}",
            )
        if self.status not in _PAYABLE_STATUSES:
            raise InvalidTransitionError(DEBT_WORKFLOW.name, self.debt_id, self.status.value, "pay")

        applied = amount
        excess: Money | None = None
        if amount > self.outstanding_balance:
            excess = amount - self.outstanding_balance
            if self.policy.overpayment_policy == OverpaymentPolicy.REJECT:
                logger.warning(
                    "debt_overpayment_rejected",
                    extra={
                        "debt_id": self.debt_id,
                        "amount": str(amount.amount),
                        "outstanding": str(self.outstanding_balance.amount),
                    },
                )
                raise OverpaymentError(self.debt_id, str(amount), str(self.outstanding_balance))
            applied = self.outstanding_balance

        new_balance = self.outstanding_balance - applied
        next_status = self._next_state("pay_in_full" if new_balance.is_zero else "pay_part")

        self.outstanding_balance = new_balance
        self.total_paid = self.total_paid + applied
        self.status = next_status
        payment = DebtPayment(
            amount_tendered=amount,
            amount_applied=applied,
            paid_by=paid_by,
            reference=reference,
            paid_at=self.clock.now(),
        )
        self.payments.append(payment)

        if excess is not None:
            self._note(
                paid_by,
                "Overpayment clamped to outstanding balance",
                tendered=amount,
                applied=applied,
                discrepancy=excess,
                reference=reference,
            )
            logger.warning(
                "debt_payment_clamped",
                extra={
                    "debt_id": self.debt_id,
                    "tendered": str(amount.amount),
                    "applied": str(applied.amount),
                    "discrepancy": str(excess.amount),
                },
            )

        self._record(
            DebtPaymentRecorded(
                estate_id=self.estate_id,
                occurred_at=payment.paid_at,
                debt_id=self.debt_id,
                amount_applied=applied,
                amount_tendered=amount,
                outstanding_balance=self.outstanding_balance,
                status=self.status.value,
            )
        )
        logger.info(
            "debt_payment_recorded",
            extra={
                "debt_id": self.debt_id,
                "applied": str(applied.amount),
                "outstanding": str(self.outstanding_balance.amount),
                "status": self.status.value,
            },
        )
        return payment

    # -------------------------------------------------------------------------
    # Limitation
    # -------------------------------------------------------------------------

    def check_statute_barred_status(self, as_of: date | datetime) -> bool:
        """True if the debt is statute-barred as of the given date."""
        if self.status == DebtStatus.STATUTE_BARRED:
            return True
        if self.status in (DebtStatus.SETTLED, DebtStatus.WRITTEN_OFF):
            return False
        if not _classifier.is_statute_barred(self.incurred_date, self.limitation_years, as_of):
            return False

        self.status = self._next_state("bar")
        self._note(
            "system",
            "Debt became statute-barred",
            limitation_years=self.limitation_years,
            limitation_date=self.limitation_date,
            as_of=_as_date(as_of),
        )
        self._record(
            DebtStatuteBarred(
                estate_id=self.estate_id,
                occurred_at=self.clock.now(),
                debt_id=self.debt_id,
                outstanding_balance=self.outstanding_balance,
                limitation_years=self.limitation_years,
                as_of=_as_date(as_of),
            )
        )
        logger.info(
            "debt_statute_barred",
            extra={"debt_id": self.debt_id, "as_of": _as_date(as_of).isoformat()},
        )
        return True

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    def reclassify(self, new_tier: StatutoryTier, reason: str, reclassified_by: str) -> None:
        if self.statutory_tier == StatutoryTier.FUNERAL_TESTAMENTARY:
            logger.warning(
                "debt_reclassification_rejected",
                extra={"debt_id": self.debt_id, "requested_tier": int(new_tier)},
            )
            raise TierOneReclassificationError(self.debt_id, int(new_tier))
        if self.is_terminal:
            raise PreconditionError("debt", self.debt_id, "reclassify", self.status.value)
        if new_tier == self.statutory_tier:
            raise PreconditionError(
                "debt", self.debt_id, "reclassify", self.status.value,
                f"already in tier {int(new_tier)}",
            )
        reason = self._require_reason("reclassification reason", reason)

        previous = self.statutory_tier
        self.statutory_tier = StatutoryTier(new_tier)
        self._note(
            reclassified_by, "Debt reclassified",
            previous_tier=int(previous), new_tier=int(new_tier), reason=reason,
        )
        self._record(
            DebtReclassified(
                estate_id=self.estate_id,
                occurred_at=self.clock.now(),
                debt_id=self.debt_id,
                previous_tier=int(previous),
                new_tier=int(new_tier),
                reason=reason,
            )
        )
        logger.info(
            "debt_reclassified",
            extra={"debt_id": self.debt_id, "previous_tier": int(previous), "new_tier": int(new_tier)},
        )

    # -------------------------------------------------------------------------
    # Disputes and write-offs
    # -------------------------------------------------------------------------

    def dispute(self, reason: str, disputed_by: str) -> None:
        reason = self._require_reason("dispute reason", reason)
        next_status = self._next_state("dispute")
        self.status = next_status
        self.dispute_reason = reason
        self._note(disputed_by, "Debt disputed", reason=reason)
        logger.info("debt_disputed", extra={"debt_id": self.debt_id})

    def resolve_dispute(self, outcome: DisputeOutcome, resolved_by: str, notes: str = "") -> None:
        action = "settle_dispute" if outcome == DisputeOutcome.SETTLED else "reinstate"
        next_status = self._next_state(action)
        discharged = self.outstanding_balance if outcome == DisputeOutcome.SETTLED else None

        self.status = next_status
        if discharged is not None:
            self.total_discharged = self.total_discharged + discharged
            self.outstanding_balance = Money.zero(self.principal.currency)
        self._note(
            resolved_by, "Dispute resolved",
            outcome=outcome.value, discharged=discharged, notes=notes,
        )
        logger.info(
            "debt_dispute_resolved",
            extra={"debt_id": self.debt_id, "outcome": outcome.value, "status": self.status.value},
        )

    def write_off(
        self, reason: str, written_off_by: str, authority_approval_ref: str | None = None,
    ) -> None:
        if self.statutory_tier == StatutoryTier.FUNERAL_TESTAMENTARY:
            logger.warning("debt_write_off_rejected", extra={"debt_id": self.debt_id, "rule": "tier_one"})
            raise TierOneWriteOffError(self.debt_id)
        if self.is_tax_debt and not (authority_approval_ref and authority_approval_ref.strip()):
            logger.warning("debt_write_off_rejected", extra={"debt_id": self.debt_id, "rule": "tax_approval"})
            raise TaxWriteOffApprovalRequiredError(self.debt_id)
        reason = self._require_reason("write-off reason", reason)
        next_status = self._next_state("write_off")

        discharged = self.outstanding_balance
        self.status = next_status
        self.total_discharged = self.total_discharged + discharged
        self.outstanding_balance = Money.zero(self.principal.currency)
        self.write_off_reason = reason
        self.authority_approval_ref = authority_approval_ref
        self._note(
            written_off_by, "Debt written off",
            reason=reason, discharged=discharged, authority_approval_ref=authority_approval_ref,
        )
        logger.info("debt_written_off", extra={"debt_id": self.debt_id, "discharged": str(discharged.amount)})

    # -------------------------------------------------------------------------
    # Payment prerequisites
    # -------------------------------------------------------------------------

    def verify(self, verified_by: str) -> None:
        if self.verification_status == VerificationStatus.VERIFIED:
            raise PreconditionError("debt", self.debt_id, "verify", self.verification_status.value)
        self.verification_status = VerificationStatus.VERIFIED
        self._note(verified_by, "Debt verified")

    def reject_verification(self, reason: str, rejected_by: str) -> None:
        reason = self._require_reason("rejection reason", reason)
        self.verification_status = VerificationStatus.REJECTED
        self._note(rejected_by, "Debt verification rejected", reason=reason)

    def record_court_approval(self, court_order_ref: str, recorded_by: str) -> None:
        if not court_order_ref or not court_order_ref.strip():
            raise ValidationError("court_order_ref", "is required")
        self.court_approval_ref = court_order_ref.strip()
        self._note(recorded_by, "Court approval recorded", court_order_ref=self.court_approval_ref)

    def include_in_inventory(self, included_by: str) -> None:
        self.included_in_inventory = True
        self._note(included_by, "Included in estate inventory")

    def authorize_payment(self, authorized_by: str) -> None:
        if self.is_terminal:
            raise PreconditionError("debt", self.debt_id, "authorize payment of", self.status.value)
        self.payment_authorized_by = authorized_by
        self._note(authorized_by, "Payment authorized")

    def payment_blockers(self) -> list[str]:
        """Unmet prerequisites for paying this debt from the estate."""
        blockers: list[str] = []
        if self.status not in _PAYABLE_STATUSES:
            blockers.append(f"status is {self.status.value}")
        if self.verification_status != VerificationStatus.VERIFIED:
            blockers.append("debt is not verified")
        if self.requires_court_approval and not self.court_approval_ref:
            blockers.append("court approval is required")
        if not self.included_in_inventory:
            blockers.append("debt is not in the estate inventory")
        if self.payment_authorized_by is None:
            blockers.append("payment is not authorized")
        return blockers

    @property
    def can_be_paid(self) -> bool:
        return not self.payment_blockers()

    def to_record(self) -> dict[str, Any]:
        return {
            "debt_id": self.debt_id,
            "estate_id": self.estate_id,
            "debt_type": self.debt_type.value,
            "creditor_name": self.creditor_name,
            "principal": self.principal.to_record(),
            "outstanding_balance": self.outstanding_balance.to_record(),
            "total_paid": self.total_paid.to_record(),
            "total_discharged": self.total_discharged.to_record(),
            "incurred_date": _as_date(self.incurred_date).isoformat(),
            "statutory_tier": int(self.statutory_tier),
            "status": self.status.value,
            "is_secured": self.is_secured,
            "limitation_years": self.limitation_years,
            "verification_status": self.verification_status.value,
        }
