"""
Estate Administration Service (``succession_modules.estate.service``).

Responsibility
--------------
Orchestrates estate administration across ledger entities: registering
members, recording death, running hotchpot valuations, paying debts in
statutory order, applying domain rules after state changes, checking the
bequest graph, abating pecuniary bequests and gating final distribution
behind the tax clearance check.

Architecture position
---------------------
**Modules layer** -- ``EstateAdministrationService`` is the sole public
entry point that spans more than one entity. It composes stateless engines
(``DebtPriorityClassifier``, ``ConflictDetector``, ``AbatementCalculator``)
with the stateful ledger entities. Entities are held in memory; persistence
is out of scope.

Invariants enforced
-------------------
* Every entity belongs to exactly one estate (ownership registry).
* A debt is paid only when ``can_be_paid`` holds and no debt in a higher
  statutory tier is still outstanding.
* Hotchpot valuation runs only after death has been recorded, and every
  gift is checked before any is valued, so a failed run changes nothing.
* Withdrawing a death record discards the gift valuations made against it.
* Distribution requires ``Estate.can_distribute`` AND
  ``TaxComplianceGate.is_cleared_for_distribution``; neither alone suffices.
* Domain rules run as explicit calls after the triggering transition.

Failure modes
-------------
* ``EstateOwnershipError`` when an entity is registered with a second estate.
* ``PreconditionError`` for unknown estates/entities and unmet prerequisites.
* ``PriorityOrderViolationError`` when paying out of statutory order.
* ``DistributionBlockedError`` listing every reason distribution is refused.

Audit relevance
---------------
Each public operation runs inside ``LogContext.bind(estate_id=...)`` so
every log line it produces carries the estate. Facts recorded by entities
are drained in timestamp order through ``collect_facts``.

Usage::

    service = EstateAdministrationService(policy=get_default_policy(), clock=clock)
    estate = service.open_estate("EST-1", deceased_ref="ID-12345678")
    service.register_debt(funeral_debt)
    service.record_death("EST-1", date(2024, 1, 1), "DC-99", recorded_by="executor")
    service.pay_debt("EST-1", funeral_debt.debt_id, Money.of("50000", "KES"), paid_by="executor")
    service.assert_distribution_allowed("EST-1")
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from succession_config.schema import SuccessionPolicy
from succession_engines.abatement import AbatementCalculator, AbatementClaim, AbatementResult
from succession_engines.conflict_detector import (
    ConflictDetector,
    ConflictReport,
    DetectorSettings,
    Likelihood,
    Severity,
)
from succession_engines.debt_priority import DebtPriorityClassifier
from succession_engines.hotchpot import HotchpotCalculator, HotchpotSettlement, ValuationMethod
from succession_kernel.domain.clock import Clock, SystemClock
from succession_kernel.domain.events import ConflictReportGenerated, EstateFact
from succession_kernel.domain.terms import ShareType
from succession_kernel.domain.values import Money, Percentage
from succession_kernel.exceptions import (
    DistributionBlockedError,
    EstateOwnershipError,
    PreconditionError,
    PriorityOrderViolationError,
    ReasonTooShortError,
)
from succession_kernel.logging_config import LogContext, get_logger
from succession_modules.assets.models import EstateAsset
from succession_modules.bequests.models import (
    BequestAssignment,
    BequestStatus,
    DisinheritanceRecord,
)
from succession_modules.debts.models import DebtLedgerEntry, DebtPayment
from succession_modules.estate.models import Estate, EstateValuation
from succession_modules.estate.rules import (
    bar_expired_debts,
    reclaim_gift_on_failed_condition,
    reclaim_gift_on_proven_fraud,
)
from succession_modules.gifts.models import (
    ContestOutcome,
    GiftHotchpotStatus,
    GiftLedgerEntry,
    GiftLegalStatus,
)
from succession_modules.tax.models import TaxComplianceGate

logger = get_logger("modules.estate.service")

_VALUED_STATUSES = frozenset({
    GiftHotchpotStatus.CALCULATION_PENDING,
    GiftHotchpotStatus.INCLUDED,
})


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def detector_settings_for(policy: SuccessionPolicy) -> DetectorSettings:
    """Translate the policy's risk weights and thresholds for the detector."""
    w = policy.risk_weights
    return DetectorSettings(
        severity_weights={
            Severity.CRITICAL: w.critical,
            Severity.HIGH: w.high,
            Severity.MEDIUM: w.medium,
            Severity.LOW: w.low,
        },
        warning_weight=w.warning,
        likelihood_weights={
            Likelihood.HIGH: w.likelihood_high,
            Likelihood.MEDIUM: w.likelihood_medium,
            Likelihood.LOW: w.likelihood_low,
        },
        max_score=w.max_score,
        unequal_children_threshold=policy.unequal_children_threshold,
        max_reasonable_age=policy.max_reasonable_age,
        max_reasonable_survival_days=policy.max_reasonable_survival_days,
    )


@dataclass
class _EstateBook:
    """Everything the service holds for one estate."""

    estate: Estate
    tax: TaxComplianceGate
    assets: dict[str, EstateAsset] = field(default_factory=dict)
    debts: dict[str, DebtLedgerEntry] = field(default_factory=dict)
    gifts: dict[str, GiftLedgerEntry] = field(default_factory=dict)
    bequests: dict[str, BequestAssignment] = field(default_factory=dict)
    disinheritances: dict[str, DisinheritanceRecord] = field(default_factory=dict)
    unequal_shares_justified: bool = False


class EstateAdministrationService:
    """
    In-memory administration of one or more estates.

    Contract:
        Entities are registered once and then addressed by id. Every
        mutation is delegated to the owning entity; the service adds the
        checks that need more than one entity to decide.
    """

    def __init__(
        self,
        policy: SuccessionPolicy | None = None,
        clock: Clock | None = None,
        detector: ConflictDetector | None = None,
    ):
        self._policy = policy or SuccessionPolicy()
        self._clock = clock or SystemClock()
        self._detector = detector or ConflictDetector(detector_settings_for(self._policy))
        self._classifier = DebtPriorityClassifier()
        self._abatement = AbatementCalculator()
        self._hotchpot = HotchpotCalculator()
        self._books: dict[str, _EstateBook] = {}
        self._owners: dict[str, str] = {}

    @property
    def policy(self) -> SuccessionPolicy:
        return self._policy

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def _book(self, estate_id: str) -> _EstateBook:
        try:
            return self._books[estate_id]
        except KeyError:
            raise PreconditionError("estate", estate_id, "look up", "unknown") from None

    def estate(self, estate_id: str) -> Estate:
        return self._book(estate_id).estate

    def tax_gate(self, estate_id: str) -> TaxComplianceGate:
        return self._book(estate_id).tax

    def debt(self, estate_id: str, debt_id: str) -> DebtLedgerEntry:
        return self._entity(self._book(estate_id).debts, "debt", estate_id, debt_id)

    def gift(self, estate_id: str, gift_id: str) -> GiftLedgerEntry:
        return self._entity(self._book(estate_id).gifts, "gift", estate_id, gift_id)

    def bequest(self, estate_id: str, assignment_id: str) -> BequestAssignment:
        return self._entity(self._book(estate_id).bequests, "bequest", estate_id, assignment_id)

    @staticmethod
    def _entity(registry: dict[str, Any], kind: str, estate_id: str, entity_id: str) -> Any:
        try:
            return registry[entity_id]
        except KeyError:
            raise PreconditionError(
                kind, entity_id, "look up", "unknown", f"not registered with estate {estate_id}"
            ) from None

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def open_estate(self, estate_id: str, deceased_ref: str) -> Estate:
        if estate_id in self._books:
            raise PreconditionError("estate", estate_id, "open", "exists", "estate already open")
        estate = Estate(
            estate_id=estate_id, deceased_ref=deceased_ref, policy=self._policy, clock=self._clock
        )
        tax = TaxComplianceGate(estate_id=estate_id, policy=self._policy, clock=self._clock)
        self._books[estate_id] = _EstateBook(estate=estate, tax=tax)
        return estate

    def _claim(self, entity_id: str, estate_id: str) -> None:
        owner = self._owners.get(entity_id)
        if owner is not None and owner != estate_id:
            logger.warning(
                "entity_ownership_conflict",
                extra={"entity_id": entity_id, "owner_estate_id": owner, "estate_id": estate_id},
            )
            raise EstateOwnershipError(entity_id, owner, estate_id)

    def register_asset(self, asset: EstateAsset) -> None:
        with LogContext.bind(estate_id=asset.estate_id, entity_id=asset.asset_id):
            book = self._book(asset.estate_id)
            self._claim(asset.asset_id, asset.estate_id)
            book.estate.add_asset(asset)
            book.assets[asset.asset_id] = asset
            self._owners[asset.asset_id] = asset.estate_id

    def register_debt(self, debt: DebtLedgerEntry) -> None:
        with LogContext.bind(estate_id=debt.estate_id, entity_id=debt.debt_id):
            book = self._book(debt.estate_id)
            self._claim(debt.debt_id, debt.estate_id)
            book.estate.add_debt(debt)
            book.debts[debt.debt_id] = debt
            self._owners[debt.debt_id] = debt.estate_id

    def register_gift(self, gift: GiftLedgerEntry) -> None:
        with LogContext.bind(estate_id=gift.estate_id, entity_id=gift.gift_id):
            book = self._book(gift.estate_id)
            self._claim(gift.gift_id, gift.estate_id)
            book.estate.add_gift(gift)
            book.gifts[gift.gift_id] = gift
            self._owners[gift.gift_id] = gift.estate_id

    def register_bequest(self, assignment: BequestAssignment) -> None:
        with LogContext.bind(estate_id=assignment.estate_id, entity_id=assignment.assignment_id):
            book = self._book(assignment.estate_id)
            self._claim(assignment.assignment_id, assignment.estate_id)
            book.estate.add_bequest(assignment)
            book.bequests[assignment.assignment_id] = assignment
            self._owners[assignment.assignment_id] = assignment.estate_id

    def register_disinheritance(self, record: DisinheritanceRecord) -> None:
        book = self._book(record.estate_id)
        if record.record_id in book.disinheritances:
            raise PreconditionError(
                "disinheritance", record.record_id, "register", "exists", "already registered"
            )
        book.disinheritances[record.record_id] = record
        book.estate.annotate("system", "Disinheritance recorded", person_id=record.person_id)

    def record_unequal_shares_justification(self, estate_id: str, justification: str, actor: str) -> None:
        minimum = self._policy.minimum_reason_length
        if not justification or len(justification.strip()) < minimum:
            raise ReasonTooShortError("justification", minimum)
        book = self._book(estate_id)
        book.unequal_shares_justified = True
        book.estate.annotate(actor, "Unequal shares between children justified", justification=justification)

    def remove_asset(self, estate_id: str, asset_id: str) -> None:
        book = self._book(estate_id)
        book.estate.remove_asset(asset_id)
        book.assets.pop(asset_id, None)
        self._owners.pop(asset_id, None)

    def remove_debt(self, estate_id: str, debt_id: str) -> None:
        book = self._book(estate_id)
        book.estate.remove_debt(debt_id)
        book.debts.pop(debt_id, None)
        self._owners.pop(debt_id, None)

    def remove_gift(self, estate_id: str, gift_id: str) -> None:
        book = self._book(estate_id)
        book.estate.remove_gift(gift_id)
        book.gifts.pop(gift_id, None)
        self._owners.pop(gift_id, None)

    # -------------------------------------------------------------------------
    # Death and hotchpot
    # -------------------------------------------------------------------------

    def record_death(
        self,
        estate_id: str,
        date_of_death: date | datetime,
        death_certificate_ref: str,
        recorded_by: str,
    ) -> Estate:
        """Freeze the estate and bring planned bequests into effect."""
        with LogContext.bind(estate_id=estate_id, actor_id=recorded_by):
            book = self._book(estate_id)
            book.estate.record_death(date_of_death, death_certificate_ref, recorded_by)
            for assignment in book.bequests.values():
                if assignment.status == BequestStatus.PLANNED:
                    assignment.activate(recorded_by)
            return book.estate

    def unfreeze(self, estate_id: str, reason: str, actor: str) -> Estate:
        """
        Withdraw an erroneous death record.

        Gift valuations made against the withdrawn date of death are
        discarded so that the next hotchpot run values them afresh.
        """
        with LogContext.bind(estate_id=estate_id, actor_id=actor):
            book = self._book(estate_id)
            book.estate.unfreeze(reason, actor)
            reset = [
                gift for gift in book.gifts.values()
                if gift.is_active and gift.hotchpot_status in _VALUED_STATUSES
            ]
            for gift in reset:
                gift.reset_hotchpot(actor, f"Date of death withdrawn: {reason.strip()}")
            if reset:
                logger.info(
                    "hotchpot_valuations_discarded",
                    extra={"estate_id": estate_id, "gift_ids": [g.gift_id for g in reset]},
                )
            return book.estate

    def run_hotchpot(
        self,
        estate_id: str,
        actor: str,
        annual_inflation_rate: Decimal | None = None,
        method: ValuationMethod = ValuationMethod.FIXED_RATE,
        include: bool = True,
    ) -> dict[str, Money]:
        """
        Value every eligible gift forward to the date of death.

        Gifts under contest are skipped until the contest resolves. Gifts
        made on the date of death have no elapsed time to value and are
        skipped with a warning. With ``include`` the calculated values are
        added to the hotchpot.
        """
        with LogContext.bind(estate_id=estate_id, actor_id=actor):
            book = self._book(estate_id)
            estate = book.estate
            if not estate.is_frozen or estate.date_of_death is None:
                raise PreconditionError(
                    "estate", estate_id, "run hotchpot", estate.status.value,
                    "death has not been recorded",
                )
            died = estate.date_of_death
            eligible: list[GiftLedgerEntry] = []
            for gift in book.gifts.values():
                if not gift.is_active or gift.legal_status == GiftLegalStatus.CONTESTED:
                    continue
                if gift.hotchpot_status not in (
                    GiftHotchpotStatus.PENDING, GiftHotchpotStatus.CALCULATION_PENDING,
                ):
                    continue
                if _as_date(gift.date_of_gift) >= died:
                    logger.warning(
                        "gift_hotchpot_skipped",
                        extra={
                            "gift_id": gift.gift_id,
                            "date_of_gift": _as_date(gift.date_of_gift).isoformat(),
                            "date_of_death": died.isoformat(),
                        },
                    )
                    continue
                eligible.append(gift)

            values: dict[str, Money] = {}
            for gift in eligible:
                values[gift.gift_id] = gift.calculate_hotchpot_value(
                    died, annual_inflation_rate, method
                )
            if include:
                for gift in eligible:
                    gift.include_in_hotchpot(actor, "Included by estate hotchpot run")
            logger.info(
                "hotchpot_run_completed",
                extra={"estate_id": estate_id, "gift_count": len(values), "included": include},
            )
            return values

    def settle_hotchpot(
        self, estate_id: str, shares: Mapping[str, Percentage]
    ) -> HotchpotSettlement:
        """
        Each beneficiary's take once included gifts are brought into account.

        ``shares`` maps recipient id to share of the notional estate. The
        distributable estate is the current estate after liabilities, without
        the notional hotchpot additions; those enter as advancements.
        """
        with LogContext.bind(estate_id=estate_id):
            book = self._book(estate_id)
            valuation = self.recompute(estate_id)
            currency = valuation.net_estate_value.currency.code
            by_recipient: dict[str, list[Money]] = {}
            for gift in book.gifts.values():
                if gift.is_active and gift.hotchpot_value is not None:
                    by_recipient.setdefault(gift.recipient_id, []).append(gift.hotchpot_value)
            advancements = {
                recipient: self._hotchpot.total(values, currency)
                for recipient, values in by_recipient.items()
            }
            balance = valuation.gross_asset_value.amount - valuation.total_liabilities.amount
            distributable = Money.of(max(balance, Decimal("0")), currency)
            return self._hotchpot.settle(
                net_estate=distributable, shares=shares, advancements=advancements
            )

    # -------------------------------------------------------------------------
    # Gift rules
    # -------------------------------------------------------------------------

    def fail_gift_condition(self, estate_id: str, gift_id: str, reason: str, recorded_by: str) -> bool:
        """Record a failed condition, then apply the reversion rule. True if reclaimed."""
        with LogContext.bind(estate_id=estate_id, entity_id=gift_id, actor_id=recorded_by):
            gift = self.gift(estate_id, gift_id)
            gift.mark_condition_failed(reason, recorded_by)
            return reclaim_gift_on_failed_condition(gift, recorded_by)

    def resolve_gift_contest(
        self,
        estate_id: str,
        gift_id: str,
        outcome: ContestOutcome,
        resolved_by: str,
        notes: str = "",
    ) -> bool:
        """Resolve a contest, then apply the fraud rule. True if reclaimed."""
        with LogContext.bind(estate_id=estate_id, entity_id=gift_id, actor_id=resolved_by):
            gift = self.gift(estate_id, gift_id)
            gift.resolve_contest(outcome, resolved_by, notes)
            return reclaim_gift_on_proven_fraud(gift, resolved_by)

    # -------------------------------------------------------------------------
    # Debts
    # -------------------------------------------------------------------------

    def payment_order(self, estate_id: str) -> list[str]:
        """Outstanding debt ids in statutory payment order."""
        book = self._book(estate_id)
        candidates = [d.priority_candidate() for d in book.debts.values() if d.is_outstanding]
        return [c.debt_id for c in self._classifier.order(candidates=candidates)]

    def pay_debt(
        self,
        estate_id: str,
        debt_id: str,
        amount: Money,
        paid_by: str,
        reference: str = "",
    ) -> DebtPayment:
        with LogContext.bind(estate_id=estate_id, entity_id=debt_id, actor_id=paid_by):
            book = self._book(estate_id)
            debt = self.debt(estate_id, debt_id)
            if not book.estate.is_frozen:
                raise PreconditionError(
                    "debt", debt_id, "pay", debt.status.value,
                    "estate debts are paid only after death is recorded",
                )
            blockers = debt.payment_blockers()
            if blockers:
                logger.warning(
                    "debt_payment_blocked",
                    extra={"debt_id": debt_id, "blockers": blockers},
                )
                raise PreconditionError("debt", debt_id, "pay", debt.status.value, "; ".join(blockers))

            target = debt.priority_candidate()
            blocking = self._classifier.first_blocking(
                target, (d.priority_candidate() for d in book.debts.values())
            )
            if blocking is not None:
                logger.warning(
                    "debt_priority_violation",
                    extra={
                        "debt_id": debt_id,
                        "tier": int(target.tier),
                        "blocking_debt_id": blocking.debt_id,
                        "blocking_tier": int(blocking.tier),
                    },
                )
                raise PriorityOrderViolationError(
                    debt_id, int(target.tier), blocking.debt_id, int(blocking.tier)
                )
            return debt.record_payment(amount, paid_by, reference)

    def check_statute_bars(self, estate_id: str, as_of: date | datetime) -> list[str]:
        with LogContext.bind(estate_id=estate_id):
            return bar_expired_debts(self._book(estate_id).debts.values(), as_of)

    # -------------------------------------------------------------------------
    # Bequests
    # -------------------------------------------------------------------------

    def run_conflict_check(self, estate_id: str) -> ConflictReport:
        with LogContext.bind(estate_id=estate_id):
            book = self._book(estate_id)
            assignments = sorted(book.bequests.values(), key=lambda a: a.assignment_id)
            report = self._detector.detect(
                estate_id=estate_id,
                assignments=assignments,
                disinheritances=list(book.disinheritances.values()),
                unequal_shares_justified=book.unequal_shares_justified,
            )
            book.estate.record_fact(
                ConflictReportGenerated(
                    estate_id=estate_id,
                    occurred_at=self._clock.now(),
                    assignment_count=len(assignments),
                    conflict_count=len(report.conflicts),
                    warning_count=len(report.warnings),
                    risk_score=report.risk_score,
                    has_conflicts=report.has_conflicts,
                )
            )
            return report

    def abate_fixed_bequests(self, estate_id: str, available: Money | None = None) -> AbatementResult:
        """
        Reduce pecuniary bequests pro rata when the estate cannot meet them.

        ``available`` defaults to the last computed net estate value.
        """
        with LogContext.bind(estate_id=estate_id):
            book = self._book(estate_id)
            if available is None:
                available = self.recompute(estate_id).net_estate_value
            claims = [
                AbatementClaim(claim_id=a.assignment_id, amount=a.fixed_amount)
                for a in sorted(book.bequests.values(), key=lambda a: a.assignment_id)
                if a.share_type == ShareType.FIXED_AMOUNT and a.is_active and not a.is_alternate
            ]
            return self._abatement.abate(available=available, claims=claims)

    # -------------------------------------------------------------------------
    # Distribution gate
    # -------------------------------------------------------------------------

    def recompute(self, estate_id: str) -> EstateValuation:
        book = self._book(estate_id)
        return book.estate.recompute_values(
            book.assets.values(), book.debts.values(), book.gifts.values()
        )

    def distribution_blockers(self, estate_id: str) -> list[str]:
        book = self._book(estate_id)
        self.recompute(estate_id)
        reasons = book.estate.distribution_blockers()
        if not book.tax.is_cleared_for_distribution:
            reasons.append(f"tax clearance is {book.tax.status.value}")
        return reasons

    def can_distribute(self, estate_id: str) -> bool:
        return not self.distribution_blockers(estate_id)

    def assert_distribution_allowed(self, estate_id: str) -> EstateValuation:
        """Raise ``DistributionBlockedError`` unless the estate and the tax gate both allow it."""
        with LogContext.bind(estate_id=estate_id):
            reasons = self.distribution_blockers(estate_id)
            if reasons:
                logger.warning(
                    "distribution_blocked",
                    extra={"estate_id": estate_id, "reasons": reasons},
                )
                raise DistributionBlockedError(estate_id, reasons)
            valuation = self.estate(estate_id).valuation
            logger.info(
                "distribution_allowed",
                extra={"estate_id": estate_id, "net_estate_value": str(valuation.net_estate_value.amount)},
            )
            return valuation

    # -------------------------------------------------------------------------
    # Facts
    # -------------------------------------------------------------------------

    def collect_facts(self, estate_id: str) -> list[EstateFact]:
        """Drain facts from the estate and all its entities, oldest first."""
        book = self._book(estate_id)
        sources: tuple[Iterable[Any], ...] = (
            [book.estate, book.tax],
            book.debts.values(),
            book.gifts.values(),
            book.bequests.values(),
        )
        facts: list[EstateFact] = []
        for group in sources:
            for entity in group:
                facts.extend(entity.pull_facts())
        facts.sort(key=lambda f: f.occurred_at)
        logger.info("estate_facts_collected", extra={"estate_id": estate_id, "fact_count": len(facts)})
        return facts
