"""
Gift Ledger Models (``succession_modules.gifts.models``).

Responsibility
--------------
``GiftLedgerEntry`` records one inter-vivos gift and its statutory
treatment: whether it is brought into hotchpot, its inflation-adjusted
value at the date of death, any condition attached to it, and its legal
standing.

Architecture position
---------------------
**Modules layer** -- stateful ledger entity. Valuation is delegated to
``succession_engines.hotchpot``; legal edges come from
``succession_modules.gifts.workflows``. Cross-entity consequences (a failed
condition reverting the gift to the estate) are applied by
``succession_modules.estate.rules``, never from inside this class.

Invariants enforced
-------------------
* Created with a description of at least 10 characters, a positive value
  and a gift date that is not in the future.
* Exempt gifts (not subject to hotchpot, or customarily exempt) start and
  stay ``NOT_APPLICABLE``.
* Every operation validates before mutating; a rejected operation leaves
  the entry unchanged.
* Gifts are never deleted, only deactivated.

Failure modes
-------------
* ``ValidationError`` / ``ReasonTooShortError`` for malformed input.
* ``PreconditionError`` / ``InvalidTransitionError`` when the current
  state forbids the operation.

Audit relevance
---------------
Inclusion, exclusion, reclamation, valuation resets, condition outcomes and
contests append structured notes to ``audit``. Valuation and reclamation record facts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from succession_config.schema import SuccessionPolicy
from succession_engines.hotchpot import HotchpotCalculator, HotchpotValuation, ValuationMethod
from succession_kernel.domain.audit_trail import AuditTrail
from succession_kernel.domain.clock import Clock, SystemClock
from succession_kernel.domain.events import EstateFact, GiftHotchpotCalculated, GiftReclaimed
from succession_kernel.domain.recording import RecordingMixin
from succession_kernel.domain.values import Money
from succession_kernel.domain.workflow import Workflow
from succession_kernel.exceptions import (
    InvalidTransitionError,
    PreconditionError,
    ReasonTooShortError,
    ValidationError,
)
from succession_kernel.logging_config import get_logger
from succession_modules.assets.models import AssetDetails
from succession_modules.gifts.workflows import (
    CONDITION_WORKFLOW,
    HOTCHPOT_WORKFLOW,
    LEGAL_STATUS_WORKFLOW,
)

logger = get_logger("modules.gifts.models")

_calculator = HotchpotCalculator()

MIN_DESCRIPTION_LENGTH = 10


class GiftType(Enum):
    CUSTOMARY_BRIDE_PRICE = "customary_bride_price"
    EDUCATIONAL_SUPPORT = "educational_support"
    MARRIAGE_GIFT = "marriage_gift"
    BUSINESS_STARTUP = "business_startup"
    PROPERTY_TRANSFER = "property_transfer"
    CASH_GIFT = "cash_gift"
    VEHICLE_GIFT = "vehicle_gift"
    LAND_GIFT = "land_gift"
    LIVESTOCK_GIFT = "livestock_gift"
    FAMILY_HEIRLOOM = "family_heirloom"
    TRADITIONAL_RITE = "traditional_rite"
    OTHER = "other"


class GiftHotchpotStatus(Enum):
    """Hotchpot states.  Must align with ``workflows.HOTCHPOT_WORKFLOW.states``."""
    NOT_APPLICABLE = "not_applicable"
    PENDING = "pending"
    CALCULATION_PENDING = "calculation_pending"
    INCLUDED = "included"
    EXCLUDED = "excluded"
    RECLAIMED = "reclaimed"


class GiftConditionStatus(Enum):
    """Condition states.  Must align with ``workflows.CONDITION_WORKFLOW.states``."""
    NONE = "none"
    PENDING = "pending"
    MET = "met"
    FAILED = "failed"
    WAIVED = "waived"
    TIME_EXPIRED = "time_expired"


class GiftLegalStatus(Enum):
    """Legal states.  Must align with ``workflows.LEGAL_STATUS_WORKFLOW.states``."""
    VALID = "valid"
    CONTESTED = "contested"
    SETTLED = "settled"
    INVALID = "invalid"


class GiftConditionType(Enum):
    AGE = "age"
    EDUCATION = "education"
    MARRIAGE = "marriage"
    BUSINESS_SUCCESS = "business_success"
    CUSTOMARY_RITE = "customary_rite"
    OTHER = "other"


class ContestOutcome(Enum):
    GIFT_UPHELD = "gift_upheld"
    CONTEST_DISMISSED = "contest_dismissed"
    SETTLED = "settled"
    FRAUD_PROVEN = "fraud_proven"


_OUTCOME_ACTIONS = {
    ContestOutcome.GIFT_UPHELD: "uphold",
    ContestOutcome.CONTEST_DISMISSED: "uphold",
    ContestOutcome.SETTLED: "settle",
    ContestOutcome.FRAUD_PROVEN: "invalidate",
}


@dataclass(frozen=True)
class GiftCondition:
    """A condition the recipient must satisfy to keep the gift."""

    condition_type: GiftConditionType
    description: str
    deadline: date | None = None
    reverts_to_estate: bool = False


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


@dataclass(eq=False)
class GiftLedgerEntry(RecordingMixin):
    """
    One inter-vivos gift.

    Contract:
        Three independent sub-machines (hotchpot, condition, legal status)
        each driven by its declarative workflow.

    Non-goals:
        Does not know whether the estate is frozen; the estate service only
        runs hotchpot operations after death has been recorded.
    """

    gift_id: str
    estate_id: str
    recipient_id: str
    gift_type: GiftType
    description: str
    value_at_gift_time: Money
    date_of_gift: date
    is_subject_to_hotchpot: bool = True
    customary_exemption: bool = False
    details: AssetDetails | None = None
    policy: SuccessionPolicy = field(default_factory=SuccessionPolicy, repr=False)
    clock: Clock = field(default_factory=SystemClock, repr=False)

    hotchpot_status: GiftHotchpotStatus = field(init=False)
    condition_status: GiftConditionStatus = field(init=False, default=GiftConditionStatus.NONE)
    legal_status: GiftLegalStatus = field(init=False, default=GiftLegalStatus.VALID)
    condition: GiftCondition | None = field(init=False, default=None)
    valuation: HotchpotValuation | None = field(init=False, default=None, repr=False)
    inflation_adjusted_value: Money | None = field(init=False, default=None)
    exclusion_reason: str | None = field(init=False, default=None)
    court_order_ref: str | None = field(init=False, default=None)
    reclaim_reason: str | None = field(init=False, default=None)
    is_active: bool = field(init=False, default=True)
    audit: AuditTrail = field(init=False, default_factory=AuditTrail, repr=False)
    facts: list[EstateFact] = field(init=False, default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if not self.description or len(self.description.strip()) < MIN_DESCRIPTION_LENGTH:
            raise ReasonTooShortError("description", MIN_DESCRIPTION_LENGTH)
        if not self.value_at_gift_time.is_positive:
            raise ValidationError("value_at_gift_time", "must be greater than zero")
        if _as_date(self.date_of_gift) > self.clock.today():
            raise ValidationError("date_of_gift", "cannot be in the future")

        exempt = not self.is_subject_to_hotchpot or self.customary_exemption
        self.hotchpot_status = (
            GiftHotchpotStatus.NOT_APPLICABLE if exempt else GiftHotchpotStatus.PENDING
        )

        logger.info(
            "gift_recorded",
            extra={
                "gift_id": self.gift_id,
                "estate_id": self.estate_id,
                "gift_type": self.gift_type.value,
                "value": str(self.value_at_gift_time.amount),
                "currency": self.value_at_gift_time.currency.code,
                "hotchpot_status": self.hotchpot_status.value,
            },
        )

    # -------------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------------

    @classmethod
    def customary_bride_price(
        cls,
        gift_id: str,
        estate_id: str,
        recipient_id: str,
        value: Money,
        date_of_gift: date,
        description: str = "Customary bride price (ruracio)",
        **kwargs: Any,
    ) -> GiftLedgerEntry:
        """Bride price is customarily exempt from hotchpot."""
        return cls(
            gift_id=gift_id,
            estate_id=estate_id,
            recipient_id=recipient_id,
            gift_type=GiftType.CUSTOMARY_BRIDE_PRICE,
            description=description,
            value_at_gift_time=value,
            date_of_gift=date_of_gift,
            customary_exemption=True,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _ensure_active(self, operation: str) -> None:
        if not self.is_active:
            raise PreconditionError("gift", self.gift_id, operation, "inactive")

    def _require_reason(self, field_name: str, reason: str | None) -> str:
        minimum = self.policy.minimum_reason_length
        if not reason or len(reason.strip()) < minimum:
            raise ReasonTooShortError(field_name, minimum)
        return reason.strip()

    def _next_state(self, workflow: Workflow, current: Enum, action: str) -> str:
        try:
            return workflow.require_transition(self.gift_id, current.value, action).to_state
        except InvalidTransitionError:
            logger.warning(
                "gift_transition_rejected",
                extra={
                    "gift_id": self.gift_id,
                    "workflow": workflow.name,
                    "from_state": current.value,
                    "action": action,
                },
            )
            raise

    @property
    def can_reclaim(self) -> bool:
        return (
            self.is_active
            and HOTCHPOT_WORKFLOW.find_transition(self.hotchpot_status.value, "reclaim") is not None
        )

    @property
    def hotchpot_value(self) -> Money | None:
        """Value added back to the estate; set only once included."""
        if self.hotchpot_status == GiftHotchpotStatus.INCLUDED:
            return self.inflation_adjusted_value
        return None

    # -------------------------------------------------------------------------
    # Hotchpot
    # -------------------------------------------------------------------------

    def calculate_hotchpot_value(
        self,
        date_of_death: date | datetime,
        annual_inflation_rate: Decimal | None = None,
        method: ValuationMethod = ValuationMethod.FIXED_RATE,
    ) -> Money:
        """
        Bring the gift forward to the date of death.

        Records the adjusted value and moves the gift to CALCULATION_PENDING.
        The value does not count towards the estate until ``include_in_hotchpot``.
        """
        self._ensure_active("calculate hotchpot value for")
        if not self.is_subject_to_hotchpot or self.customary_exemption:
            raise PreconditionError(
                "gift", self.gift_id, "calculate hotchpot value for",
                self.hotchpot_status.value, "gift is not subject to hotchpot",
            )
        to_state = self._next_state(HOTCHPOT_WORKFLOW, self.hotchpot_status, "calculate")
        rate = self.policy.default_inflation_rate if annual_inflation_rate is None else annual_inflation_rate

        valuation = _calculator.calculate(
            value=self.value_at_gift_time,
            gift_date=self.date_of_gift,
            date_of_death=date_of_death,
            annual_rate=rate,
            method=method,
        )

        self.valuation = valuation
        self.inflation_adjusted_value = valuation.adjusted_value
        self.hotchpot_status = GiftHotchpotStatus(to_state)
        self._record(
            GiftHotchpotCalculated(
                estate_id=self.estate_id,
                occurred_at=self.clock.now(),
                gift_id=self.gift_id,
                original_value=self.value_at_gift_time,
                adjusted_value=valuation.adjusted_value,
                annual_rate=valuation.annual_rate,
                years_elapsed=valuation.years_elapsed,
                method=method.value,
            )
        )
        logger.info(
            "gift_hotchpot_calculated",
            extra={
                "gift_id": self.gift_id,
                "adjusted_value": str(valuation.adjusted_value.amount),
                "method": method.value,
            },
        )
        return valuation.adjusted_value

    def include_in_hotchpot(self, included_by: str, reason: str = "") -> None:
        self._ensure_active("include")
        if self.inflation_adjusted_value is None:
            raise PreconditionError(
                "gift", self.gift_id, "include", self.hotchpot_status.value,
                "no inflation-adjusted value has been calculated",
            )
        to_state = self._next_state(HOTCHPOT_WORKFLOW, self.hotchpot_status, "include")
        self.hotchpot_status = GiftHotchpotStatus(to_state)
        self._note(
            included_by,
            "Included in hotchpot",
            adjusted_value=self.inflation_adjusted_value,
            reason=reason,
        )
        logger.info(
            "gift_included_in_hotchpot",
            extra={"gift_id": self.gift_id, "included_by": included_by},
        )

    def exclude_from_hotchpot(
        self,
        excluded_by: str,
        reason: str,
        requires_court_order: bool = False,
        court_order_ref: str | None = None,
    ) -> None:
        self._ensure_active("exclude")
        reason = self._require_reason("exclusion reason", reason)
        if requires_court_order and not (court_order_ref and court_order_ref.strip()):
            raise ValidationError("court_order_ref", "required when exclusion needs a court order")
        to_state = self._next_state(HOTCHPOT_WORKFLOW, self.hotchpot_status, "exclude")

        self.hotchpot_status = GiftHotchpotStatus(to_state)
        self.exclusion_reason = reason
        self.court_order_ref = court_order_ref
        self._note(excluded_by, "Excluded from hotchpot", reason=reason, court_order_ref=court_order_ref)
        logger.info(
            "gift_excluded_from_hotchpot",
            extra={"gift_id": self.gift_id, "excluded_by": excluded_by},
        )

    def reclaim_to_estate(self, reclaimed_by: str, reason: str) -> None:
        """Revert the gift to the estate after a failed condition or proven fraud."""
        self._ensure_active("reclaim")
        reason = self._require_reason("reclaim reason", reason)
        to_state = self._next_state(HOTCHPOT_WORKFLOW, self.hotchpot_status, "reclaim")

        self.hotchpot_status = GiftHotchpotStatus(to_state)
        self.reclaim_reason = reason
        self._note(reclaimed_by, "Reclaimed to estate", reason=reason)
        self._record(
            GiftReclaimed(
                estate_id=self.estate_id,
                occurred_at=self.clock.now(),
                gift_id=self.gift_id,
                value=self.value_at_gift_time,
                reason=reason,
            )
        )
        logger.info(
            "gift_reclaimed",
            extra={"gift_id": self.gift_id, "reclaimed_by": reclaimed_by},
        )

    def reset_hotchpot(self, reset_by: str, reason: str) -> None:
        """Discard a valuation made against a date of death that was withdrawn."""
        self._ensure_active("reset hotchpot for")
        reason = self._require_reason("reset reason", reason)
        to_state = self._next_state(HOTCHPOT_WORKFLOW, self.hotchpot_status, "reset")

        previous = self.inflation_adjusted_value
        self.hotchpot_status = GiftHotchpotStatus(to_state)
        self.valuation = None
        self.inflation_adjusted_value = None
        self._note(reset_by, "Hotchpot valuation discarded", reason=reason, previous_value=previous)
        logger.info(
            "gift_hotchpot_reset",
            extra={"gift_id": self.gift_id, "reset_by": reset_by},
        )

    # -------------------------------------------------------------------------
    # Condition
    # -------------------------------------------------------------------------

    def set_condition(
        self,
        condition_type: GiftConditionType,
        description: str,
        deadline: date | None = None,
        reverts_to_estate: bool = False,
        set_by: str = "system",
    ) -> None:
        self._ensure_active("set condition on")
        if not description or len(description.strip()) < MIN_DESCRIPTION_LENGTH:
            raise ReasonTooShortError("condition description", MIN_DESCRIPTION_LENGTH)
        if deadline is not None and _as_date(deadline) < _as_date(self.date_of_gift):
            raise ValidationError("deadline", "cannot precede the gift date")
        to_state = self._next_state(CONDITION_WORKFLOW, self.condition_status, "set")

        self.condition = GiftCondition(
            condition_type=condition_type,
            description=description.strip(),
            deadline=deadline,
            reverts_to_estate=reverts_to_estate,
        )
        self.condition_status = GiftConditionStatus(to_state)
        self._note(set_by, "Condition set", condition_type=condition_type.value, deadline=deadline)

    @property
    def reverts_to_estate(self) -> bool:
        return self.condition is not None and self.condition.reverts_to_estate

    def mark_condition_met(self, met_on: date, confirmed_by: str) -> None:
        self._ensure_active("mark condition met on")
        to_state = self._next_state(CONDITION_WORKFLOW, self.condition_status, "meet")
        late = (
            self.condition is not None
            and self.condition.deadline is not None
            and _as_date(met_on) > self.condition.deadline
        )
        self.condition_status = GiftConditionStatus(to_state)
        self._note(confirmed_by, "Condition met", met_on=met_on, after_deadline=late)
        if late:
            logger.warning(
                "gift_condition_met_after_deadline",
                extra={
                    "gift_id": self.gift_id,
                    "met_on": _as_date(met_on).isoformat(),
                    "deadline": self.condition.deadline.isoformat(),
                },
            )

    def mark_condition_failed(self, reason: str, recorded_by: str) -> None:
        """Record the failure only; reversion is a separate domain rule."""
        self._ensure_active("mark condition failed on")
        reason = self._require_reason("failure reason", reason)
        to_state = self._next_state(CONDITION_WORKFLOW, self.condition_status, "fail")
        self.condition_status = GiftConditionStatus(to_state)
        self._note(recorded_by, "Condition failed", reason=reason, reverts_to_estate=self.reverts_to_estate)
        logger.info(
            "gift_condition_failed",
            extra={"gift_id": self.gift_id, "reverts_to_estate": self.reverts_to_estate},
        )

    def waive_condition(self, reason: str, waived_by: str) -> None:
        self._ensure_active("waive condition on")
        reason = self._require_reason("waiver reason", reason)
        to_state = self._next_state(CONDITION_WORKFLOW, self.condition_status, "waive")
        self.condition_status = GiftConditionStatus(to_state)
        self._note(waived_by, "Condition waived", reason=reason)

    def expire_condition(self, as_of: date) -> bool:
        """Move a pending condition past its deadline to TIME_EXPIRED."""
        if (
            self.condition_status != GiftConditionStatus.PENDING
            or self.condition is None
            or self.condition.deadline is None
            or _as_date(as_of) <= self.condition.deadline
        ):
            return False
        to_state = self._next_state(CONDITION_WORKFLOW, self.condition_status, "expire")
        self.condition_status = GiftConditionStatus(to_state)
        self._note("system", "Condition deadline passed", deadline=self.condition.deadline, as_of=as_of)
        return True

    # -------------------------------------------------------------------------
    # Legal status
    # -------------------------------------------------------------------------

    def contest(self, reason: str, contested_by: str) -> None:
        self._ensure_active("contest")
        reason = self._require_reason("contest reason", reason)
        to_state = self._next_state(LEGAL_STATUS_WORKFLOW, self.legal_status, "contest")
        self.legal_status = GiftLegalStatus(to_state)
        self._note(contested_by, "Gift contested", reason=reason)
        logger.info("gift_contested", extra={"gift_id": self.gift_id})

    def resolve_contest(self, outcome: ContestOutcome, resolved_by: str, notes: str = "") -> None:
        self._ensure_active("resolve contest on")
        to_state = self._next_state(
            LEGAL_STATUS_WORKFLOW, self.legal_status, _OUTCOME_ACTIONS[outcome]
        )
        self.legal_status = GiftLegalStatus(to_state)
        self._note(resolved_by, "Contest resolved", outcome=outcome.value, notes=notes)
        logger.info(
            "gift_contest_resolved",
            extra={"gift_id": self.gift_id, "outcome": outcome.value},
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def deactivate(self, reason: str, deactivated_by: str) -> None:
        self._ensure_active("deactivate")
        reason = self._require_reason("deactivation reason", reason)
        self.is_active = False
        self._note(deactivated_by, "Gift deactivated", reason=reason)

    def to_record(self) -> dict[str, Any]:
        return {
            "gift_id": self.gift_id,
            "estate_id": self.estate_id,
            "recipient_id": self.recipient_id,
            "gift_type": self.gift_type.value,
            "description": self.description,
            "value_at_gift_time": self.value_at_gift_time.to_record(),
            "date_of_gift": _as_date(self.date_of_gift).isoformat(),
            "hotchpot_status": self.hotchpot_status.value,
            "is_subject_to_hotchpot": self.is_subject_to_hotchpot,
            "customary_exemption": self.customary_exemption,
            "inflation_adjusted_value": (
                self.inflation_adjusted_value.to_record()
                if self.inflation_adjusted_value is not None else None
            ),
            "condition_status": self.condition_status.value,
            "reverts_to_estate": self.reverts_to_estate,
            "legal_status": self.legal_status.value,
            "is_active": self.is_active,
        }
