"""
Bequest Models (``succession_modules.bequests.models``).

Responsibility
--------------
``BequestAssignment`` is one node of an estate's distribution graph: a
promised share or asset for one beneficiary, the conditions it depends
on, and the alternate that takes if it fails. ``DisinheritanceRecord``
documents a person deliberately left out and how strong the legal basis
for that is.

Architecture position
---------------------
**Modules layer** -- stateful ledger entity. Assignments satisfy the
``BequestView`` protocol read by ``succession_engines.conflict_detector``.

Invariants enforced
-------------------
* Exactly one value specification, matching the share type:
  SPECIFIC_ASSET -> asset_id, PERCENTAGE -> percentage,
  FIXED_AMOUNT -> fixed_amount, RESIDUARY -> percentage of the residue.
* Percentage shares lie in (0, 100].
* An alternate references exactly one primary, never itself, and names a
  different beneficiary from that primary.
* Conditions are unique and marriage conditions are not contradictory.
* Conditions can only change while the assignment is planned.

Failure modes
-------------
* ``ValidationError`` for malformed specifications.
* ``InvalidTransitionError`` for illegal lifecycle edges.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from succession_config.schema import SuccessionPolicy
from succession_kernel.domain.audit_trail import AuditTrail
from succession_kernel.domain.clock import Clock, SystemClock
from succession_kernel.domain.events import EstateFact
from succession_kernel.domain.recording import RecordingMixin
from succession_kernel.domain.terms import (
    BequestConditionType,
    LegalBasisStrength,
    RelationshipTag,
    ShareType,
)
from succession_kernel.domain.values import Money, Percentage
from succession_kernel.exceptions import (
    InvalidTransitionError,
    PreconditionError,
    ReasonTooShortError,
    ValidationError,
)
from succession_kernel.logging_config import get_logger
from succession_modules.bequests.workflows import BEQUEST_WORKFLOW

logger = get_logger("modules.bequests.models")

MAX_DESCRIPTION_LENGTH = 500

class BequestStatus(Enum):
    """Bequest states.  Must align with ``workflows.BEQUEST_WORKFLOW.states``."""
    PLANNED = "planned"
    ACTIVE = "active"
    FULFILLED = "fulfilled"
    LAPSED = "lapsed"
    DISCLAIMED = "disclaimed"
    REVOKED = "revoked"
    ADEEMED = "adeemed"


_ENDED = frozenset({
    BequestStatus.LAPSED,
    BequestStatus.DISCLAIMED,
    BequestStatus.REVOKED,
    BequestStatus.ADEEMED,
})


@dataclass(frozen=True)
class BeneficiaryRef:
    """Beneficiary identity and relationship, resolved upstream."""

    beneficiary_id: str
    name: str
    relationship: RelationshipTag

    def __post_init__(self) -> None:
        if not self.beneficiary_id or not self.name or not self.name.strip():
            raise ValidationError("beneficiary", "id and name are required")


@dataclass(frozen=True)
class BeneficiaryFacts:
    """Facts about a beneficiary supplied by the relationship provider."""

    age: int | None = None
    is_alive: bool | None = None
    days_survived: int | None = None
    is_married: bool | None = None
    education_completed: bool | None = None
    other_condition_met: bool | None = None


@dataclass(frozen=True)
class BequestCondition:
    """A condition on a bequest. ``evaluate`` returns None when facts are missing."""

    condition_type: BequestConditionType
    description: str
    required_age: int | None = None
    survival_days: int | None = None
    expects_marriage: bool | None = None

    def __post_init__(self) -> None:
        if not self.description or not self.description.strip():
            raise ValidationError("condition description", "is required")
        if self.condition_type == BequestConditionType.AGE_REQUIREMENT:
            if self.required_age is None or self.required_age <= 0:
                raise ValidationError("required_age", "age condition needs a positive age")
        if self.condition_type == BequestConditionType.SURVIVAL:
            if self.survival_days is None or self.survival_days < 0:
                raise ValidationError("survival_days", "survival condition needs a period in days")
        if self.condition_type == BequestConditionType.MARRIAGE and self.expects_marriage is None:
            object.__setattr__(self, "expects_marriage", True)

    def identity(self) -> tuple[Any, ...]:
        return (
            self.condition_type,
            self.required_age,
            self.survival_days,
            self.expects_marriage,
            self.description.strip().lower(),
        )

    def evaluate(self, facts: BeneficiaryFacts) -> bool | None:
        match self.condition_type:
            case BequestConditionType.AGE_REQUIREMENT:
                return None if facts.age is None else facts.age >= self.required_age
            case BequestConditionType.SURVIVAL:
                if facts.is_alive is False:
                    return False
                if facts.days_survived is None:
                    return None
                return facts.days_survived >= self.survival_days
            case BequestConditionType.MARRIAGE:
                return None if facts.is_married is None else facts.is_married == self.expects_marriage
            case BequestConditionType.EDUCATION:
                return facts.education_completed
            case _:
                return facts.other_condition_met


def _validate_conditions(conditions: Sequence[BequestCondition]) -> None:
    seen: set[tuple[Any, ...]] = set()
    marriage: set[bool] = set()
    for c in conditions:
        key = c.identity()
        if key in seen:
            raise ValidationError("conditions", f"duplicate {c.condition_type.value} condition")
        seen.add(key)
        if c.condition_type == BequestConditionType.MARRIAGE:
            marriage.add(bool(c.expects_marriage))
    if len(marriage) > 1:
        raise ValidationError("conditions", "contradictory marriage conditions")


@dataclass(eq=False)
class BequestAssignment(RecordingMixin):
    """
    One bequest.

    Contract:
        Status moves only along ``BEQUEST_WORKFLOW`` edges. Alternates
        carry ``primary_assignment_id``; primaries point at their alternate
        through ``alternate_assignment_id``.
    """

    assignment_id: str
    estate_id: str
    beneficiary: BeneficiaryRef
    share_type: ShareType
    description: str = ""
    asset_id: str | None = None
    percentage: Percentage | None = None
    fixed_amount: Money | None = None
    conditions: tuple[BequestCondition, ...] = ()
    alternate_assignment_id: str | None = None
    primary_assignment_id: str | None = None
    policy: SuccessionPolicy = field(default_factory=SuccessionPolicy, repr=False)
    clock: Clock = field(default_factory=SystemClock, repr=False)

    status: BequestStatus = field(init=False, default=BequestStatus.PLANNED)
    audit: AuditTrail = field(init=False, default_factory=AuditTrail, repr=False)
    facts: list[EstateFact] = field(init=False, default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if len(self.description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError("description", f"must be at most {MAX_DESCRIPTION_LENGTH} characters")
        if self.share_type == ShareType.RESIDUARY and self.percentage is None \
                and self.asset_id is None and self.fixed_amount is None:
            self.percentage = Percentage(Decimal("100"))
        self._validate_share()
        if self.primary_assignment_id == self.assignment_id:
            raise ValidationError("primary_assignment_id", "an alternate cannot be its own primary")
        if self.alternate_assignment_id == self.assignment_id:
            raise ValidationError("alternate_assignment_id", "an assignment cannot be its own alternate")
        self.conditions = tuple(self.conditions)
        _validate_conditions(self.conditions)

        logger.info(
            "bequest_assignment_created",
            extra={
                "assignment_id": self.assignment_id,
                "estate_id": self.estate_id,
                "share_type": self.share_type.value,
                "is_alternate": self.is_alternate,
            },
        )

    def _validate_share(self) -> None:
        specified = {
            "asset_id": self.asset_id is not None,
            "percentage": self.percentage is not None,
            "fixed_amount": self.fixed_amount is not None,
        }
        expected = {
            ShareType.SPECIFIC_ASSET: "asset_id",
            ShareType.PERCENTAGE: "percentage",
            ShareType.FIXED_AMOUNT: "fixed_amount",
            ShareType.RESIDUARY: "percentage",
        }[self.share_type]
        given = [name for name, present in specified.items() if present]
        if given != [expected]:
            raise ValidationError(
                "share value",
                f"{self.share_type.value} bequest needs exactly {expected}, got {given or 'nothing'}",
            )
        if self.asset_id is not None and not self.asset_id.strip():
            raise ValidationError("asset_id", "must not be blank")
        if self.percentage is not None and self.percentage.value <= 0:
            raise ValidationError("percentage", "must be greater than 0")
        if self.fixed_amount is not None and not self.fixed_amount.is_positive:
            raise ValidationError("fixed_amount", "must be greater than zero")

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def is_alternate(self) -> bool:
        return self.primary_assignment_id is not None

    @property
    def is_active(self) -> bool:
        """Still part of the distribution plan."""
        return self.status not in _ENDED

    @property
    def is_conditional(self) -> bool:
        return bool(self.conditions)

    def fingerprint(self) -> str:
        """Stable identity of the fields that affect conflict detection."""
        parts = [
            self.assignment_id,
            self.beneficiary.beneficiary_id,
            self.beneficiary.relationship.value,
            self.share_type.value,
            self.asset_id or "",
            str(self.percentage.value) if self.percentage else "",
            str(self.fixed_amount) if self.fixed_amount else "",
            self.alternate_assignment_id or "",
            self.primary_assignment_id or "",
            self.status.value,
            ";".join(
                f"{c.condition_type.value}:{c.required_age}:{c.survival_days}:{c.expects_marriage}"
                for c in self.conditions
            ),
        ]
        return "|".join(parts)

    # -------------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------------

    def add_alternate(
        self,
        assignment_id: str,
        beneficiary: BeneficiaryRef,
        description: str = "",
    ) -> BequestAssignment:
        """Create the alternate that takes this bequest if it fails."""
        if self.status != BequestStatus.PLANNED:
            raise PreconditionError("bequest", self.assignment_id, "add alternate to", self.status.value)
        if self.alternate_assignment_id is not None:
            raise PreconditionError(
                "bequest", self.assignment_id, "add alternate to", self.status.value,
                f"already has alternate {self.alternate_assignment_id}",
            )
        if beneficiary.beneficiary_id == self.beneficiary.beneficiary_id:
            raise ValidationError("beneficiary", "alternate must differ from the primary beneficiary")
        alternate = BequestAssignment(
            assignment_id=assignment_id,
            estate_id=self.estate_id,
            beneficiary=beneficiary,
            share_type=self.share_type,
            description=description or self.description,
            asset_id=self.asset_id,
            percentage=self.percentage,
            fixed_amount=self.fixed_amount,
            primary_assignment_id=self.assignment_id,
            policy=self.policy,
            clock=self.clock,
        )
        self.alternate_assignment_id = assignment_id
        self._note("system", "Alternate assigned", alternate_assignment_id=assignment_id)
        return alternate

    def add_condition(self, condition: BequestCondition) -> None:
        if self.status != BequestStatus.PLANNED:
            raise PreconditionError("bequest", self.assignment_id, "add condition to", self.status.value)
        candidate = self.conditions + (condition,)
        _validate_conditions(candidate)
        self.conditions = candidate

    def check_takes_effect(self, facts: BeneficiaryFacts) -> bool | None:
        """True if every condition holds, False if any fails, None if undetermined."""
        if facts.is_alive is False:
            return False
        results = [c.evaluate(facts) for c in self.conditions]
        if any(r is False for r in results):
            return False
        if any(r is None for r in results):
            return None
        return True

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _transition(self, action: str, actor: str, message: str, **detail: object) -> None:
        try:
            t = BEQUEST_WORKFLOW.require_transition(self.assignment_id, self.status.value, action)
        except InvalidTransitionError:
            logger.warning(
                "bequest_transition_rejected",
                extra={"assignment_id": self.assignment_id, "from_state": self.status.value, "action": action},
            )
            raise
        previous = self.status
        self.status = BequestStatus(t.to_state)
        self._note(actor, message, **detail)
        logger.info(
            "bequest_status_changed",
            extra={
                "assignment_id": self.assignment_id,
                "from_state": previous.value,
                "to_state": self.status.value,
            },
        )

    def _require_reason(self, field_name: str, reason: str) -> str:
        minimum = self.policy.minimum_reason_length
        if not reason or len(reason.strip()) < minimum:
            raise ReasonTooShortError(field_name, minimum)
        return reason.strip()

    def activate(self, activated_by: str) -> None:
        self._transition("activate", activated_by, "Bequest activated")

    def fulfil(self, fulfilled_by: str) -> None:
        self._transition("fulfil", fulfilled_by, "Bequest fulfilled")

    def lapse(self, reason: str, recorded_by: str) -> None:
        reason = self._require_reason("lapse reason", reason)
        self._transition("lapse", recorded_by, "Bequest lapsed", reason=reason)

    def disclaim(self, reason: str, disclaimed_by: str) -> None:
        reason = self._require_reason("disclaimer reason", reason)
        self._transition("disclaim", disclaimed_by, "Bequest disclaimed", reason=reason)

    def revoke(self, reason: str, revoked_by: str) -> None:
        reason = self._require_reason("revocation reason", reason)
        self._transition("revoke", revoked_by, "Bequest revoked", reason=reason)

    def adeem(self, reason: str, recorded_by: str) -> None:
        """The specific asset no longer exists in the estate."""
        if self.share_type != ShareType.SPECIFIC_ASSET:
            raise PreconditionError(
                "bequest", self.assignment_id, "adeem", self.status.value,
                "only specific-asset bequests can be adeemed",
            )
        reason = self._require_reason("ademption reason", reason)
        self._transition("adeem", recorded_by, "Bequest adeemed", reason=reason, asset_id=self.asset_id)

    def to_record(self) -> dict[str, Any]:
        return {
            "assignment_id": self.assignment_id,
            "estate_id": self.estate_id,
            "beneficiary_id": self.beneficiary.beneficiary_id,
            "relationship": self.beneficiary.relationship.value,
            "share_type": self.share_type.value,
            "asset_id": self.asset_id,
            "percentage": self.percentage.to_record() if self.percentage else None,
            "fixed_amount": self.fixed_amount.to_record() if self.fixed_amount else None,
            "conditions": [c.condition_type.value for c in self.conditions],
            "alternate_assignment_id": self.alternate_assignment_id,
            "primary_assignment_id": self.primary_assignment_id,
            "status": self.status.value,
        }


def strength_for_score(score: int) -> LegalBasisStrength:
    """Map a 0-100 documentation score to a legal-basis strength."""
    if not 0 <= score <= 100:
        raise ValidationError("legal_basis_score", f"must be in [0, 100], got {score}")
    if score >= 70:
        return LegalBasisStrength.STRONG
    if score >= 40:
        return LegalBasisStrength.MODERATE
    return LegalBasisStrength.WEAK


@dataclass(frozen=True)
class DisinheritanceRecord:
    """A person deliberately excluded from the will."""

    record_id: str
    estate_id: str
    person_id: str
    person_name: str
    relationship: RelationshipTag
    reason: str
    legal_strength: LegalBasisStrength
    policy: SuccessionPolicy = field(default_factory=SuccessionPolicy, repr=False, compare=False)

    def __post_init__(self) -> None:
        minimum = self.policy.minimum_reason_length
        if not self.reason or len(self.reason.strip()) < minimum:
            raise ReasonTooShortError("disinheritance reason", minimum)
        if not self.person_name or not self.person_name.strip():
            raise ValidationError("person_name", "is required")

    @classmethod
    def from_score(cls, *, legal_basis_score: int, **kwargs: Any) -> DisinheritanceRecord:
        return cls(legal_strength=strength_for_score(legal_basis_score), **kwargs)
