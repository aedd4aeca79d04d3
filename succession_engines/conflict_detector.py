"""
Module: succession_engines.conflict_detector
Responsibility:
    Validate the full set of bequest assignments for one estate and
    produce a structured report: duplicate specific-asset gifts, percentage
    closure, residuary coverage, alternate cycles, unreasonable conditions,
    dependant-claim risks and an aggregate risk score.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Reads assignments through the ``BequestView`` protocol; never mutates
    them and never imports the bequest ledger module.

Invariants enforced:
    - Read-only: inputs are never mutated and nothing is recorded.
    - Idempotent: the same assignment set always yields an equal report.
      Groups and cycles are reported in first-appearance order.
    - Alternates (assignments standing in for a primary) do not count
      towards asset duplication, percentage closure or residuary coverage;
      they do take part in alternate-cycle detection.
    - Cycle detection is an iterative depth-first search with an explicit
      stack and an on-path set; converging chains are never flagged.
    - risk_score = sum(severity weights) + warning weight * warnings
      + sum(likelihood weights), capped at max_score.

Failure modes:
    - None: conflicts are data, not exceptions.

Audit relevance:
    Each ``detect`` run is traced via ``@traced_engine`` with an input
    fingerprint so that a stored report can be reproduced.

Usage:
    from succession_engines.conflict_detector import ConflictDetector

    report = ConflictDetector().detect(
        estate_id="estate-1",
        assignments=assignments,
        disinheritances=(),
    )
    if report.has_conflicts:
        ...
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Protocol

from succession_engines.tracer import traced_engine
from succession_kernel.domain.terms import (
    BequestConditionType,
    LegalBasisStrength,
    RelationshipTag,
    ShareType,
)
from succession_kernel.domain.values import PERCENTAGE_EPSILON, Percentage
from succession_kernel.logging_config import get_logger

logger = get_logger("engines.conflict_detector")

_HUNDRED = Decimal("100")


# -----------------------------------------------------------------------------
# Input views
# -----------------------------------------------------------------------------


class BeneficiaryView(Protocol):
    beneficiary_id: str
    name: str
    relationship: RelationshipTag


class ConditionView(Protocol):
    condition_type: BequestConditionType
    description: str
    required_age: int | None
    survival_days: int | None


class BequestView(Protocol):
    assignment_id: str
    beneficiary: BeneficiaryView
    share_type: ShareType
    asset_id: str | None
    percentage: Percentage | None
    conditions: Sequence[ConditionView]
    alternate_assignment_id: str | None
    is_alternate: bool

    @property
    def is_active(self) -> bool: ...


class DisinheritanceView(Protocol):
    person_id: str
    person_name: str
    relationship: RelationshipTag
    legal_strength: LegalBasisStrength
    reason: str


# -----------------------------------------------------------------------------
# Report types
# -----------------------------------------------------------------------------


class ConflictType(Enum):
    DUPLICATE_ASSET = "duplicate_asset"
    PERCENTAGE_OVERFLOW = "percentage_overflow"
    AMBIGUOUS_RESIDUARY = "ambiguous_residuary"
    MISSING_RESIDUARY = "missing_residuary"
    CIRCULAR_ALTERNATES = "circular_alternates"
    IMPOSSIBLE_CONDITION = "impossible_condition"


class Severity(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Likelihood(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Conflict:
    """A structural or mathematical defect in the bequest set."""

    conflict_type: ConflictType
    severity: Severity
    description: str
    assignment_ids: tuple[str, ...]
    beneficiary_names: tuple[str, ...] = ()
    asset_id: str | None = None
    overflow: Decimal | None = None
    resolution: str = ""


@dataclass(frozen=True)
class ConflictWarning:
    code: str
    message: str
    impact: str
    recommendation: str


@dataclass(frozen=True)
class MathematicalIssue:
    description: str
    calculation: str
    expected: Decimal
    actual: Decimal
    difference: Decimal


@dataclass(frozen=True)
class DependantRisk:
    """A potential claim for reasonable provision by a dependant."""

    potential_claimant: str
    relationship: str
    basis_for_claim: str
    likelihood: Likelihood
    mitigation_steps: tuple[str, ...]


@dataclass(frozen=True)
class DistributionSummary:
    assignment_count: int
    beneficiary_count: int
    specific_asset_count: int
    fixed_amount_count: int
    percentage_total: Decimal
    residuary_count: int
    residuary_total: Decimal
    alternate_count: int


@dataclass(frozen=True)
class ConflictReport:
    estate_id: str
    conflicts: tuple[Conflict, ...]
    warnings: tuple[ConflictWarning, ...]
    mathematical_issues: tuple[MathematicalIssue, ...]
    dependant_risks: tuple[DependantRisk, ...]
    recommendations: tuple[str, ...]
    risk_score: int
    summary: DistributionSummary

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def of_type(self, conflict_type: ConflictType) -> tuple[Conflict, ...]:
        return tuple(c for c in self.conflicts if c.conflict_type == conflict_type)

    def of_severity(self, severity: Severity) -> tuple[Conflict, ...]:
        return tuple(c for c in self.conflicts if c.severity == severity)


@dataclass(frozen=True)
class DetectorSettings:
    """Thresholds and weights; see the succession policy for the defaults."""

    severity_weights: dict[Severity, int] = field(default_factory=lambda: {
        Severity.CRITICAL: 25,
        Severity.HIGH: 15,
        Severity.MEDIUM: 10,
        Severity.LOW: 5,
    })
    warning_weight: int = 3
    likelihood_weights: dict[Likelihood, int] = field(default_factory=lambda: {
        Likelihood.HIGH: 20,
        Likelihood.MEDIUM: 10,
        Likelihood.LOW: 5,
    })
    max_score: int = 100
    unequal_children_threshold: Decimal = Decimal("20")
    max_reasonable_age: int = 100
    max_reasonable_survival_days: int = 365


_DISINHERITANCE_LIKELIHOOD = {
    LegalBasisStrength.WEAK: Likelihood.HIGH,
    LegalBasisStrength.MODERATE: Likelihood.MEDIUM,
}


def _primaries(assignments: Sequence[BequestView]) -> list[BequestView]:
    return [a for a in assignments if a.is_active and not a.is_alternate]


def _pct(a: BequestView) -> Decimal:
    return a.percentage.value if a.percentage is not None else Decimal("0")


class ConflictDetector:
    """
    Stateless validator over one estate's bequest assignments.

    Contract:
        Every public check is a pure function of its arguments.
        ``detect`` composes them into a ``ConflictReport``.
    """

    def __init__(self, settings: DetectorSettings | None = None):
        self._settings = settings or DetectorSettings()

    @property
    def settings(self) -> DetectorSettings:
        return self._settings

    # -------------------------------------------------------------------------
    # Individual checks
    # -------------------------------------------------------------------------

    def check_duplicate_assets(self, assignments: Sequence[BequestView]) -> list[Conflict]:
        groups: dict[str, list[BequestView]] = {}
        for a in _primaries(assignments):
            if a.share_type == ShareType.SPECIFIC_ASSET and a.asset_id is not None:
                groups.setdefault(a.asset_id, []).append(a)

        conflicts: list[Conflict] = []
        for asset_id, members in groups.items():
            if len(members) < 2:
                continue
            conflicts.append(
                Conflict(
                    conflict_type=ConflictType.DUPLICATE_ASSET,
                    severity=Severity.CRITICAL,
                    description=(
                        f"Asset {asset_id} is bequeathed to {len(members)} beneficiaries"
                    ),
                    assignment_ids=tuple(m.assignment_id for m in members),
                    beneficiary_names=tuple(m.beneficiary.name for m in members),
                    asset_id=asset_id,
                    resolution="Assign the asset to one beneficiary or convert to shared percentages",
                )
            )
        return conflicts

    def check_percentage_closure(
        self, assignments: Sequence[BequestView]
    ) -> tuple[list[Conflict], list[MathematicalIssue]]:
        percentage_shares = [
            a for a in _primaries(assignments) if a.share_type == ShareType.PERCENTAGE
        ]
        total = sum((_pct(a) for a in percentage_shares), Decimal("0"))
        if total - _HUNDRED <= PERCENTAGE_EPSILON:
            return [], []

        overflow = total - _HUNDRED
        calculation = " + ".join(str(_pct(a)) for a in percentage_shares)
        conflict = Conflict(
            conflict_type=ConflictType.PERCENTAGE_OVERFLOW,
            severity=Severity.CRITICAL,
            description=f"Percentage bequests total {total}%, exceeding 100% by {overflow}",
            assignment_ids=tuple(a.assignment_id for a in percentage_shares),
            beneficiary_names=tuple(a.beneficiary.name for a in percentage_shares),
            overflow=overflow,
            resolution="Reduce percentage shares so they total at most 100%",
        )
        issue = MathematicalIssue(
            description="Percentage bequests exceed the whole estate",
            calculation=f"{calculation} = {total}",
            expected=_HUNDRED,
            actual=total,
            difference=overflow,
        )
        return [conflict], [issue]

    def check_residuary(
        self, assignments: Sequence[BequestView]
    ) -> tuple[list[Conflict], list[ConflictWarning], list[MathematicalIssue]]:
        residuary = [
            a for a in _primaries(assignments) if a.share_type == ShareType.RESIDUARY
        ]
        if not residuary:
            conflict = Conflict(
                conflict_type=ConflictType.MISSING_RESIDUARY,
                severity=Severity.MEDIUM,
                description="No residuary bequest; undisposed property passes on intestacy",
                assignment_ids=(),
                resolution="Add a residuary clause",
            )
            warning = ConflictWarning(
                code="NO_RESIDUARY",
                message="The will has no residuary clause",
                impact="Any property not specifically disposed of falls into partial intestacy",
                recommendation="Add a residuary beneficiary for the remainder of the estate",
            )
            return [conflict], [warning], []

        if len(residuary) == 1:
            return [], [], []

        total = sum((_pct(a) for a in residuary), Decimal("0"))
        difference = abs(total - _HUNDRED)
        if difference <= PERCENTAGE_EPSILON:
            return [], [], []

        conflict = Conflict(
            conflict_type=ConflictType.AMBIGUOUS_RESIDUARY,
            severity=Severity.HIGH,
            description=(
                f"{len(residuary)} residuary bequests total {total}% instead of 100%"
            ),
            assignment_ids=tuple(a.assignment_id for a in residuary),
            beneficiary_names=tuple(a.beneficiary.name for a in residuary),
            resolution="Make the residuary shares total exactly 100%",
        )
        issue = MathematicalIssue(
            description="Residuary shares do not divide the whole residue",
            calculation=" + ".join(str(_pct(a)) for a in residuary) + f" = {total}",
            expected=_HUNDRED,
            actual=total,
            difference=difference,
        )
        return [conflict], [], [issue]

    def find_alternate_cycles(
        self, assignments: Sequence[BequestView]
    ) -> list[tuple[str, ...]]:
        """
        Every distinct cycle in the alternate graph, each listed once.

        Edges run from an assignment to its alternate. References to ids
        outside the set are ignored.
        """
        active = [a for a in assignments if a.is_active]
        known = {a.assignment_id for a in active}
        edges: dict[str, list[str]] = {}
        for a in active:
            targets = edges.setdefault(a.assignment_id, [])
            if a.alternate_assignment_id is not None and a.alternate_assignment_id in known:
                targets.append(a.alternate_assignment_id)

        visited: set[str] = set()
        cycles: list[tuple[str, ...]] = []
        seen_members: set[frozenset[str]] = set()

        for root in edges:
            if root in visited:
                continue
            path: list[str] = [root]
            on_path: set[str] = {root}
            stack: list[tuple[str, int]] = [(root, 0)]
            visited.add(root)
            while stack:
                node, index = stack[-1]
                neighbours = edges[node]
                if index >= len(neighbours):
                    stack.pop()
                    path.pop()
                    on_path.discard(node)
                    continue
                stack[-1] = (node, index + 1)
                nxt = neighbours[index]
                if nxt in on_path:
                    cycle = tuple(path[path.index(nxt):])
                    members = frozenset(cycle)
                    if members not in seen_members:
                        seen_members.add(members)
                        cycles.append(cycle)
                elif nxt not in visited:
                    visited.add(nxt)
                    on_path.add(nxt)
                    path.append(nxt)
                    stack.append((nxt, 0))
        return cycles

    def check_alternate_cycles(self, assignments: Sequence[BequestView]) -> list[Conflict]:
        by_id = {a.assignment_id: a for a in assignments}
        conflicts: list[Conflict] = []
        for cycle in self.find_alternate_cycles(assignments):
            conflicts.append(
                Conflict(
                    conflict_type=ConflictType.CIRCULAR_ALTERNATES,
                    severity=Severity.HIGH,
                    description="Alternate beneficiaries form a cycle: "
                    + " -> ".join(cycle + (cycle[0],)),
                    assignment_ids=cycle,
                    beneficiary_names=tuple(by_id[i].beneficiary.name for i in cycle),
                    resolution="Break the cycle so every alternate chain ends",
                )
            )
        return conflicts

    def check_impossible_conditions(self, assignments: Sequence[BequestView]) -> list[Conflict]:
        s = self._settings
        conflicts: list[Conflict] = []
        for a in assignments:
            if not a.is_active:
                continue
            for c in a.conditions:
                if (
                    c.condition_type == BequestConditionType.AGE_REQUIREMENT
                    and c.required_age is not None
                    and c.required_age > s.max_reasonable_age
                ):
                    conflicts.append(
                        Conflict(
                            conflict_type=ConflictType.IMPOSSIBLE_CONDITION,
                            severity=Severity.MEDIUM,
                            description=(
                                f"Beneficiary must reach age {c.required_age}, "
                                f"above {s.max_reasonable_age}"
                            ),
                            assignment_ids=(a.assignment_id,),
                            beneficiary_names=(a.beneficiary.name,),
                            resolution="Lower the age requirement",
                        )
                    )
                elif (
                    c.condition_type == BequestConditionType.SURVIVAL
                    and c.survival_days is not None
                    and c.survival_days > s.max_reasonable_survival_days
                ):
                    conflicts.append(
                        Conflict(
                            conflict_type=ConflictType.IMPOSSIBLE_CONDITION,
                            severity=Severity.LOW,
                            description=(
                                f"Beneficiary must survive the deceased by {c.survival_days} days, "
                                f"above {s.max_reasonable_survival_days}"
                            ),
                            assignment_ids=(a.assignment_id,),
                            beneficiary_names=(a.beneficiary.name,),
                            resolution="Shorten the survival period",
                        )
                    )
        return conflicts

    def check_conflicting_conditions(
        self, assignments: Sequence[BequestView]
    ) -> list[ConflictWarning]:
        groups: dict[str, list[BequestView]] = {}
        for a in _primaries(assignments):
            if a.share_type == ShareType.SPECIFIC_ASSET and a.asset_id and a.conditions:
                groups.setdefault(a.asset_id, []).append(a)
        return [
            ConflictWarning(
                code="CONFLICTING_CONDITIONS",
                message=f"Asset {asset_id} has {len(members)} conditional bequests",
                impact="Which beneficiary takes depends on the order conditions are satisfied",
                recommendation="State which condition prevails or merge the bequests",
            )
            for asset_id, members in groups.items()
            if len(members) > 1
        ]

    def assess_dependant_risks(
        self,
        assignments: Sequence[BequestView],
        disinheritances: Sequence[DisinheritanceView] = (),
        unequal_shares_justified: bool = False,
    ) -> tuple[list[DependantRisk], list[ConflictWarning]]:
        risks: list[DependantRisk] = []
        warnings: list[ConflictWarning] = []
        active = [a for a in assignments if a.is_active]

        if not any(a.beneficiary.relationship == RelationshipTag.SPOUSE for a in active):
            risks.append(
                DependantRisk(
                    potential_claimant="Surviving spouse",
                    relationship=RelationshipTag.SPOUSE.value,
                    basis_for_claim="No provision made for a spouse",
                    likelihood=Likelihood.HIGH,
                    mitigation_steps=(
                        "Confirm whether the deceased left a surviving spouse",
                        "Make reasonable provision or document the reasons for none",
                    ),
                )
            )
            warnings.append(
                ConflictWarning(
                    code="NO_SPOUSE_PROVISION",
                    message="No beneficiary is identified as a spouse",
                    impact="A surviving spouse may apply for reasonable provision",
                    recommendation="Provide for the spouse or record why not",
                )
            )

        child_shares: dict[str, Decimal] = {}
        child_names: dict[str, str] = {}
        for a in _primaries(assignments):
            if a.beneficiary.relationship != RelationshipTag.CHILD:
                continue
            if a.share_type not in (ShareType.PERCENTAGE, ShareType.RESIDUARY):
                continue
            if a.percentage is None:
                continue
            bid = a.beneficiary.beneficiary_id
            child_shares[bid] = child_shares.get(bid, Decimal("0")) + a.percentage.value
            child_names[bid] = a.beneficiary.name

        if len(child_shares) >= 2 and not unequal_shares_justified:
            spread = max(child_shares.values()) - min(child_shares.values())
            if spread > self._settings.unequal_children_threshold:
                lowest = min(child_shares, key=lambda k: (child_shares[k], k))
                warnings.append(
                    ConflictWarning(
                        code="UNEQUAL_CHILDREN_TREATMENT",
                        message=f"Children's shares differ by {spread} percentage points",
                        impact="A child receiving less may claim inadequate provision",
                        recommendation="Document the justification for unequal shares",
                    )
                )
                risks.append(
                    DependantRisk(
                        potential_claimant=child_names[lowest],
                        relationship=RelationshipTag.CHILD.value,
                        basis_for_claim=(
                            f"Share differs from siblings by {spread} percentage points "
                            "without documented justification"
                        ),
                        likelihood=Likelihood.MEDIUM,
                        mitigation_steps=("Record the reasons for the unequal division",),
                    )
                )

        for record in disinheritances:
            likelihood = _DISINHERITANCE_LIKELIHOOD.get(record.legal_strength)
            if likelihood is None:
                continue
            risks.append(
                DependantRisk(
                    potential_claimant=record.person_name,
                    relationship=record.relationship.value,
                    basis_for_claim=(
                        f"Disinherited with a {record.legal_strength.value} legal basis: "
                        f"{record.reason}"
                    ),
                    likelihood=likelihood,
                    mitigation_steps=(
                        "Strengthen the documented reasons for disinheritance",
                        "Consider reasonable provision to pre-empt a claim",
                    ),
                )
            )
        return risks, warnings

    def score(
        self,
        conflicts: Sequence[Conflict],
        warnings: Sequence[ConflictWarning],
        risks: Sequence[DependantRisk],
    ) -> int:
        s = self._settings
        total = sum(s.severity_weights[c.severity] for c in conflicts)
        total += s.warning_weight * len(warnings)
        total += sum(s.likelihood_weights[r.likelihood] for r in risks)
        return min(total, s.max_score)

    def summarize(self, assignments: Sequence[BequestView]) -> DistributionSummary:
        primaries = _primaries(assignments)
        residuary = [a for a in primaries if a.share_type == ShareType.RESIDUARY]
        return DistributionSummary(
            assignment_count=len(assignments),
            beneficiary_count=len({a.beneficiary.beneficiary_id for a in assignments if a.is_active}),
            specific_asset_count=sum(1 for a in primaries if a.share_type == ShareType.SPECIFIC_ASSET),
            fixed_amount_count=sum(1 for a in primaries if a.share_type == ShareType.FIXED_AMOUNT),
            percentage_total=sum(
                (_pct(a) for a in primaries if a.share_type == ShareType.PERCENTAGE),
                Decimal("0"),
            ),
            residuary_count=len(residuary),
            residuary_total=sum((_pct(a) for a in residuary), Decimal("0")),
            alternate_count=sum(1 for a in assignments if a.is_active and a.is_alternate),
        )

    def recommend(
        self,
        conflicts: Sequence[Conflict],
        risks: Sequence[DependantRisk],
        issues: Sequence[MathematicalIssue],
    ) -> list[str]:
        recommendations: list[str] = []
        for c in conflicts:
            if c.severity == Severity.CRITICAL:
                recommendations.append(f"URGENT: {c.description}. {c.resolution}")
        for r in risks:
            if r.likelihood == Likelihood.HIGH:
                recommendations.append(
                    f"Dependant claim risk from {r.potential_claimant}: {r.mitigation_steps[0]}"
                )
        for issue in issues:
            recommendations.append(
                f"MATH: {issue.description} (expected {issue.expected}, got {issue.actual})"
            )
        if not conflicts and not risks:
            recommendations.append("BEST PRACTICE: review the will with an advocate before execution")
        return recommendations

    # -------------------------------------------------------------------------
    # Full run
    # -------------------------------------------------------------------------

    @traced_engine(
        "conflict_detector",
        "1.0",
        fingerprint_fields=("estate_id", "assignments", "disinheritances", "unequal_shares_justified"),
    )
    def detect(
        self,
        *,
        estate_id: str,
        assignments: Sequence[BequestView],
        disinheritances: Sequence[DisinheritanceView] = (),
        unequal_shares_justified: bool = False,
    ) -> ConflictReport:
        conflicts: list[Conflict] = []
        warnings: list[ConflictWarning] = []
        issues: list[MathematicalIssue] = []

        conflicts.extend(self.check_duplicate_assets(assignments))

        overflow_conflicts, overflow_issues = self.check_percentage_closure(assignments)
        conflicts.extend(overflow_conflicts)
        issues.extend(overflow_issues)

        residuary_conflicts, residuary_warnings, residuary_issues = self.check_residuary(assignments)
        conflicts.extend(residuary_conflicts)
        warnings.extend(residuary_warnings)
        issues.extend(residuary_issues)

        conflicts.extend(self.check_alternate_cycles(assignments))
        conflicts.extend(self.check_impossible_conditions(assignments))
        warnings.extend(self.check_conflicting_conditions(assignments))

        risks, risk_warnings = self.assess_dependant_risks(
            assignments, disinheritances, unequal_shares_justified
        )
        warnings.extend(risk_warnings)

        risk_score = self.score(conflicts, warnings, risks)

        logger.info(
            "bequest_conflicts_detected",
            extra={
                "estate_id": estate_id,
                "assignment_count": len(assignments),
                "conflict_count": len(conflicts),
                "warning_count": len(warnings),
                "risk_count": len(risks),
                "risk_score": risk_score,
            },
        )

        return ConflictReport(
            estate_id=estate_id,
            conflicts=tuple(conflicts),
            warnings=tuple(warnings),
            mathematical_issues=tuple(issues),
            dependant_risks=tuple(risks),
            recommendations=tuple(self.recommend(conflicts, risks, issues)),
            risk_score=risk_score,
            summary=self.summarize(assignments),
        )
