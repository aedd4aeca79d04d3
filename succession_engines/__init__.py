"""
Module: succession_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines used by
    the succession ledger modules.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import succession_kernel (and sibling engine modules).
    MUST NOT import succession_modules or succession_config.

Invariants enforced:
    - Purity: engines never read the clock; dates are explicit parameters.
    - Decimal-only arithmetic for all amounts and shares.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are traced via ``@traced_engine`` (see
    ``succession_engines.tracer``).
"""

from succession_engines.abatement import AbatementCalculator, AbatementClaim, AbatementResult
from succession_engines.conflict_detector import (
    Conflict,
    ConflictDetector,
    ConflictReport,
    ConflictType,
    ConflictWarning,
    DependantRisk,
    DetectorSettings,
    DistributionSummary,
    Likelihood,
    MathematicalIssue,
    Severity,
)
from succession_engines.debt_priority import (
    DebtPriorityClassifier,
    DebtType,
    PriorityCandidate,
    StatutoryTier,
)
from succession_engines.hotchpot import (
    HotchpotCalculator,
    HotchpotSettlement,
    HotchpotValuation,
    ValuationMethod,
)
from succession_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "AbatementCalculator",
    "AbatementClaim",
    "AbatementResult",
    "Conflict",
    "ConflictDetector",
    "ConflictReport",
    "ConflictType",
    "ConflictWarning",
    "DebtPriorityClassifier",
    "DebtType",
    "DependantRisk",
    "DetectorSettings",
    "DistributionSummary",
    "HotchpotCalculator",
    "HotchpotSettlement",
    "HotchpotValuation",
    "Likelihood",
    "MathematicalIssue",
    "PriorityCandidate",
    "Severity",
    "StatutoryTier",
    "ValuationMethod",
    "compute_input_fingerprint",
    "traced_engine",
]
