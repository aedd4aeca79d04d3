"""Bequest assignments, their conditions, and disinheritance records."""

from succession_kernel.domain.terms import (
    BequestConditionType,
    LegalBasisStrength,
    RelationshipTag,
    ShareType,
)
from succession_modules.bequests.models import (
    BeneficiaryFacts,
    BeneficiaryRef,
    BequestAssignment,
    BequestCondition,
    BequestStatus,
    DisinheritanceRecord,
    strength_for_score,
)
from succession_modules.bequests.workflows import BEQUEST_WORKFLOW

__all__ = [
    "BEQUEST_WORKFLOW",
    "BeneficiaryFacts",
    "BeneficiaryRef",
    "BequestAssignment",
    "BequestCondition",
    "BequestConditionType",
    "BequestStatus",
    "DisinheritanceRecord",
    "LegalBasisStrength",
    "RelationshipTag",
    "ShareType",
    "strength_for_score",
]
