"""
Shared succession vocabulary.

Enumerations used both by the bequest ledger (``succession_modules.bequests``)
and by the conflict detector (``succession_engines.conflict_detector``).
They live in the kernel so neither layer has to import the other.
"""

from enum import Enum


class ShareType(Enum):
    """How a bequest expresses what the beneficiary receives."""
    SPECIFIC_ASSET = "specific_asset"
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    RESIDUARY = "residuary"


class RelationshipTag(Enum):
    """Beneficiary relationship to the deceased, resolved upstream."""
    SPOUSE = "spouse"
    CHILD = "child"
    PARENT = "parent"
    SIBLING = "sibling"
    GRANDCHILD = "grandchild"
    DEPENDANT = "dependant"
    OTHER_RELATIVE = "other_relative"
    NON_RELATIVE = "non_relative"
    CHARITY = "charity"


class BequestConditionType(Enum):
    AGE_REQUIREMENT = "age_requirement"
    SURVIVAL = "survival"
    EDUCATION = "education"
    MARRIAGE = "marriage"
    OTHER = "other"


class LegalBasisStrength(Enum):
    """Documented strength of the legal basis for a disinheritance."""
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"
