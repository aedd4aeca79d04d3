"""Estate orchestration: membership, lifecycle, domain rules and administration."""

from succession_modules.estate.models import Estate, EstateStatus, EstateValuation
from succession_modules.estate.rules import (
    DOMAIN_RULES,
    DomainRule,
    bar_expired_debts,
    reclaim_gift_on_failed_condition,
    reclaim_gift_on_proven_fraud,
)
from succession_modules.estate.service import EstateAdministrationService, detector_settings_for
from succession_modules.estate.workflows import ESTATE_WORKFLOW

__all__ = [
    "DOMAIN_RULES",
    "DomainRule",
    "ESTATE_WORKFLOW",
    "Estate",
    "EstateAdministrationService",
    "EstateStatus",
    "EstateValuation",
    "bar_expired_debts",
    "detector_settings_for",
    "reclaim_gift_on_failed_condition",
    "reclaim_gift_on_proven_fraud",
]
