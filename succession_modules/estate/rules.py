"""
Estate Domain Rules (``succession_modules.estate.rules``).

Responsibility
--------------
Cross-entity consequences that follow a state change on one ledger entry:
a failed reverting gift condition returns the gift to the estate, a gift
found fraudulent is reclaimed, and debts past their limitation window are
barred. Entities only record facts about themselves; these rules decide
what those facts mean for the estate.

Architecture position
---------------------
**Modules layer** -- invoked explicitly by
``succession_modules.estate.service`` after the triggering transition.
``DOMAIN_RULES`` enumerates every rule so the set can be inspected and
tested on its own.

Invariants enforced
-------------------
* Each rule is idempotent: applying it twice changes nothing the second time.
* A rule whose trigger does not hold leaves the entity untouched.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime

from succession_kernel.logging_config import get_logger
from succession_modules.debts.models import DebtLedgerEntry
from succession_modules.gifts.models import (
    GiftConditionStatus,
    GiftHotchpotStatus,
    GiftLedgerEntry,
    GiftLegalStatus,
)

logger = get_logger("modules.estate.rules")


@dataclass(frozen=True)
class DomainRule:
    name: str
    trigger: str
    description: str
    apply: Callable[..., object]


def reclaim_gift_on_failed_condition(gift: GiftLedgerEntry, actor: str = "system") -> bool:
    """Reclaim a gift whose reverting condition has failed. Returns True if reclaimed."""
    if gift.condition_status != GiftConditionStatus.FAILED or not gift.reverts_to_estate:
        return False
    if gift.hotchpot_status == GiftHotchpotStatus.RECLAIMED:
        return False
    if not gift.can_reclaim:
        logger.warning(
            "gift_reclaim_skipped",
            extra={
                "gift_id": gift.gift_id,
                "rule": "reclaim_gift_on_failed_condition",
                "hotchpot_status": gift.hotchpot_status.value,
            },
        )
        return False
    gift.reclaim_to_estate(actor, f"Condition failed: {gift.condition.description}")
    logger.info(
        "domain_rule_applied",
        extra={"rule": "reclaim_gift_on_failed_condition", "gift_id": gift.gift_id},
    )
    return True


def reclaim_gift_on_proven_fraud(gift: GiftLedgerEntry, actor: str = "system") -> bool:
    """Reclaim a gift whose contest ended with the gift held invalid."""
    if gift.legal_status != GiftLegalStatus.INVALID:
        return False
    if gift.hotchpot_status == GiftHotchpotStatus.RECLAIMED:
        return False
    if not gift.can_reclaim:
        logger.warning(
            "gift_reclaim_skipped",
            extra={
                "gift_id": gift.gift_id,
                "rule": "reclaim_gift_on_proven_fraud",
                "hotchpot_status": gift.hotchpot_status.value,
            },
        )
        return False
    gift.reclaim_to_estate(actor, "Gift invalidated: fraud proven in contest")
    logger.info(
        "domain_rule_applied",
        extra={"rule": "reclaim_gift_on_proven_fraud", "gift_id": gift.gift_id},
    )
    return True


def bar_expired_debts(debts: Iterable[DebtLedgerEntry], as_of: date | datetime) -> list[str]:
    """Move every debt past its limitation window to STATUTE_BARRED."""
    barred: list[str] = []
    for debt in debts:
        if debt.is_terminal:
            continue
        if debt.check_statute_barred_status(as_of):
            barred.append(debt.debt_id)
    if barred:
        logger.info(
            "domain_rule_applied",
            extra={"rule": "bar_expired_debts", "debt_ids": barred},
        )
    return barred


DOMAIN_RULES: tuple[DomainRule, ...] = (
    DomainRule(
        name="reclaim_gift_on_failed_condition",
        trigger="gift.condition.fail",
        description="A failed condition on a reverting gift returns it to the estate",
        apply=reclaim_gift_on_failed_condition,
    ),
    DomainRule(
        name="reclaim_gift_on_proven_fraud",
        trigger="gift.legal_status.invalidate",
        description="A gift held invalid for fraud returns to the estate",
        apply=reclaim_gift_on_proven_fraud,
    ),
    DomainRule(
        name="bar_expired_debts",
        trigger="estate.limitation_check",
        description="Debts past their limitation window become statute-barred",
        apply=bar_expired_debts,
    ),
)
