"""
Estate Model (``succession_modules.estate.models``).

Responsibility
--------------
``Estate`` holds the membership of a deceased person's estate (which
assets, debts, gifts and bequests belong to it), the frozen latch set when
death is recorded, the lifecycle status, and the last computed valuation.

Architecture position
---------------------
**Modules layer** -- orchestrator aggregate. The estate references ledger
entities by identifier only; it never drives their lifecycles. Cross-entity
effects live in ``succession_modules.estate.rules`` and are invoked by
``succession_modules.estate.service``.

Invariants enforced
-------------------
* While frozen, asset, debt and gift membership cannot change.
* An entity can only join the estate named by its ``estate_id``, and only once.
* ``is_frozen`` is a one-way latch except through ``unfreeze``, which
  requires a documented reason.
* ``can_distribute`` holds only when frozen, not closed, and the net estate
  value is positive. It does NOT consult the tax gate; callers compose that.

Failure modes
-------------
* ``EstateFrozenError`` for membership changes on a frozen estate.
* ``EstateOwnershipError`` / ``DuplicateMembershipError`` for bad membership.
* ``InvalidTransitionError`` for illegal lifecycle edges.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from succession_config.schema import SuccessionPolicy
from succession_kernel.domain.audit_trail import AuditTrail
from succession_kernel.domain.clock import Clock, SystemClock
from succession_kernel.domain.events import EstateFact, EstateFrozen, EstateUnfrozen
from succession_kernel.domain.recording import RecordingMixin
from succession_kernel.domain.values import Money
from succession_kernel.exceptions import (
    DuplicateMembershipError,
    EstateFrozenError,
    EstateOwnershipError,
    InvalidTransitionError,
    PreconditionError,
    ReasonTooShortError,
    ValidationError,
)
from succession_kernel.logging_config import get_logger
from succession_modules.assets.models import EstateAsset
from succession_modules.bequests.models import BequestAssignment
from succession_modules.debts.models import DebtLedgerEntry, DebtStatus
from succession_modules.estate.workflows import ESTATE_WORKFLOW
from succession_modules.gifts.models import GiftHotchpotStatus, GiftLedgerEntry

logger = get_logger("modules.estate.models")


class EstateStatus(Enum):
    """Estate states.  Must align with ``workflows.ESTATE_WORKFLOW.states``."""
    PLANNING = "planning"
    ACTIVE = "active"
    FROZEN = "frozen"
    PROBATE = "probate"
    ADMINISTRATION = "administration"
    DISTRIBUTED = "distributed"
    CLOSED = "closed"


# Debts that still weigh on the estate; disputed debts are counted until resolved.
_LIABILITY_STATUSES = frozenset({
    DebtStatus.OUTSTANDING,
    DebtStatus.PARTIALLY_PAID,
    DebtStatus.DISPUTED,
})


@dataclass(frozen=True)
class EstateValuation:
    """Snapshot produced by ``Estate.recompute_values``."""

    gross_asset_value: Money
    total_liabilities: Money
    hotchpot_additions: Money
    net_estate_value: Money
    shortfall: Money
    computed_at: datetime

    @property
    def is_insolvent(self) -> bool:
        return self.shortfall.is_positive

    def to_record(self) -> dict[str, Any]:
        return {
            "gross_asset_value": self.gross_asset_value.to_record(),
            "total_liabilities": self.total_liabilities.to_record(),
            "hotchpot_additions": self.hotchpot_additions.to_record(),
            "net_estate_value": self.net_estate_value.to_record(),
            "shortfall": self.shortfall.to_record(),
            "computed_at": self.computed_at.isoformat(),
        }


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


@dataclass(eq=False)
class Estate(RecordingMixin):
    """
    A deceased person's estate.

    Contract:
        Membership sets are the only thing the estate owns. Status moves
        only along ``ESTATE_WORKFLOW`` edges.
    """

    estate_id: str
    deceased_ref: str
    policy: SuccessionPolicy = field(default_factory=SuccessionPolicy, repr=False)
    clock: Clock = field(default_factory=SystemClock, repr=False)

    status: EstateStatus = field(init=False, default=EstateStatus.PLANNING)
    is_frozen: bool = field(init=False, default=False)
    date_of_death: date | None = field(init=False, default=None)
    death_certificate_ref: str | None = field(init=False, default=None)
    asset_ids: set[str] = field(init=False, default_factory=set)
    debt_ids: set[str] = field(init=False, default_factory=set)
    gift_ids: set[str] = field(init=False, default_factory=set)
    bequest_ids: set[str] = field(init=False, default_factory=set)
    valuation: EstateValuation | None = field(init=False, default=None, repr=False)
    audit: AuditTrail = field(init=False, default_factory=AuditTrail, repr=False)
    facts: list[EstateFact] = field(init=False, default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if not self.estate_id or not self.estate_id.strip():
            raise ValidationError("estate_id", "is required")
        if not self.deceased_ref or not self.deceased_ref.strip():
            raise ValidationError("deceased_ref", "is required")
        logger.info(
            "estate_opened",
            extra={"estate_id": self.estate_id, "deceased_ref": self.deceased_ref},
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @property
    def currency(self) -> str:
        return self.policy.currency

    def _next_state(self, action: str) -> EstateStatus:
        try:
            t = ESTATE_WORKFLOW.require_transition(self.estate_id, self.status.value, action)
        except InvalidTransitionError:
            logger.warning(
                "estate_transition_rejected",
                extra={"estate_id": self.estate_id, "from_state": self.status.value, "action": action},
            )
            raise
        return EstateStatus(t.to_state)

    def _transition(self, action: str, actor: str, message: str, **detail: object) -> None:
        next_status = self._next_state(action)
        previous = self.status
        self.status = next_status
        self._note(actor, message, **detail)
        logger.info(
            "estate_status_changed",
            extra={
                "estate_id": self.estate_id,
                "from_state": previous.value,
                "to_state": next_status.value,
            },
        )

    def _members(self, kind: str) -> set[str]:
        return {
            "asset": self.asset_ids,
            "debt": self.debt_ids,
            "gift": self.gift_ids,
            "bequest": self.bequest_ids,
        }[kind]

    def _check_membership_change(self, kind: str, entity_id: str, owner: str, operation: str) -> None:
        if self.status == EstateStatus.CLOSED:
            raise PreconditionError("estate", self.estate_id, f"{operation} {kind}", self.status.value)
        if kind != "bequest" and self.is_frozen:
            logger.warning(
                "estate_membership_change_rejected",
                extra={"estate_id": self.estate_id, "entity_id": entity_id, "kind": kind},
            )
            raise EstateFrozenError(self.estate_id, f"{operation} {kind} {entity_id}")
        if owner != self.estate_id:
            raise EstateOwnershipError(entity_id, owner, self.estate_id)

    def _add(self, kind: str, entity_id: str, owner: str) -> None:
        self._check_membership_change(kind, entity_id, owner, "add")
        members = self._members(kind)
        if entity_id in members:
            raise DuplicateMembershipError(self.estate_id, entity_id, kind)
        members.add(entity_id)
        self._note("system", f"{kind.capitalize()} added", entity_id=entity_id)
        logger.info(
            "estate_member_added",
            extra={"estate_id": self.estate_id, "entity_id": entity_id, "kind": kind},
        )

    def _remove(self, kind: str, entity_id: str) -> None:
        self._check_membership_change(kind, entity_id, self.estate_id, "remove")
        members = self._members(kind)
        if entity_id not in members:
            raise PreconditionError(
                "estate", self.estate_id, f"remove {kind}", self.status.value,
                f"{entity_id} is not a member",
            )
        members.discard(entity_id)
        self._note("system", f"{kind.capitalize()} removed", entity_id=entity_id)
        logger.info(
            "estate_member_removed",
            extra={"estate_id": self.estate_id, "entity_id": entity_id, "kind": kind},
        )

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    def add_asset(self, asset: EstateAsset) -> None:
        self._add("asset", asset.asset_id, asset.estate_id)

    def remove_asset(self, asset_id: str) -> None:
        self._remove("asset", asset_id)

    def add_debt(self, debt: DebtLedgerEntry) -> None:
        self._add("debt", debt.debt_id, debt.estate_id)

    def remove_debt(self, debt_id: str) -> None:
        self._remove("debt", debt_id)

    def add_gift(self, gift: GiftLedgerEntry) -> None:
        self._add("gift", gift.gift_id, gift.estate_id)

    def remove_gift(self, gift_id: str) -> None:
        self._remove("gift", gift_id)

    def add_bequest(self, assignment: BequestAssignment) -> None:
        self._add("bequest", assignment.assignment_id, assignment.estate_id)

    def remove_bequest(self, assignment_id: str) -> None:
        self._remove("bequest", assignment_id)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def activate(self, activated_by: str) -> None:
        self._transition("activate", activated_by, "Estate plan activated")

    def record_death(
        self,
        date_of_death: date | datetime,
        death_certificate_ref: str,
        recorded_by: str,
    ) -> None:
        """Freeze the estate. Membership is immutable from here on."""
        died = _as_date(date_of_death)
        if died > self.clock.today():
            raise ValidationError("date_of_death", "cannot be in the future")
        if not death_certificate_ref or not death_certificate_ref.strip():
            raise ValidationError("death_certificate_ref", "is required")
        next_status = self._next_state("record_death")

        self.status = next_status
        self.is_frozen = True
        self.date_of_death = died
        self.death_certificate_ref = death_certificate_ref.strip()
        self._note(
            recorded_by, "Death recorded; estate frozen",
            date_of_death=died, death_certificate_ref=self.death_certificate_ref,
        )
        self._record(
            EstateFrozen(
                estate_id=self.estate_id,
                occurred_at=self.clock.now(),
                deceased_ref=self.deceased_ref,
                date_of_death=died,
                death_certificate_ref=self.death_certificate_ref,
            )
        )
        logger.info(
            "estate_frozen",
            extra={"estate_id": self.estate_id, "date_of_death": died.isoformat()},
        )

    def unfreeze(self, reason: str, actor_id: str) -> None:
        """Correct an erroneous death record."""
        minimum = self.policy.minimum_reason_length
        if not reason or len(reason.strip()) < minimum:
            raise ReasonTooShortError("unfreeze reason", minimum)
        next_status = self._next_state("unfreeze")

        reason = reason.strip()
        self.status = next_status
        self.is_frozen = False
        previous_death = self.date_of_death
        self.date_of_death = None
        self.death_certificate_ref = None
        self._note(actor_id, "Estate unfrozen", reason=reason, previous_date_of_death=previous_death)
        self._record(
            EstateUnfrozen(
                estate_id=self.estate_id,
                occurred_at=self.clock.now(),
                reason=reason,
                actor_id=actor_id,
            )
        )
        logger.warning(
            "estate_unfrozen",
            extra={"estate_id": self.estate_id, "actor_id": actor_id},
        )

    def open_probate(self, opened_by: str, grant_ref: str = "") -> None:
        self._transition("open_probate", opened_by, "Probate opened", grant_ref=grant_ref)

    def begin_administration(self, started_by: str) -> None:
        self._transition("begin_administration", started_by, "Administration started")

    def mark_distributed(self, distributed_by: str) -> None:
        self._transition("mark_distributed", distributed_by, "Estate distributed")

    def close(self, closed_by: str) -> None:
        self._transition("close", closed_by, "Estate closed")

    # -------------------------------------------------------------------------
    # Valuation
    # -------------------------------------------------------------------------

    def _own(self, kind: str, entity_id: str, owner: str) -> bool:
        if owner != self.estate_id:
            raise EstateOwnershipError(entity_id, owner, self.estate_id)
        return entity_id in self._members(kind)

    def recompute_values(
        self,
        assets: Iterable[EstateAsset],
        debts: Iterable[DebtLedgerEntry],
        gifts: Iterable[GiftLedgerEntry],
    ) -> EstateValuation:
        """
        Value the estate from its member entities.

        Net value is gross assets plus hotchpot additions less liabilities,
        floored at zero; any excess of liabilities is reported as shortfall.
        Entities that are not members are ignored.
        """
        zero = Money.zero(self.currency)
        gross = zero
        for asset in assets:
            if self._own("asset", asset.asset_id, asset.estate_id):
                gross = gross + asset.current_value

        liabilities = zero
        for debt in debts:
            if self._own("debt", debt.debt_id, debt.estate_id) and debt.status in _LIABILITY_STATUSES:
                liabilities = liabilities + debt.outstanding_balance

        additions = zero
        for gift in gifts:
            if not self._own("gift", gift.gift_id, gift.estate_id) or not gift.is_active:
                continue
            if gift.hotchpot_status == GiftHotchpotStatus.INCLUDED:
                additions = additions + gift.hotchpot_value
            elif gift.hotchpot_status == GiftHotchpotStatus.RECLAIMED:
                additions = additions + (gift.inflation_adjusted_value or gift.value_at_gift_time)

        balance = gross.amount + additions.amount - liabilities.amount
        net = Money.of(max(balance, Decimal("0")), self.currency)
        shortfall = Money.of(max(-balance, Decimal("0")), self.currency)

        self.valuation = EstateValuation(
            gross_asset_value=gross,
            total_liabilities=liabilities,
            hotchpot_additions=additions,
            net_estate_value=net,
            shortfall=shortfall,
            computed_at=self.clock.now(),
        )
        logger.info(
            "estate_values_recomputed",
            extra={
                "estate_id": self.estate_id,
                "gross_asset_value": str(gross.amount),
                "total_liabilities": str(liabilities.amount),
                "hotchpot_additions": str(additions.amount),
                "net_estate_value": str(net.amount),
            },
        )
        if shortfall.is_positive:
            logger.warning(
                "estate_insolvent",
                extra={"estate_id": self.estate_id, "shortfall": str(shortfall.amount)},
            )
        return self.valuation

    @property
    def net_estate_value(self) -> Money:
        if self.valuation is None:
            return Money.zero(self.currency)
        return self.valuation.net_estate_value

    @property
    def can_distribute(self) -> bool:
        """Frozen, not closed, positive net value. The tax gate is separate."""
        return (
            self.is_frozen
            and self.status != EstateStatus.CLOSED
            and self.net_estate_value.is_positive
        )

    def distribution_blockers(self) -> list[str]:
        blockers: list[str] = []
        if not self.is_frozen:
            blockers.append("estate is not frozen; no death has been recorded")
        if self.status == EstateStatus.CLOSED:
            blockers.append("estate is closed")
        if self.valuation is None:
            blockers.append("estate has not been valued")
        elif not self.net_estate_value.is_positive:
            blockers.append("net estate value is not positive")
        return blockers

    def annotate(self, actor: str, message: str, **detail: object) -> None:
        """Append an audit note on behalf of an orchestrating workflow."""
        self._note(actor, message, **detail)

    def record_fact(self, fact: EstateFact) -> None:
        if fact.estate_id != self.estate_id:
            raise EstateOwnershipError(fact.fact_type, fact.estate_id, self.estate_id)
        self._record(fact)

    def to_record(self) -> dict[str, Any]:
        return {
            "estate_id": self.estate_id,
            "deceased_ref": self.deceased_ref,
            "status": self.status.value,
            "is_frozen": self.is_frozen,
            "date_of_death": self.date_of_death.isoformat() if self.date_of_death else None,
            "asset_ids": sorted(self.asset_ids),
            "debt_ids": sorted(self.debt_ids),
            "gift_ids": sorted(self.gift_ids),
            "bequest_ids": sorted(self.bequest_ids),
            "valuation": self.valuation.to_record() if self.valuation else None,
        }
