"""
Module: succession_engines.abatement
Responsibility:
    Proportional reduction of pecuniary bequests when the distributable
    estate cannot satisfy them all.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - When the available amount covers every claim, claims are paid in full.
    - Otherwise each claim is reduced by the same ratio, rounded to the
      currency precision; the rounding difference goes to the largest
      claim (first in input order on ties), so allocations sum exactly to
      the available amount.
    - All claims share one currency.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from succession_engines.tracer import traced_engine
from succession_kernel.domain.values import Money
from succession_kernel.logging_config import get_logger

logger = get_logger("engines.abatement")


@dataclass(frozen=True)
class AbatementClaim:
    claim_id: str
    amount: Money


@dataclass(frozen=True)
class AbatementResult:
    available: Money
    total_claimed: Money
    allocations: dict[str, Money]
    ratio: Decimal
    shortfall: Money

    @property
    def is_abated(self) -> bool:
        return self.ratio < Decimal("1")


class AbatementCalculator:
    """Stateless pro-rata abatement."""

    @traced_engine("abatement", "1.0", fingerprint_fields=("available", "claims"))
    def abate(self, *, available: Money, claims: Sequence[AbatementClaim]) -> AbatementResult:
        currency = available.currency
        total = Money.zero(currency)
        for c in claims:
            total = total + c.amount

        if total <= available or total.is_zero:
            return AbatementResult(
                available=available,
                total_claimed=total,
                allocations={c.claim_id: c.amount for c in claims},
                ratio=Decimal("1"),
                shortfall=Money.zero(currency),
            )

        ratio = available.amount / total.amount
        allocations = {c.claim_id: (c.amount * ratio).round() for c in claims}
        allocated = sum((m.amount for m in allocations.values()), Decimal("0"))
        residue = available.round().amount - allocated
        if residue and claims:
            target = max(claims, key=lambda c: c.amount.amount)
            allocations[target.claim_id] = Money.of(
                allocations[target.claim_id].amount + residue, currency
            )

        logger.info(
            "bequests_abated",
            extra={
                "available": str(available.amount),
                "total_claimed": str(total.amount),
                "ratio": str(ratio),
                "claim_count": len(claims),
                "currency": currency.code,
            },
        )
        return AbatementResult(
            available=available,
            total_claimed=total,
            allocations=allocations,
            ratio=ratio,
            shortfall=total - available,
        )
