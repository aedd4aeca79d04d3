"""
Module: succession_engines.hotchpot
Responsibility:
    Value inter-vivos gifts for hotchpot: bring a lifetime gift forward to
    the date of death by compounding an annual inflation rate over the
    fractional number of years elapsed, and settle entitlements once the
    adjusted gifts have been notionally added back to the estate.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import succession_kernel.

Invariants enforced:
    - years_elapsed = (date_of_death - gift_date) / 365.25 days, using the
      full elapsed time (not whole months or whole years).
    - adjusted = value * (1 + rate) ** years_elapsed, rounded to the
      currency's decimal places with ROUND_HALF_UP.
    - Decimal-only arithmetic.
    - date_of_death must be strictly after gift_date.

Failure modes:
    - ValidationError when the dates are out of order or the rate is not
      greater than -1.

Audit relevance:
    The valuation records rate, method and elapsed years so that the
    adjusted figure can be recomputed by a reviewer. Each calculation is
    traced via ``@traced_engine``.

Usage:
    from succession_engines.hotchpot import HotchpotCalculator, ValuationMethod

    valuation = HotchpotCalculator().calculate(
        value=Money.of("1000000", "KES"),
        gift_date=date(2020, 1, 1),
        date_of_death=date(2024, 1, 1),
        annual_rate=Decimal("0.05"),
        method=ValuationMethod.FIXED_RATE,
    )
    valuation.adjusted_value  # Money(1215506.25, KES)
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum

from succession_engines.tracer import traced_engine
from succession_kernel.domain.values import Money, Percentage
from succession_kernel.exceptions import ValidationError
from succession_kernel.logging_config import get_logger

logger = get_logger("engines.hotchpot")

SECONDS_PER_YEAR = Decimal("31557600")  # 365.25 days


class ValuationMethod(Enum):
    """Source of the annual rate used to bring a gift forward."""
    FIXED_RATE = "fixed_rate"
    KENYA_CPI = "kenya_cpi"
    CUSTOM = "custom"


@dataclass(frozen=True)
class HotchpotValuation:
    """Result of bringing one gift forward to the date of death."""

    original_value: Money
    adjusted_value: Money
    annual_rate: Decimal
    years_elapsed: Decimal
    growth_factor: Decimal
    method: ValuationMethod
    gift_date: date | datetime
    date_of_death: date | datetime


@dataclass(frozen=True)
class HotchpotSettlement:
    """Entitlements after adding advancements back to the distributable estate."""

    notional_estate: Money
    entitlements: Mapping[str, Money]
    advancements: Mapping[str, Money]
    excess_advancements: Mapping[str, Money]


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


class HotchpotCalculator:
    """
    Pure hotchpot valuation.

    Contract:
        Stateless. Identical inputs always produce identical valuations.

    Non-goals:
        Does NOT decide whether a gift is subject to hotchpot; the gift
        ledger entry checks that before calling.
    """

    def years_elapsed(
        self, start: date | datetime, end: date | datetime
    ) -> Decimal:
        """Fractional years between two instants on a 365.25-day year."""
        delta = _as_datetime(end) - _as_datetime(start)
        seconds = (
            Decimal(delta.days) * Decimal(86400)
            + Decimal(delta.seconds)
            + Decimal(delta.microseconds) / Decimal(1000000)
        )
        return seconds / SECONDS_PER_YEAR

    @traced_engine(
        "hotchpot",
        "1.0",
        fingerprint_fields=("value", "gift_date", "date_of_death", "annual_rate", "method"),
    )
    def calculate(
        self,
        *,
        value: Money,
        gift_date: date | datetime,
        date_of_death: date | datetime,
        annual_rate: Decimal,
        method: ValuationMethod = ValuationMethod.FIXED_RATE,
    ) -> HotchpotValuation:
        """Bring a gift's value forward to the date of death."""
        if _as_datetime(date_of_death) <= _as_datetime(gift_date):
            raise ValidationError(
                "date_of_death",
                f"must be after the gift date {gift_date.isoformat()}",
            )
        rate = Decimal(str(annual_rate))
        if rate <= Decimal("-1"):
            raise ValidationError("annual_rate", f"must be greater than -1, got {rate}")

        years = self.years_elapsed(gift_date, date_of_death)
        growth = (Decimal(1) + rate) ** years
        adjusted = (value * growth).round()

        logger.debug(
            "hotchpot_value_computed",
            extra={
                "original_value": str(value.amount),
                "adjusted_value": str(adjusted.amount),
                "currency": value.currency.code,
                "years_elapsed": str(years),
                "annual_rate": str(rate),
                "method": method.value,
            },
        )

        return HotchpotValuation(
            original_value=value,
            adjusted_value=adjusted,
            annual_rate=rate,
            years_elapsed=years,
            growth_factor=growth,
            method=method,
            gift_date=gift_date,
            date_of_death=date_of_death,
        )

    def total(self, values: Sequence[Money], currency: str) -> Money:
        """Sum of hotchpot-included values (zero when empty)."""
        result = Money.zero(currency)
        for v in values:
            result = result + v
        return result

    @traced_engine("hotchpot_settlement", "1.0", fingerprint_fields=("net_estate", "shares", "advancements"))
    def settle(
        self,
        *,
        net_estate: Money,
        shares: Mapping[str, Percentage],
        advancements: Mapping[str, Money],
    ) -> HotchpotSettlement:
        """
        Compute each beneficiary's take from the estate after hotchpot.

        The notional estate is the net estate plus every advancement. Each
        beneficiary is entitled to their share of the notional estate less
        what they already received. A beneficiary whose advancement exceeds
        that entitlement takes nothing and is not asked to refund; the
        excess is reported.
        """
        currency = net_estate.currency.code
        notional = net_estate
        for recipient in sorted(advancements):
            notional = notional + advancements[recipient]

        entitlements: dict[str, Money] = {}
        excess: dict[str, Money] = {}
        for recipient in sorted(shares):
            gross = shares[recipient].of(notional).round()
            received = advancements.get(recipient, Money.zero(currency))
            if received >= gross:
                entitlements[recipient] = Money.zero(currency)
                excess[recipient] = received - gross
            else:
                entitlements[recipient] = gross - received

        logger.info(
            "hotchpot_settled",
            extra={
                "notional_estate": str(notional.amount),
                "currency": currency,
                "beneficiary_count": len(shares),
                "excess_count": len(excess),
            },
        )
        return HotchpotSettlement(
            notional_estate=notional,
            entitlements=entitlements,
            advancements=dict(advancements),
            excess_advancements=excess,
        )
