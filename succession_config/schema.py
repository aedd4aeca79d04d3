"""
Succession policy schema (``succession_config.schema``).

Responsibility
--------------
Frozen dataclasses describing the statutory and product parameters the
ledger modules run under: limitation windows, the overpayment policy flag,
the small-estate tax exemption threshold, minimum justification length
and the conflict-scoring weights.

Invariants enforced
-------------------
* Limitation years are positive and the secured window is not shorter
  than the unsecured one.
* ``overpayment_policy`` is one of ``OverpaymentPolicy``.
* Weights are non-negative and ``max_risk_score`` is positive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from succession_kernel.domain.values import Currency, Money
from succession_kernel.exceptions import InvalidCurrencyError, PolicyConfigError


class OverpaymentPolicy(Enum):
    """What a debt payment larger than the outstanding balance does."""
    CLAMP = "clamp"
    REJECT = "reject"


@dataclass(frozen=True)
class RiskWeights:
    """Weights used by the bequest conflict detector's aggregate risk score."""

    critical: int = 25
    high: int = 15
    medium: int = 10
    low: int = 5
    warning: int = 3
    likelihood_high: int = 20
    likelihood_medium: int = 10
    likelihood_low: int = 5
    max_score: int = 100

    def __post_init__(self) -> None:
        for name in (
            "critical", "high", "medium", "low", "warning",
            "likelihood_high", "likelihood_medium", "likelihood_low",
        ):
            if getattr(self, name) < 0:
                raise PolicyConfigError("risk_weights", f"{name} must be non-negative")
        if self.max_score <= 0:
            raise PolicyConfigError("risk_weights", "max_score must be positive")


@dataclass(frozen=True)
class SuccessionPolicy:
    """Parameters every ledger module and the estate service run under."""

    name: str = "kenya_default"
    currency: str = "KES"
    default_inflation_rate: Decimal = Decimal("0.05")
    limitation_years_secured: int = 12
    limitation_years_unsecured: int = 6
    overpayment_policy: OverpaymentPolicy = OverpaymentPolicy.CLAMP
    tax_exemption_threshold: Decimal = Decimal("100000")
    minimum_reason_length: int = 10
    unequal_children_threshold: Decimal = Decimal("20")
    max_reasonable_age: int = 100
    max_reasonable_survival_days: int = 365
    risk_weights: RiskWeights = field(default_factory=RiskWeights)

    def __post_init__(self) -> None:
        try:
            Currency(self.currency)
        except InvalidCurrencyError as e:
            raise PolicyConfigError(self.name, str(e)) from e
        if self.limitation_years_unsecured <= 0:
            raise PolicyConfigError(self.name, "limitation_years_unsecured must be positive")
        if self.limitation_years_secured < self.limitation_years_unsecured:
            raise PolicyConfigError(
                self.name,
                "limitation_years_secured must not be shorter than the unsecured window",
            )
        if self.default_inflation_rate < 0:
            raise PolicyConfigError(self.name, "default_inflation_rate must be non-negative")
        if self.tax_exemption_threshold < 0:
            raise PolicyConfigError(self.name, "tax_exemption_threshold must be non-negative")
        if self.minimum_reason_length < 1:
            raise PolicyConfigError(self.name, "minimum_reason_length must be at least 1")
        if not Decimal("0") <= self.unequal_children_threshold <= Decimal("100"):
            raise PolicyConfigError(self.name, "unequal_children_threshold must be in [0, 100]")

    @property
    def exemption_threshold_money(self) -> Money:
        return Money.of(self.tax_exemption_threshold, self.currency)

    def limitation_years(self, is_secured: bool) -> int:
        return self.limitation_years_secured if is_secured else self.limitation_years_unsecured
