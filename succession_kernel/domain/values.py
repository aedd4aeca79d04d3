"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the value types every succession computation is expressed in:
    Currency, Money and Percentage. They replace raw Decimal and str wherever
    an amount or a share appears in domain logic.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine and module. No outward dependencies except
    succession_kernel.domain.currency and succession_kernel.exceptions.

Invariants enforced:
    - Money amounts are Decimal (never float) and never negative
    - Binary Money operations require matching currencies
    - Percentage values lie in [0, 100]; add and multiply reject results
      above 100, subtract rejects results below 0
    - Percentage equality uses a tolerance of 1e-4

Failure modes:
    - NegativeAmountError on a negative amount, including a subtraction
      that would go below zero
    - CurrencyMismatchError when arithmetic or comparison mixes currencies
    - InvalidCurrencyError for an unregistered ISO 4217 code
    - PercentageRangeError when a value or result leaves [0, 100]

Audit relevance:
    Hotchpot valuations, debt balances and tax liabilities are all Money.
    Bequest shares are all Percentage. Their persisted shape is the flat
    record returned by to_record(): {amount, currency} and {value}.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from succession_kernel.domain.currency import CurrencyRegistry
from succession_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidCurrencyError,
    NegativeAmountError,
    PercentageRangeError,
    ValidationError,
)

PERCENTAGE_EPSILON = Decimal("0.0001")
_HUNDRED = Decimal("100")


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(field, f"expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(field, f"not a decimal number: {value!r}") from e


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Contract:
        Wraps a three-letter code, normalized to uppercase and validated
        against CurrencyRegistry on construction.

    Guarantees:
        - Immutable and hashable
        - code is always a registered ISO 4217 code
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if self.code else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise InvalidCurrencyError(str(self.code))
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a non-negative Decimal amount with its Currency. Every amount
        the engine handles (gift values, debt balances, tax liabilities,
        estate totals) is a Money.

    Guarantees:
        - Immutable and hashable
        - amount is always a Decimal, never float, never negative
        - Arithmetic and comparison enforce the same-currency constraint

    Non-goals:
        - Does NOT perform currency conversion
        - Does NOT auto-round; callers call .round() explicitly
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if isinstance(self.amount, float):
            # Floats carry binary noise; go through repr to keep what the caller typed.
            object.__setattr__(self, "amount", Decimal(repr(self.amount)))
        else:
            object.__setattr__(self, "amount", _to_decimal(self.amount, "amount"))

        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

        if not self.amount.is_finite():
            raise ValidationError("amount", f"must be finite, got {self.amount}")
        if self.amount < 0:
            raise NegativeAmountError(str(self.amount))

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        """
        Factory method for creating Money.

        Raises:
            NegativeAmountError: amount is below zero.
            InvalidCurrencyError: currency code is not registered.
        """
        return cls(amount=_to_decimal(amount, "amount"), currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        """Create a zero amount in the given currency."""
        return cls(amount=Decimal("0"), currency=currency)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Money:
        return cls.of(record["amount"], record["currency"])

    def to_record(self) -> dict[str, str]:
        return {"amount": str(self.amount), "currency": self.currency.code}

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Round to the currency's decimal places."""
        info = CurrencyRegistry.get_info(self.currency.code)
        quantize_str = info.quantize_string if info else "0.01"
        rounded = self.amount.quantize(Decimal(quantize_str), rounding=rounding)
        return Money(amount=rounded, currency=self.currency)

    def _check_currency(self, other: Money, operation: str) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(
                self.currency.code, other.currency.code, operation
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "add")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        """Subtract; a result below zero raises NegativeAmountError."""
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "subtract")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        if isinstance(factor, (int, str)) and not isinstance(factor, bool):
            factor = Decimal(str(factor))
        if not isinstance(factor, Decimal):
            return NotImplemented
        return Money(amount=self.amount * factor, currency=self.currency)

    def __rmul__(self, factor: Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def __truediv__(self, divisor: Decimal | int | str) -> Money:
        if isinstance(divisor, (int, str)) and not isinstance(divisor, bool):
            divisor = Decimal(str(divisor))
        if not isinstance(divisor, Decimal):
            return NotImplemented
        return Money(amount=self.amount / divisor, currency=self.currency)

    def add(self, other: Money) -> Money:
        return self + other

    def subtract(self, other: Money) -> Money:
        return self - other

    def min(self, other: Money) -> Money:
        self._check_currency(other, "compare")
        return self if self.amount <= other.amount else other

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"


@dataclass(frozen=True, slots=True, eq=False)
class Percentage:
    """
    Bounded share value object.

    Contract:
        A Decimal in [0, 100]. Arithmetic never leaves the closed range:
        results outside it raise rather than saturate.

    Guarantees:
        - Immutable
        - Equality within PERCENTAGE_EPSILON (1e-4); hashing uses the value
          quantized to the same step
        - add/multiply raise PercentageRangeError above 100,
          subtract raises below 0
    """

    value: Decimal

    def __post_init__(self) -> None:
        value = _to_decimal(self.value, "percentage")
        if not value.is_finite() or value < 0 or value > _HUNDRED:
            raise PercentageRangeError(str(value))
        object.__setattr__(self, "value", value)

    @classmethod
    def zero(cls) -> Percentage:
        return cls(Decimal("0"))

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Percentage:
        return cls(_to_decimal(record["value"], "percentage"))

    def to_record(self) -> dict[str, str]:
        return {"value": str(self.value)}

    @property
    def fraction(self) -> Decimal:
        """The share as a fraction of one."""
        return self.value / _HUNDRED

    def add(self, other: Percentage) -> Percentage:
        result = self.value + other.value
        if result > _HUNDRED:
            raise PercentageRangeError(str(result), "add")
        return Percentage(result)

    def subtract(self, other: Percentage) -> Percentage:
        result = self.value - other.value
        if result < 0:
            raise PercentageRangeError(str(result), "subtract")
        return Percentage(result)

    def multiply(self, factor: Decimal | int | str) -> Percentage:
        result = self.value * _to_decimal(factor, "factor")
        if result > _HUNDRED or result < 0:
            raise PercentageRangeError(str(result), "multiply")
        return Percentage(result)

    def of(self, money: Money) -> Money:
        """Apply this share to an amount."""
        return money * self.fraction

    def __add__(self, other: Percentage) -> Percentage:
        if not isinstance(other, Percentage):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: Percentage) -> Percentage:
        if not isinstance(other, Percentage):
            return NotImplemented
        return self.subtract(other)

    def __mul__(self, factor: Decimal | int | str) -> Percentage:
        if isinstance(factor, Percentage):
            return NotImplemented
        return self.multiply(factor)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Percentage):
            return NotImplemented
        return abs(self.value - other.value) <= PERCENTAGE_EPSILON

    def __hash__(self) -> int:
        return hash(self.value.quantize(PERCENTAGE_EPSILON))

    def __lt__(self, other: Percentage) -> bool:
        if not isinstance(other, Percentage):
            return NotImplemented
        return self.value < other.value and self != other

    def __gt__(self, other: Percentage) -> bool:
        if not isinstance(other, Percentage):
            return NotImplemented
        return self.value > other.value and self != other

    def __str__(self) -> str:
        return f"{self.value}%"

    def __repr__(self) -> str:
        return f"Percentage({self.value!r})"
