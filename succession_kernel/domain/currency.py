"""Currency -- ISO 4217 registry and precision-derived rounding."""

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def quantize_string(self) -> str:
        """String for Decimal.quantize() to round to this currency's precision."""
        if self.decimal_places == 0:
            return "1"
        return "0." + "0" * self.decimal_places


class CurrencyRegistry:
    """Registry of the ISO 4217 currencies estates are administered in."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # East African Community
        "KES": CurrencyInfo("KES", 2, "Kenyan Shilling"),
        "TZS": CurrencyInfo("TZS", 2, "Tanzanian Shilling"),
        "UGX": CurrencyInfo("UGX", 0, "Ugandan Shilling"),
        "RWF": CurrencyInfo("RWF", 0, "Rwandan Franc"),
        "BIF": CurrencyInfo("BIF", 0, "Burundian Franc"),
        "SSP": CurrencyInfo("SSP", 2, "South Sudanese Pound"),
        # Regional
        "ETB": CurrencyInfo("ETB", 2, "Ethiopian Birr"),
        "ZAR": CurrencyInfo("ZAR", 2, "South African Rand"),
        "NGN": CurrencyInfo("NGN", 2, "Nigerian Naira"),
        "GHS": CurrencyInfo("GHS", 2, "Ghanaian Cedi"),
        # Offshore holdings of residents
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling"),
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen"),
        "INR": CurrencyInfo("INR", 2, "Indian Rupee"),
        "AED": CurrencyInfo("AED", 2, "UAE Dirham"),
    }

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a currency code is registered."""
        if not code or len(code) != 3:
            return False
        return code.upper() in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        """Get currency information, or None if unknown."""
        if not code:
            return None
        return cls._CURRENCIES.get(code.upper())

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Decimal places for a currency; 2 for unknown codes."""
        info = cls.get_info(code)
        return info.decimal_places if info else 2

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        """All registered currency codes."""
        return frozenset(cls._CURRENCIES.keys())
