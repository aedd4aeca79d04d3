"""
Tests for the hotchpot calculator.

Covers:
- Fractional-year elapsed time on a 365.25-day year
- Compounding of gift values to the date of death
- Settlement of entitlements against advancements
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from succession_engines.hotchpot import SECONDS_PER_YEAR, HotchpotCalculator, ValuationMethod
from succession_kernel.domain.values import Money, Percentage
from succession_kernel.exceptions import ValidationError


class TestYearsElapsed:
    """Tests for elapsed-year calculation."""

    def setup_method(self):
        self.calculator = HotchpotCalculator()

    def test_four_calendar_years_is_exactly_four(self):
        # 2020-2023 contains one leap day, so 1461 days == 4 * 365.25
        assert self.calculator.years_elapsed(date(2020, 1, 1), date(2024, 1, 1)) == Decimal("4")

    def test_fractional(self):
        years = self.calculator.years_elapsed(date(2023, 1, 1), date(2023, 7, 2))
        assert years == Decimal(182 * 86400) / SECONDS_PER_YEAR

    def test_naive_and_aware_datetimes_agree(self):
        naive = self.calculator.years_elapsed(datetime(2020, 1, 1), datetime(2021, 1, 1))
        aware = self.calculator.years_elapsed(
            datetime(2020, 1, 1, tzinfo=timezone.utc), datetime(2021, 1, 1, tzinfo=timezone.utc)
        )
        assert naive == aware


class TestCalculate:
    """Tests for hotchpot valuation."""

    def setup_method(self):
        self.calculator = HotchpotCalculator()

    def test_four_years_at_five_percent(self):
        valuation = self.calculator.calculate(
            value=Money.of("1000000", "KES"),
            gift_date=date(2020, 1, 1),
            date_of_death=date(2024, 1, 1),
            annual_rate=Decimal("0.05"),
        )
        assert valuation.adjusted_value == Money.of("1215506.25", "KES")
        assert valuation.years_elapsed == Decimal("4")
        assert valuation.method is ValuationMethod.FIXED_RATE

    def test_zero_rate_keeps_value(self):
        valuation = self.calculator.calculate(
            value=Money.of("5000", "KES"),
            gift_date=date(2015, 3, 1),
            date_of_death=date(2024, 1, 1),
            annual_rate=Decimal("0"),
        )
        assert valuation.adjusted_value == Money.of("5000", "KES")

    def test_negative_rate_deflates(self):
        valuation = self.calculator.calculate(
            value=Money.of("1000", "KES"),
            gift_date=date(2020, 1, 1),
            date_of_death=date(2024, 1, 1),
            annual_rate=Decimal("-0.10"),
        )
        assert valuation.adjusted_value == Money.of("656.10", "KES")

    def test_death_must_follow_gift(self):
        with pytest.raises(ValidationError):
            self.calculator.calculate(
                value=Money.of("1000", "KES"),
                gift_date=date(2024, 1, 1),
                date_of_death=date(2024, 1, 1),
                annual_rate=Decimal("0.05"),
            )

    def test_rate_must_exceed_minus_one(self):
        with pytest.raises(ValidationError):
            self.calculator.calculate(
                value=Money.of("1000", "KES"),
                gift_date=date(2020, 1, 1),
                date_of_death=date(2024, 1, 1),
                annual_rate=Decimal("-1"),
            )

    def test_emits_engine_trace(self, captured_logs):
        kwargs = dict(
            value=Money.of("1000", "KES"),
            gift_date=date(2020, 1, 1),
            date_of_death=date(2024, 1, 1),
            annual_rate=Decimal("0.05"),
        )
        self.calculator.calculate(**kwargs)
        self.calculator.calculate(**kwargs)

        traces = [r for r in captured_logs() if r["message"] == "ENGINE_TRACE"]
        assert len(traces) == 2
        assert traces[0]["engine_name"] == "hotchpot"
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]

    def test_total(self):
        total = self.calculator.total([Money.of("10", "KES"), Money.of("5", "KES")], "KES")
        assert total == Money.of("15", "KES")
        assert self.calculator.total([], "KES").is_zero


class TestSettle:
    """Tests for hotchpot settlement."""

    def setup_method(self):
        self.calculator = HotchpotCalculator()

    def test_advancement_brought_into_account(self):
        settlement = self.calculator.settle(
            net_estate=Money.of("800", "KES"),
            shares={"alice": Percentage(Decimal("50")), "bob": Percentage(Decimal("50"))},
            advancements={"alice": Money.of("200", "KES")},
        )
        assert settlement.notional_estate == Money.of("1000", "KES")
        assert settlement.entitlements["alice"] == Money.of("300", "KES")
        assert settlement.entitlements["bob"] == Money.of("500", "KES")
        assert settlement.excess_advancements == {}

    def test_excess_advancement_not_refunded(self):
        settlement = self.calculator.settle(
            net_estate=Money.of("100", "KES"),
            shares={"alice": Percentage(Decimal("50")), "bob": Percentage(Decimal("50"))},
            advancements={"alice": Money.of("900", "KES")},
        )
        assert settlement.entitlements["alice"].is_zero
        assert settlement.excess_advancements["alice"] == Money.of("400", "KES")
        assert settlement.entitlements["bob"] == Money.of("500", "KES")
