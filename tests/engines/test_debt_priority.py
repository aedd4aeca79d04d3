"""
Tests for the statutory debt priority classifier.

Covers:
- Four-tier classification
- Limitation dates including leap days
- Statute-bar boundary (exactly N years is not barred)
- Payment ordering and blocking
"""

from datetime import date

import pytest

from succession_engines.debt_priority import (
    DebtPriorityClassifier,
    DebtType,
    PriorityCandidate,
    StatutoryTier,
    add_years,
)
from succession_kernel.exceptions import ValidationError


class TestClassify:
    """Tests for statutory tier classification."""

    def setup_method(self):
        self.classifier = DebtPriorityClassifier()

    @pytest.mark.parametrize("debt_type", [DebtType.FUNERAL_EXPENSE, DebtType.TESTAMENTARY_EXPENSE])
    def test_funeral_and_testamentary_are_tier_one(self, debt_type):
        assert self.classifier.classify(debt_type, is_secured=False) == StatutoryTier.FUNERAL_TESTAMENTARY
        assert self.classifier.classify(debt_type, is_secured=True) == StatutoryTier.FUNERAL_TESTAMENTARY

    def test_secured_is_tier_two(self):
        assert self.classifier.classify(DebtType.MORTGAGE, is_secured=True) == StatutoryTier.SECURED
        assert self.classifier.classify(DebtType.TAX_OBLIGATION, is_secured=True) == StatutoryTier.SECURED

    @pytest.mark.parametrize(
        "debt_type", [DebtType.TAX_OBLIGATION, DebtType.LAND_RATES, DebtType.EMPLOYEE_WAGES]
    )
    def test_taxes_rates_wages_are_tier_three(self, debt_type):
        assert self.classifier.classify(debt_type, is_secured=False) == StatutoryTier.TAXES_RATES_WAGES

    @pytest.mark.parametrize(
        "debt_type", [DebtType.PERSONAL_LOAN, DebtType.CREDIT_CARD, DebtType.MEDICAL_BILL, DebtType.OTHER]
    )
    def test_everything_else_is_tier_four(self, debt_type):
        assert self.classifier.classify(debt_type, is_secured=False) == StatutoryTier.UNSECURED


class TestLimitation:
    """Tests for the limitation bar."""

    def setup_method(self):
        self.classifier = DebtPriorityClassifier()

    def test_add_years_leap_day(self):
        assert add_years(date(2020, 2, 29), 6) == date(2026, 2, 28)
        assert add_years(date(2020, 2, 29), 4) == date(2024, 2, 29)

    def test_one_day_past_window_is_barred(self):
        assert self.classifier.is_statute_barred(date(2018, 6, 14), 6, date(2024, 6, 15))

    def test_exactly_on_window_is_not_barred(self):
        assert not self.classifier.is_statute_barred(date(2018, 6, 15), 6, date(2024, 6, 15))

    def test_one_day_inside_window_is_not_barred(self):
        assert not self.classifier.is_statute_barred(date(2018, 6, 16), 6, date(2024, 6, 15))

    def test_non_positive_window_rejected(self):
        with pytest.raises(ValidationError):
            self.classifier.limitation_date(date(2020, 1, 1), 0)


class TestOrdering:
    """Tests for priority ordering."""

    def setup_method(self):
        self.classifier = DebtPriorityClassifier()
        self.funeral = PriorityCandidate("D-FUN", StatutoryTier.FUNERAL_TESTAMENTARY, date(2023, 12, 1))
        self.mortgage = PriorityCandidate("D-MORT", StatutoryTier.SECURED, date(2015, 1, 1))
        self.card_old = PriorityCandidate("D-CARD-1", StatutoryTier.UNSECURED, date(2020, 1, 1))
        self.card_new = PriorityCandidate("D-CARD-2", StatutoryTier.UNSECURED, date(2022, 1, 1))

    def test_order_by_tier_then_date(self):
        ordered = self.classifier.order(
            candidates=[self.card_new, self.mortgage, self.card_old, self.funeral]
        )
        assert [c.debt_id for c in ordered] == ["D-FUN", "D-MORT", "D-CARD-1", "D-CARD-2"]

    def test_higher_tier_blocks(self):
        blocking = self.classifier.first_blocking(self.card_old, [self.funeral, self.mortgage, self.card_old])
        assert blocking.debt_id == "D-FUN"

    def test_same_tier_does_not_block(self):
        assert self.classifier.first_blocking(self.card_new, [self.card_old]) is None

    def test_settled_debts_do_not_block(self):
        settled = PriorityCandidate("D-FUN", StatutoryTier.FUNERAL_TESTAMENTARY, date(2023, 12, 1), False)
        assert self.classifier.first_blocking(self.mortgage, [settled]) is None
