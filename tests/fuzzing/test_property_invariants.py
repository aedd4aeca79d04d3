"""
Property-based tests for the arithmetic and ledger invariants.

Properties:
- Money add/subtract round-trip and non-negativity
- Percentage stays in [0, 100] under add/subtract
- Hotchpot growth is monotone in rate and elapsed time
- Debt balances reconcile under any payment sequence
- Statute-bar boundary sits exactly on the anniversary
- Alternate chains are never reported as cycles; rings always are
- Conflict detection is idempotent
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from succession_config.schema import SuccessionPolicy
from succession_engines.conflict_detector import ConflictDetector
from succession_engines.debt_priority import DebtPriorityClassifier, add_years
from succession_engines.hotchpot import HotchpotCalculator
from succession_kernel.domain.clock import DeterministicClock
from succession_kernel.domain.values import Money, Percentage
from succession_kernel.exceptions import NegativeAmountError, PercentageRangeError
from succession_modules.bequests import BeneficiaryRef, BequestAssignment, RelationshipTag, ShareType
from succession_modules.debts import DebtLedgerEntry, DebtType

CLOCK_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

amounts = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("999999999.99"), places=2,
    allow_nan=False, allow_infinity=False,
)
positive_amounts = st.decimals(
    min_value=Decimal("0.01"), max_value=Decimal("99999999.99"), places=2,
    allow_nan=False, allow_infinity=False,
)
percentages = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("100"), places=2,
    allow_nan=False, allow_infinity=False,
)
rates = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("0.50"), places=4,
    allow_nan=False, allow_infinity=False,
)
past_dates = st.dates(min_value=date(1960, 1, 1), max_value=date(2023, 12, 31))


class TestMoneyProperties:
    """Property tests for Money arithmetic."""

    @given(a=amounts, b=amounts)
    def test_add_then_subtract_round_trips(self, a, b):
        x, y = Money.of(a, "KES"), Money.of(b, "KES")
        assert (x + y) - y == x

    @given(a=amounts, b=amounts)
    def test_subtract_never_goes_negative(self, a, b):
        assume(b > a)
        with pytest.raises(NegativeAmountError):
            Money.of(a, "KES") - Money.of(b, "KES")

    @given(a=amounts, b=amounts)
    def test_ordering_matches_amounts(self, a, b):
        assert (Money.of(a, "KES") < Money.of(b, "KES")) == (a < b)


class TestPercentageProperties:
    """Property tests for Percentage bounds."""

    @given(p=percentages)
    def test_add_zero_is_identity(self, p):
        assert Percentage(p).add(Percentage.zero()) == Percentage(p)

    @given(p=percentages, q=percentages)
    def test_add_stays_in_range_or_raises(self, p, q):
        if p + q > Decimal("100"):
            with pytest.raises(PercentageRangeError):
                Percentage(p).add(Percentage(q))
        else:
            assert Percentage(p).add(Percentage(q)).value == p + q

    @given(p=percentages, q=percentages)
    def test_subtract_stays_in_range_or_raises(self, p, q):
        if q > p:
            with pytest.raises(PercentageRangeError):
                Percentage(p).subtract(Percentage(q))
        else:
            assert Percentage(p).subtract(Percentage(q)).value == p - q


class TestHotchpotProperties:
    """Property tests for hotchpot valuation."""

    calculator = HotchpotCalculator()

    @given(value=positive_amounts, gift_date=past_dates, low=rates, high=rates)
    @settings(max_examples=50)
    def test_monotone_in_rate(self, value, gift_date, low, high):
        assume(low <= high)
        common = dict(value=Money.of(value, "KES"), gift_date=gift_date, date_of_death=date(2024, 1, 1))
        lower = self.calculator.calculate(annual_rate=low, **common)
        upper = self.calculator.calculate(annual_rate=high, **common)
        assert lower.adjusted_value <= upper.adjusted_value

    @given(value=positive_amounts, gift_date=past_dates, rate=rates)
    @settings(max_examples=50)
    def test_never_below_original_for_non_negative_rate(self, value, gift_date, rate):
        result = self.calculator.calculate(
            value=Money.of(value, "KES"), gift_date=gift_date,
            date_of_death=date(2024, 1, 1), annual_rate=rate,
        )
        assert result.adjusted_value >= Money.of(value, "KES")

    def test_reference_valuation(self):
        result = self.calculator.calculate(
            value=Money.of("1000000", "KES"), gift_date=date(2020, 1, 1),
            date_of_death=date(2024, 1, 1), annual_rate=Decimal("0.05"),
        )
        assert abs(result.adjusted_value.amount - Decimal("1215506")) < Decimal("1")


class TestDebtProperties:
    """Property tests for debt balances and limitation."""

    @given(
        principal=positive_amounts,
        payments=st.lists(positive_amounts, min_size=1, max_size=8),
    )
    @settings(max_examples=50)
    def test_balances_reconcile_under_any_payments(self, principal, payments):
        debt = DebtLedgerEntry(
            debt_id="D-1", estate_id="EST-1", debt_type=DebtType.PERSONAL_LOAN,
            creditor_name="Sacco", description="Loan", principal=Money.of(principal, "KES"),
            incurred_date=date(2022, 1, 1), policy=SuccessionPolicy(),
            clock=DeterministicClock(CLOCK_TIME),
        )
        for amount in payments:
            if not debt.is_outstanding:
                break
            debt.record_payment(Money.of(amount, "KES"), "executor-1")
            assert debt.outstanding_balance <= debt.principal
            assert debt.balances_reconcile
        assert debt.total_paid + debt.outstanding_balance == debt.principal

    def test_overpayment_clamps_with_discrepancy(self):
        debt = DebtLedgerEntry(
            debt_id="D-1", estate_id="EST-1", debt_type=DebtType.PERSONAL_LOAN,
            creditor_name="Sacco", description="Loan", principal=Money.of("500000", "KES"),
            incurred_date=date(2022, 1, 1), clock=DeterministicClock(CLOCK_TIME),
        )
        debt.record_payment(Money.of("600000", "KES"), "executor-1")
        assert debt.outstanding_balance.is_zero
        assert debt.total_paid == Money.of("500000", "KES")
        assert dict(debt.audit.latest.detail)["discrepancy"] == "100000 KES"

    @given(incurred=past_dates, years=st.integers(min_value=1, max_value=30))
    def test_bar_boundary_is_the_anniversary(self, incurred, years):
        classifier = DebtPriorityClassifier()
        anniversary = add_years(incurred, years)
        assert not classifier.is_statute_barred(incurred, years, anniversary)
        assert not classifier.is_statute_barred(incurred, years, anniversary - timedelta(days=1))
        assert classifier.is_statute_barred(incurred, years, anniversary + timedelta(days=1))


def _ring(size, closed):
    clock = DeterministicClock(CLOCK_TIME)
    ids = [f"B-{i:02d}" for i in range(size)]
    assignments = []
    for i, aid in enumerate(ids):
        nxt = ids[(i + 1) % size] if closed or i + 1 < size else None
        assignments.append(
            BequestAssignment(
                aid, "EST-1", BeneficiaryRef(f"P-{i}", f"Person {i}", RelationshipTag.CHILD),
                ShareType.PERCENTAGE, percentage=Percentage(Decimal("1")),
                alternate_assignment_id=nxt if nxt != aid else None, clock=clock,
            )
        )
    return assignments


class TestConflictProperties:
    """Property tests for alternate cycle detection."""

    detector = ConflictDetector()

    @given(size=st.integers(min_value=2, max_value=12))
    def test_ring_is_one_cycle(self, size):
        cycles = self.detector.find_alternate_cycles(_ring(size, closed=True))
        assert len(cycles) == 1
        assert len(cycles[0]) == size

    @given(size=st.integers(min_value=1, max_value=12))
    def test_chain_has_no_cycle(self, size):
        assert self.detector.find_alternate_cycles(_ring(size, closed=False)) == []

    @given(shares=st.lists(st.integers(min_value=1, max_value=60), min_size=1, max_size=6))
    @settings(max_examples=50)
    def test_detect_is_idempotent(self, shares):
        clock = DeterministicClock(CLOCK_TIME)
        assignments = [
            BequestAssignment(
                f"B-{i}", "EST-1", BeneficiaryRef(f"P-{i}", f"Person {i}", RelationshipTag.CHILD),
                ShareType.PERCENTAGE, percentage=Percentage(Decimal(s)), clock=clock,
            )
            for i, s in enumerate(shares)
        ]
        first = self.detector.detect(estate_id="EST-1", assignments=assignments)
        second = self.detector.detect(estate_id="EST-1", assignments=assignments)
        assert first == second
        overflow = sum(shares) - 100
        assert first.has_conflicts
        if overflow > 0:
            assert first.summary.percentage_total == Decimal(sum(shares))
