"""
Tests for the gift ledger entry.

Covers:
- Creation invariants and customary exemption
- Hotchpot calculate/include/exclude/reclaim transitions
- Condition and legal-status sub-machines
- Validate-before-mutate on rejected operations
"""

from datetime import date
from decimal import Decimal

import pytest

from succession_kernel.domain.events import GiftHotchpotCalculated, GiftReclaimed
from succession_kernel.domain.values import Money
from succession_kernel.exceptions import (
    InvalidTransitionError,
    PreconditionError,
    ReasonTooShortError,
    ValidationError,
)
from succession_modules.gifts import (
    ContestOutcome,
    GiftConditionStatus,
    GiftConditionType,
    GiftHotchpotStatus,
    GiftLedgerEntry,
    GiftLegalStatus,
    GiftType,
)

DEATH = date(2024, 1, 1)


@pytest.fixture
def gift(deterministic_clock, policy):
    return GiftLedgerEntry(
        gift_id="G-1",
        estate_id="EST-1",
        recipient_id="P-AMINA",
        gift_type=GiftType.LAND_GIFT,
        description="Two acres in Kiambu given on marriage",
        value_at_gift_time=Money.of("1000000", "KES"),
        date_of_gift=date(2020, 1, 1),
        policy=policy,
        clock=deterministic_clock,
    )


class TestCreation:
    """Tests for gift creation."""

    def test_starts_pending(self, gift):
        assert gift.hotchpot_status == GiftHotchpotStatus.PENDING
        assert gift.condition_status == GiftConditionStatus.NONE
        assert gift.legal_status == GiftLegalStatus.VALID
        assert gift.hotchpot_value is None

    def test_short_description(self, deterministic_clock):
        with pytest.raises(ReasonTooShortError):
            GiftLedgerEntry(
                gift_id="G-2", estate_id="EST-1", recipient_id="P", gift_type=GiftType.CASH_GIFT,
                description="cash", value_at_gift_time=Money.of("10", "KES"),
                date_of_gift=date(2020, 1, 1), clock=deterministic_clock,
            )

    def test_zero_value(self, deterministic_clock):
        with pytest.raises(ValidationError):
            GiftLedgerEntry(
                gift_id="G-2", estate_id="EST-1", recipient_id="P", gift_type=GiftType.CASH_GIFT,
                description="Cash for school fees", value_at_gift_time=Money.zero("KES"),
                date_of_gift=date(2020, 1, 1), clock=deterministic_clock,
            )

    def test_future_gift_date(self, deterministic_clock):
        with pytest.raises(ValidationError):
            GiftLedgerEntry(
                gift_id="G-2", estate_id="EST-1", recipient_id="P", gift_type=GiftType.CASH_GIFT,
                description="Cash for school fees", value_at_gift_time=Money.of("10", "KES"),
                date_of_gift=date(2024, 6, 1), clock=deterministic_clock,
            )

    def test_bride_price_is_exempt(self, deterministic_clock):
        gift = GiftLedgerEntry.customary_bride_price(
            "G-3", "EST-1", "P-B", Money.of("200000", "KES"), date(2019, 5, 5), clock=deterministic_clock
        )
        assert gift.hotchpot_status == GiftHotchpotStatus.NOT_APPLICABLE
        with pytest.raises(PreconditionError):
            gift.calculate_hotchpot_value(DEATH)


class TestHotchpot:
    """Tests for hotchpot transitions on a gift."""

    def test_calculate_then_include(self, gift):
        adjusted = gift.calculate_hotchpot_value(DEATH, Decimal("0.05"))

        assert adjusted == Money.of("1215506.25", "KES")
        assert gift.hotchpot_status == GiftHotchpotStatus.CALCULATION_PENDING
        assert gift.hotchpot_value is None
        facts = gift.pull_facts()
        assert isinstance(facts[0], GiftHotchpotCalculated)
        assert gift.pull_facts() == []

        gift.include_in_hotchpot("executor-1")
        assert gift.hotchpot_status == GiftHotchpotStatus.INCLUDED
        assert gift.hotchpot_value == adjusted
        assert gift.audit.latest.message == "Included in hotchpot"

    def test_recalculate_replaces_value(self, gift):
        gift.calculate_hotchpot_value(DEATH, Decimal("0.05"))
        second = gift.calculate_hotchpot_value(DEATH, Decimal("0"))
        assert second == Money.of("1000000", "KES")
        assert gift.inflation_adjusted_value == second

    def test_default_rate_from_policy(self, gift, policy):
        gift.calculate_hotchpot_value(DEATH)
        assert gift.valuation.annual_rate == policy.default_inflation_rate

    def test_include_without_calculation(self, gift):
        with pytest.raises(PreconditionError):
            gift.include_in_hotchpot("executor-1")
        assert gift.hotchpot_status == GiftHotchpotStatus.PENDING

    def test_exclude_requires_reason(self, gift):
        with pytest.raises(ReasonTooShortError):
            gift.exclude_from_hotchpot("executor-1", "no")
        assert gift.hotchpot_status == GiftHotchpotStatus.PENDING

    def test_exclude_with_court_order(self, gift):
        with pytest.raises(ValidationError):
            gift.exclude_from_hotchpot(
                "executor-1", "Court directed exclusion of the gift", requires_court_order=True
            )
        gift.exclude_from_hotchpot(
            "executor-1", "Court directed exclusion of the gift",
            requires_court_order=True, court_order_ref="HC-SUCC-12/2024",
        )
        assert gift.hotchpot_status == GiftHotchpotStatus.EXCLUDED
        assert gift.court_order_ref == "HC-SUCC-12/2024"

    def test_reset_clears_included_valuation(self, gift):
        gift.calculate_hotchpot_value(DEATH, Decimal("0.05"))
        gift.include_in_hotchpot("executor-1")
        gift.reset_hotchpot("registrar", "Date of death was entered wrongly")
        assert gift.hotchpot_status == GiftHotchpotStatus.PENDING
        assert gift.valuation is None
        assert gift.hotchpot_value is None
        assert dict(gift.audit.latest.detail)["previous_value"] == "1215506.25 KES"

    def test_reset_not_allowed_when_excluded(self, gift):
        gift.exclude_from_hotchpot("executor-1", "Gift was a loan repaid in full")
        with pytest.raises(InvalidTransitionError):
            gift.reset_hotchpot("registrar", "Date of death was entered wrongly")
        assert gift.hotchpot_status == GiftHotchpotStatus.EXCLUDED

    def test_included_gift_cannot_be_reclaimed(self, gift):
        gift.calculate_hotchpot_value(DEATH)
        gift.include_in_hotchpot("executor-1")
        assert not gift.can_reclaim
        with pytest.raises(InvalidTransitionError):
            gift.reclaim_to_estate("executor-1", "Fraud proven in the High Court")

    def test_reclaim_records_fact(self, gift):
        gift.reclaim_to_estate("executor-1", "Condition failed on the gift")
        assert gift.hotchpot_status == GiftHotchpotStatus.RECLAIMED
        assert isinstance(gift.pull_facts()[-1], GiftReclaimed)

    def test_deactivated_gift_rejects_operations(self, gift):
        gift.deactivate("Recorded against the wrong estate", "clerk-1")
        with pytest.raises(PreconditionError):
            gift.calculate_hotchpot_value(DEATH)


class TestCondition:
    """Tests for the gift condition sub-machine."""

    def test_set_and_meet_late(self, gift, captured_logs):
        gift.set_condition(
            GiftConditionType.EDUCATION, "Complete a degree by 2022", deadline=date(2022, 12, 31)
        )
        assert gift.condition_status == GiftConditionStatus.PENDING
        gift.mark_condition_met(date(2023, 3, 1), "executor-1")
        assert gift.condition_status == GiftConditionStatus.MET
        assert any(r["message"] == "gift_condition_met_after_deadline" for r in captured_logs())

    def test_second_condition_rejected(self, gift):
        gift.set_condition(GiftConditionType.MARRIAGE, "Marry within five years")
        with pytest.raises(InvalidTransitionError):
            gift.set_condition(GiftConditionType.AGE, "Reach the age of thirty")

    def test_deadline_before_gift(self, gift):
        with pytest.raises(ValidationError):
            gift.set_condition(GiftConditionType.AGE, "Reach the age of thirty", deadline=date(2019, 1, 1))
        assert gift.condition is None

    def test_fail_does_not_reclaim(self, gift):
        gift.set_condition(GiftConditionType.MARRIAGE, "Marry within five years", reverts_to_estate=True)
        gift.mark_condition_failed("Did not marry within the period", "executor-1")
        assert gift.condition_status == GiftConditionStatus.FAILED
        assert gift.hotchpot_status == GiftHotchpotStatus.PENDING
        assert gift.reverts_to_estate

    def test_expire(self, gift):
        gift.set_condition(GiftConditionType.AGE, "Reach the age of thirty", deadline=date(2022, 1, 1))
        assert not gift.expire_condition(date(2021, 6, 1))
        assert gift.expire_condition(date(2022, 6, 1))
        assert gift.condition_status == GiftConditionStatus.TIME_EXPIRED

    def test_waive_requires_reason(self, gift):
        gift.set_condition(GiftConditionType.AGE, "Reach the age of thirty")
        with pytest.raises(ReasonTooShortError):
            gift.waive_condition("ok", "executor-1")


class TestLegalStatus:
    """Tests for gift contests."""

    @pytest.mark.parametrize(
        "outcome, expected",
        [
            (ContestOutcome.GIFT_UPHELD, GiftLegalStatus.VALID),
            (ContestOutcome.CONTEST_DISMISSED, GiftLegalStatus.VALID),
            (ContestOutcome.SETTLED, GiftLegalStatus.SETTLED),
            (ContestOutcome.FRAUD_PROVEN, GiftLegalStatus.INVALID),
        ],
    )
    def test_outcomes(self, gift, outcome, expected):
        gift.contest("Sibling alleges undue influence", "P-BARAKA")
        gift.resolve_contest(outcome, "court")
        assert gift.legal_status == expected

    def test_resolve_without_contest(self, gift):
        with pytest.raises(InvalidTransitionError):
            gift.resolve_contest(ContestOutcome.GIFT_UPHELD, "court")

    def test_invalid_is_terminal(self, gift):
        gift.contest("Sibling alleges undue influence", "P-BARAKA")
        gift.resolve_contest(ContestOutcome.FRAUD_PROVEN, "court")
        with pytest.raises(InvalidTransitionError):
            gift.contest("A second contest on the same gift", "P-BARAKA")

    def test_record(self, gift):
        record = gift.to_record()
        assert record["hotchpot_status"] == "pending"
        assert record["date_of_gift"] == "2020-01-01"
        assert record["inflation_adjusted_value"] is None
