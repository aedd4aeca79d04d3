"""
Tests for the estate aggregate and the estate domain rules.

Covers:
- Lifecycle and the frozen latch
- Membership invariants (ownership, duplicates, freeze)
- Valuation with hotchpot additions and insolvency
- Domain rules for reclaiming gifts and barring debts
"""

from datetime import date
from decimal import Decimal

import pytest

from succession_kernel.domain.events import EstateFrozen, EstateUnfrozen
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
from succession_modules.assets import EstateAsset, OtherDetails
from succession_modules.bequests import BeneficiaryRef, BequestAssignment, RelationshipTag, ShareType
from succession_modules.debts import DebtLedgerEntry, DebtStatus, DebtType
from succession_modules.estate import (
    DOMAIN_RULES,
    Estate,
    EstateStatus,
    bar_expired_debts,
    reclaim_gift_on_failed_condition,
    reclaim_gift_on_proven_fraud,
)
from succession_modules.gifts import (
    ContestOutcome,
    GiftConditionType,
    GiftHotchpotStatus,
    GiftLedgerEntry,
    GiftType,
)


def _kes(amount):
    return Money.of(amount, "KES")


@pytest.fixture
def estate(deterministic_clock, policy):
    return Estate(estate_id="EST-1", deceased_ref="ID-12345678", policy=policy, clock=deterministic_clock)


@pytest.fixture
def make_asset():
    def _make(asset_id, value, estate_id="EST-1"):
        return EstateAsset(
            asset_id=asset_id,
            estate_id=estate_id,
            description=f"Asset {asset_id}",
            details=OtherDetails(description="Household goods"),
            current_value=_kes(value),
        )
    return _make


@pytest.fixture
def make_debt(deterministic_clock, policy):
    def _make(debt_id, principal, estate_id="EST-1", incurred=date(2022, 1, 1)):
        return DebtLedgerEntry(
            debt_id=debt_id,
            estate_id=estate_id,
            debt_type=DebtType.PERSONAL_LOAN,
            creditor_name="Sacco",
            description=f"Loan {debt_id}",
            principal=_kes(principal),
            incurred_date=incurred,
            policy=policy,
            clock=deterministic_clock,
        )
    return _make


@pytest.fixture
def make_gift(deterministic_clock, policy):
    def _make(gift_id, value, estate_id="EST-1"):
        return GiftLedgerEntry(
            gift_id=gift_id,
            estate_id=estate_id,
            recipient_id="P-AMINA",
            gift_type=GiftType.CASH_GIFT,
            description="Cash to start a business",
            value_at_gift_time=_kes(value),
            date_of_gift=date(2020, 1, 1),
            policy=policy,
            clock=deterministic_clock,
        )
    return _make


class TestLifecycle:
    """Tests for the estate lifecycle."""

    def test_record_death_freezes(self, estate):
        estate.record_death(date(2023, 12, 1), "DC-998877", "registrar")
        assert estate.status == EstateStatus.FROZEN
        assert estate.is_frozen
        assert estate.date_of_death == date(2023, 12, 1)
        assert isinstance(estate.pull_facts()[0], EstateFrozen)

    def test_death_in_future(self, estate):
        with pytest.raises(ValidationError):
            estate.record_death(date(2024, 2, 1), "DC-998877", "registrar")
        assert not estate.is_frozen

    def test_certificate_required(self, estate):
        with pytest.raises(ValidationError):
            estate.record_death(date(2023, 12, 1), "", "registrar")

    def test_full_lifecycle(self, estate):
        estate.activate("testator")
        estate.record_death(date(2023, 12, 1), "DC-998877", "registrar")
        estate.open_probate("court", grant_ref="P&A-80")
        estate.begin_administration("administrator")
        estate.mark_distributed("administrator")
        estate.close("administrator")
        assert estate.status == EstateStatus.CLOSED
        assert estate.is_frozen

    def test_skip_probate_rejected(self, estate):
        estate.record_death(date(2023, 12, 1), "DC-998877", "registrar")
        with pytest.raises(InvalidTransitionError):
            estate.begin_administration("administrator")

    def test_unfreeze_corrects_record(self, estate):
        estate.record_death(date(2023, 12, 1), "DC-998877", "registrar")
        estate.unfreeze("Death certificate issued for the wrong person", "registrar")
        assert estate.status == EstateStatus.ACTIVE
        assert not estate.is_frozen
        assert estate.date_of_death is None
        assert isinstance(estate.pull_facts()[-1], EstateUnfrozen)

    def test_unfreeze_requires_reason(self, estate):
        estate.record_death(date(2023, 12, 1), "DC-998877", "registrar")
        with pytest.raises(ReasonTooShortError):
            estate.unfreeze("oops", "registrar")
        assert estate.is_frozen


class TestMembership:
    """Tests for estate membership."""

    def test_add_and_remove(self, estate, make_asset):
        estate.add_asset(make_asset("A-1", "100"))
        assert estate.asset_ids == {"A-1"}
        estate.remove_asset("A-1")
        assert estate.asset_ids == set()

    def test_duplicate(self, estate, make_asset):
        estate.add_asset(make_asset("A-1", "100"))
        with pytest.raises(DuplicateMembershipError):
            estate.add_asset(make_asset("A-1", "100"))

    def test_foreign_entity(self, estate, make_asset):
        with pytest.raises(EstateOwnershipError):
            estate.add_asset(make_asset("A-1", "100", estate_id="EST-2"))
        assert estate.asset_ids == set()

    def test_remove_non_member(self, estate):
        with pytest.raises(PreconditionError):
            estate.remove_debt("D-404")

    def test_frozen_rejects_assets_debts_gifts(self, estate, make_asset, make_debt, make_gift):
        estate.record_death(date(2023, 12, 1), "DC-998877", "registrar")
        with pytest.raises(EstateFrozenError):
            estate.add_asset(make_asset("A-1", "100"))
        with pytest.raises(EstateFrozenError):
            estate.add_debt(make_debt("D-1", "100"))
        with pytest.raises(EstateFrozenError):
            estate.add_gift(make_gift("G-1", "100"))

    def test_frozen_allows_bequests(self, estate, deterministic_clock):
        estate.record_death(date(2023, 12, 1), "DC-998877", "registrar")
        bequest = BequestAssignment(
            "B-R", "EST-1", BeneficiaryRef("P-W", "Wanjiku", RelationshipTag.SPOUSE),
            ShareType.RESIDUARY, clock=deterministic_clock,
        )
        estate.add_bequest(bequest)
        assert estate.bequest_ids == {"B-R"}


class TestValuation:
    """Tests for estate valuation."""

    def test_net_value_with_hotchpot(self, estate, make_asset, make_debt, make_gift):
        asset = make_asset("A-1", "3000000")
        debt = make_debt("D-1", "500000")
        gift = make_gift("G-1", "1000000")
        for add, entity in ((estate.add_asset, asset), (estate.add_debt, debt), (estate.add_gift, gift)):
            add(entity)
        estate.record_death(date(2024, 1, 1), "DC-1", "registrar")
        gift.calculate_hotchpot_value(date(2024, 1, 1), Decimal("0.05"))
        gift.include_in_hotchpot("executor-1")

        valuation = estate.recompute_values([asset], [debt], [gift])

        assert valuation.gross_asset_value == _kes("3000000")
        assert valuation.total_liabilities == _kes("500000")
        assert valuation.hotchpot_additions == _kes("1215506.25")
        assert valuation.net_estate_value == _kes("3715506.25")
        assert not valuation.is_insolvent
        assert estate.can_distribute

    def test_pending_gift_not_added(self, estate, make_gift):
        gift = make_gift("G-1", "1000")
        estate.add_gift(gift)
        assert estate.recompute_values([], [], [gift]).hotchpot_additions.is_zero

    def test_settled_debt_not_a_liability(self, estate, make_debt):
        debt = make_debt("D-1", "500")
        estate.add_debt(debt)
        debt.record_payment(_kes("500"), "executor-1")
        assert estate.recompute_values([], [debt], []).total_liabilities.is_zero

    def test_disputed_debt_still_counts(self, estate, make_debt):
        debt = make_debt("D-1", "500")
        estate.add_debt(debt)
        debt.dispute("Creditor has no signed agreement", "P-AMINA")
        assert estate.recompute_values([], [debt], []).total_liabilities == _kes("500")

    def test_insolvent_floor_and_shortfall(self, estate, make_asset, make_debt, captured_logs):
        asset = make_asset("A-1", "100")
        debt = make_debt("D-1", "250")
        estate.add_asset(asset)
        estate.add_debt(debt)
        valuation = estate.recompute_values([asset], [debt], [])
        assert valuation.net_estate_value.is_zero
        assert valuation.shortfall == _kes("150")
        assert valuation.is_insolvent
        assert any(r["message"] == "estate_insolvent" for r in captured_logs())

    def test_non_members_ignored(self, estate, make_asset):
        assert estate.recompute_values([make_asset("A-9", "100")], [], []).gross_asset_value.is_zero

    def test_foreign_entity_raises(self, estate, make_asset):
        with pytest.raises(EstateOwnershipError):
            estate.recompute_values([make_asset("A-9", "100", estate_id="EST-2")], [], [])

    def test_blockers_before_death(self, estate):
        blockers = estate.distribution_blockers()
        assert "estate is not frozen; no death has been recorded" in blockers
        assert "estate has not been valued" in blockers
        assert not estate.can_distribute


class TestDomainRules:
    """Tests for the estate domain rules."""

    def test_rule_catalogue(self):
        assert [r.name for r in DOMAIN_RULES] == [
            "reclaim_gift_on_failed_condition",
            "reclaim_gift_on_proven_fraud",
            "bar_expired_debts",
        ]

    def test_failed_reverting_condition_reclaims(self, make_gift):
        gift = make_gift("G-1", "1000")
        gift.set_condition(GiftConditionType.EDUCATION, "Complete a diploma course", reverts_to_estate=True)
        gift.mark_condition_failed("Dropped out in the first year", "executor-1")

        assert reclaim_gift_on_failed_condition(gift, "executor-1")
        assert gift.hotchpot_status == GiftHotchpotStatus.RECLAIMED
        assert not reclaim_gift_on_failed_condition(gift, "executor-1")

    def test_non_reverting_condition_left_alone(self, make_gift):
        gift = make_gift("G-1", "1000")
        gift.set_condition(GiftConditionType.EDUCATION, "Complete a diploma course")
        gift.mark_condition_failed("Dropped out in the first year", "executor-1")
        assert not reclaim_gift_on_failed_condition(gift)
        assert gift.hotchpot_status == GiftHotchpotStatus.PENDING

    def test_included_gift_skipped_with_warning(self, make_gift, captured_logs):
        gift = make_gift("G-1", "1000")
        gift.set_condition(GiftConditionType.EDUCATION, "Complete a diploma course", reverts_to_estate=True)
        gift.calculate_hotchpot_value(date(2024, 1, 1))
        gift.include_in_hotchpot("executor-1")
        gift.mark_condition_failed("Dropped out in the first year", "executor-1")
        assert not reclaim_gift_on_failed_condition(gift)
        assert any(r["message"] == "gift_reclaim_skipped" for r in captured_logs())

    def test_proven_fraud_reclaims(self, make_gift):
        gift = make_gift("G-1", "1000")
        gift.contest("Signature on the transfer was forged", "P-BARAKA")
        assert not reclaim_gift_on_proven_fraud(gift)
        gift.resolve_contest(ContestOutcome.FRAUD_PROVEN, "court")
        assert reclaim_gift_on_proven_fraud(gift, "court")
        assert gift.hotchpot_status == GiftHotchpotStatus.RECLAIMED

    def test_bar_expired_debts(self, make_debt):
        old = make_debt("D-OLD", "100", incurred=date(2016, 5, 1))
        recent = make_debt("D-NEW", "100", incurred=date(2022, 5, 1))
        assert bar_expired_debts([old, recent], date(2024, 1, 1)) == ["D-OLD"]
        assert old.status == DebtStatus.STATUTE_BARRED
        assert bar_expired_debts([old, recent], date(2024, 1, 1)) == []
