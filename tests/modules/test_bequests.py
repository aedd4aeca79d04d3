"""
Tests for bequest assignments and disinheritance records.

Covers:
- Share-value validation per share type
- Conditions: validation, evaluation, takes-effect
- Alternates and the bequest lifecycle
- Disinheritance strength scoring
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from succession_engines.conflict_detector import ConflictDetector, ConflictType
from succession_kernel.domain.values import Money, Percentage
from succession_kernel.exceptions import (
    InvalidTransitionError,
    PreconditionError,
    ReasonTooShortError,
    ValidationError,
)
from succession_modules.bequests import (
    BeneficiaryFacts,
    BeneficiaryRef,
    BequestAssignment,
    BequestCondition,
    BequestConditionType,
    BequestStatus,
    DisinheritanceRecord,
    LegalBasisStrength,
    RelationshipTag,
    ShareType,
    strength_for_score,
)

AMINA = BeneficiaryRef("P-AMINA", "Amina", RelationshipTag.CHILD)
BARAKA = BeneficiaryRef("P-BARAKA", "Baraka", RelationshipTag.CHILD)
WANJIKU = BeneficiaryRef("P-WANJIKU", "Wanjiku", RelationshipTag.SPOUSE)


@pytest.fixture
def land_bequest(deterministic_clock):
    return BequestAssignment(
        assignment_id="B-LAND",
        estate_id="EST-1",
        beneficiary=AMINA,
        share_type=ShareType.SPECIFIC_ASSET,
        asset_id="A-LAND",
        description="The Kiambu shamba",
        clock=deterministic_clock,
    )


class TestShareValidation:
    """Tests for share-value validation per share type."""

    def test_residuary_defaults_to_whole_residue(self, deterministic_clock):
        bequest = BequestAssignment("B-R", "EST-1", WANJIKU, ShareType.RESIDUARY, clock=deterministic_clock)
        assert bequest.percentage == Percentage(Decimal("100"))

    def test_percentage_needs_percentage(self, deterministic_clock):
        with pytest.raises(ValidationError):
            BequestAssignment("B-P", "EST-1", AMINA, ShareType.PERCENTAGE, clock=deterministic_clock)

    def test_only_one_value_spec(self, deterministic_clock):
        with pytest.raises(ValidationError):
            BequestAssignment(
                "B-P", "EST-1", AMINA, ShareType.PERCENTAGE,
                percentage=Percentage(Decimal("10")), fixed_amount=Money.of("5", "KES"),
                clock=deterministic_clock,
            )

    def test_zero_percentage(self, deterministic_clock):
        with pytest.raises(ValidationError):
            BequestAssignment(
                "B-P", "EST-1", AMINA, ShareType.PERCENTAGE,
                percentage=Percentage.zero(), clock=deterministic_clock,
            )

    def test_zero_fixed_amount(self, deterministic_clock):
        with pytest.raises(ValidationError):
            BequestAssignment(
                "B-F", "EST-1", AMINA, ShareType.FIXED_AMOUNT,
                fixed_amount=Money.zero("KES"), clock=deterministic_clock,
            )

    def test_own_alternate(self, deterministic_clock):
        with pytest.raises(ValidationError):
            BequestAssignment(
                "B-P", "EST-1", AMINA, ShareType.PERCENTAGE,
                percentage=Percentage(Decimal("10")), alternate_assignment_id="B-P",
                clock=deterministic_clock,
            )

    def test_description_too_long(self, deterministic_clock):
        with pytest.raises(ValidationError):
            BequestAssignment(
                "B-P", "EST-1", AMINA, ShareType.PERCENTAGE,
                percentage=Percentage(Decimal("10")), description="x" * 501,
                clock=deterministic_clock,
            )


class TestConditions:
    """Tests for bequest conditions."""

    def test_age_condition_needs_age(self):
        with pytest.raises(ValidationError):
            BequestCondition(BequestConditionType.AGE_REQUIREMENT, "Reach majority")

    def test_marriage_defaults_to_expecting_marriage(self):
        condition = BequestCondition(BequestConditionType.MARRIAGE, "Be married")
        assert condition.expects_marriage is True

    def test_duplicate_condition_rejected(self, land_bequest):
        condition = BequestCondition(BequestConditionType.AGE_REQUIREMENT, "Reach 25", required_age=25)
        land_bequest.add_condition(condition)
        with pytest.raises(ValidationError):
            land_bequest.add_condition(condition)
        assert len(land_bequest.conditions) == 1

    def test_contradictory_marriage(self, land_bequest):
        land_bequest.add_condition(BequestCondition(BequestConditionType.MARRIAGE, "Be married"))
        with pytest.raises(ValidationError):
            land_bequest.add_condition(
                BequestCondition(BequestConditionType.MARRIAGE, "Be unmarried", expects_marriage=False)
            )

    def test_takes_effect(self, land_bequest):
        land_bequest.add_condition(
            BequestCondition(BequestConditionType.AGE_REQUIREMENT, "Reach 25", required_age=25)
        )
        land_bequest.add_condition(
            BequestCondition(BequestConditionType.SURVIVAL, "Survive 30 days", survival_days=30)
        )
        assert land_bequest.check_takes_effect(BeneficiaryFacts(age=30, days_survived=45)) is True
        assert land_bequest.check_takes_effect(BeneficiaryFacts(age=20, days_survived=45)) is False
        assert land_bequest.check_takes_effect(BeneficiaryFacts(age=30)) is None
        assert land_bequest.check_takes_effect(BeneficiaryFacts(age=30, days_survived=45, is_alive=False)) is False

    def test_unconditional_takes_effect(self, land_bequest):
        assert land_bequest.check_takes_effect(BeneficiaryFacts()) is True

    def test_conditions_frozen_once_active(self, land_bequest):
        land_bequest.activate("system")
        with pytest.raises(PreconditionError):
            land_bequest.add_condition(BequestCondition(BequestConditionType.EDUCATION, "Graduate"))


class TestAlternates:
    """Tests for alternate assignments."""

    def test_add_alternate_links_both_ways(self, land_bequest):
        alternate = land_bequest.add_alternate("B-LAND-ALT", BARAKA)
        assert land_bequest.alternate_assignment_id == "B-LAND-ALT"
        assert alternate.primary_assignment_id == "B-LAND"
        assert alternate.is_alternate
        assert alternate.asset_id == "A-LAND"

    def test_alternate_does_not_duplicate_asset(self, land_bequest):
        alternate = land_bequest.add_alternate("B-LAND-ALT", BARAKA)
        conflicts = ConflictDetector().check_duplicate_assets([land_bequest, alternate])
        assert conflicts == []

    def test_same_beneficiary_rejected(self, land_bequest):
        with pytest.raises(ValidationError):
            land_bequest.add_alternate("B-LAND-ALT", AMINA)
        assert land_bequest.alternate_assignment_id is None

    def test_only_one_alternate(self, land_bequest):
        land_bequest.add_alternate("B-LAND-ALT", BARAKA)
        with pytest.raises(PreconditionError):
            land_bequest.add_alternate("B-LAND-ALT2", WANJIKU)

    def test_engine_sees_assignments(self, deterministic_clock):
        shares = [
            BequestAssignment(
                f"B-{i}", "EST-1", b, ShareType.PERCENTAGE,
                percentage=Percentage(Decimal("40")), clock=deterministic_clock,
            )
            for i, b in enumerate((AMINA, BARAKA, WANJIKU))
        ]
        report = ConflictDetector().detect(estate_id="EST-1", assignments=shares)
        overflow = report.of_type(ConflictType.PERCENTAGE_OVERFLOW)
        assert overflow[0].overflow == Decimal("20")


class TestLifecycle:
    """Tests for the bequest status machine."""

    def test_activate_and_fulfil(self, land_bequest):
        land_bequest.activate("system")
        land_bequest.fulfil("executor-1")
        assert land_bequest.status == BequestStatus.FULFILLED
        assert land_bequest.is_active

    @pytest.mark.parametrize("method", ["lapse", "disclaim"])
    def test_ending_transitions(self, land_bequest, method):
        land_bequest.activate("system")
        getattr(land_bequest, method)("Beneficiary predeceased the testator", "executor-1")
        assert not land_bequest.is_active

    def test_revoke_from_planned(self, land_bequest):
        land_bequest.revoke("Superseded by a codicil", "testator")
        assert land_bequest.status == BequestStatus.REVOKED

    def test_fulfil_requires_active(self, land_bequest):
        with pytest.raises(InvalidTransitionError):
            land_bequest.fulfil("executor-1")
        assert land_bequest.status == BequestStatus.PLANNED

    def test_reason_required(self, land_bequest):
        land_bequest.activate("system")
        with pytest.raises(ReasonTooShortError):
            land_bequest.lapse("dead", "executor-1")
        assert land_bequest.status == BequestStatus.ACTIVE

    def test_reason_length_follows_policy(self, policy, deterministic_clock):
        strict = replace(policy, minimum_reason_length=40)
        bequest = BequestAssignment(
            "B-LAND", "EST-1", AMINA, ShareType.SPECIFIC_ASSET, asset_id="A-LAND",
            policy=strict, clock=deterministic_clock,
        )
        alternate = bequest.add_alternate("B-LAND-ALT", BARAKA)
        assert alternate.policy is strict
        bequest.activate("system")
        with pytest.raises(ReasonTooShortError):
            bequest.lapse("Beneficiary predeceased the testator", "executor-1")
        assert bequest.status == BequestStatus.ACTIVE

    def test_adeem_specific_only(self, deterministic_clock, land_bequest):
        land_bequest.activate("system")
        land_bequest.adeem("The shamba was sold before death", "executor-1")
        assert land_bequest.status == BequestStatus.ADEEMED

        pecuniary = BequestAssignment(
            "B-F", "EST-1", BARAKA, ShareType.FIXED_AMOUNT,
            fixed_amount=Money.of("50000", "KES"), clock=deterministic_clock,
        )
        pecuniary.activate("system")
        with pytest.raises(PreconditionError):
            pecuniary.adeem("Nothing to adeem here at all", "executor-1")

    def test_fingerprint_tracks_status(self, land_bequest):
        before = land_bequest.fingerprint()
        land_bequest.activate("system")
        assert land_bequest.fingerprint() != before


class TestDisinheritance:
    """Tests for disinheritance records."""

    @pytest.mark.parametrize(
        "score, expected",
        [
            (0, LegalBasisStrength.WEAK),
            (39, LegalBasisStrength.WEAK),
            (40, LegalBasisStrength.MODERATE),
            (69, LegalBasisStrength.MODERATE),
            (70, LegalBasisStrength.STRONG),
            (100, LegalBasisStrength.STRONG),
        ],
    )
    def test_strength_bands(self, score, expected):
        assert strength_for_score(score) == expected

    def test_out_of_range_score(self):
        with pytest.raises(ValidationError):
            strength_for_score(101)

    def test_from_score(self):
        record = DisinheritanceRecord.from_score(
            legal_basis_score=35,
            record_id="DIS-1",
            estate_id="EST-1",
            person_id="P-OTIENO",
            person_name="Otieno",
            relationship=RelationshipTag.CHILD,
            reason="Estranged and provided for during lifetime",
        )
        assert record.legal_strength == LegalBasisStrength.WEAK

    def test_reason_required(self):
        with pytest.raises(ReasonTooShortError):
            DisinheritanceRecord(
                "DIS-1", "EST-1", "P-OTIENO", "Otieno", RelationshipTag.CHILD,
                "rude", LegalBasisStrength.STRONG,
            )

    def test_reason_length_follows_policy(self, policy):
        with pytest.raises(ReasonTooShortError):
            DisinheritanceRecord(
                "DIS-1", "EST-1", "P-OTIENO", "Otieno", RelationshipTag.CHILD,
                "Estranged for years", LegalBasisStrength.STRONG,
                policy=replace(policy, minimum_reason_length=40),
            )
