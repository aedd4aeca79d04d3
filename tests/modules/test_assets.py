"""Tests for estate assets and their per-type details."""

from decimal import Decimal

import pytest

from succession_kernel.domain.values import Money, Percentage
from succession_kernel.exceptions import AssetDetailsError
from succession_modules.assets import (
    AssetType,
    BusinessDetails,
    EstateAsset,
    FinancialDetails,
    LandDetails,
    VehicleDetails,
    details_from_record,
    details_to_record,
)


class TestAssetDetails:
    """Tests for per-variant asset detail validation."""

    def test_land_normalises_acreage(self):
        details = LandDetails(title_number="NRB/123", county="Nairobi", acreage="2.5")
        assert details.acreage == Decimal("2.5")
        assert details.asset_type is AssetType.LAND

    def test_land_rejects_zero_acreage(self):
        with pytest.raises(AssetDetailsError):
            LandDetails(title_number="NRB/123", county="Nairobi", acreage=Decimal("0"))

    def test_land_rejects_garbage_acreage(self):
        with pytest.raises(AssetDetailsError):
            LandDetails(title_number="NRB/123", county="Nairobi", acreage="lots")

    def test_financial_requires_account(self):
        with pytest.raises(AssetDetailsError):
            FinancialDetails(institution="KCB", account_number="  ")

    def test_vehicle_year_plausible(self):
        with pytest.raises(AssetDetailsError):
            VehicleDetails(registration_number="KAA 001A", make="Toyota", model="Hilux", year=1850)

    def test_business_ownership_coerced(self):
        details = BusinessDetails(business_name="Duka Ltd", registration_number="PVT-1", ownership=Decimal("60"))
        assert details.ownership == Percentage(Decimal("60"))

    def test_business_zero_ownership_rejected(self):
        with pytest.raises(AssetDetailsError):
            BusinessDetails(business_name="Duka Ltd", registration_number="PVT-1", ownership=Decimal("0"))


class TestDetailsRecord:
    """Tests for asset detail serialization."""

    def test_round_trip_business(self):
        details = BusinessDetails(business_name="Duka Ltd", registration_number="PVT-1", ownership=Decimal("60"))
        assert details_from_record(details_to_record(details)) == details

    def test_unknown_type(self):
        with pytest.raises(AssetDetailsError):
            details_from_record({"asset_type": "spaceship"})

    def test_unexpected_field(self):
        with pytest.raises(AssetDetailsError):
            details_from_record({"asset_type": "other", "description": "Cattle", "colour": "brown"})

    def test_missing_field(self):
        with pytest.raises(AssetDetailsError):
            details_from_record({"asset_type": "vehicle", "make": "Toyota"})


class TestEstateAsset:
    """Tests for the estate asset entity."""

    def test_asset_type_follows_details(self):
        asset = EstateAsset(
            asset_id="A-1",
            estate_id="EST-1",
            description="Shamba in Kiambu",
            details=LandDetails(title_number="KBU/9", county="Kiambu", acreage=Decimal("1")),
            current_value=Money.of("3000000", "KES"),
        )
        assert asset.asset_type is AssetType.LAND
        record = asset.to_record()
        assert record["details"]["asset_type"] == "land"
        assert record["current_value"] == {"amount": "3000000", "currency": "KES"}

    def test_description_required(self):
        with pytest.raises(AssetDetailsError):
            EstateAsset(
                asset_id="A-1",
                estate_id="EST-1",
                description="",
                details=LandDetails(title_number="KBU/9", county="Kiambu", acreage=Decimal("1")),
                current_value=Money.of("1", "KES"),
            )
