"""Estate asset holdings and the asset detail tagged union."""

from succession_modules.assets.models import (
    AssetDetails,
    AssetType,
    BusinessDetails,
    EstateAsset,
    FinancialDetails,
    LandDetails,
    OtherDetails,
    VehicleDetails,
    details_from_record,
    details_to_record,
)

__all__ = [
    "AssetDetails",
    "AssetType",
    "BusinessDetails",
    "EstateAsset",
    "FinancialDetails",
    "LandDetails",
    "OtherDetails",
    "VehicleDetails",
    "details_from_record",
    "details_to_record",
]
