"""
Estate Asset Models (``succession_modules.assets.models``).

Responsibility
--------------
Asset detail variants (land, financial, vehicle, business, other) as a
tagged union keyed by ``AssetType``, each validating its own fields, and
the ``EstateAsset`` holding an estate references by id.

Architecture position
---------------------
**Modules layer** -- pure data definitions. Used by the estate
orchestrator for valuation and by gifts that transfer a titled asset.

Invariants enforced
-------------------
* Every variant carries its tag as ``asset_type`` and validates in
  ``__post_init__``.
* ``details_from_record`` rejects an unknown tag instead of guessing.

Failure modes
-------------
* ``AssetDetailsError`` for a variant that fails its own validation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, ClassVar

from succession_kernel.domain.values import Money, Percentage
from succession_kernel.exceptions import AssetDetailsError


class AssetType(Enum):
    LAND = "land"
    FINANCIAL = "financial"
    VEHICLE = "vehicle"
    BUSINESS = "business"
    OTHER = "other"


def _require_text(variant: str, name: str, value: str) -> None:
    if not value or not value.strip():
        raise AssetDetailsError(variant, f"{name} is required")


@dataclass(frozen=True)
class LandDetails:
    asset_type: ClassVar[AssetType] = AssetType.LAND

    title_number: str
    county: str
    acreage: Decimal
    land_use: str = "residential"

    def __post_init__(self) -> None:
        _require_text("land", "title_number", self.title_number)
        _require_text("land", "county", self.county)
        try:
            acreage = Decimal(str(self.acreage))
        except (InvalidOperation, ValueError) as e:
            raise AssetDetailsError("land", f"acreage is not a number: {self.acreage!r}") from e
        if acreage <= 0:
            raise AssetDetailsError("land", "acreage must be positive")
        object.__setattr__(self, "acreage", acreage)


@dataclass(frozen=True)
class FinancialDetails:
    asset_type: ClassVar[AssetType] = AssetType.FINANCIAL

    institution: str
    account_number: str
    account_type: str = "savings"

    def __post_init__(self) -> None:
        _require_text("financial", "institution", self.institution)
        _require_text("financial", "account_number", self.account_number)


@dataclass(frozen=True)
class VehicleDetails:
    asset_type: ClassVar[AssetType] = AssetType.VEHICLE

    registration_number: str
    make: str
    model: str
    year: int

    def __post_init__(self) -> None:
        _require_text("vehicle", "registration_number", self.registration_number)
        _require_text("vehicle", "make", self.make)
        if not 1900 <= int(self.year) <= 2100:
            raise AssetDetailsError("vehicle", f"year {self.year} is not plausible")


@dataclass(frozen=True)
class BusinessDetails:
    asset_type: ClassVar[AssetType] = AssetType.BUSINESS

    business_name: str
    registration_number: str
    ownership: Percentage

    def __post_init__(self) -> None:
        _require_text("business", "business_name", self.business_name)
        _require_text("business", "registration_number", self.registration_number)
        if not isinstance(self.ownership, Percentage):
            object.__setattr__(self, "ownership", Percentage(self.ownership))
        if self.ownership.value <= 0:
            raise AssetDetailsError("business", "ownership must be above 0%")


@dataclass(frozen=True)
class OtherDetails:
    asset_type: ClassVar[AssetType] = AssetType.OTHER

    description: str

    def __post_init__(self) -> None:
        _require_text("other", "description", self.description)


AssetDetails = LandDetails | FinancialDetails | VehicleDetails | BusinessDetails | OtherDetails

_VARIANTS: dict[AssetType, type] = {
    AssetType.LAND: LandDetails,
    AssetType.FINANCIAL: FinancialDetails,
    AssetType.VEHICLE: VehicleDetails,
    AssetType.BUSINESS: BusinessDetails,
    AssetType.OTHER: OtherDetails,
}


def details_from_record(record: Mapping[str, Any]) -> AssetDetails:
    """Build the variant named by ``record["asset_type"]``."""
    tag = record.get("asset_type")
    try:
        asset_type = AssetType(tag)
    except ValueError as e:
        raise AssetDetailsError("asset", f"unknown asset_type {tag!r}") from e
    variant = _VARIANTS[asset_type]
    allowed = {f.name for f in fields(variant)}
    kwargs = {k: v for k, v in record.items() if k != "asset_type"}
    unknown = set(kwargs) - allowed
    if unknown:
        raise AssetDetailsError(asset_type.value, f"unexpected fields {sorted(unknown)}")
    if asset_type is AssetType.BUSINESS and "ownership" in kwargs:
        ownership = kwargs["ownership"]
        if isinstance(ownership, Mapping):
            kwargs["ownership"] = Percentage.from_record(ownership)
    try:
        return variant(**kwargs)
    except TypeError as e:
        raise AssetDetailsError(asset_type.value, str(e)) from e


def details_to_record(details: AssetDetails) -> dict[str, Any]:
    record: dict[str, Any] = {"asset_type": details.asset_type.value}
    for f in fields(details):
        value = getattr(details, f.name)
        if isinstance(value, Percentage):
            value = value.to_record()
        elif isinstance(value, Decimal):
            value = str(value)
        record[f.name] = value
    return record


@dataclass(frozen=True)
class EstateAsset:
    """An asset the estate references, valued at ``current_value``."""

    asset_id: str
    estate_id: str
    description: str
    details: AssetDetails
    current_value: Money

    def __post_init__(self) -> None:
        _require_text("asset", "asset_id", self.asset_id)
        _require_text("asset", "description", self.description)

    @property
    def asset_type(self) -> AssetType:
        return self.details.asset_type

    def to_record(self) -> dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "estate_id": self.estate_id,
            "description": self.description,
            "details": details_to_record(self.details),
            "current_value": self.current_value.to_record(),
        }
