from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.fields import (
    BarangayCode,
    HouseNumber,
    Label,
    Notes,
    PositiveCount,
    RecordId,
    Relationship,
)
from civreg.enums import FamilyPosition, HouseholdType, HouseholdUnit, IncomeClass, TenureStatus


class HouseholdCreate(BaseModel):
    barangay_code: BarangayCode | None = None
    subdivision_id: RecordId | None = None
    street_id: RecordId | None = None
    house_number: HouseNumber | None = None
    household_type: HouseholdType | None = None
    tenure_status: TenureStatus | None = None
    tenure_others_specify: Label | None = None
    household_unit: HouseholdUnit | None = None
    total_families: PositiveCount = 1

    model_config = ConfigDict(extra="forbid")


class HouseholdUpdate(BaseModel):
    """Partial update; sending a placement field relocates the household."""

    barangay_code: BarangayCode | None = None
    subdivision_id: RecordId | None = None
    street_id: RecordId | None = None
    house_number: HouseNumber | None = None
    household_type: HouseholdType | None = None
    tenure_status: TenureStatus | None = None
    tenure_others_specify: Label | None = None
    household_unit: HouseholdUnit | None = None
    total_families: PositiveCount | None = None
    head_resident_id: RecordId | None = None

    model_config = ConfigDict(extra="forbid")


class HouseholdOut(BaseModel):
    id: int
    code: str
    house_number: str | None
    subdivision_id: int | None
    street_id: int | None
    barangay_code: str
    city_municipality_code: str
    province_code: str | None
    region_code: str

    head_resident_id: int | None
    household_name: str | None
    member_count: int
    migrant_count: int
    monthly_income: Decimal
    income_class: IncomeClass

    household_type: HouseholdType | None
    tenure_status: TenureStatus | None
    tenure_others_specify: str | None
    household_unit: HouseholdUnit | None
    total_families: int

    is_active: bool
    version: int
    created_by: str | None
    updated_by: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
    }


class MembershipCreate(BaseModel):
    resident_id: RecordId
    family_position: FamilyPosition | None = None
    relationship_to_head: Relationship | None = None
    position_notes: Notes | None = None
    transfer: bool = Field(
        default=False,
        description="Move the resident out of their current household first.",
    )
    make_head: bool = False

    model_config = ConfigDict(extra="forbid")


class MembershipUpdate(BaseModel):
    family_position: FamilyPosition | None = None
    relationship_to_head: Relationship | None = None
    position_notes: Notes | None = None
    is_active: bool | None = None

    model_config = ConfigDict(extra="forbid")


class MembershipOut(BaseModel):
    id: int
    household_id: int
    resident_id: int
    family_position: FamilyPosition | None
    relationship_to_head: str | None
    position_notes: str | None
    is_active: bool
    created_by: str | None
    updated_by: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
    }


__all__ = [
    "HouseholdCreate",
    "HouseholdOut",
    "HouseholdUpdate",
    "MembershipCreate",
    "MembershipOut",
    "MembershipUpdate",
]
