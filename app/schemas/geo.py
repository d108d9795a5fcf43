from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from app.schemas.fields import BarangayCode, Notes, PlaceName, RecordId
from civreg.enums import IncomeClass, SubdivisionType


class BarangayChainOut(BaseModel):
    barangay_code: str
    barangay_name: str
    city_municipality_code: str
    city_municipality_name: str
    province_code: str | None
    province_name: str | None
    region_code: str
    region_name: str
    is_independent: bool

    model_config = {
        "from_attributes": True,
    }


class SubdivisionCreate(BaseModel):
    name: PlaceName
    type: SubdivisionType
    barangay_code: BarangayCode | None = None
    description: Notes | None = None

    model_config = ConfigDict(extra="forbid")


class SubdivisionOut(BaseModel):
    id: int
    name: str
    type: SubdivisionType
    barangay_code: str
    description: str | None
    is_active: bool
    created_at: datetime

    model_config = {
        "from_attributes": True,
    }


class StreetCreate(BaseModel):
    name: PlaceName
    barangay_code: BarangayCode | None = None
    subdivision_id: RecordId | None = None
    description: Notes | None = None

    model_config = ConfigDict(extra="forbid")


class StreetOut(BaseModel):
    id: int
    name: str
    barangay_code: str
    subdivision_id: int | None
    description: str | None
    is_active: bool
    created_at: datetime

    model_config = {
        "from_attributes": True,
    }


class OccupationOut(BaseModel):
    code: str
    title: str
    level: int
    parent_code: str | None

    model_config = {
        "from_attributes": True,
    }


class IncomeClassOut(BaseModel):
    monthly_income: Decimal
    income_class: IncomeClass


__all__ = [
    "BarangayChainOut",
    "IncomeClassOut",
    "OccupationOut",
    "StreetCreate",
    "StreetOut",
    "SubdivisionCreate",
    "SubdivisionOut",
]
