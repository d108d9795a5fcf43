from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from app.schemas.fields import (
    BarangayCode,
    ExtensionName,
    Label,
    MiddleName,
    Money,
    MonthCount,
    Notes,
    OccupationCode,
    PersonName,
    RecordId,
    Relationship,
)
from civreg.enums import CivilStatus, EducationLevel, EmploymentStatus, FamilyPosition, Sex


class ResidentFields(BaseModel):
    middle_name: MiddleName | None = None
    extension_name: ExtensionName | None = None
    civil_status: CivilStatus | None = None
    education_attainment: EducationLevel | None = None
    is_graduate: bool = False
    employment_status: EmploymentStatus | None = None
    occupation_code: OccupationCode | None = None
    occupation: Label | None = None
    monthly_income: Money | None = None
    barangay_code: BarangayCode | None = None

    is_migrant: bool = False
    is_person_with_disability: bool = False
    is_solo_parent: bool = False
    is_indigenous_people: bool = False
    is_overseas_worker: bool = False
    is_registered_senior_citizen: bool = False

    model_config = ConfigDict(extra="forbid")


class ResidentCreate(ResidentFields):
    first_name: PersonName
    last_name: PersonName
    birthdate: date
    sex: Sex

    household_id: RecordId | None = None
    family_position: FamilyPosition | None = None
    relationship_to_head: Relationship | None = None


class ResidentUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""

    first_name: PersonName | None = None
    middle_name: MiddleName | None = None
    last_name: PersonName | None = None
    extension_name: ExtensionName | None = None
    birthdate: date | None = None
    sex: Sex | None = None
    civil_status: CivilStatus | None = None
    education_attainment: EducationLevel | None = None
    is_graduate: bool | None = None
    employment_status: EmploymentStatus | None = None
    occupation_code: OccupationCode | None = None
    occupation: Label | None = None
    monthly_income: Money | None = None
    barangay_code: BarangayCode | None = None

    is_migrant: bool | None = None
    is_person_with_disability: bool | None = None
    is_solo_parent: bool | None = None
    is_indigenous_people: bool | None = None
    is_overseas_worker: bool | None = None
    is_registered_senior_citizen: bool | None = None

    model_config = ConfigDict(extra="forbid")


class ResidentOut(BaseModel):
    id: int
    first_name: str
    middle_name: str | None
    last_name: str
    extension_name: str | None
    birthdate: date
    sex: Sex
    civil_status: CivilStatus | None
    education_attainment: EducationLevel | None
    is_graduate: bool
    employment_status: EmploymentStatus | None
    occupation_code: str | None
    occupation_title: str | None
    occupation: str | None
    monthly_income: Decimal | None

    household_id: int | None
    household_code: str | None
    barangay_code: str
    city_municipality_code: str
    province_code: str | None
    region_code: str

    is_senior_citizen: bool
    is_labor_force: bool
    is_employed: bool
    is_unemployed: bool
    is_out_of_school_children: bool
    is_out_of_school_youth: bool
    is_migrant: bool
    is_person_with_disability: bool
    is_solo_parent: bool
    is_indigenous_people: bool
    is_overseas_worker: bool
    is_registered_senior_citizen: bool

    is_active: bool
    created_by: str | None
    updated_by: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
    }


class MigrantInfoIn(BaseModel):
    """Previous residence of a migrant; omitted fields keep their stored value."""

    previous_barangay_code: BarangayCode | None = None
    date_of_transfer: date | None = None
    reason_for_transferring: Notes | None = None
    duration_of_stay_current_months: MonthCount | None = None
    intends_to_return: bool | None = None

    model_config = ConfigDict(extra="forbid")


class MigrantInfoOut(BaseModel):
    id: int
    resident_id: int
    previous_barangay_code: str | None
    previous_city_municipality_code: str | None
    previous_province_code: str | None
    previous_region_code: str | None
    date_of_transfer: date | None
    reason_for_transferring: str | None
    duration_of_stay_current_months: int | None
    intends_to_return: bool | None
    is_active: bool
    created_by: str | None
    updated_by: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
    }


__all__ = [
    "MigrantInfoIn",
    "MigrantInfoOut",
    "ResidentCreate",
    "ResidentOut",
    "ResidentUpdate",
]
