"""Keyword payloads accepted by the registry service.

The HTTP layer validates bodies with the request schemas first; the models
here share their field types so the service applies the same limits when it
is called directly with loosely typed values.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from app.schemas.fields import (
    BarangayCode,
    ExtensionName,
    HouseNumber,
    Label,
    MiddleName,
    Money,
    MonthCount,
    Notes,
    OccupationCode,
    PersonName,
    PlaceName,
    PositiveCount,
    RecordId,
    Relationship,
)
from civreg.enums import (
    SECTOR_FLAGS,
    CivilStatus,
    EducationLevel,
    EmploymentStatus,
    FamilyPosition,
    HouseholdType,
    HouseholdUnit,
    Sex,
    SubdivisionType,
    TenureStatus,
)
from civreg.errors import ValidationError


class _Payload(BaseModel):
    """Partial payload; only keys the caller passed survive validation.

    Fields annotated without ``None`` but defaulting to it may be omitted but
    never cleared.
    """

    model_config = ConfigDict(extra="forbid")

    @field_validator("*", mode="before")
    @classmethod
    def _blank_as_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ResidentPayload(_Payload):
    first_name: PersonName = None
    middle_name: MiddleName | None = None
    last_name: PersonName = None
    extension_name: ExtensionName | None = None
    birthdate: date = None
    sex: Sex = None
    civil_status: CivilStatus | None = None
    education_attainment: EducationLevel | None = None
    is_graduate: bool = None
    employment_status: EmploymentStatus | None = None
    occupation_code: OccupationCode | None = None
    occupation: Label | None = None
    monthly_income: Money | None = None
    barangay_code: BarangayCode | None = None

    is_migrant: bool = None
    is_person_with_disability: bool = None
    is_solo_parent: bool = None
    is_indigenous_people: bool = None
    is_overseas_worker: bool = None
    is_registered_senior_citizen: bool = None

    @field_validator("monthly_income")
    @classmethod
    def _to_centavos(cls, value: Decimal | None) -> Decimal | None:
        if value is None:
            return None
        return value.quantize(Decimal("0.01"))


class MembershipPayload(_Payload):
    family_position: FamilyPosition | None = None
    relationship_to_head: Relationship | None = None
    position_notes: Notes | None = None


class MembershipUpdatePayload(MembershipPayload):
    is_active: bool = None


class HouseholdPayload(_Payload):
    barangay_code: BarangayCode | None = None
    subdivision_id: RecordId | None = None
    street_id: RecordId | None = None
    house_number: HouseNumber | None = None
    household_type: HouseholdType | None = None
    tenure_status: TenureStatus | None = None
    tenure_others_specify: Label | None = None
    household_unit: HouseholdUnit | None = None
    total_families: PositiveCount = None


class HouseholdUpdatePayload(HouseholdPayload):
    head_resident_id: RecordId | None = None


class SubdivisionPayload(_Payload):
    name: PlaceName
    type: SubdivisionType
    barangay_code: BarangayCode | None = None
    description: Notes | None = None


class StreetPayload(_Payload):
    name: PlaceName
    barangay_code: BarangayCode | None = None
    subdivision_id: RecordId | None = None
    description: Notes | None = None


class MigrantPayload(_Payload):
    previous_barangay_code: BarangayCode | None = None
    date_of_transfer: date | None = None
    reason_for_transferring: Notes | None = None
    duration_of_stay_current_months: MonthCount | None = None
    intends_to_return: bool | None = None


MEMBERSHIP_KEYS = frozenset(MembershipPayload.model_fields)
RESIDENT_REQUIRED = ("first_name", "last_name", "birthdate", "sex")

# Attributes whose change forces the derived sector flags to be recomputed.
CLASSIFICATION_INPUTS = frozenset(
    {"birthdate", "employment_status", "education_attainment", "is_graduate"}
)
# Resident attributes that feed household aggregates.
AGGREGATE_INPUTS = frozenset({"monthly_income", "is_migrant", "last_name"})
PLACEMENT_FIELDS = ("barangay_code", "subdivision_id", "street_id")


def validate_payload(
    model: type[_Payload],
    fields: Mapping[str, Any],
    *,
    required: Iterable[str] = (),
) -> dict[str, Any]:
    """Validate ``fields`` with ``model`` and return the keys that were passed.

    The first failing field becomes :attr:`ValidationError.field`; the full
    list of pydantic errors travels in ``details``.
    """

    try:
        parsed = model.model_validate(dict(fields))
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        first = errors[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(
            f"{field}: {first['msg']}" if field else first["msg"],
            field=field,
            details={"errors": errors},
        ) from exc
    payload = parsed.model_dump(exclude_unset=True)
    for key in required:
        if payload.get(key) is None:
            raise ValidationError(f"{key} is required", field=key)
    return payload


def normalize_flags(flags: Iterable[str]) -> list[str]:
    """Accept ``senior_citizen`` or ``is_senior_citizen`` style names."""

    normalized: list[str] = []
    for raw in flags:
        name = str(raw).strip().lower()
        if not name:
            continue
        if not name.startswith("is_"):
            name = f"is_{name}"
        if name not in SECTOR_FLAGS:
            raise ValidationError(f"Unknown sector flag {raw!r}", field="flags")
        if name not in normalized:
            normalized.append(name)
    return normalized


__all__ = [
    "AGGREGATE_INPUTS",
    "CLASSIFICATION_INPUTS",
    "HouseholdPayload",
    "HouseholdUpdatePayload",
    "MEMBERSHIP_KEYS",
    "MembershipPayload",
    "MembershipUpdatePayload",
    "MigrantPayload",
    "PLACEMENT_FIELDS",
    "RESIDENT_REQUIRED",
    "ResidentPayload",
    "StreetPayload",
    "SubdivisionPayload",
    "normalize_flags",
    "validate_payload",
]
