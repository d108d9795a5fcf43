"""Sector classification of residents.

Every function here is pure: the same snapshot and evaluation date always
produce the same flags. Callers persist the result on the resident row and
recompute it whenever birthdate, employment status or education change.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date

from .enums import EducationLevel, EmploymentStatus
from .errors import ValidationError

SENIOR_CITIZEN_AGE = 60
OSC_AGE_RANGE = (6, 14)
OSY_AGE_RANGE = (15, 24)

LABOR_FORCE_STATUSES = frozenset(
    {
        EmploymentStatus.employed,
        EmploymentStatus.unemployed,
        EmploymentStatus.underemployed,
        EmploymentStatus.self_employed,
        EmploymentStatus.looking_for_work,
    }
)
EMPLOYED_STATUSES = frozenset({EmploymentStatus.employed, EmploymentStatus.self_employed})
UNEMPLOYED_STATUSES = frozenset({EmploymentStatus.unemployed, EmploymentStatus.looking_for_work})

OSC_EDUCATION_LEVELS = frozenset({EducationLevel.elementary, EducationLevel.high_school})
TERTIARY_EDUCATION_LEVELS = frozenset({EducationLevel.college, EducationLevel.post_graduate})


@dataclass(frozen=True)
class SectorFlags:
    """Derived sector flags, named after the resident columns they populate."""

    is_senior_citizen: bool = False
    is_labor_force: bool = False
    is_employed: bool = False
    is_unemployed: bool = False
    is_out_of_school_children: bool = False
    is_out_of_school_youth: bool = False

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)


def compute_age(birthdate: date, as_of: date | None = None) -> int:
    """Return whole years elapsed between ``birthdate`` and ``as_of``."""

    reference = as_of or date.today()
    if birthdate > reference:
        raise ValidationError(
            f"Birthdate {birthdate.isoformat()} is after {reference.isoformat()}",
            field="birthdate",
        )
    years = reference.year - birthdate.year
    if (reference.month, reference.day) < (birthdate.month, birthdate.day):
        years -= 1
    return years


def _coerce_status(value: EmploymentStatus | str | None) -> EmploymentStatus | None:
    if value is None or isinstance(value, EmploymentStatus):
        return value
    try:
        return EmploymentStatus(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown employment status {value!r}", field="employment_status") from exc


def _coerce_education(value: EducationLevel | str | None) -> EducationLevel | None:
    if value is None or isinstance(value, EducationLevel):
        return value
    try:
        return EducationLevel(value)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown education level {value!r}", field="education_attainment"
        ) from exc


def is_out_of_school_children(
    age: int, education: EducationLevel | None, completed: bool
) -> bool:
    low, high = OSC_AGE_RANGE
    return low <= age <= high and not completed and education in OSC_EDUCATION_LEVELS


def is_out_of_school_youth(
    age: int,
    education: EducationLevel | None,
    completed: bool,
    status: EmploymentStatus | None,
) -> bool:
    low, high = OSY_AGE_RANGE
    if not (low <= age <= high) or completed:
        return False
    if education in TERTIARY_EDUCATION_LEVELS:
        return False
    return status is None or status not in EMPLOYED_STATUSES


def classify_resident(
    birthdate: date,
    *,
    employment_status: EmploymentStatus | str | None = None,
    education_attainment: EducationLevel | str | None = None,
    is_graduate: bool = False,
    as_of: date | None = None,
) -> SectorFlags:
    """Derive the sector flags for a resident snapshot evaluated on ``as_of``."""

    age = compute_age(birthdate, as_of)
    status = _coerce_status(employment_status)
    education = _coerce_education(education_attainment)
    completed = bool(is_graduate)

    return SectorFlags(
        is_senior_citizen=age >= SENIOR_CITIZEN_AGE,
        is_labor_force=status in LABOR_FORCE_STATUSES,
        is_employed=status in EMPLOYED_STATUSES,
        is_unemployed=status in UNEMPLOYED_STATUSES,
        is_out_of_school_children=is_out_of_school_children(age, education, completed),
        is_out_of_school_youth=is_out_of_school_youth(age, education, completed, status),
    )


__all__ = [
    "EMPLOYED_STATUSES",
    "LABOR_FORCE_STATUSES",
    "SENIOR_CITIZEN_AGE",
    "SectorFlags",
    "UNEMPLOYED_STATUSES",
    "classify_resident",
    "compute_age",
    "is_out_of_school_children",
    "is_out_of_school_youth",
]
