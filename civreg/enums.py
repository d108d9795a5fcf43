"""Closed value sets used by residents, households and memberships.

The values mirror the PSA/PSGC registry vocabularies; persisted columns store
the ``.value`` strings so the tables stay readable from plain SQL.
"""

from __future__ import annotations

import enum


class Sex(str, enum.Enum):
    """Biological sex as recorded on the resident profile."""

    male = "male"
    female = "female"


class CivilStatus(str, enum.Enum):
    """PSA civil status categories."""

    single = "single"
    married = "married"
    divorced = "divorced"
    separated = "separated"
    widowed = "widowed"
    others = "others"


class EducationLevel(str, enum.Enum):
    """Highest educational attainment reached (completion tracked separately)."""

    elementary = "elementary"
    high_school = "high_school"
    college = "college"
    post_graduate = "post_graduate"
    vocational = "vocational"


class EmploymentStatus(str, enum.Enum):
    """Employment status categories."""

    employed = "employed"
    unemployed = "unemployed"
    underemployed = "underemployed"
    self_employed = "self_employed"
    student = "student"
    retired = "retired"
    homemaker = "homemaker"
    unable_to_work = "unable_to_work"
    looking_for_work = "looking_for_work"
    not_in_labor_force = "not_in_labor_force"


class HouseholdType(str, enum.Enum):
    nuclear = "nuclear"
    single_parent = "single_parent"
    extended = "extended"
    childless = "childless"
    one_person = "one_person"
    non_family = "non_family"
    other = "other"


class TenureStatus(str, enum.Enum):
    owned = "owned"
    owned_with_mortgage = "owned_with_mortgage"
    rented = "rented"
    occupied_for_free = "occupied_for_free"
    occupied_without_consent = "occupied_without_consent"
    others = "others"


class HouseholdUnit(str, enum.Enum):
    single_house = "single_house"
    duplex = "duplex"
    apartment = "apartment"
    townhouse = "townhouse"
    condominium = "condominium"
    boarding_house = "boarding_house"
    institutional = "institutional"
    makeshift = "makeshift"
    others = "others"


class FamilyPosition(str, enum.Enum):
    """Position of a member within the household's family."""

    father = "father"
    mother = "mother"
    son = "son"
    daughter = "daughter"
    grandmother = "grandmother"
    grandfather = "grandfather"
    father_in_law = "father_in_law"
    mother_in_law = "mother_in_law"
    brother_in_law = "brother_in_law"
    sister_in_law = "sister_in_law"
    spouse = "spouse"
    sibling = "sibling"
    guardian = "guardian"
    ward = "ward"
    other = "other"


class SubdivisionType(str, enum.Enum):
    subdivision = "Subdivision"
    zone = "Zone"
    sitio = "Sitio"
    purok = "Purok"


class IncomeClass(str, enum.Enum):
    """Ordered household income tiers, lowest first."""

    poor = "poor"
    low_income = "low_income"
    lower_middle_class = "lower_middle_class"
    middle_class = "middle_class"
    upper_middle_income = "upper_middle_income"
    high_income = "high_income"
    rich = "rich"

    @property
    def rank(self) -> int:
        return _INCOME_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, IncomeClass):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, IncomeClass):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, IncomeClass):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, IncomeClass):
            return NotImplemented
        return self.rank >= other.rank


_INCOME_RANK = {member: index for index, member in enumerate(IncomeClass)}


class AuditOperation(str, enum.Enum):
    create = "create"
    update = "update"
    deactivate = "deactivate"


# Flags derived by the classification engine; everything else is operator-set.
DERIVED_SECTOR_FLAGS: tuple[str, ...] = (
    "is_senior_citizen",
    "is_labor_force",
    "is_employed",
    "is_unemployed",
    "is_out_of_school_children",
    "is_out_of_school_youth",
)

MANUAL_SECTOR_FLAGS: tuple[str, ...] = (
    "is_migrant",
    "is_person_with_disability",
    "is_solo_parent",
    "is_indigenous_people",
    "is_overseas_worker",
    "is_registered_senior_citizen",
)

SECTOR_FLAGS: tuple[str, ...] = DERIVED_SECTOR_FLAGS + MANUAL_SECTOR_FLAGS


__all__ = [
    "AuditOperation",
    "CivilStatus",
    "DERIVED_SECTOR_FLAGS",
    "EducationLevel",
    "EmploymentStatus",
    "FamilyPosition",
    "HouseholdType",
    "HouseholdUnit",
    "IncomeClass",
    "MANUAL_SECTOR_FLAGS",
    "SECTOR_FLAGS",
    "Sex",
    "SubdivisionType",
    "TenureStatus",
]
