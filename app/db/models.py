"""SQLAlchemy models backing the civil registry.

The schema has three layers: read-only PSGC/PSOC reference catalogs, the
registry entities (residents, households and the memberships linking them)
and the append-only audit log. Household aggregates and resident sector
flags are stored columns kept in step by the service layer.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from civreg.enums import (
    AuditOperation,
    CivilStatus,
    EducationLevel,
    EmploymentStatus,
    FamilyPosition,
    HouseholdType,
    HouseholdUnit,
    IncomeClass,
    Sex,
    SubdivisionType,
    TenureStatus,
)

from .base import Base


MONEY = Numeric(14, 2)


def _table_args(*constraints: Any) -> tuple[Any, ...]:
    """Return ``__table_args__`` with SQLite autoincrement enabled."""

    return (*constraints, {"sqlite_autoincrement": True})


def _ensure_utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _enum(enum_cls: type, name: str) -> SAEnum:
    """Store enum ``.value`` strings in a VARCHAR with a CHECK constraint."""

    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


class TimestampMixin:
    """Adds creation and update timestamps to persisted records."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class ActorStampMixin:
    """Record the operator that created and last modified a row."""

    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(64), nullable=True)


class GeoChainMixin:
    """Denormalised PSGC ancestry copied from the leaf barangay."""

    barangay_code: Mapped[str] = mapped_column(
        String(9), ForeignKey("geo_barangays.code"), nullable=False
    )
    city_municipality_code: Mapped[str] = mapped_column(
        String(6), ForeignKey("geo_cities.code"), nullable=False
    )
    province_code: Mapped[str | None] = mapped_column(
        String(4), ForeignKey("geo_provinces.code"), nullable=True
    )
    region_code: Mapped[str] = mapped_column(
        String(2), ForeignKey("geo_regions.code"), nullable=False
    )


# -------------------- Reference catalogs --------------------


class GeoRegion(Base):
    __tablename__ = "geo_regions"

    code: Mapped[str] = mapped_column(String(2), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class GeoProvince(Base):
    __tablename__ = "geo_provinces"
    __table_args__ = (Index("ix_geo_provinces_region_code", "region_code"),)

    code: Mapped[str] = mapped_column(String(4), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    region_code: Mapped[str] = mapped_column(
        String(2), ForeignKey("geo_regions.code"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class GeoCity(Base):
    """City or municipality; independent cities sit directly under a region."""

    __tablename__ = "geo_cities"
    __table_args__ = (
        CheckConstraint(
            "(is_independent AND province_code IS NULL) OR NOT is_independent",
            name="independence_rule",
        ),
        Index("ix_geo_cities_province_code", "province_code"),
    )

    code: Mapped[str] = mapped_column(String(6), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="Municipality")
    province_code: Mapped[str | None] = mapped_column(
        String(4), ForeignKey("geo_provinces.code"), nullable=True
    )
    region_code: Mapped[str] = mapped_column(
        String(2), ForeignKey("geo_regions.code"), nullable=False
    )
    is_independent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class GeoBarangay(Base):
    __tablename__ = "geo_barangays"
    __table_args__ = (Index("ix_geo_barangays_city_code", "city_municipality_code"),)

    code: Mapped[str] = mapped_column(String(9), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    city_municipality_code: Mapped[str] = mapped_column(
        String(6), ForeignKey("geo_cities.code"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class GeoSubdivision(TimestampMixin, Base):
    """Subdivision, zone, sitio or purok registered under one barangay."""

    __tablename__ = "geo_subdivisions"
    __table_args__ = _table_args(
        UniqueConstraint("barangay_code", "name", name="uq_geo_subdivisions_barangay_name"),
        Index("ix_geo_subdivisions_barangay_code", "barangay_code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[SubdivisionType] = mapped_column(
        _enum(SubdivisionType, "subdivision_type"), nullable=False
    )
    barangay_code: Mapped[str] = mapped_column(
        String(9), ForeignKey("geo_barangays.code"), nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class GeoStreet(TimestampMixin, Base):
    __tablename__ = "geo_streets"
    __table_args__ = _table_args(
        UniqueConstraint(
            "barangay_code", "subdivision_id", "name", name="uq_geo_streets_scope_name"
        ),
        Index("ix_geo_streets_barangay_code", "barangay_code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    barangay_code: Mapped[str] = mapped_column(
        String(9), ForeignKey("geo_barangays.code"), nullable=False
    )
    subdivision_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("geo_subdivisions.id"), nullable=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Occupation(Base):
    """PSOC occupation node; ``level`` runs from 1 (major group) to 5 (unit sub-group)."""

    __tablename__ = "occupations"
    __table_args__ = (Index("ix_occupations_parent_code", "parent_code"),)

    code: Mapped[str] = mapped_column(String(10), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    parent_code: Mapped[str | None] = mapped_column(
        String(10), ForeignKey("occupations.code"), nullable=True
    )


# -------------------- Registry entities --------------------


class Resident(GeoChainMixin, ActorStampMixin, TimestampMixin, Base):
    """Individual registered in a barangay; never hard-deleted."""

    __tablename__ = "residents"
    __table_args__ = _table_args(
        CheckConstraint("monthly_income IS NULL OR monthly_income >= 0", name="income_non_negative"),
        Index("ix_residents_barangay_code", "barangay_code"),
        Index("ix_residents_household_id", "household_id"),
        Index("ix_residents_last_name", "last_name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    extension_name: Mapped[str | None] = mapped_column(String(20), nullable=True)
    birthdate: Mapped[date] = mapped_column(Date, nullable=False)
    sex: Mapped[Sex] = mapped_column(_enum(Sex, "sex"), nullable=False)
    civil_status: Mapped[CivilStatus | None] = mapped_column(
        _enum(CivilStatus, "civil_status"), nullable=True
    )
    education_attainment: Mapped[EducationLevel | None] = mapped_column(
        _enum(EducationLevel, "education_level"), nullable=True
    )
    is_graduate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    employment_status: Mapped[EmploymentStatus | None] = mapped_column(
        _enum(EmploymentStatus, "employment_status"), nullable=True
    )
    occupation_code: Mapped[str | None] = mapped_column(
        String(10), ForeignKey("occupations.code"), nullable=True
    )
    occupation_title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    occupation: Mapped[str | None] = mapped_column(String(200), nullable=True)
    monthly_income: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)

    household_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("households.id"), nullable=True
    )
    household_code: Mapped[str | None] = mapped_column(String(24), nullable=True)

    is_senior_citizen: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_labor_force: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_employed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_unemployed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_out_of_school_children: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    is_out_of_school_youth: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_migrant: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_person_with_disability: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    is_solo_parent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_indigenous_people: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_overseas_worker: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_registered_senior_citizen: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )

    memberships: Mapped[list["HouseholdMember"]] = relationship(
        back_populates="resident", foreign_keys="HouseholdMember.resident_id"
    )


class Household(GeoChainMixin, ActorStampMixin, TimestampMixin, Base):
    """Dwelling unit identified by its hierarchical code."""

    __tablename__ = "households"
    __table_args__ = _table_args(
        UniqueConstraint("code", name="uq_households_code"),
        CheckConstraint("member_count >= 0", name="member_count_non_negative"),
        CheckConstraint("migrant_count >= 0 AND migrant_count <= member_count", name="migrant_count_range"),
        Index(
            "ix_households_sequence_scope",
            "barangay_code",
            "subdivision_id",
            "street_id",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(24), nullable=False)
    house_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    subdivision_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("geo_subdivisions.id"), nullable=True
    )
    street_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("geo_streets.id"), nullable=True
    )
    subdivision_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    street_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    house_seq: Mapped[int] = mapped_column(Integer, nullable=False)

    head_resident_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("residents.id", use_alter=True, name="fk_households_head_resident_id_residents"),
        nullable=True,
    )

    member_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    migrant_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    monthly_income: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    income_class: Mapped[IncomeClass] = mapped_column(
        _enum(IncomeClass, "income_class"), nullable=False, default=IncomeClass.poor
    )
    household_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    household_type: Mapped[HouseholdType | None] = mapped_column(
        _enum(HouseholdType, "household_type"), nullable=True
    )
    tenure_status: Mapped[TenureStatus | None] = mapped_column(
        _enum(TenureStatus, "tenure_status"), nullable=True
    )
    tenure_others_specify: Mapped[str | None] = mapped_column(String(200), nullable=True)
    household_unit: Mapped[HouseholdUnit | None] = mapped_column(
        _enum(HouseholdUnit, "household_unit"), nullable=True
    )
    total_families: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    memberships: Mapped[list["HouseholdMember"]] = relationship(back_populates="household")

    __mapper_args__ = {"version_id_col": version}


class HouseholdMember(ActorStampMixin, TimestampMixin, Base):
    """Association of one resident with one household."""

    __tablename__ = "household_members"
    __table_args__ = _table_args(
        Index("ix_household_members_household_id", "household_id"),
        Index(
            "uq_household_members_active_resident",
            "resident_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    household_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("households.id"), nullable=False
    )
    resident_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("residents.id"), nullable=False
    )
    family_position: Mapped[FamilyPosition | None] = mapped_column(
        _enum(FamilyPosition, "family_position"), nullable=True
    )
    relationship_to_head: Mapped[str | None] = mapped_column(String(50), nullable=True)
    position_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )

    household: Mapped[Household] = relationship(back_populates="memberships")
    resident: Mapped[Resident] = relationship(
        back_populates="memberships", foreign_keys=[resident_id]
    )


class MigrantInfo(ActorStampMixin, TimestampMixin, Base):
    """Previous residence and transfer details behind ``Resident.is_migrant``.

    One row per resident; clearing the record deactivates it so the audit
    trail keeps the last known details.
    """

    __tablename__ = "migrant_information"
    __table_args__ = _table_args(
        UniqueConstraint("resident_id", name="uq_migrant_information_resident_id"),
        CheckConstraint(
            "duration_of_stay_current_months IS NULL OR duration_of_stay_current_months >= 0",
            name="duration_non_negative",
        ),
        Index("ix_migrant_information_previous_region_code", "previous_region_code"),
        Index("ix_migrant_information_previous_province_code", "previous_province_code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    resident_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("residents.id"), nullable=False
    )
    previous_barangay_code: Mapped[str | None] = mapped_column(
        String(9), ForeignKey("geo_barangays.code"), nullable=True
    )
    previous_city_municipality_code: Mapped[str | None] = mapped_column(
        String(6), ForeignKey("geo_cities.code"), nullable=True
    )
    previous_province_code: Mapped[str | None] = mapped_column(
        String(4), ForeignKey("geo_provinces.code"), nullable=True
    )
    previous_region_code: Mapped[str | None] = mapped_column(
        String(2), ForeignKey("geo_regions.code"), nullable=True
    )
    date_of_transfer: Mapped[date | None] = mapped_column(Date, nullable=True)
    reason_for_transferring: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_of_stay_current_months: Mapped[int | None] = mapped_column(Integer, nullable=True)
    intends_to_return: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )


class HouseholdSequence(Base):
    """Last house sequence handed out for one (barangay, subdivision, street) scope.

    ``subdivision_key`` and ``street_key`` hold ``0`` when the household has no
    subdivision or street so that the composite primary key never contains NULL.
    """

    __tablename__ = "household_sequences"

    barangay_code: Mapped[str] = mapped_column(
        String(9), ForeignKey("geo_barangays.code"), primary_key=True
    )
    subdivision_key: Mapped[int] = mapped_column(Integer, primary_key=True)
    street_key: Mapped[int] = mapped_column(Integer, primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class AuditLog(Base):
    """Append-only before/after snapshot of a mutated registry row."""

    __tablename__ = "audit_logs"
    __table_args__ = _table_args(
        Index("ix_audit_logs_record", "table_name", "record_id"),
        Index("ix_audit_logs_barangay_code", "barangay_code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    table_name: Mapped[str] = mapped_column(String(50), nullable=False)
    record_id: Mapped[int] = mapped_column(Integer, nullable=False)
    operation: Mapped[AuditOperation] = mapped_column(
        _enum(AuditOperation, "audit_operation"), nullable=False
    )
    old_values: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    new_values: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    barangay_code: Mapped[str | None] = mapped_column(String(9), nullable=True)
    _created_at: Mapped[datetime] = mapped_column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def created_at(self) -> datetime:
        return _ensure_utc(self._created_at)  # type: ignore[return-value]


__all__ = [
    "ActorStampMixin",
    "AuditLog",
    "Base",
    "GeoBarangay",
    "GeoChainMixin",
    "GeoCity",
    "GeoProvince",
    "GeoRegion",
    "GeoStreet",
    "GeoSubdivision",
    "Household",
    "HouseholdMember",
    "HouseholdSequence",
    "MigrantInfo",
    "Occupation",
    "Resident",
    "TimestampMixin",
    "_ensure_utc",
]
