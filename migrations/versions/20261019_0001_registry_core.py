"""Create reference catalogs, registry entities and the audit log."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

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

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _enum(enum_cls, name: str) -> sa.Enum:
    return sa.Enum(
        *[member.value for member in enum_cls],
        name=name,
        native_enum=False,
        create_constraint=True,
        length=32,
    )


def _timestamps() -> list[sa.Column]:
    now = sa.text("CURRENT_TIMESTAMP")
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=now),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=now),
    ]


def _actor_stamps() -> list[sa.Column]:
    return [
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("updated_by", sa.String(64), nullable=True),
    ]


def _geo_chain() -> list[sa.Column]:
    return [
        sa.Column("barangay_code", sa.String(9), sa.ForeignKey("geo_barangays.code"), nullable=False),
        sa.Column(
            "city_municipality_code", sa.String(6), sa.ForeignKey("geo_cities.code"), nullable=False
        ),
        sa.Column("province_code", sa.String(4), sa.ForeignKey("geo_provinces.code"), nullable=True),
        sa.Column("region_code", sa.String(2), sa.ForeignKey("geo_regions.code"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "geo_regions",
        sa.Column("code", sa.String(2), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_table(
        "geo_provinces",
        sa.Column("code", sa.String(4), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("region_code", sa.String(2), sa.ForeignKey("geo_regions.code"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_geo_provinces_region_code", "geo_provinces", ["region_code"])
    op.create_table(
        "geo_cities",
        sa.Column("code", sa.String(6), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("type", sa.String(50), nullable=False, server_default="Municipality"),
        sa.Column("province_code", sa.String(4), sa.ForeignKey("geo_provinces.code"), nullable=True),
        sa.Column("region_code", sa.String(2), sa.ForeignKey("geo_regions.code"), nullable=False),
        sa.Column("is_independent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.CheckConstraint(
            "(is_independent AND province_code IS NULL) OR NOT is_independent",
            name="ck_geo_cities_independence_rule",
        ),
    )
    op.create_index("ix_geo_cities_province_code", "geo_cities", ["province_code"])
    op.create_table(
        "geo_barangays",
        sa.Column("code", sa.String(9), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "city_municipality_code", sa.String(6), sa.ForeignKey("geo_cities.code"), nullable=False
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_geo_barangays_city_code", "geo_barangays", ["city_municipality_code"])

    op.create_table(
        "geo_subdivisions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", _enum(SubdivisionType, "subdivision_type"), nullable=False),
        sa.Column("barangay_code", sa.String(9), sa.ForeignKey("geo_barangays.code"), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("barangay_code", "name", name="uq_geo_subdivisions_barangay_name"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_geo_subdivisions_barangay_code", "geo_subdivisions", ["barangay_code"])
    op.create_table(
        "geo_streets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("barangay_code", sa.String(9), sa.ForeignKey("geo_barangays.code"), nullable=False),
        sa.Column("subdivision_id", sa.Integer(), sa.ForeignKey("geo_subdivisions.id"), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint(
            "barangay_code", "subdivision_id", "name", name="uq_geo_streets_scope_name"
        ),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_geo_streets_barangay_code", "geo_streets", ["barangay_code"])
    op.create_table(
        "occupations",
        sa.Column("code", sa.String(10), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False, server_default="4"),
        sa.Column("parent_code", sa.String(10), sa.ForeignKey("occupations.code"), nullable=True),
    )
    op.create_index("ix_occupations_parent_code", "occupations", ["parent_code"])

    # The head FK closes a cycle with residents and is added once both exist.
    op.create_table(
        "households",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(24), nullable=False),
        sa.Column("house_number", sa.String(50), nullable=True),
        sa.Column("subdivision_id", sa.Integer(), sa.ForeignKey("geo_subdivisions.id"), nullable=True),
        sa.Column("street_id", sa.Integer(), sa.ForeignKey("geo_streets.id"), nullable=True),
        sa.Column("subdivision_seq", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("street_seq", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("house_seq", sa.Integer(), nullable=False),
        sa.Column("head_resident_id", sa.Integer(), nullable=True),
        sa.Column("member_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("migrant_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("monthly_income", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column(
            "income_class",
            _enum(IncomeClass, "income_class"),
            nullable=False,
            server_default=IncomeClass.poor.value,
        ),
        sa.Column("household_name", sa.String(100), nullable=True),
        sa.Column("household_type", _enum(HouseholdType, "household_type"), nullable=True),
        sa.Column("tenure_status", _enum(TenureStatus, "tenure_status"), nullable=True),
        sa.Column("tenure_others_specify", sa.String(200), nullable=True),
        sa.Column("household_unit", _enum(HouseholdUnit, "household_unit"), nullable=True),
        sa.Column("total_families", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("version", sa.Integer(), nullable=False),
        *_geo_chain(),
        *_actor_stamps(),
        *_timestamps(),
        sa.UniqueConstraint("code", name="uq_households_code"),
        sa.CheckConstraint("member_count >= 0", name="ck_households_member_count_non_negative"),
        sa.CheckConstraint(
            "migrant_count >= 0 AND migrant_count <= member_count",
            name="ck_households_migrant_count_range",
        ),
        sqlite_autoincrement=True,
    )
    op.create_index(
        "ix_households_sequence_scope",
        "households",
        ["barangay_code", "subdivision_id", "street_id"],
    )

    op.create_table(
        "residents",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("middle_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("extension_name", sa.String(20), nullable=True),
        sa.Column("birthdate", sa.Date(), nullable=False),
        sa.Column("sex", _enum(Sex, "sex"), nullable=False),
        sa.Column("civil_status", _enum(CivilStatus, "civil_status"), nullable=True),
        sa.Column("education_attainment", _enum(EducationLevel, "education_level"), nullable=True),
        sa.Column("is_graduate", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("employment_status", _enum(EmploymentStatus, "employment_status"), nullable=True),
        sa.Column("occupation_code", sa.String(10), sa.ForeignKey("occupations.code"), nullable=True),
        sa.Column("occupation_title", sa.String(200), nullable=True),
        sa.Column("occupation", sa.String(200), nullable=True),
        sa.Column("monthly_income", sa.Numeric(14, 2), nullable=True),
        sa.Column("household_id", sa.Integer(), sa.ForeignKey("households.id"), nullable=True),
        sa.Column("household_code", sa.String(24), nullable=True),
        *[
            sa.Column(flag, sa.Boolean(), nullable=False, server_default=sa.false())
            for flag in (
                "is_senior_citizen",
                "is_labor_force",
                "is_employed",
                "is_unemployed",
                "is_out_of_school_children",
                "is_out_of_school_youth",
                "is_migrant",
                "is_person_with_disability",
                "is_solo_parent",
                "is_indigenous_people",
                "is_overseas_worker",
                "is_registered_senior_citizen",
            )
        ],
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_geo_chain(),
        *_actor_stamps(),
        *_timestamps(),
        sa.CheckConstraint(
            "monthly_income IS NULL OR monthly_income >= 0",
            name="ck_residents_income_non_negative",
        ),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_residents_barangay_code", "residents", ["barangay_code"])
    op.create_index("ix_residents_household_id", "residents", ["household_id"])
    op.create_index("ix_residents_last_name", "residents", ["last_name"])

    with op.batch_alter_table("households") as batch:
        batch.create_foreign_key(
            "fk_households_head_resident_id_residents",
            "residents",
            ["head_resident_id"],
            ["id"],
        )

    op.create_table(
        "household_members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("household_id", sa.Integer(), sa.ForeignKey("households.id"), nullable=False),
        sa.Column("resident_id", sa.Integer(), sa.ForeignKey("residents.id"), nullable=False),
        sa.Column("family_position", _enum(FamilyPosition, "family_position"), nullable=True),
        sa.Column("relationship_to_head", sa.String(50), nullable=True),
        sa.Column("position_notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_actor_stamps(),
        *_timestamps(),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_household_members_household_id", "household_members", ["household_id"])
    op.create_index(
        "uq_household_members_active_resident",
        "household_members",
        ["resident_id"],
        unique=True,
        sqlite_where=sa.text("is_active = 1"),
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "household_sequences",
        sa.Column("barangay_code", sa.String(9), sa.ForeignKey("geo_barangays.code"), primary_key=True),
        sa.Column("subdivision_key", sa.Integer(), primary_key=True),
        sa.Column("street_key", sa.Integer(), primary_key=True),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("table_name", sa.String(50), nullable=False),
        sa.Column("record_id", sa.Integer(), nullable=False),
        sa.Column("operation", _enum(AuditOperation, "audit_operation"), nullable=False),
        sa.Column("old_values", sa.JSON(), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("barangay_code", sa.String(9), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_audit_logs_record", "audit_logs", ["table_name", "record_id"])
    op.create_index("ix_audit_logs_barangay_code", "audit_logs", ["barangay_code"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_barangay_code", table_name="audit_logs")
    op.drop_index("ix_audit_logs_record", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_table("household_sequences")
    op.drop_index("uq_household_members_active_resident", table_name="household_members")
    op.drop_index("ix_household_members_household_id", table_name="household_members")
    op.drop_table("household_members")
    with op.batch_alter_table("households") as batch:
        batch.drop_constraint("fk_households_head_resident_id_residents", type_="foreignkey")
    op.drop_index("ix_residents_last_name", table_name="residents")
    op.drop_index("ix_residents_household_id", table_name="residents")
    op.drop_index("ix_residents_barangay_code", table_name="residents")
    op.drop_table("residents")
    op.drop_index("ix_households_sequence_scope", table_name="households")
    op.drop_table("households")
    op.drop_index("ix_occupations_parent_code", table_name="occupations")
    op.drop_table("occupations")
    op.drop_index("ix_geo_streets_barangay_code", table_name="geo_streets")
    op.drop_table("geo_streets")
    op.drop_index("ix_geo_subdivisions_barangay_code", table_name="geo_subdivisions")
    op.drop_table("geo_subdivisions")
    op.drop_index("ix_geo_barangays_city_code", table_name="geo_barangays")
    op.drop_table("geo_barangays")
    op.drop_index("ix_geo_cities_province_code", table_name="geo_cities")
    op.drop_table("geo_cities")
    op.drop_index("ix_geo_provinces_region_code", table_name="geo_provinces")
    op.drop_table("geo_provinces")
    op.drop_table("geo_regions")
