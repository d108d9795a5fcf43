"""Add previous-residence details for migrant residents."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    now = sa.text("CURRENT_TIMESTAMP")
    op.create_table(
        "migrant_information",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("resident_id", sa.Integer(), sa.ForeignKey("residents.id"), nullable=False),
        sa.Column(
            "previous_barangay_code", sa.String(9), sa.ForeignKey("geo_barangays.code"), nullable=True
        ),
        sa.Column(
            "previous_city_municipality_code",
            sa.String(6),
            sa.ForeignKey("geo_cities.code"),
            nullable=True,
        ),
        sa.Column(
            "previous_province_code", sa.String(4), sa.ForeignKey("geo_provinces.code"), nullable=True
        ),
        sa.Column(
            "previous_region_code", sa.String(2), sa.ForeignKey("geo_regions.code"), nullable=True
        ),
        sa.Column("date_of_transfer", sa.Date(), nullable=True),
        sa.Column("reason_for_transferring", sa.Text(), nullable=True),
        sa.Column("duration_of_stay_current_months", sa.Integer(), nullable=True),
        sa.Column("intends_to_return", sa.Boolean(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("updated_by", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=now),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=now),
        sa.UniqueConstraint("resident_id", name="uq_migrant_information_resident_id"),
        sa.CheckConstraint(
            "duration_of_stay_current_months IS NULL OR duration_of_stay_current_months >= 0",
            name="ck_migrant_information_duration_non_negative",
        ),
        sqlite_autoincrement=True,
    )
    op.create_index(
        "ix_migrant_information_previous_region_code", "migrant_information", ["previous_region_code"]
    )
    op.create_index(
        "ix_migrant_information_previous_province_code",
        "migrant_information",
        ["previous_province_code"],
    )


def downgrade() -> None:
    op.drop_index("ix_migrant_information_previous_province_code", table_name="migrant_information")
    op.drop_index("ix_migrant_information_previous_region_code", table_name="migrant_information")
    op.drop_table("migrant_information")
