"""initial_schema

Revision ID: 3c1f7a2e9b40
Revises:
Create Date: 2026-10-17 00:00:00.000000

Creates the tenant topology (companies, users, farms, assignments, plots)
and the multi-plot campaign tables.  Requires the uuid-ossp and postgis
extensions, which are enabled here if missing.
"""

from collections.abc import Sequence

import geoalchemy2
import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c1f7a2e9b40"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_RECORD_STATUS = postgresql.ENUM(
    "active", "inactive", "deleted", name="record_status", create_type=False
)
ENUM_USER_ROLE = postgresql.ENUM(
    "super_admin",
    "admin_company",
    "admin_farm",
    "engineer",
    name="user_role",
    create_type=False,
)
ENUM_PLOT_STATUS = postgresql.ENUM(
    "free", "planted", "harvesting", "processing", name="plot_status", create_type=False
)
ENUM_RENT_TYPE = postgresql.ENUM(
    "fixed_amount", "percentage_yield", name="rent_type", create_type=False
)
ENUM_SEASON = postgresql.ENUM(
    "spring", "summer", "autumn", "winter", name="season", create_type=False
)
ENUM_CAMPAIGN_STATUS = postgresql.ENUM(
    "planned", "active", "completed", "cancelled", name="campaign_status", create_type=False
)

_ALL_ENUMS = (
    ENUM_RECORD_STATUS,
    ENUM_USER_ROLE,
    ENUM_PLOT_STATUS,
    ENUM_RENT_TYPE,
    ENUM_SEASON,
    ENUM_CAMPAIGN_STATUS,
)


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("uuid_generate_v4()"),
        nullable=False,
    )


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # ── 1. Create enum types ────────────────────────────────────────────
    for enum_type in _ALL_ENUMS:
        enum_type.create(op.get_bind(), checkfirst=True)

    # ── 2. Tenant tables ────────────────────────────────────────────────

    # companies
    op.create_table(
        "companies",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("legal_name", sa.String(255), nullable=False),
        sa.Column("cui", sa.String(32), nullable=True),
        sa.Column("address", sa.String(512), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column(
            "status", ENUM_RECORD_STATUS, server_default=sa.text("'active'"), nullable=False
        ),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("cui"),
    )

    # users
    op.create_table(
        "users",
        _id_column(),
        sa.Column("company_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("hashed_password", sa.String(128), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column(
            "role", ENUM_USER_ROLE, server_default=sa.text("'engineer'"), nullable=False
        ),
        sa.Column(
            "status", ENUM_RECORD_STATUS, server_default=sa.text("'active'"), nullable=False
        ),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_company_id", "users", ["company_id"])

    # farms
    op.create_table(
        "farms",
        _id_column(),
        sa.Column("company_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(512), nullable=True),
        sa.Column("total_area", sa.Float(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column(
            "location",
            geoalchemy2.types.Geography(
                geometry_type="POINT", srid=4326, from_text="ST_GeogFromText"
            ),
            nullable=True,
        ),
        sa.Column(
            "status", ENUM_RECORD_STATUS, server_default=sa.text("'active'"), nullable=False
        ),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_farms_company_id", "farms", ["company_id"])

    # user_farm_assignments
    op.create_table(
        "user_farm_assignments",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("farm_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["farm_id"], ["farms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "farm_id", name="uq_user_farm_assignments_user_farm"),
    )
    op.create_index(
        "ix_user_farm_assignments_user_id", "user_farm_assignments", ["user_id"]
    )
    op.create_index(
        "ix_user_farm_assignments_farm_id", "user_farm_assignments", ["farm_id"]
    )

    # plots
    op.create_table(
        "plots",
        _id_column(),
        sa.Column("farm_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("coordinates", postgresql.JSONB(), nullable=True),
        sa.Column(
            "boundary",
            geoalchemy2.types.Geography(
                geometry_type="POLYGON", srid=4326, from_text="ST_GeogFromText"
            ),
            nullable=True,
        ),
        sa.Column(
            "calculated_area", sa.Float(), server_default=sa.text("0"), nullable=False
        ),
        sa.Column("soil_type", sa.String(100), nullable=True),
        sa.Column("slope_percentage", sa.Float(), nullable=True),
        sa.Column(
            "status", ENUM_PLOT_STATUS, server_default=sa.text("'free'"), nullable=False
        ),
        sa.Column("rent_type", ENUM_RENT_TYPE, nullable=True),
        sa.Column("rent_amount", sa.Float(), nullable=True),
        sa.Column("rent_percentage", sa.Float(), nullable=True),
        sa.Column("rent_description", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["farm_id"], ["farms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "calculated_area >= 0", name="ck_plots_calculated_area_non_negative"
        ),
        sa.CheckConstraint(
            "slope_percentage IS NULL OR (slope_percentage >= 0 AND slope_percentage <= 100)",
            name="ck_plots_slope_percentage_range",
        ),
    )
    op.create_index("ix_plots_farm_id", "plots", ["farm_id"])

    # ── 3. Campaign tables ──────────────────────────────────────────────

    # multi_plot_campaigns
    op.create_table(
        "multi_plot_campaigns",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("crop_type", sa.String(100), nullable=False),
        sa.Column("season", ENUM_SEASON, nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column(
            "total_area_ha", sa.Float(), server_default=sa.text("0"), nullable=False
        ),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column(
            "status",
            ENUM_CAMPAIGN_STATUS,
            server_default=sa.text("'planned'"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "total_area_ha >= 0", name="ck_multi_plot_campaigns_total_area"
        ),
    )
    op.create_index(
        "ix_multi_plot_campaigns_season_year_status",
        "multi_plot_campaigns",
        ["season", "year", "status"],
    )

    # campaign_plots
    op.create_table(
        "campaign_plots",
        _id_column(),
        sa.Column("campaign_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("plot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("planted_area_ha", sa.Float(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(
            ["campaign_id"], ["multi_plot_campaigns.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["plot_id"], ["plots.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "campaign_id", "plot_id", name="uq_campaign_plots_campaign_plot"
        ),
        sa.CheckConstraint(
            "planted_area_ha > 0", name="ck_campaign_plots_planted_area_positive"
        ),
    )
    op.create_index("ix_campaign_plots_plot_id", "campaign_plots", ["plot_id"])


def downgrade() -> None:
    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_table("campaign_plots")
    op.drop_table("multi_plot_campaigns")
    op.drop_table("plots")
    op.drop_table("user_farm_assignments")
    op.drop_table("farms")
    op.drop_table("users")
    op.drop_table("companies")

    # ── Drop enum types ─────────────────────────────────────────────────
    for enum_type in reversed(_ALL_ENUMS):
        enum_type.drop(op.get_bind(), checkfirst=True)
