"""add_activities_and_expenses

Revision ID: 7d4e2a9c1f58
Revises: 3c1f7a2e9b40
Create Date: 2026-10-17 12:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "7d4e2a9c1f58"
down_revision: str | None = "3c1f7a2e9b40"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUM_ACTIVITY_TYPE = postgresql.ENUM(
    "soil_preparation",
    "planting",
    "fertilizing",
    "spraying",
    "irrigation",
    "weeding",
    "harvesting",
    "field_inspection",
    "maintenance",
    "other",
    name="activity_type",
    create_type=False,
)
ENUM_ACTIVITY_STATUS = postgresql.ENUM(
    "planned",
    "in_progress",
    "completed",
    "overdue",
    "cancelled",
    name="activity_status",
    create_type=False,
)
ENUM_COST_TYPE = postgresql.ENUM("specific", "general", name="cost_type", create_type=False)
ENUM_EXPENSE_CATEGORY = postgresql.ENUM(
    "seeds",
    "fertilizers",
    "pesticides",
    "plot_labor",
    "plot_rent",
    "irrigation",
    "fuel",
    "machinery",
    "general_labor",
    "insurance",
    "taxes",
    "maintenance",
    "utilities",
    "other",
    name="expense_category",
    create_type=False,
)

_NEW_ENUMS = (ENUM_ACTIVITY_TYPE, ENUM_ACTIVITY_STATUS, ENUM_COST_TYPE, ENUM_EXPENSE_CATEGORY)


def _timestamps() -> list[sa.Column]:
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
    for enum_type in _NEW_ENUMS:
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "campaign_activities",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("campaign_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("activity_type", ENUM_ACTIVITY_TYPE, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status", ENUM_ACTIVITY_STATUS, server_default=sa.text("'planned'"), nullable=False
        ),
        sa.Column("planned_date", sa.Date(), nullable=False),
        sa.Column("completed_date", sa.Date(), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=True),
        sa.Column("planned_area_ha", sa.Float(), nullable=True),
        sa.Column("estimated_duration_hours", sa.Float(), nullable=True),
        sa.Column("estimated_cost_ron", sa.Float(), nullable=True),
        sa.Column("actual_cost_ron", sa.Float(), nullable=True),
        sa.Column("required_equipment", sa.Text(), nullable=True),
        sa.Column("required_materials", sa.Text(), nullable=True),
        sa.Column("completion_notes", sa.Text(), nullable=True),
        sa.Column("assigned_to_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_by_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["campaign_id"], ["multi_plot_campaigns.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["assigned_to_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "priority IS NULL OR (priority >= 1 AND priority <= 5)",
            name="ck_campaign_activities_priority_range",
        ),
    )
    op.create_index(
        "ix_campaign_activities_campaign_planned",
        "campaign_activities",
        ["campaign_id", "planned_date"],
    )
    op.create_index(
        "ix_campaign_activities_assigned_to_user_id",
        "campaign_activities",
        ["assigned_to_user_id"],
    )

    op.create_table(
        "expenses",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("farm_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("campaign_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("cost_type", ENUM_COST_TYPE, nullable=False),
        sa.Column("category", ENUM_EXPENSE_CATEGORY, nullable=False),
        sa.Column("amount_ron", sa.Float(), nullable=False),
        sa.Column("vat_amount_ron", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("total_amount_ron", sa.Float(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("supplier", sa.String(255), nullable=True),
        sa.Column("invoice_number", sa.String(100), nullable=True),
        sa.Column("invoice_date", sa.Date(), nullable=True),
        sa.Column("quantity", sa.Float(), nullable=True),
        sa.Column("unit", sa.String(32), nullable=True),
        sa.Column("unit_price", sa.Float(), nullable=True),
        sa.Column("expense_date", sa.Date(), nullable=False),
        sa.Column("created_by_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["farm_id"], ["farms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["campaign_id"], ["multi_plot_campaigns.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount_ron > 0", name="ck_expenses_amount_positive"),
        sa.CheckConstraint("vat_amount_ron >= 0", name="ck_expenses_vat_non_negative"),
        sa.CheckConstraint(
            "cost_type <> 'specific' OR campaign_id IS NOT NULL",
            name="ck_expenses_specific_has_campaign",
        ),
    )
    op.create_index("ix_expenses_farm_date", "expenses", ["farm_id", "expense_date"])
    op.create_index("ix_expenses_campaign_id", "expenses", ["campaign_id"])


def downgrade() -> None:
    op.drop_index("ix_expenses_campaign_id", table_name="expenses")
    op.drop_index("ix_expenses_farm_date", table_name="expenses")
    op.drop_table("expenses")
    op.drop_index("ix_campaign_activities_assigned_to_user_id", table_name="campaign_activities")
    op.drop_index("ix_campaign_activities_campaign_planned", table_name="campaign_activities")
    op.drop_table("campaign_activities")
    for enum_type in reversed(_NEW_ENUMS):
        enum_type.drop(op.get_bind(), checkfirst=True)
