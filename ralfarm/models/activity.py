"""Campaign activity and expense ORM models.

Activities are the planned and completed field work of a multi-plot
campaign.  Expenses are booked against a farm and, for ``specific`` costs,
against one of its campaigns.  Activities carry no farm id: a campaign
reaches its farm only through its plots.
"""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import CheckConstraint, Date, Enum, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from ralfarm.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from ralfarm.models.enums import (
    ActivityStatusEnum,
    ActivityTypeEnum,
    CostTypeEnum,
    ExpenseCategoryEnum,
)


class CampaignActivity(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One unit of field work planned for a campaign."""

    __tablename__ = "campaign_activities"
    __table_args__ = (
        Index("ix_campaign_activities_campaign_planned", "campaign_id", "planned_date"),
        CheckConstraint(
            "priority IS NULL OR (priority >= 1 AND priority <= 5)",
            name="ck_campaign_activities_priority_range",
        ),
    )

    campaign_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("multi_plot_campaigns.id", ondelete="CASCADE"),
        nullable=False,
    )
    activity_type: Mapped[ActivityTypeEnum] = mapped_column(
        Enum(
            ActivityTypeEnum,
            name="activity_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ActivityStatusEnum] = mapped_column(
        Enum(
            ActivityStatusEnum,
            name="activity_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=ActivityStatusEnum.planned,
        server_default=ActivityStatusEnum.planned.value,
    )
    planned_date: Mapped[date] = mapped_column(Date, nullable=False)
    completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    priority: Mapped[int | None] = mapped_column(Integer, nullable=True)
    planned_area_ha: Mapped[float | None] = mapped_column(Float, nullable=True)
    estimated_duration_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    estimated_cost_ron: Mapped[float | None] = mapped_column(Float, nullable=True)
    actual_cost_ron: Mapped[float | None] = mapped_column(Float, nullable=True)
    required_equipment: Mapped[str | None] = mapped_column(Text, nullable=True)
    required_materials: Mapped[str | None] = mapped_column(Text, nullable=True)
    completion_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_to_user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<CampaignActivity id={self.id} campaign={self.campaign_id} "
            f"{self.activity_type} on {self.planned_date} status={self.status}>"
        )


class Expense(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A cost booked against a farm, optionally tied to one campaign."""

    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_farm_date", "farm_id", "expense_date"),
        CheckConstraint("amount_ron > 0", name="ck_expenses_amount_positive"),
        CheckConstraint("vat_amount_ron >= 0", name="ck_expenses_vat_non_negative"),
        CheckConstraint(
            "cost_type <> 'specific' OR campaign_id IS NOT NULL",
            name="ck_expenses_specific_has_campaign",
        ),
    )

    farm_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("farms.id", ondelete="CASCADE"),
        nullable=False,
    )
    campaign_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("multi_plot_campaigns.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    cost_type: Mapped[CostTypeEnum] = mapped_column(
        Enum(
            CostTypeEnum,
            name="cost_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    category: Mapped[ExpenseCategoryEnum] = mapped_column(
        Enum(
            ExpenseCategoryEnum,
            name="expense_category",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    amount_ron: Mapped[float] = mapped_column(Float, nullable=False)
    vat_amount_ron: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        server_default=text("0"),
    )
    total_amount_ron: Mapped[float] = mapped_column(Float, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    supplier: Mapped[str | None] = mapped_column(String(255), nullable=True)
    invoice_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    invoice_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    quantity: Mapped[float | None] = mapped_column(Float, nullable=True)
    unit: Mapped[str | None] = mapped_column(String(32), nullable=True)
    unit_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Expense id={self.id} farm={self.farm_id} {self.category} "
            f"total={self.total_amount_ron}>"
        )
