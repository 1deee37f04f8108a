"""Multi-plot cultivation campaign models.

A campaign spans one or more plots for a single (season, year).
``total_area_ha`` is never set independently: it is always the sum of the
``planted_area_ha`` of its ``CampaignPlot`` links, written by
``CampaignPlotAllocator`` in the same transaction as the links.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Date,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ralfarm.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from ralfarm.models.enums import CampaignStatusEnum, SeasonEnum

if TYPE_CHECKING:
    from ralfarm.models.farm import Plot


class Campaign(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A seasonal cultivation campaign over a set of plots."""

    __tablename__ = "multi_plot_campaigns"
    __table_args__ = (
        Index("ix_multi_plot_campaigns_season_year_status", "season", "year", "status"),
        CheckConstraint("total_area_ha >= 0", name="ck_multi_plot_campaigns_total_area"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    crop_type: Mapped[str] = mapped_column(String(100), nullable=False)
    season: Mapped[SeasonEnum] = mapped_column(
        Enum(
            SeasonEnum,
            name="season",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    total_area_ha: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        server_default=text("0"),
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[CampaignStatusEnum] = mapped_column(
        Enum(
            CampaignStatusEnum,
            name="campaign_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=CampaignStatusEnum.planned,
        server_default=CampaignStatusEnum.planned.value,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Relationships ────────────────────────────────────────────────────
    # Links load oldest first; ``id`` breaks ties between rows of one insert.
    plots: Mapped[list[CampaignPlot]] = relationship(
        back_populates="campaign",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=lambda: (CampaignPlot.created_at, CampaignPlot.id),
    )

    def __repr__(self) -> str:
        return (
            f"<Campaign id={self.id} name={self.name!r} "
            f"{self.season} {self.year} status={self.status}>"
        )


class CampaignPlot(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Association row: how much of a plot a campaign plants."""

    __tablename__ = "campaign_plots"
    __table_args__ = (
        UniqueConstraint("campaign_id", "plot_id", name="uq_campaign_plots_campaign_plot"),
        Index("ix_campaign_plots_plot_id", "plot_id"),
        CheckConstraint("planted_area_ha > 0", name="ck_campaign_plots_planted_area_positive"),
    )

    campaign_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("multi_plot_campaigns.id", ondelete="CASCADE"),
        nullable=False,
    )
    plot_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("plots.id", ondelete="RESTRICT"),
        nullable=False,
    )
    planted_area_ha: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Relationships ────────────────────────────────────────────────────
    campaign: Mapped[Campaign] = relationship(back_populates="plots")
    plot: Mapped[Plot] = relationship(back_populates="campaign_links", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<CampaignPlot campaign={self.campaign_id} plot={self.plot_id} "
            f"area={self.planted_area_ha}>"
        )
