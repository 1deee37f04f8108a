"""Farm and Plot ORM models.

A farm belongs to exactly one company.  Plots are the unit of cultivation;
``calculated_area`` (hectares) is either supplied by the client or estimated
from the hand-drawn ``coordinates`` polygon.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from geoalchemy2 import Geography
from sqlalchemy import CheckConstraint, Enum, Float, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ralfarm.models.base import Base, RecordStatusMixin, TimestampMixin, UUIDPrimaryKeyMixin
from ralfarm.models.enums import PlotStatusEnum, RentTypeEnum

if TYPE_CHECKING:
    from ralfarm.models.campaign import CampaignPlot
    from ralfarm.models.company import Company

# ═══════════════════════════════════════════════════════════════════════════
# Farm
# ═══════════════════════════════════════════════════════════════════════════


class Farm(Base, UUIDPrimaryKeyMixin, TimestampMixin, RecordStatusMixin):
    """A physical farm owned by a company.

    ``total_area`` is a cached roll-up of its plots' ``calculated_area``,
    refreshed by ``FarmService.recalculate_total_area``.
    """

    __tablename__ = "farms"
    __table_args__ = (Index("ix_farms_company_id", "company_id"),)

    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    total_area: Mapped[float | None] = mapped_column(Float, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    location: Mapped[Any] = mapped_column(
        Geography(geometry_type="POINT", srid=4326),
        nullable=True,
        deferred=True,
    )

    # ── Relationships ────────────────────────────────────────────────────
    company: Mapped[Company] = relationship(back_populates="farms")
    plots: Mapped[list[Plot]] = relationship(
        back_populates="farm",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Farm id={self.id} name={self.name!r} company={self.company_id}>"


# ═══════════════════════════════════════════════════════════════════════════
# Plot
# ═══════════════════════════════════════════════════════════════════════════


class Plot(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A bounded parcel of land within a farm.

    ``coordinates`` keeps the ordered map points exactly as drawn
    (``[{"lat": .., "lng": ..}, ...]``); ``boundary`` is the same ring as a
    PostGIS geography for spatial queries.  Geography columns are deferred:
    responses serve ``coordinates`` and never read the raw geometry.
    """

    __tablename__ = "plots"
    __table_args__ = (
        Index("ix_plots_farm_id", "farm_id"),
        CheckConstraint("calculated_area >= 0", name="ck_plots_calculated_area_non_negative"),
        CheckConstraint(
            "slope_percentage IS NULL OR (slope_percentage >= 0 AND slope_percentage <= 100)",
            name="ck_plots_slope_percentage_range",
        ),
    )

    farm_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("farms.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    coordinates: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    boundary: Mapped[Any] = mapped_column(
        Geography(geometry_type="POLYGON", srid=4326),
        nullable=True,
        deferred=True,
    )
    calculated_area: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        server_default=text("0"),
    )
    soil_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    slope_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[PlotStatusEnum] = mapped_column(
        Enum(
            PlotStatusEnum,
            name="plot_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=PlotStatusEnum.free,
        server_default=PlotStatusEnum.free.value,
    )
    rent_type: Mapped[RentTypeEnum | None] = mapped_column(
        Enum(
            RentTypeEnum,
            name="rent_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=True,
    )
    rent_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    rent_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    rent_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Relationships ────────────────────────────────────────────────────
    farm: Mapped[Farm] = relationship(back_populates="plots")
    campaign_links: Mapped[list[CampaignPlot]] = relationship(
        back_populates="plot",
        passive_deletes="all",
    )

    def __repr__(self) -> str:
        return (
            f"<Plot id={self.id} name={self.name!r} farm={self.farm_id} "
            f"area={self.calculated_area}>"
        )
