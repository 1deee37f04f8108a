"""Multi-plot campaign allocation: validation, season-conflict detection and atomic writes.

A campaign and its plot links are always written inside one SAVEPOINT, so a
failure while inserting links leaves neither the campaign row nor any link
behind.  Edits replace the link set wholesale (delete all, insert new) inside
the same kind of savepoint, so a campaign is never observed without plots.

The season-conflict check is a read-before-write pre-check; two concurrent
allocations for the same plot can still both pass it.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ralfarm.models.campaign import Campaign, CampaignPlot
from ralfarm.models.enums import BLOCKING_CAMPAIGN_STATUSES, CampaignStatusEnum, SeasonEnum
from ralfarm.models.farm import Plot
from ralfarm.schemas.campaign import CampaignCreate, CampaignUpdate, PlotAssignmentIn
from ralfarm.services.errors import ConflictError, NotFoundError, PersistenceError, ValidationError

logger = structlog.get_logger("ralfarm.campaigns")


class CampaignPlotAllocator:
	"""Creates and edits multi-plot campaigns against an injected session."""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def create_campaign(self, payload: CampaignCreate) -> Campaign:
		assignments = self._normalize_assignments(payload.plot_assignments)
		plot_ids = list(assignments)
		plots = await self._fetch_plots(plot_ids)
		self._validate_area_bounds(assignments, plots)
		await self._ensure_no_season_conflict(plot_ids, payload.season, payload.year)

		campaign = Campaign(
			name=payload.name,
			crop_type=payload.crop_type,
			season=payload.season,
			year=payload.year,
			start_date=payload.start_date,
			end_date=payload.end_date,
			notes=payload.notes,
			status=CampaignStatusEnum.planned,
			total_area_ha=self._total_area(assignments),
			plots=[],
		)
		async with self._atomic("create", campaign_name=payload.name):
			self.db.add(campaign)
			await self.db.flush()
			campaign.plots.extend(self._build_links(assignments))
			await self.db.flush()

		logger.info(
			"campaign_created",
			campaign_id=str(campaign.id),
			plots=len(assignments),
			total_area_ha=campaign.total_area_ha,
		)
		return await self.get_campaign(campaign.id)

	async def edit_campaign(self, campaign_id: uuid.UUID, payload: CampaignUpdate) -> Campaign:
		campaign = await self.get_campaign(campaign_id)
		assignments = self._normalize_assignments(payload.plot_assignments)
		plot_ids = list(assignments)
		plots = await self._fetch_plots(plot_ids)
		self._validate_area_bounds(assignments, plots)
		self._validate_same_farm(campaign, plots)
		if campaign.status in BLOCKING_CAMPAIGN_STATUSES:
			await self._ensure_no_season_conflict(
				plot_ids,
				payload.season,
				payload.year,
				exclude_campaign_id=campaign.id,
			)

		async with self._atomic("edit", campaign_id=str(campaign.id)):
			campaign.name = payload.name
			campaign.crop_type = payload.crop_type
			campaign.season = payload.season
			campaign.year = payload.year
			campaign.start_date = payload.start_date
			campaign.end_date = payload.end_date
			campaign.notes = payload.notes
			campaign.total_area_ha = self._total_area(assignments)
			campaign.plots.clear()
			await self.db.flush()
			campaign.plots.extend(self._build_links(assignments))
			await self.db.flush()

		logger.info(
			"campaign_edited",
			campaign_id=str(campaign.id),
			plots=len(assignments),
			total_area_ha=campaign.total_area_ha,
		)
		return await self.get_campaign(campaign.id)

	async def get_campaign(self, campaign_id: uuid.UUID) -> Campaign:
		campaign = await self.db.get(
			Campaign,
			campaign_id,
			options=[selectinload(Campaign.plots).selectinload(CampaignPlot.plot)],
			populate_existing=True,
		)
		if campaign is None:
			raise NotFoundError(f"Campaign {campaign_id} not found")
		return campaign

	async def list_campaigns(
		self,
		*,
		farm_ids: Sequence[uuid.UUID] | None = None,
		status: CampaignStatusEnum | None = None,
		year: int | None = None,
		season: SeasonEnum | None = None,
	) -> list[Campaign]:
		stmt = (
			select(Campaign)
			.options(selectinload(Campaign.plots).selectinload(CampaignPlot.plot))
			.order_by(Campaign.created_at.desc())
		)
		if farm_ids is not None:
			if not farm_ids:
				return []
			scoped = (
				select(CampaignPlot.campaign_id)
				.join(Plot, Plot.id == CampaignPlot.plot_id)
				.where(Plot.farm_id.in_(list(farm_ids)))
			)
			stmt = stmt.where(Campaign.id.in_(scoped))
		if status is not None:
			stmt = stmt.where(Campaign.status == status)
		if year is not None:
			stmt = stmt.where(Campaign.year == year)
		if season is not None:
			stmt = stmt.where(Campaign.season == season)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def change_status(self, campaign_id: uuid.UUID, status: CampaignStatusEnum) -> Campaign:
		campaign = await self.get_campaign(campaign_id)
		reactivating = (
			status in BLOCKING_CAMPAIGN_STATUSES
			and campaign.status not in BLOCKING_CAMPAIGN_STATUSES
		)
		if reactivating:
			await self._ensure_no_season_conflict(
				[link.plot_id for link in campaign.plots],
				campaign.season,
				campaign.year,
				exclude_campaign_id=campaign.id,
			)
		async with self._atomic("status", campaign_id=str(campaign.id)):
			campaign.status = status
			await self.db.flush()
		logger.info("campaign_status_changed", campaign_id=str(campaign.id), status=status.value)
		return await self.get_campaign(campaign.id)

	async def delete_campaign(self, campaign_id: uuid.UUID) -> None:
		campaign = await self.get_campaign(campaign_id)
		async with self._atomic("delete", campaign_id=str(campaign.id)):
			await self.db.delete(campaign)
			await self.db.flush()

	async def farm_ids_for_plots(self, plot_ids: Iterable[uuid.UUID]) -> set[uuid.UUID]:
		ids = list(plot_ids)
		if not ids:
			return set()
		rows = await self.db.execute(select(Plot.farm_id).where(Plot.id.in_(ids)))
		return set(rows.scalars().all())

	@staticmethod
	def campaign_farm_ids(campaign: Campaign) -> set[uuid.UUID]:
		return {link.plot.farm_id for link in campaign.plots if link.plot is not None}

	# ── Validation ───────────────────────────────────────────────────────

	@staticmethod
	def _normalize_assignments(raw: Sequence[PlotAssignmentIn]) -> dict[uuid.UUID, float]:
		if not raw:
			raise ValidationError("at least one plot assignment is required")
		assignments: dict[uuid.UUID, float] = {}
		for item in raw:
			if item.plot_id in assignments:
				raise ValidationError(f"plot {item.plot_id} is assigned more than once")
			assignments[item.plot_id] = float(item.planted_area_ha)
		return assignments

	async def _fetch_plots(self, plot_ids: list[uuid.UUID]) -> dict[uuid.UUID, Plot]:
		rows = await self.db.execute(select(Plot).where(Plot.id.in_(plot_ids)))
		plots = {plot.id: plot for plot in rows.scalars().all()}
		if len(plots) != len(plot_ids):
			missing = ", ".join(str(plot_id) for plot_id in plot_ids if plot_id not in plots)
			raise ValidationError(f"plots do not exist: {missing}")
		return plots

	@staticmethod
	def _validate_area_bounds(assignments: dict[uuid.UUID, float], plots: dict[uuid.UUID, Plot]) -> None:
		for plot_id, planted in assignments.items():
			plot = plots[plot_id]
			plot_area = plot.calculated_area or 0.0
			if not planted > 0:
				raise ValidationError(
					f"Planted area ({planted}ha) must be greater than 0 for plot {plot.name} ({plot_id})"
				)
			if planted > plot_area:
				raise ValidationError(
					f"Planted area ({planted}ha) exceeds plot area ({plot_area}ha) "
					f"for plot {plot.name} ({plot_id})"
				)

	@classmethod
	def _validate_same_farm(cls, campaign: Campaign, plots: dict[uuid.UUID, Plot]) -> None:
		# Farm affiliation lives on plots only; the first existing link decides.
		if not campaign.plots or campaign.plots[0].plot is None:
			return
		farm_id = campaign.plots[0].plot.farm_id
		foreign = [str(plot_id) for plot_id, plot in plots.items() if plot.farm_id != farm_id]
		if foreign:
			raise ValidationError(
				f"Plots {', '.join(foreign)} do not belong to farm {farm_id} of this campaign"
			)

	async def _find_conflicts(
		self,
		plot_ids: list[uuid.UUID],
		season: SeasonEnum,
		year: int,
		exclude_campaign_id: uuid.UUID | None = None,
	) -> list[uuid.UUID]:
		if not plot_ids:
			return []
		stmt = (
			select(CampaignPlot.plot_id)
			.join(Campaign, Campaign.id == CampaignPlot.campaign_id)
			.where(
				CampaignPlot.plot_id.in_(plot_ids),
				Campaign.season == season,
				Campaign.year == year,
				Campaign.status.in_(list(BLOCKING_CAMPAIGN_STATUSES)),
			)
		)
		if exclude_campaign_id is not None:
			stmt = stmt.where(Campaign.id != exclude_campaign_id)
		rows = await self.db.execute(stmt)
		return list(dict.fromkeys(rows.scalars().all()))

	async def _ensure_no_season_conflict(
		self,
		plot_ids: list[uuid.UUID],
		season: SeasonEnum,
		year: int,
		exclude_campaign_id: uuid.UUID | None = None,
	) -> None:
		conflicts = await self._find_conflicts(plot_ids, season, year, exclude_campaign_id)
		if conflicts:
			joined = ", ".join(str(plot_id) for plot_id in conflicts)
			raise ConflictError(
				f"Plots {joined} are already assigned to other active campaigns in {season} {year}",
				conflicts,
			)

	# ── Persistence ──────────────────────────────────────────────────────

	@staticmethod
	def _total_area(assignments: dict[uuid.UUID, float]) -> float:
		return sum(assignments.values())

	@staticmethod
	def _build_links(assignments: dict[uuid.UUID, float]) -> list[CampaignPlot]:
		return [
			CampaignPlot(plot_id=plot_id, planted_area_ha=planted)
			for plot_id, planted in assignments.items()
		]

	@asynccontextmanager
	async def _atomic(self, operation: str, **context: Any):
		try:
			async with self.db.begin_nested():
				yield
		except IntegrityError as exc:
			logger.warning("campaign_write_rolled_back", operation=operation, reason="integrity", **context)
			raise ConflictError(f"campaign {operation} conflicts with existing data") from exc
		except (SQLAlchemyError, OSError, TimeoutError) as exc:
			logger.warning("campaign_write_rolled_back", operation=operation, reason=str(exc), **context)
			raise PersistenceError(f"campaign {operation} failed: {exc}") from exc
