"""Company, farm and plot CRUD service."""

from __future__ import annotations

import uuid
from typing import Any

from geoalchemy2.elements import WKTElement
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.config import get_settings
from ralfarm.models.company import Company
from ralfarm.models.enums import PlotStatusEnum
from ralfarm.models.farm import Farm, Plot
from ralfarm.schemas.farm import CompanyCreate, FarmCreate, FarmUpdate, PlotCreate, PlotUpdate
from ralfarm.services.errors import NotFoundError, ValidationError, flush_changes
from ralfarm.services.geometry import estimate_area_hectares, points_to_wkt_polygon

WGS84_SRID = 4326


class FarmService:
	"""Service for the tenant topology: companies own farms, farms own plots."""

	def __init__(self, db: AsyncSession):
		self.db = db

	# ── Companies ────────────────────────────────────────────────────────

	async def create_company(self, payload: CompanyCreate) -> Company:
		company = Company(**payload.model_dump())
		self.db.add(company)
		await self._flush("company")
		await self.db.refresh(company)
		return company

	async def list_companies(self) -> list[Company]:
		rows = await self.db.execute(select(Company).order_by(Company.name.asc()))
		return list(rows.scalars().all())

	async def get_company(self, company_id: uuid.UUID) -> Company:
		company = await self.db.get(Company, company_id)
		if company is None:
			raise NotFoundError(f"Company {company_id} not found")
		return company

	# ── Farms ────────────────────────────────────────────────────────────

	async def create_farm(self, payload: FarmCreate, company_id: uuid.UUID) -> Farm:
		await self.get_company(company_id)
		farm = Farm(
			company_id=company_id,
			name=payload.name,
			description=payload.description,
			address=payload.address,
			latitude=payload.latitude,
			longitude=payload.longitude,
			location=self._point(payload.latitude, payload.longitude),
		)
		self.db.add(farm)
		await self._flush("farm")
		await self.db.refresh(farm)
		return farm

	async def list_farms(self, farm_ids: list[uuid.UUID] | None = None) -> list[Farm]:
		stmt = select(Farm).order_by(Farm.created_at.desc())
		if farm_ids is not None:
			if not farm_ids:
				return []
			stmt = stmt.where(Farm.id.in_(farm_ids))
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def get_farm(self, farm_id: uuid.UUID) -> Farm:
		row = await self.db.execute(select(Farm).where(Farm.id == farm_id))
		farm = row.scalar_one_or_none()
		if farm is None:
			raise NotFoundError(f"Farm {farm_id} not found")
		return farm

	async def update_farm(self, farm_id: uuid.UUID, payload: FarmUpdate) -> Farm:
		farm = await self.get_farm(farm_id)
		for key, value in payload.model_dump(exclude_unset=True).items():
			setattr(farm, key, value)
		if {"latitude", "longitude"} & payload.model_fields_set:
			farm.location = self._point(farm.latitude, farm.longitude)
		await self._flush("farm")
		await self.db.refresh(farm)
		return farm

	async def recalculate_total_area(self, farm_id: uuid.UUID) -> dict[str, Any]:
		"""Roll plot areas up into ``Farm.total_area``; missing areas count as zero."""
		farm = await self.get_farm(farm_id)
		row = await self.db.execute(
			select(
				func.coalesce(func.sum(func.coalesce(Plot.calculated_area, 0.0)), 0.0),
				func.count(Plot.id),
			).where(Plot.farm_id == farm.id)
		)
		total_area, plots_count = row.one()
		farm.total_area = float(total_area)
		await self._flush("farm")
		return {
			"farm_id": farm.id,
			"total_area": farm.total_area,
			"plots_count": int(plots_count),
		}

	# ── Plots ────────────────────────────────────────────────────────────

	async def create_plot(self, payload: PlotCreate) -> Plot:
		await self.get_farm(payload.farm_id)
		data = payload.model_dump(exclude={"coordinates", "calculated_area"})
		coordinates = self._coordinates(payload.coordinates)
		plot = Plot(
			**data,
			coordinates=coordinates,
			boundary=self._boundary(coordinates),
			calculated_area=self._resolve_area(payload.calculated_area, coordinates),
		)
		self.db.add(plot)
		await self._flush("plot")
		await self.db.refresh(plot)
		return plot

	async def list_plots(
		self,
		farm_ids: list[uuid.UUID] | None = None,
		status: PlotStatusEnum | None = None,
	) -> list[Plot]:
		stmt = select(Plot).order_by(Plot.name.asc())
		if farm_ids is not None:
			if not farm_ids:
				return []
			stmt = stmt.where(Plot.farm_id.in_(farm_ids))
		if status is not None:
			stmt = stmt.where(Plot.status == status)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def get_plot(self, plot_id: uuid.UUID) -> Plot:
		plot = await self.db.get(Plot, plot_id)
		if plot is None:
			raise NotFoundError(f"Plot {plot_id} not found")
		return plot

	async def update_plot(self, plot_id: uuid.UUID, payload: PlotUpdate) -> Plot:
		plot = await self.get_plot(plot_id)
		changes = payload.model_dump(exclude_unset=True, exclude={"coordinates", "calculated_area"})
		for key, value in changes.items():
			setattr(plot, key, value)

		if "coordinates" in payload.model_fields_set:
			plot.coordinates = self._coordinates(payload.coordinates)
			plot.boundary = self._boundary(plot.coordinates)
		if payload.calculated_area is not None:
			plot.calculated_area = payload.calculated_area
		elif plot.coordinates and len(plot.coordinates) >= 3 and "coordinates" in payload.model_fields_set:
			plot.calculated_area = self._round_area(estimate_area_hectares(plot.coordinates))

		await self._flush("plot")
		await self.db.refresh(plot)
		return plot

	async def delete_plot(self, plot_id: uuid.UUID) -> None:
		plot = await self.get_plot(plot_id)
		await self.db.delete(plot)
		await self._flush("plot")

	# ── Helpers ──────────────────────────────────────────────────────────

	async def _flush(self, entity: str) -> None:
		await flush_changes(self.db, entity)

	@staticmethod
	def _coordinates(points: list[Any] | None) -> list[dict[str, float]] | None:
		if points is None:
			return None
		return [{"lat": point.lat, "lng": point.lng} for point in points]

	@staticmethod
	def _boundary(coordinates: list[dict[str, float]] | None) -> WKTElement | None:
		if not coordinates:
			return None
		wkt = points_to_wkt_polygon(coordinates)
		if wkt is None:
			return None
		return WKTElement(wkt, srid=WGS84_SRID)

	@staticmethod
	def _resolve_area(
		explicit: float | None,
		coordinates: list[dict[str, float]] | None,
	) -> float:
		if explicit is not None:
			return explicit
		if coordinates and len(coordinates) >= 3:
			return FarmService._round_area(estimate_area_hectares(coordinates))
		raise ValidationError("calculated_area is required when fewer than 3 coordinates are given")

	@staticmethod
	def _round_area(hectares: float) -> float:
		return round(hectares, get_settings().area_decimal_places)

	@staticmethod
	def _point(latitude: float | None, longitude: float | None) -> WKTElement | None:
		if latitude is None or longitude is None:
			return None
		return WKTElement(f"POINT({longitude} {latitude})", srid=WGS84_SRID)
