"""Plot CRUD routes and the stateless map-polygon area estimate."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.auth.access import accessible_farm_ids, ensure_farm_access
from ralfarm.auth.dependencies import ADMIN_ROLES, get_current_user, require_role
from ralfarm.database import get_db
from ralfarm.models.enums import PlotStatusEnum
from ralfarm.models.user import User
from ralfarm.routes.errors import map_service_error
from ralfarm.schemas.farm import (
	AreaEstimateRead,
	AreaEstimateRequest,
	PlotCreate,
	PlotListRead,
	PlotRead,
	PlotUpdate,
)
from ralfarm.services.farm_service import FarmService
from ralfarm.services.geometry import estimate_area_hectares

router = APIRouter(prefix="/plots", tags=["plots"])


@router.post("/estimate-area", response_model=AreaEstimateRead)
async def estimate_area(
	payload: AreaEstimateRequest,
	_user: User = Depends(get_current_user),
) -> AreaEstimateRead:
	points = [(point.lat, point.lng) for point in payload.points]
	return AreaEstimateRead(area_hectares=estimate_area_hectares(points), point_count=len(points))


@router.post("", response_model=PlotRead, status_code=status.HTTP_201_CREATED)
async def create_plot(
	payload: PlotCreate,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> PlotRead:
	try:
		await ensure_farm_access(db, user, [payload.farm_id])
		plot = await FarmService(db).create_plot(payload)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return PlotRead.model_validate(plot)


@router.get("", response_model=PlotListRead)
async def list_plots(
	farm_id: uuid.UUID | None = Query(default=None),
	plot_status: PlotStatusEnum | None = Query(default=None, alias="status"),
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> PlotListRead:
	try:
		if farm_id is not None:
			await ensure_farm_access(db, user, [farm_id])
			farm_ids: list[uuid.UUID] | None = [farm_id]
		else:
			farm_ids = await accessible_farm_ids(db, user)
		plots = await FarmService(db).list_plots(farm_ids, plot_status)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return PlotListRead(items=[PlotRead.model_validate(plot) for plot in plots])


@router.get("/{plot_id}", response_model=PlotRead)
async def get_plot(
	plot_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> PlotRead:
	try:
		plot = await FarmService(db).get_plot(plot_id)
		await ensure_farm_access(db, user, [plot.farm_id])
	except Exception as exc:
		raise map_service_error(exc) from exc
	return PlotRead.model_validate(plot)


@router.patch("/{plot_id}", response_model=PlotRead)
async def update_plot(
	plot_id: uuid.UUID,
	payload: PlotUpdate,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> PlotRead:
	service = FarmService(db)
	try:
		plot = await service.get_plot(plot_id)
		await ensure_farm_access(db, user, [plot.farm_id])
		plot = await service.update_plot(plot_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return PlotRead.model_validate(plot)


@router.delete("/{plot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plot(
	plot_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(require_role(*ADMIN_ROLES)),
) -> Response:
	service = FarmService(db)
	try:
		plot = await service.get_plot(plot_id)
		await ensure_farm_access(db, user, [plot.farm_id])
		await service.delete_plot(plot_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
