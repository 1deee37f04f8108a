"""Multi-plot campaign routes."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.auth.access import accessible_farm_ids, ensure_farm_access
from ralfarm.auth.dependencies import ADMIN_ROLES, get_current_user, require_role
from ralfarm.database import get_db
from ralfarm.models.enums import CampaignStatusEnum, SeasonEnum
from ralfarm.models.user import User
from ralfarm.routes.errors import map_service_error
from ralfarm.schemas.campaign import (
	CampaignCreate,
	CampaignListRead,
	CampaignPlotRead,
	CampaignRead,
	CampaignStatusUpdate,
	CampaignUpdate,
)
from ralfarm.services.campaign_service import CampaignPlotAllocator

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


def _to_campaign_read(campaign: Any) -> CampaignRead:
	plots = []
	for link in campaign.plots:
		plot = link.plot
		plots.append(
			CampaignPlotRead(
				plot_id=link.plot_id,
				plot_name=plot.name if plot is not None else None,
				farm_id=plot.farm_id if plot is not None else None,
				planted_area_ha=link.planted_area_ha,
				plot_area=plot.calculated_area if plot is not None else None,
			)
		)
	return CampaignRead(
		id=campaign.id,
		name=campaign.name,
		crop_type=campaign.crop_type,
		season=campaign.season,
		year=campaign.year,
		total_area_ha=campaign.total_area_ha,
		start_date=campaign.start_date,
		end_date=campaign.end_date,
		status=campaign.status,
		notes=campaign.notes,
		created_at=campaign.created_at,
		updated_at=campaign.updated_at,
		plots=plots,
	)


async def _load_accessible(
	allocator: CampaignPlotAllocator,
	db: AsyncSession,
	user: User,
	campaign_id: uuid.UUID,
) -> Any:
	campaign = await allocator.get_campaign(campaign_id)
	await ensure_farm_access(db, user, allocator.campaign_farm_ids(campaign))
	return campaign


@router.post("", response_model=CampaignRead, status_code=status.HTTP_201_CREATED)
async def create_campaign(
	payload: CampaignCreate,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> CampaignRead:
	allocator = CampaignPlotAllocator(db)
	try:
		plot_farms = await allocator.farm_ids_for_plots(a.plot_id for a in payload.plot_assignments)
		await ensure_farm_access(db, user, plot_farms)
		campaign = await allocator.create_campaign(payload)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return _to_campaign_read(campaign)


@router.get("", response_model=CampaignListRead)
async def list_campaigns(
	farm_id: uuid.UUID | None = Query(default=None),
	campaign_status: CampaignStatusEnum | None = Query(default=None, alias="status"),
	year: int | None = Query(default=None),
	season: SeasonEnum | None = Query(default=None),
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> CampaignListRead:
	allocator = CampaignPlotAllocator(db)
	try:
		if farm_id is not None:
			await ensure_farm_access(db, user, [farm_id])
			farm_ids: list[uuid.UUID] | None = [farm_id]
		else:
			farm_ids = await accessible_farm_ids(db, user)
		campaigns = await allocator.list_campaigns(
			farm_ids=farm_ids,
			status=campaign_status,
			year=year,
			season=season,
		)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return CampaignListRead(items=[_to_campaign_read(campaign) for campaign in campaigns])


@router.get("/{campaign_id}", response_model=CampaignRead)
async def get_campaign(
	campaign_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> CampaignRead:
	allocator = CampaignPlotAllocator(db)
	try:
		campaign = await _load_accessible(allocator, db, user, campaign_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return _to_campaign_read(campaign)


@router.put("/{campaign_id}", response_model=CampaignRead)
async def edit_campaign(
	campaign_id: uuid.UUID,
	payload: CampaignUpdate,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> CampaignRead:
	allocator = CampaignPlotAllocator(db)
	try:
		await _load_accessible(allocator, db, user, campaign_id)
		plot_farms = await allocator.farm_ids_for_plots(a.plot_id for a in payload.plot_assignments)
		await ensure_farm_access(db, user, plot_farms)
		campaign = await allocator.edit_campaign(campaign_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return _to_campaign_read(campaign)


@router.patch("/{campaign_id}/status", response_model=CampaignRead)
async def change_campaign_status(
	campaign_id: uuid.UUID,
	payload: CampaignStatusUpdate,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> CampaignRead:
	allocator = CampaignPlotAllocator(db)
	try:
		await _load_accessible(allocator, db, user, campaign_id)
		campaign = await allocator.change_status(campaign_id, payload.status)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return _to_campaign_read(campaign)


@router.delete("/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_campaign(
	campaign_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(require_role(*ADMIN_ROLES)),
) -> Response:
	allocator = CampaignPlotAllocator(db)
	try:
		await _load_accessible(allocator, db, user, campaign_id)
		await allocator.delete_campaign(campaign_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
