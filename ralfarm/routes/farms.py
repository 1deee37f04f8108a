"""Farm CRUD and area roll-up routes."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.auth.access import accessible_farm_ids, ensure_farm_access
from ralfarm.auth.dependencies import ADMIN_ROLES, get_current_user, require_role
from ralfarm.database import get_db
from ralfarm.models.enums import UserRoleEnum
from ralfarm.models.user import User
from ralfarm.routes.errors import map_service_error
from ralfarm.schemas.farm import FarmAreaRead, FarmCreate, FarmListRead, FarmRead, FarmUpdate
from ralfarm.services.farm_service import FarmService

router = APIRouter(prefix="/farms", tags=["farms"])


def _to_farm_read(farm: Any) -> FarmRead:
	return FarmRead(
		id=farm.id,
		company_id=farm.company_id,
		name=farm.name,
		description=farm.description,
		address=farm.address,
		total_area=farm.total_area,
		latitude=farm.latitude,
		longitude=farm.longitude,
		status=farm.status,
		plots_count=len(farm.plots or []),
		created_at=farm.created_at,
		updated_at=farm.updated_at,
	)


def _target_company(user: User, payload: FarmCreate) -> uuid.UUID:
	if user.role == UserRoleEnum.super_admin:
		if payload.company_id is None:
			raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="company_id is required")
		return payload.company_id
	if user.company_id is None or payload.company_id not in (None, user.company_id):
		raise HTTPException(
			status_code=status.HTTP_403_FORBIDDEN,
			detail={"error": "forbidden", "message": "Farms can only be created in your own company"},
		)
	return user.company_id


@router.post("", response_model=FarmRead, status_code=status.HTTP_201_CREATED)
async def create_farm(
	payload: FarmCreate,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(require_role(UserRoleEnum.super_admin, UserRoleEnum.admin_company)),
) -> FarmRead:
	company_id = _target_company(user, payload)
	service = FarmService(db)
	try:
		farm = await service.create_farm(payload, company_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return _to_farm_read(farm)


@router.get("", response_model=FarmListRead)
async def list_farms(
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FarmListRead:
	try:
		farm_ids = await accessible_farm_ids(db, user)
		farms = await FarmService(db).list_farms(farm_ids)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return FarmListRead(items=[_to_farm_read(farm) for farm in farms])


@router.get("/{farm_id}", response_model=FarmRead)
async def get_farm(
	farm_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FarmRead:
	try:
		await ensure_farm_access(db, user, [farm_id])
		farm = await FarmService(db).get_farm(farm_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return _to_farm_read(farm)


@router.patch("/{farm_id}", response_model=FarmRead)
async def update_farm(
	farm_id: uuid.UUID,
	payload: FarmUpdate,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(require_role(*ADMIN_ROLES)),
) -> FarmRead:
	try:
		await ensure_farm_access(db, user, [farm_id])
		farm = await FarmService(db).update_farm(farm_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return _to_farm_read(farm)


@router.post("/{farm_id}/calculate-area", response_model=FarmAreaRead)
async def calculate_farm_area(
	farm_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FarmAreaRead:
	try:
		await ensure_farm_access(db, user, [farm_id])
		result = await FarmService(db).recalculate_total_area(farm_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return FarmAreaRead(**result)
