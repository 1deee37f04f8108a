"""Company routes: tenant management is reserved to super admins."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.auth.dependencies import require_role
from ralfarm.database import get_db
from ralfarm.models.enums import UserRoleEnum
from ralfarm.routes.errors import map_service_error
from ralfarm.schemas.farm import CompanyCreate, CompanyListRead, CompanyRead
from ralfarm.services.farm_service import FarmService

router = APIRouter(prefix="/companies", tags=["companies"])

_super_admin = require_role(UserRoleEnum.super_admin)


@router.post("", response_model=CompanyRead, status_code=status.HTTP_201_CREATED)
async def create_company(
	payload: CompanyCreate,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(_super_admin),
) -> CompanyRead:
	try:
		company = await FarmService(db).create_company(payload)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return CompanyRead.model_validate(company)


@router.get("", response_model=CompanyListRead)
async def list_companies(
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(_super_admin),
) -> CompanyListRead:
	try:
		companies = await FarmService(db).list_companies()
	except Exception as exc:
		raise map_service_error(exc) from exc
	return CompanyListRead(items=[CompanyRead.model_validate(company) for company in companies])


@router.get("/{company_id}", response_model=CompanyRead)
async def get_company(
	company_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: object = Depends(_super_admin),
) -> CompanyRead:
	try:
		company = await FarmService(db).get_company(company_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return CompanyRead.model_validate(company)
