"""User administration routes for super admins and company admins.

A company admin manages only ``admin_farm`` and ``engineer`` accounts of its
own company; everything else needs a super admin.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.auth.dependencies import require_role
from ralfarm.database import get_db
from ralfarm.models.enums import RecordStatusEnum, UserRoleEnum
from ralfarm.models.user import User
from ralfarm.routes.errors import map_service_error
from ralfarm.schemas.user import (
	UserAdminRead,
	UserCreate,
	UserFarmsUpdate,
	UserListRead,
	UserStatusUpdate,
)
from ralfarm.services.user_service import ASSIGNABLE_ROLES, UserService

router = APIRouter(prefix="/users", tags=["users"])

_user_admin = require_role(UserRoleEnum.super_admin, UserRoleEnum.admin_company)


def _forbidden(message: str) -> HTTPException:
	return HTTPException(
		status_code=status.HTTP_403_FORBIDDEN,
		detail={"error": "user_forbidden", "message": message},
	)


def _to_user_read(user: User) -> UserAdminRead:
	return UserAdminRead(
		id=user.id,
		email=user.email,
		full_name=user.full_name,
		role=user.role,
		company_id=user.company_id,
		status=user.status,
		last_login=user.last_login,
		farm_ids=UserService.assigned_farm_ids(user),
		created_at=user.created_at,
	)


def _ensure_manageable(actor: User, company_id: uuid.UUID | None, role: UserRoleEnum) -> None:
	if actor.role == UserRoleEnum.super_admin:
		return
	if company_id is None or company_id != actor.company_id:
		raise _forbidden("Users of other companies are not manageable")
	if role not in ASSIGNABLE_ROLES:
		raise _forbidden(f"Company admins cannot manage {role.value} users")


async def _load_manageable(service: UserService, actor: User, user_id: uuid.UUID) -> User:
	target = await service.get_user(user_id)
	_ensure_manageable(actor, target.company_id, target.role)
	return target


@router.post("", response_model=UserAdminRead, status_code=status.HTTP_201_CREATED)
async def create_user(
	payload: UserCreate,
	db: AsyncSession = Depends(get_db),
	actor: User = Depends(_user_admin),
) -> UserAdminRead:
	if actor.role == UserRoleEnum.admin_company and payload.company_id is None:
		payload = payload.model_copy(update={"company_id": actor.company_id})
	_ensure_manageable(actor, payload.company_id, payload.role)
	try:
		user = await UserService(db).create_user(payload)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return _to_user_read(user)


@router.get("", response_model=UserListRead)
async def list_users(
	company_id: uuid.UUID | None = Query(default=None),
	db: AsyncSession = Depends(get_db),
	actor: User = Depends(_user_admin),
) -> UserListRead:
	if actor.role == UserRoleEnum.admin_company:
		if company_id is not None and company_id != actor.company_id:
			raise _forbidden("Users of other companies are not visible")
		company_id = actor.company_id
	try:
		users = await UserService(db).list_users(company_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return UserListRead(items=[_to_user_read(user) for user in users])


@router.get("/{user_id}", response_model=UserAdminRead)
async def get_user(
	user_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	actor: User = Depends(_user_admin),
) -> UserAdminRead:
	service = UserService(db)
	try:
		user = await service.get_user(user_id)
		if actor.role != UserRoleEnum.super_admin and user.company_id != actor.company_id:
			raise _forbidden("Users of other companies are not visible")
	except Exception as exc:
		raise map_service_error(exc) from exc
	return _to_user_read(user)


@router.put("/{user_id}/farms", response_model=UserAdminRead)
async def set_user_farms(
	user_id: uuid.UUID,
	payload: UserFarmsUpdate,
	db: AsyncSession = Depends(get_db),
	actor: User = Depends(_user_admin),
) -> UserAdminRead:
	service = UserService(db)
	try:
		await _load_manageable(service, actor, user_id)
		user = await service.set_farm_assignments(user_id, payload.farm_ids)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return _to_user_read(user)


@router.patch("/{user_id}/status", response_model=UserAdminRead)
async def set_user_status(
	user_id: uuid.UUID,
	payload: UserStatusUpdate,
	db: AsyncSession = Depends(get_db),
	actor: User = Depends(_user_admin),
) -> UserAdminRead:
	if user_id == actor.id and payload.status != RecordStatusEnum.active:
		raise _forbidden("Users cannot deactivate themselves")
	service = UserService(db)
	try:
		await _load_manageable(service, actor, user_id)
		user = await service.set_status(user_id, payload.status)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return _to_user_read(user)
