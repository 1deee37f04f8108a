"""Farm-level access scoping layered over the role model.

``super_admin`` sees everything.  Every other role is confined to farms of
its own company; ``admin_company`` sees all of them, while ``admin_farm`` and
``engineer`` need an explicit ``UserFarmAssignment``.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.models.enums import UserRoleEnum
from ralfarm.models.farm import Farm
from ralfarm.models.user import User, UserFarmAssignment


async def check_farm_access(db: AsyncSession, user: User, farm_id: uuid.UUID) -> bool:
	if user.role == UserRoleEnum.super_admin:
		return True

	row = await db.execute(select(Farm.company_id).where(Farm.id == farm_id))
	company_id = row.scalar_one_or_none()
	if company_id is None or company_id != user.company_id:
		return False

	if user.role == UserRoleEnum.admin_company:
		return True

	row = await db.execute(
		select(UserFarmAssignment.id).where(
			UserFarmAssignment.user_id == user.id,
			UserFarmAssignment.farm_id == farm_id,
		)
	)
	return row.scalar_one_or_none() is not None


async def accessible_farm_ids(db: AsyncSession, user: User) -> list[uuid.UUID] | None:
	"""Farm ids visible to ``user``; ``None`` means unrestricted."""
	if user.role == UserRoleEnum.super_admin:
		return None

	if user.role == UserRoleEnum.admin_company:
		if user.company_id is None:
			return []
		rows = await db.execute(select(Farm.id).where(Farm.company_id == user.company_id))
		return list(rows.scalars().all())

	rows = await db.execute(
		select(UserFarmAssignment.farm_id)
		.join(Farm, Farm.id == UserFarmAssignment.farm_id)
		.where(UserFarmAssignment.user_id == user.id, Farm.company_id == user.company_id)
	)
	return list(rows.scalars().all())


async def ensure_farm_access(db: AsyncSession, user: User, farm_ids: Iterable[uuid.UUID]) -> None:
	for farm_id in set(farm_ids):
		if not await check_farm_access(db, user, farm_id):
			raise HTTPException(
				status_code=status.HTTP_403_FORBIDDEN,
				detail={"error": "farm_forbidden", "message": "No access to this farm"},
			)
