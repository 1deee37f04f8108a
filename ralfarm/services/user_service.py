"""User administration: accounts, lifecycle status and farm assignments.

``super_admin`` accounts stand outside every company.  All other roles belong
to exactly one company, and only ``admin_farm`` and ``engineer`` users carry
farm assignments, which must point at farms of their own company.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ralfarm.auth.dependencies import hash_password
from ralfarm.models.company import Company
from ralfarm.models.enums import RecordStatusEnum, UserRoleEnum
from ralfarm.models.farm import Farm
from ralfarm.models.user import User, UserFarmAssignment
from ralfarm.schemas.user import UserCreate
from ralfarm.services.errors import ConflictError, NotFoundError, ValidationError, flush_changes

logger = structlog.get_logger("ralfarm.users")

ASSIGNABLE_ROLES = frozenset({UserRoleEnum.admin_farm, UserRoleEnum.engineer})


class UserService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def create_user(self, payload: UserCreate) -> User:
		company_id = payload.company_id
		if payload.role == UserRoleEnum.super_admin:
			if company_id is not None:
				raise ValidationError("super_admin accounts do not belong to a company")
		elif company_id is None:
			raise ValidationError(f"{payload.role.value} users must belong to a company")
		else:
			await self._require_company(company_id)

		existing = await self.db.execute(select(User.id).where(User.email == payload.email))
		if existing.scalar_one_or_none() is not None:
			raise ConflictError(f"Email {payload.email} is already registered")

		farm_ids = await self._validate_farms(payload.role, company_id, payload.farm_ids)
		user = User(
			email=payload.email,
			hashed_password=hash_password(payload.password),
			full_name=payload.full_name,
			role=payload.role,
			company_id=company_id,
			farm_assignments=[UserFarmAssignment(farm_id=farm_id) for farm_id in farm_ids],
		)
		self.db.add(user)
		await flush_changes(self.db, "user")
		logger.info("user_created", user_id=str(user.id), role=payload.role.value, farms=len(farm_ids))
		return await self.get_user(user.id)

	async def get_user(self, user_id: uuid.UUID) -> User:
		user = await self.db.get(
			User,
			user_id,
			options=[selectinload(User.farm_assignments)],
			populate_existing=True,
		)
		if user is None:
			raise NotFoundError(f"User {user_id} not found")
		return user

	async def list_users(self, company_id: uuid.UUID | None = None) -> list[User]:
		stmt = (
			select(User)
			.options(selectinload(User.farm_assignments))
			.order_by(User.full_name.asc())
		)
		if company_id is not None:
			stmt = stmt.where(User.company_id == company_id)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def set_farm_assignments(self, user_id: uuid.UUID, farm_ids: Sequence[uuid.UUID]) -> User:
		"""Replace the user's farm assignments with exactly ``farm_ids``."""
		user = await self.get_user(user_id)
		validated = await self._validate_farms(user.role, user.company_id, farm_ids)

		async with self.db.begin_nested():
			user.farm_assignments.clear()
			await flush_changes(self.db, "farm assignment")
			user.farm_assignments.extend(UserFarmAssignment(farm_id=farm_id) for farm_id in validated)
			await flush_changes(self.db, "farm assignment")

		logger.info("user_farms_assigned", user_id=str(user.id), farms=len(validated))
		return await self.get_user(user.id)

	async def set_status(self, user_id: uuid.UUID, status: RecordStatusEnum) -> User:
		user = await self.get_user(user_id)
		user.status = status
		await flush_changes(self.db, "user")
		logger.info("user_status_changed", user_id=str(user.id), status=status.value)
		return await self.get_user(user.id)

	@staticmethod
	def assigned_farm_ids(user: User) -> list[uuid.UUID]:
		return [assignment.farm_id for assignment in user.farm_assignments]

	# ── Validation ───────────────────────────────────────────────────────

	async def _require_company(self, company_id: uuid.UUID) -> None:
		row = await self.db.execute(select(Company.id).where(Company.id == company_id))
		if row.scalar_one_or_none() is None:
			raise ValidationError(f"Company {company_id} does not exist")

	async def _validate_farms(
		self,
		role: UserRoleEnum,
		company_id: uuid.UUID | None,
		farm_ids: Sequence[uuid.UUID],
	) -> list[uuid.UUID]:
		wanted = list(dict.fromkeys(farm_ids))
		if not wanted:
			return []
		if role not in ASSIGNABLE_ROLES:
			raise ValidationError("Farm assignments apply to admin_farm and engineer users only")

		rows = await self.db.execute(select(Farm.id, Farm.company_id).where(Farm.id.in_(wanted)))
		owners = {farm_id: owner for farm_id, owner in rows.all()}
		missing = [str(farm_id) for farm_id in wanted if farm_id not in owners]
		if missing:
			raise ValidationError(f"farms do not exist: {', '.join(missing)}")
		foreign = [str(farm_id) for farm_id in wanted if owners[farm_id] != company_id]
		if foreign:
			raise ValidationError(f"Farms {', '.join(foreign)} do not belong to company {company_id}")
		return wanted
