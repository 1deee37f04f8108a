"""Farm expense routes."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.auth.access import accessible_farm_ids, ensure_farm_access
from ralfarm.auth.dependencies import ADMIN_ROLES, get_current_user, require_role
from ralfarm.database import get_db
from ralfarm.models.enums import CostTypeEnum, ExpenseCategoryEnum
from ralfarm.models.user import User
from ralfarm.routes.errors import map_service_error
from ralfarm.schemas.activity import ExpenseCreate, ExpenseListRead, ExpenseRead
from ralfarm.services.expense_service import ExpenseService

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("", response_model=ExpenseRead, status_code=status.HTTP_201_CREATED)
async def create_expense(
	payload: ExpenseCreate,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> ExpenseRead:
	try:
		await ensure_farm_access(db, user, [payload.farm_id])
		expense = await ExpenseService(db).create_expense(payload, created_by=user.id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return ExpenseRead.model_validate(expense)


@router.get("", response_model=ExpenseListRead)
async def list_expenses(
	farm_id: uuid.UUID | None = Query(default=None),
	campaign_id: uuid.UUID | None = Query(default=None),
	cost_type: CostTypeEnum | None = Query(default=None),
	category: ExpenseCategoryEnum | None = Query(default=None),
	start_date: date | None = Query(default=None),
	end_date: date | None = Query(default=None),
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> ExpenseListRead:
	service = ExpenseService(db)
	try:
		if farm_id is not None:
			await ensure_farm_access(db, user, [farm_id])
			farm_ids: list[uuid.UUID] | None = [farm_id]
		else:
			farm_ids = await accessible_farm_ids(db, user)
		expenses = await service.list_expenses(
			farm_ids=farm_ids,
			campaign_id=campaign_id,
			cost_type=cost_type,
			category=category,
			start_date=start_date,
			end_date=end_date,
		)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return ExpenseListRead(
		items=[ExpenseRead.model_validate(expense) for expense in expenses],
		total_amount_ron=service.total_of(expenses),
	)


@router.get("/{expense_id}", response_model=ExpenseRead)
async def get_expense(
	expense_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> ExpenseRead:
	try:
		expense = await ExpenseService(db).get_expense(expense_id)
		await ensure_farm_access(db, user, [expense.farm_id])
	except Exception as exc:
		raise map_service_error(exc) from exc
	return ExpenseRead.model_validate(expense)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
	expense_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(require_role(*ADMIN_ROLES)),
) -> Response:
	service = ExpenseService(db)
	try:
		expense = await service.get_expense(expense_id)
		await ensure_farm_access(db, user, [expense.farm_id])
		await service.delete_expense(expense_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
