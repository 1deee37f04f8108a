"""Farm expense bookkeeping."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.models.activity import Expense
from ralfarm.models.campaign import CampaignPlot
from ralfarm.models.enums import CostTypeEnum, ExpenseCategoryEnum
from ralfarm.models.farm import Farm, Plot
from ralfarm.schemas.activity import ExpenseCreate
from ralfarm.services.errors import NotFoundError, ValidationError, flush_changes

logger = structlog.get_logger("ralfarm.expenses")


class ExpenseService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def create_expense(self, payload: ExpenseCreate, created_by: uuid.UUID | None = None) -> Expense:
		farm = await self.db.get(Farm, payload.farm_id)
		if farm is None:
			raise NotFoundError(f"Farm {payload.farm_id} not found")
		if payload.campaign_id is not None:
			await self._ensure_campaign_on_farm(payload.campaign_id, payload.farm_id)

		total = payload.total_amount_ron
		if total is None:
			total = round(payload.amount_ron + payload.vat_amount_ron, 2)

		expense = Expense(
			farm_id=payload.farm_id,
			campaign_id=payload.campaign_id,
			cost_type=payload.cost_type,
			category=payload.category,
			amount_ron=payload.amount_ron,
			vat_amount_ron=payload.vat_amount_ron,
			total_amount_ron=total,
			description=payload.description,
			supplier=payload.supplier,
			invoice_number=payload.invoice_number,
			invoice_date=payload.invoice_date,
			quantity=payload.quantity,
			unit=payload.unit,
			unit_price=payload.unit_price,
			expense_date=payload.expense_date,
			created_by_user_id=created_by,
		)
		self.db.add(expense)
		await flush_changes(self.db, "expense")
		await self.db.refresh(expense)
		logger.info(
			"expense_created",
			expense_id=str(expense.id),
			farm_id=str(expense.farm_id),
			category=payload.category.value,
			total_amount_ron=total,
		)
		return expense

	async def get_expense(self, expense_id: uuid.UUID) -> Expense:
		expense = await self.db.get(Expense, expense_id, populate_existing=True)
		if expense is None:
			raise NotFoundError(f"Expense {expense_id} not found")
		return expense

	async def list_expenses(
		self,
		*,
		farm_ids: Sequence[uuid.UUID] | None = None,
		campaign_id: uuid.UUID | None = None,
		cost_type: CostTypeEnum | None = None,
		category: ExpenseCategoryEnum | None = None,
		start_date: date | None = None,
		end_date: date | None = None,
	) -> list[Expense]:
		stmt = select(Expense).order_by(Expense.expense_date.desc(), Expense.created_at.desc())
		if farm_ids is not None:
			if not farm_ids:
				return []
			stmt = stmt.where(Expense.farm_id.in_(list(farm_ids)))
		if campaign_id is not None:
			stmt = stmt.where(Expense.campaign_id == campaign_id)
		if cost_type is not None:
			stmt = stmt.where(Expense.cost_type == cost_type)
		if category is not None:
			stmt = stmt.where(Expense.category == category)
		if start_date is not None:
			stmt = stmt.where(Expense.expense_date >= start_date)
		if end_date is not None:
			stmt = stmt.where(Expense.expense_date <= end_date)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def delete_expense(self, expense_id: uuid.UUID) -> None:
		expense = await self.get_expense(expense_id)
		await self.db.delete(expense)
		await flush_changes(self.db, "expense")
		logger.info("expense_deleted", expense_id=str(expense_id))

	@staticmethod
	def total_of(expenses: Sequence[Expense]) -> float:
		return round(sum(expense.total_amount_ron for expense in expenses), 2)

	async def _ensure_campaign_on_farm(self, campaign_id: uuid.UUID, farm_id: uuid.UUID) -> None:
		rows = await self.db.execute(
			select(Plot.farm_id)
			.join(CampaignPlot, CampaignPlot.plot_id == Plot.id)
			.where(CampaignPlot.campaign_id == campaign_id)
		)
		farms = set(rows.scalars().all())
		if not farms:
			raise ValidationError(f"Campaign {campaign_id} does not exist or has no plots")
		if farm_id not in farms:
			raise ValidationError(f"Campaign {campaign_id} has no plots on farm {farm_id}")
