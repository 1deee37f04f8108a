"""Pydantic request/response schemas for campaign activities and expenses."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ralfarm.models.enums import (
	ActivityStatusEnum,
	ActivityTypeEnum,
	CostTypeEnum,
	ExpenseCategoryEnum,
)

# ── Activities ──────────────────────────────────────────────────────────────


class ActivityCreate(BaseModel):
	campaign_id: uuid.UUID
	activity_type: ActivityTypeEnum
	name: str = Field(min_length=2, max_length=255)
	planned_date: date
	description: str | None = None
	priority: int | None = Field(default=None, ge=1, le=5)
	planned_area_ha: float | None = Field(default=None, gt=0)
	estimated_duration_hours: float | None = Field(default=None, gt=0)
	estimated_cost_ron: float | None = Field(default=None, gt=0)
	required_equipment: str | None = None
	required_materials: str | None = None
	assigned_to_user_id: uuid.UUID | None = None


class ActivityUpdate(BaseModel):
	"""Partial update; unset fields are left untouched."""

	activity_type: ActivityTypeEnum | None = None
	name: str | None = Field(default=None, min_length=2, max_length=255)
	planned_date: date | None = None
	description: str | None = None
	priority: int | None = Field(default=None, ge=1, le=5)
	planned_area_ha: float | None = Field(default=None, gt=0)
	estimated_duration_hours: float | None = Field(default=None, gt=0)
	estimated_cost_ron: float | None = Field(default=None, gt=0)
	required_equipment: str | None = None
	required_materials: str | None = None
	assigned_to_user_id: uuid.UUID | None = None
	status: ActivityStatusEnum | None = None
	completed_date: date | None = None
	actual_cost_ron: float | None = Field(default=None, gt=0)
	completion_notes: str | None = None


class ActivityRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	campaign_id: uuid.UUID
	activity_type: ActivityTypeEnum
	name: str
	description: str | None = None
	status: ActivityStatusEnum
	planned_date: date
	completed_date: date | None = None
	priority: int | None = None
	planned_area_ha: float | None = None
	estimated_duration_hours: float | None = None
	estimated_cost_ron: float | None = None
	actual_cost_ron: float | None = None
	required_equipment: str | None = None
	required_materials: str | None = None
	completion_notes: str | None = None
	assigned_to_user_id: uuid.UUID | None = None
	created_by_user_id: uuid.UUID | None = None
	created_at: datetime
	updated_at: datetime


class ActivityListRead(BaseModel):
	items: list[ActivityRead]


# ── Expenses ────────────────────────────────────────────────────────────────


class ExpenseCreate(BaseModel):
	farm_id: uuid.UUID
	campaign_id: uuid.UUID | None = None
	cost_type: CostTypeEnum
	category: ExpenseCategoryEnum
	amount_ron: float = Field(gt=0)
	vat_amount_ron: float = Field(default=0.0, ge=0)
	total_amount_ron: float | None = Field(default=None, gt=0)
	description: str = Field(min_length=5)
	supplier: str | None = Field(default=None, max_length=255)
	invoice_number: str | None = Field(default=None, max_length=100)
	invoice_date: date | None = None
	quantity: float | None = Field(default=None, gt=0)
	unit: str | None = Field(default=None, max_length=32)
	unit_price: float | None = Field(default=None, gt=0)
	expense_date: date

	@model_validator(mode="after")
	def _specific_needs_campaign(self) -> ExpenseCreate:
		if self.cost_type == CostTypeEnum.specific and self.campaign_id is None:
			raise ValueError("specific costs must reference a campaign")
		return self


class ExpenseRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	farm_id: uuid.UUID
	campaign_id: uuid.UUID | None = None
	cost_type: CostTypeEnum
	category: ExpenseCategoryEnum
	amount_ron: float
	vat_amount_ron: float
	total_amount_ron: float
	description: str
	supplier: str | None = None
	invoice_number: str | None = None
	invoice_date: date | None = None
	quantity: float | None = None
	unit: str | None = None
	unit_price: float | None = None
	expense_date: date
	created_by_user_id: uuid.UUID | None = None
	created_at: datetime


class ExpenseListRead(BaseModel):
	items: list[ExpenseRead]
	total_amount_ron: float
