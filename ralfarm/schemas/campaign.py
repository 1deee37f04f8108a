"""Pydantic request/response schemas for multi-plot campaigns."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ralfarm.models.enums import CampaignStatusEnum, SeasonEnum


class PlotAssignmentIn(BaseModel):
	plot_id: uuid.UUID
	planted_area_ha: float = Field(gt=0)


class CampaignCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	crop_type: str = Field(min_length=1, max_length=100)
	season: SeasonEnum
	year: int = Field(ge=1900, le=2200)
	start_date: date | None = None
	end_date: date | None = None
	notes: str | None = None
	plot_assignments: list[PlotAssignmentIn] = Field(min_length=1)

	@model_validator(mode="after")
	def _check_dates(self) -> CampaignCreate:
		if self.start_date and self.end_date and self.end_date < self.start_date:
			raise ValueError("end_date must not be before start_date")
		return self


class CampaignUpdate(CampaignCreate):
	"""Full replacement of a campaign's fields and plot assignments."""


class CampaignStatusUpdate(BaseModel):
	status: CampaignStatusEnum


class CampaignPlotRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	plot_id: uuid.UUID
	plot_name: str | None = None
	farm_id: uuid.UUID | None = None
	planted_area_ha: float
	plot_area: float | None = None


class CampaignRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	crop_type: str
	season: SeasonEnum
	year: int
	total_area_ha: float
	start_date: date | None = None
	end_date: date | None = None
	status: CampaignStatusEnum
	notes: str | None = None
	created_at: datetime
	updated_at: datetime
	plots: list[CampaignPlotRead] = Field(default_factory=list)


class CampaignListRead(BaseModel):
	items: list[CampaignRead]
