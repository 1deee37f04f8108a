"""Pydantic request/response schemas for companies, farms and plots."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ralfarm.models.enums import PlotStatusEnum, RecordStatusEnum, RentTypeEnum


class MapPointIn(BaseModel):
	lat: float = Field(ge=-90, le=90)
	lng: float = Field(ge=-180, le=180)


# ── Companies ───────────────────────────────────────────────────────────────


class CompanyCreate(BaseModel):
	name: str = Field(min_length=2, max_length=255)
	legal_name: str = Field(min_length=2, max_length=255)
	cui: str | None = Field(default=None, max_length=32)
	address: str | None = Field(default=None, max_length=512)
	phone: str | None = Field(default=None, max_length=64)
	email: str | None = Field(default=None, max_length=320)


class CompanyRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	legal_name: str
	cui: str | None = None
	address: str | None = None
	phone: str | None = None
	email: str | None = None
	status: RecordStatusEnum
	created_at: datetime
	updated_at: datetime


class CompanyListRead(BaseModel):
	items: list[CompanyRead]


# ── Farms ───────────────────────────────────────────────────────────────────


class FarmCreate(BaseModel):
	name: str = Field(min_length=2, max_length=255)
	company_id: uuid.UUID | None = None
	description: str | None = None
	address: str | None = Field(default=None, max_length=512)
	latitude: float | None = Field(default=None, ge=-90, le=90)
	longitude: float | None = Field(default=None, ge=-180, le=180)


class FarmUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=2, max_length=255)
	description: str | None = None
	address: str | None = Field(default=None, max_length=512)
	latitude: float | None = Field(default=None, ge=-90, le=90)
	longitude: float | None = Field(default=None, ge=-180, le=180)
	status: RecordStatusEnum | None = None


class FarmRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	company_id: uuid.UUID
	name: str
	description: str | None = None
	address: str | None = None
	total_area: float | None = None
	latitude: float | None = None
	longitude: float | None = None
	status: RecordStatusEnum
	plots_count: int = 0
	created_at: datetime
	updated_at: datetime


class FarmListRead(BaseModel):
	items: list[FarmRead]


class FarmAreaRead(BaseModel):
	farm_id: uuid.UUID
	total_area: float
	plots_count: int


# ── Plots ───────────────────────────────────────────────────────────────────


class PlotCreate(BaseModel):
	farm_id: uuid.UUID
	name: str = Field(min_length=2, max_length=255)
	description: str | None = None
	coordinates: list[MapPointIn] | None = None
	calculated_area: float | None = Field(default=None, gt=0)
	soil_type: str | None = Field(default=None, max_length=100)
	slope_percentage: float | None = Field(default=None, ge=0, le=100)
	rent_type: RentTypeEnum | None = None
	rent_amount: float | None = Field(default=None, gt=0)
	rent_percentage: float | None = Field(default=None, ge=0, le=100)
	rent_description: str | None = None


class PlotUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=2, max_length=255)
	description: str | None = None
	coordinates: list[MapPointIn] | None = None
	calculated_area: float | None = Field(default=None, gt=0)
	soil_type: str | None = Field(default=None, max_length=100)
	slope_percentage: float | None = Field(default=None, ge=0, le=100)
	status: PlotStatusEnum | None = None
	rent_type: RentTypeEnum | None = None
	rent_amount: float | None = Field(default=None, gt=0)
	rent_percentage: float | None = Field(default=None, ge=0, le=100)
	rent_description: str | None = None


class PlotRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	farm_id: uuid.UUID
	name: str
	description: str | None = None
	coordinates: list[dict[str, Any]] | None = None
	calculated_area: float
	soil_type: str | None = None
	slope_percentage: float | None = None
	status: PlotStatusEnum
	rent_type: RentTypeEnum | None = None
	rent_amount: float | None = None
	rent_percentage: float | None = None
	rent_description: str | None = None
	created_at: datetime
	updated_at: datetime


class PlotListRead(BaseModel):
	items: list[PlotRead]


class AreaEstimateRequest(BaseModel):
	points: list[MapPointIn]


class AreaEstimateRead(BaseModel):
	area_hectares: float
	point_count: int
