"""Pydantic schemas for user administration and farm assignments."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ralfarm.models.enums import RecordStatusEnum, UserRoleEnum


class UserCreate(BaseModel):
	email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
	password: str = Field(min_length=8, max_length=128)
	full_name: str = Field(min_length=2, max_length=255)
	role: UserRoleEnum
	company_id: uuid.UUID | None = None
	farm_ids: list[uuid.UUID] = Field(default_factory=list)

	@field_validator("email", mode="before")
	@classmethod
	def _normalize_email(cls, value: object) -> object:
		if isinstance(value, str):
			return value.strip().lower()
		return value


class UserFarmsUpdate(BaseModel):
	farm_ids: list[uuid.UUID]


class UserStatusUpdate(BaseModel):
	status: RecordStatusEnum


class UserAdminRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	email: str
	full_name: str
	role: UserRoleEnum
	company_id: uuid.UUID | None = None
	status: RecordStatusEnum
	last_login: datetime | None = None
	farm_ids: list[uuid.UUID] = Field(default_factory=list)
	created_at: datetime


class UserListRead(BaseModel):
	items: list[UserAdminRead]
