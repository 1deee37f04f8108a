"""Pydantic schemas for login and the current-user profile."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field

from ralfarm.models.enums import RecordStatusEnum, UserRoleEnum


class TokenRequest(BaseModel):
	email: str = Field(min_length=3, max_length=320)
	password: str = Field(min_length=1)


class TokenPair(BaseModel):
	access_token: str
	refresh_token: str
	token_type: str = "bearer"


class UserRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	email: str
	full_name: str
	role: UserRoleEnum
	company_id: uuid.UUID | None = None
	status: RecordStatusEnum
