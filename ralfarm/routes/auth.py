"""Login and current-user routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.auth.dependencies import authenticate, get_current_user
from ralfarm.database import get_db
from ralfarm.models.user import User
from ralfarm.schemas.auth import TokenPair, TokenRequest, UserRead

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/token", response_model=TokenPair)
async def issue_token(
	payload: TokenRequest,
	db: AsyncSession = Depends(get_db),
) -> TokenPair:
	access_token, refresh_token = await authenticate(db, payload.email, payload.password)
	return TokenPair(access_token=access_token, refresh_token=refresh_token)


@router.get("/me", response_model=UserRead)
async def read_me(user: User = Depends(get_current_user)) -> UserRead:
	return UserRead.model_validate(user)
