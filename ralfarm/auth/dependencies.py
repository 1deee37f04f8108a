"""FastAPI dependencies for the signed-in user, role guards and password login."""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ralfarm.auth.jwt import AuthError, create_access_token, create_refresh_token, decode_token
from ralfarm.database import get_db
from ralfarm.models.enums import UserRoleEnum
from ralfarm.models.user import User

# Roles allowed to change farm records and delete plots or campaigns.
ADMIN_ROLES = (UserRoleEnum.super_admin, UserRoleEnum.admin_company, UserRoleEnum.admin_farm)

_bearer = HTTPBearer(auto_error=False)
_passwords = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plaintext: str) -> str:
	return _passwords.hash(plaintext)


def _unauthorized(error: AuthError) -> HTTPException:
	return HTTPException(
		status_code=error.status_code,
		detail={"error": error.code, "message": error.detail},
		headers={"WWW-Authenticate": "Bearer"},
	)


async def get_current_user(
	credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
	db: AsyncSession = Depends(get_db),
) -> User:
	"""Resolve the bearer access token to an active ``User`` row (401 otherwise)."""
	if credentials is None:
		raise _unauthorized(AuthError("auth_required", "Bearer token is required"))
	try:
		claims = decode_token(credentials.credentials, expected_type="access")
		user_id = uuid.UUID(claims["sub"])
	except AuthError as exc:
		raise _unauthorized(exc) from exc
	except ValueError as exc:
		raise _unauthorized(AuthError("token_invalid", "Token subject is not a user id")) from exc

	user = await db.get(User, user_id)
	if user is None or not user.is_active:
		raise _unauthorized(AuthError("user_invalid", "User is not active"))
	return user


def require_role(*allowed: UserRoleEnum) -> Callable[..., Awaitable[User]]:
	"""Dependency factory: the current user must hold one of ``allowed`` (403 otherwise)."""
	permitted = frozenset(allowed)

	async def guard(user: User = Depends(get_current_user)) -> User:
		if user.role not in permitted:
			raise HTTPException(
				status_code=status.HTTP_403_FORBIDDEN,
				detail={
					"error": "forbidden",
					"message": f"Requires one of: {', '.join(sorted(role.value for role in permitted))}",
				},
			)
		return user

	return guard


async def authenticate(db: AsyncSession, email: str, password: str) -> tuple[str, str]:
	"""Check an email/password pair and return ``(access_token, refresh_token)``."""
	row = await db.execute(select(User).where(User.email == email.strip().lower()))
	user = row.scalar_one_or_none()
	if user is None or not _passwords.verify(password, user.hashed_password):
		raise _unauthorized(AuthError("credentials_invalid", "Invalid email or password"))
	if not user.is_active:
		raise _unauthorized(AuthError("user_invalid", "User is not active"))

	user.last_login = datetime.now(UTC)
	await db.flush()
	subject = str(user.id)
	access = create_access_token(
		subject,
		role=user.role.value,
		company_id=str(user.company_id) if user.company_id else None,
	)
	return access, create_refresh_token(subject)
