"""Signed bearer tokens for RalFarm users.

Access and refresh tokens share one HS256 secret and differ only in the
``typ`` claim and their lifetime.  ``sub`` is the user id; ``role`` and
``cid`` (company id) ride along for clients, but authorization always reloads
the user row.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from jose import ExpiredSignatureError, JWTError, jwt

from ralfarm.config import get_settings

TokenType = Literal["access", "refresh"]


@dataclass(eq=False)
class AuthError(Exception):
	code: str
	detail: str
	status_code: int = 401


def _encode(subject: str, token_type: TokenType, lifetime: timedelta, claims: dict[str, Any]) -> str:
	settings = get_settings()
	issued = datetime.now(UTC)
	payload = {
		**claims,
		"sub": subject,
		"typ": token_type,
		"iat": issued,
		"exp": issued + lifetime,
	}
	return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(
	subject: str,
	expires_minutes: int | None = None,
	*,
	role: str | None = None,
	company_id: str | None = None,
) -> str:
	minutes = expires_minutes or get_settings().jwt_access_token_expire_minutes
	claims: dict[str, Any] = {}
	if role is not None:
		claims["role"] = role
	if company_id is not None:
		claims["cid"] = company_id
	return _encode(subject, "access", timedelta(minutes=minutes), claims)


def create_refresh_token(subject: str, expires_minutes: int | None = None) -> str:
	minutes = expires_minutes or get_settings().jwt_refresh_token_expire_minutes
	return _encode(subject, "refresh", timedelta(minutes=minutes), {})


def decode_token(token: str, expected_type: TokenType | None = None) -> dict[str, Any]:
	"""Verify signature and expiry; raise ``AuthError`` with a stable code otherwise."""
	settings = get_settings()
	try:
		payload = jwt.decode(
			token,
			settings.jwt_secret,
			algorithms=[settings.jwt_algorithm],
			options={"require_exp": True, "require_sub": True},
		)
	except ExpiredSignatureError as exc:
		raise AuthError(code="token_expired", detail="Authentication token has expired") from exc
	except JWTError as exc:
		raise AuthError(code="token_invalid", detail="Invalid authentication token") from exc

	if not payload.get("sub"):
		raise AuthError(code="token_invalid", detail="Token subject is missing")
	if expected_type is not None and payload.get("typ") != expected_type:
		raise AuthError(code="token_type_invalid", detail=f"Expected {expected_type} token")
	return payload
