"""Domain error taxonomy shared by services and mapped to HTTP status at the route edge."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession


class ValidationError(ValueError):
	"""Caller-fixable input problem (400)."""


class NotFoundError(LookupError):
	"""Referenced entity is missing (404)."""


class ConflictError(Exception):
	"""State-dependent collision with existing data (409)."""

	def __init__(self, message: str, conflicting_ids: Iterable[object] = ()) -> None:
		super().__init__(message)
		self.conflicting_ids = [str(item) for item in conflicting_ids]


class PersistenceError(Exception):
	"""Underlying store failure; retryable at the caller's discretion (503)."""


async def flush_changes(db: AsyncSession, entity: str) -> None:
	"""Flush pending writes, translating store failures into the taxonomy above."""
	try:
		await db.flush()
	except IntegrityError as exc:
		raise ConflictError(f"{entity} conflicts with existing data") from exc
	except SQLAlchemyError as exc:
		raise PersistenceError(f"failed to persist {entity}") from exc
