"""Translate service-layer exceptions into HTTP errors at the route edge.

``NotFoundError`` and ``ValidationError`` subclass ``LookupError`` and
``ValueError``, so the builtin checks cover them.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from ralfarm.services.errors import ConflictError, PersistenceError


def map_service_error(exc: Exception) -> HTTPException:
	if isinstance(exc, HTTPException):
		return exc
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, ConflictError):
		return HTTPException(
			status_code=status.HTTP_409_CONFLICT,
			detail={"message": str(exc), "conflicting_ids": exc.conflicting_ids},
		)
	if isinstance(exc, PersistenceError):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected service failure",
	)
