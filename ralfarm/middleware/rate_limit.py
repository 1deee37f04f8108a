"""Per-farm request quota backed by Redis fixed-window counters.

A request is counted against a farm when the farm is named in the path
(``/api/v1/farms/<id>/...``) or in a ``farm_id`` query parameter.  Each
bearer token gets its own bucket per farm; unauthenticated callers share one.
Requests that name no farm, and all requests while Redis is not connected,
pass through uncounted.
"""

from __future__ import annotations

import hashlib
import re
import time
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ralfarm.config import get_settings

_UNMETERED_PREFIXES = ("/docs", "/redoc", "/openapi", "/health")
_FARM_PATH = re.compile(r"/api/v1/farms/([0-9a-fA-F-]{36})(?:/|$)")


def request_farm_id(request: Request) -> uuid.UUID | None:
	match = _FARM_PATH.search(request.url.path)
	raw = match.group(1) if match else request.query_params.get("farm_id")
	if not raw:
		return None
	try:
		return uuid.UUID(raw)
	except ValueError:
		return None


def caller_identity(request: Request) -> str:
	auth_header = request.headers.get("authorization", "")
	scheme, _, token = auth_header.partition(" ")
	if scheme.lower() != "bearer" or not token:
		return "anonymous"
	return hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]


class RateLimitMiddleware(BaseHTTPMiddleware):
	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		if request.url.path.startswith(_UNMETERED_PREFIXES):
			return await call_next(request)

		farm_id = request_farm_id(request)
		redis_client = getattr(request.app.state, "redis", None)
		if farm_id is None or redis_client is None:
			return await call_next(request)

		settings = get_settings()
		quota = settings.rate_limit_user_per_minute
		window = settings.rate_limit_window_seconds
		window_start = int(time.time()) // window * window
		key = f"ratelimit:farm:{farm_id}:{caller_identity(request)}:{window_start}"

		used = await redis_client.incr(key)
		if used == 1:
			await redis_client.expire(key, window + 5)

		if used > quota:
			retry_after = max(1, window_start + window - int(time.time()))
			return JSONResponse(
				status_code=429,
				headers={"Retry-After": str(retry_after)},
				content={
					"detail": {
						"error": "rate_limited",
						"message": "Farm quota exceeded",
						"farm_id": str(farm_id),
						"quota": quota,
					}
				},
			)

		response = await call_next(request)
		response.headers["X-RateLimit-Limit"] = str(quota)
		response.headers["X-RateLimit-Remaining"] = str(max(0, quota - used))
		return response
