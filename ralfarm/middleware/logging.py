"""structlog setup and per-request access logging.

Both structlog loggers (services) and stdlib loggers (lifespan, uvicorn,
SQLAlchemy) are rendered by the same processor chain, as JSON lines or as
console output depending on ``LOG_FORMAT``.  Every line emitted while a
request is in flight carries its ``request_id``.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ralfarm.config import LogFormat, get_settings

REQUEST_ID_HEADER = "x-request-id"

_configured = False


def configure_structured_logging() -> None:
	global _configured
	if _configured:
		return

	settings = get_settings()
	level = logging.getLevelName(settings.log_level.upper())
	if not isinstance(level, int):
		level = logging.INFO

	pre_chain: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.stdlib.add_logger_name,
		structlog.stdlib.add_log_level,
		structlog.processors.TimeStamper(fmt="iso", utc=True),
	]
	renderer: Any
	if settings.log_format == LogFormat.json:
		renderer = structlog.processors.JSONRenderer()
	else:
		renderer = structlog.dev.ConsoleRenderer()

	handler = logging.StreamHandler()
	handler.setFormatter(
		structlog.stdlib.ProcessorFormatter(
			foreign_pre_chain=pre_chain,
			processors=[
				structlog.stdlib.ProcessorFormatter.remove_processors_meta,
				structlog.processors.format_exc_info,
				renderer,
			],
		)
	)
	root = logging.getLogger()
	root.handlers = [handler]
	root.setLevel(level)

	structlog.configure(
		processors=[
			*pre_chain,
			structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
		],
		logger_factory=structlog.stdlib.LoggerFactory(),
		wrapper_class=structlog.stdlib.BoundLogger,
		cache_logger_on_first_use=True,
	)
	_configured = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Propagate or mint ``x-request-id`` and log one line per request."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
		request.state.request_id = request_id
		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id)

		logger = structlog.get_logger("ralfarm.request")
		started = time.perf_counter()
		fields = {"method": request.method, "path": request.url.path}
		try:
			response = await call_next(request)
		except Exception:
			logger.exception(
				"http_request_failed",
				elapsed_ms=round((time.perf_counter() - started) * 1000.0, 2),
				**fields,
			)
			raise

		response.headers[REQUEST_ID_HEADER] = request_id
		logger.info(
			"http_request",
			status_code=response.status_code,
			elapsed_ms=round((time.perf_counter() - started) * 1000.0, 2),
			**fields,
		)
		return response
