"""RalFarm ASGI application: lifespan, middleware stack, health checks and routers."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from ralfarm.config import get_settings
from ralfarm.database import engine
from ralfarm.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from ralfarm.middleware.rate_limit import RateLimitMiddleware
from ralfarm.routes import activities, auth, campaigns, companies, expenses, farms, plots, users

API_PREFIX = "/api/v1"
VERSION = "0.1.0"

logger = logging.getLogger("ralfarm")


async def _ping_database() -> None:
    async with engine.connect() as connection:
        await connection.execute(text("SELECT 1"))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Fail fast if PostgreSQL or Redis is unreachable; release both on exit."""
    configure_structured_logging()
    settings = get_settings()
    logger.info("ralfarm_starting", extra={"version": VERSION, "log_level": settings.log_level})

    redis = Redis.from_url(settings.redis_url, decode_responses=True)
    try:
        await _ping_database()
        await redis.ping()
    except Exception:
        logger.exception("ralfarm_startup_failed")
        await redis.aclose()
        await engine.dispose()
        raise
    app.state.redis = redis

    try:
        yield
    finally:
        logger.info("ralfarm_stopping")
        app.state.redis = None
        await redis.aclose()
        await engine.dispose()


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    description=(
        "Multi-tenant farm management API for companies, farms, plots and "
        "seasonal multi-plot cultivation campaigns."
    ),
    version=VERSION,
    lifespan=lifespan,
)

# Starlette runs the last-added middleware first: logging wraps rate limiting.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)


async def _run_readiness_checks(app: FastAPI) -> dict[str, dict[str, Any]]:
    checks: dict[str, dict[str, Any]] = {}
    try:
        await _ping_database()
        checks["database"] = {"ok": True, "message": "ok"}
    except Exception as exc:
        checks["database"] = {"ok": False, "message": str(exc)}

    redis = getattr(app.state, "redis", None)
    if redis is None:
        checks["redis"] = {"ok": False, "message": "not connected"}
        return checks
    try:
        await redis.ping()
        checks["redis"] = {"ok": True, "message": "ok"}
    except Exception as exc:
        checks["redis"] = {"ok": False, "message": str(exc)}
    return checks


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Liveness: answers as long as the process serves requests."""
    return {"status": "ok", "service": "ralfarm", "version": VERSION}


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    """Readiness: PostgreSQL and Redis must both answer, else 503."""
    checks = await _run_readiness_checks(app)
    ready = all(check["ok"] for check in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ok" if ready else "degraded", "checks": checks},
    )


for module in (auth, companies, users, farms, plots, campaigns, activities, expenses):
    app.include_router(module.router, prefix=API_PREFIX)
