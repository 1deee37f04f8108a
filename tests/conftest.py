"""Shared pytest fixtures: async test clients, fake and SQLite-backed DB sessions, Redis."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ralfarm.auth.dependencies import get_current_user
from ralfarm.auth.jwt import create_access_token
from ralfarm.database import get_db
from ralfarm.main import app
from ralfarm.models import (
	Base,
	Campaign,
	CampaignActivity,
	CampaignPlot,
	Company,
	Expense,
	Farm,
	Plot,
	User,
	UserFarmAssignment,
)
from ralfarm.models.enums import RecordStatusEnum, UserRoleEnum


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.flush = AsyncMock()
		self.refresh = AsyncMock()
		self.delete = AsyncMock()
		self.get = AsyncMock(return_value=None)
		self.add = MagicMock()
		self.execute = AsyncMock()


class FakeRedis:
	def __init__(self) -> None:
		self._counter: dict[str, int] = {}
		self.incr = AsyncMock(side_effect=self._incr)
		self.expire = AsyncMock(return_value=True)
		self.ping = AsyncMock(return_value=True)

	async def _incr(self, key: str) -> int:
		value = self._counter.get(key, 0) + 1
		self._counter[key] = value
		return value

	def reset_counters(self) -> None:
		self._counter.clear()


def make_user(
	role: UserRoleEnum = UserRoleEnum.super_admin,
	company_id: uuid.UUID | None = None,
) -> SimpleNamespace:
	return SimpleNamespace(
		id=uuid.uuid4(),
		email=f"{role.value}@test.local",
		full_name=role.value.replace("_", " ").title(),
		role=role,
		company_id=company_id,
		status=RecordStatusEnum.active,
		is_active=True,
	)


@pytest.fixture
def user_factory() -> Callable[..., SimpleNamespace]:
	"""Build signed-in user stubs with a given role and company."""
	return make_user


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides in API tests."""
	return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
	"""Reusable fake Redis client with atomic counter behavior."""
	return FakeRedis()


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled, DB mocked and a super admin signed in."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	async def override_current_user() -> Any:
		return make_user(UserRoleEnum.super_admin)

	app.dependency_overrides[get_db] = override_get_db
	app.dependency_overrides[get_current_user] = override_current_user
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()
	app.state.redis = None


@pytest.fixture
async def auth_client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with DB override only (real auth dependencies active)."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()


@pytest.fixture
def auth_user_id() -> uuid.UUID:
	return uuid.UUID("11111111-1111-1111-1111-111111111111")


@pytest.fixture
def access_token(auth_user_id: uuid.UUID) -> str:
	return create_access_token(str(auth_user_id), expires_minutes=30)


@pytest.fixture
def now_utc() -> datetime:
	return datetime.now(UTC)


# ── Real database session (SQLite via aiosqlite) ───────────────────────────

# Geography columns have no SQLite type, so farms and plots are created by hand
# without them; both are deferred on the models and never selected.
_SPATIAL_TABLES_DDL = (
	"""
	CREATE TABLE farms (
		id CHAR(32) NOT NULL PRIMARY KEY,
		company_id CHAR(32) NOT NULL REFERENCES companies (id) ON DELETE CASCADE,
		name VARCHAR(255) NOT NULL,
		description TEXT,
		address VARCHAR(512),
		total_area FLOAT,
		latitude FLOAT,
		longitude FLOAT,
		status VARCHAR(8) NOT NULL DEFAULT 'active',
		created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
		updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
	)
	""",
	"""
	CREATE TABLE plots (
		id CHAR(32) NOT NULL PRIMARY KEY,
		farm_id CHAR(32) NOT NULL REFERENCES farms (id) ON DELETE CASCADE,
		name VARCHAR(255) NOT NULL,
		description TEXT,
		coordinates JSON,
		calculated_area FLOAT NOT NULL DEFAULT 0,
		soil_type VARCHAR(100),
		slope_percentage FLOAT,
		status VARCHAR(10) NOT NULL DEFAULT 'free',
		rent_type VARCHAR(16),
		rent_amount FLOAT,
		rent_percentage FLOAT,
		rent_description TEXT,
		created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
		updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
	)
	""",
)

_ORM_TABLES = [
	model.__table__
	for model in (Company, User, UserFarmAssignment, Campaign, CampaignPlot, CampaignActivity, Expense)
]


@pytest.fixture
async def db_engine(tmp_path: Any) -> AsyncGenerator[AsyncEngine, None]:
	"""File-backed SQLite engine with working SAVEPOINTs and the RalFarm tables."""
	engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ralfarm.db'}")

	@event.listens_for(engine.sync_engine, "connect")
	def _on_connect(dbapi_connection: Any, _record: Any) -> None:
		# pysqlite's own transaction handling swallows SAVEPOINT; emit BEGIN ourselves.
		dbapi_connection.isolation_level = None
		dbapi_connection.create_function("uuid_generate_v4", 0, lambda: uuid.uuid4().hex)

	@event.listens_for(engine.sync_engine, "begin")
	def _on_begin(connection: Any) -> None:
		connection.exec_driver_sql("BEGIN")

	async with engine.begin() as connection:
		for statement in _SPATIAL_TABLES_DDL:
			await connection.exec_driver_sql(statement)
		await connection.run_sync(lambda sync_conn: Base.metadata.create_all(sync_conn, tables=_ORM_TABLES))

	yield engine
	await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
	"""A real ``AsyncSession``; configured like ``ralfarm.database.async_session_factory``."""
	factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
	async with factory() as session:
		yield session


class DbSeeder:
	"""Insert tenant rows directly, bypassing services under test."""

	def __init__(self, session: AsyncSession) -> None:
		self.session = session

	async def company(self, name: str = "Agro Test") -> uuid.UUID:
		company_id = uuid.uuid4()
		await self.session.execute(insert(Company).values(id=company_id, name=name, legal_name=f"{name} SRL"))
		return company_id

	async def farm(self, company_id: uuid.UUID, name: str = "Ferma Nord") -> uuid.UUID:
		farm_id = uuid.uuid4()
		await self.session.execute(insert(Farm).values(id=farm_id, company_id=company_id, name=name))
		return farm_id

	async def plot(self, farm_id: uuid.UUID, name: str, area: float) -> uuid.UUID:
		plot_id = uuid.uuid4()
		await self.session.execute(
			insert(Plot).values(id=plot_id, farm_id=farm_id, name=name, calculated_area=area)
		)
		return plot_id


@pytest.fixture
def seed(db_session: AsyncSession) -> DbSeeder:
	return DbSeeder(db_session)


@pytest.fixture
async def db_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX client whose routes run against the SQLite session, signed in as super admin."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield db_session
		await db_session.commit()

	async def override_current_user() -> Any:
		return make_user(UserRoleEnum.super_admin)

	app.dependency_overrides[get_db] = override_get_db
	app.dependency_overrides[get_current_user] = override_current_user
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()
