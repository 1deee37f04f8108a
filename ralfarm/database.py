"""Async SQLAlchemy engine, session factory and the request-scoped session dependency."""

from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ralfarm.config import get_settings

_settings = get_settings()

engine = create_async_engine(
	_settings.database_url,
	pool_size=_settings.database_pool_size,
	pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
	engine,
	class_=AsyncSession,
	expire_on_commit=False,
	autoflush=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
	"""Yield one session per request; commit on success, roll back on error."""
	async with async_session_factory() as session:
		try:
			yield session
			await session.commit()
		except Exception:
			await session.rollback()
			raise
