"""Async SQLAlchemy engine, session factory, and the FastAPI session dependency."""

from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from farmops.config import get_settings

_settings = get_settings()

engine = create_async_engine(
	_settings.database_url,
	echo=_settings.database_echo,
	pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
	engine,
	class_=AsyncSession,
	expire_on_commit=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
	"""One session per request: commit on success, roll back on any error."""
	async with async_session_factory() as session:
		try:
			yield session
			await session.commit()
		except Exception:
			await session.rollback()
			raise
