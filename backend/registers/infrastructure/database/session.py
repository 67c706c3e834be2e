"""Async engine and per-request sessions for the register store."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from registers.config import get_settings

_DRIVER_PREFIXES = (
    ("sqlite:///", "sqlite+aiosqlite:///"),
    ("postgres://", "postgresql+asyncpg://"),
    ("postgresql://", "postgresql+asyncpg://"),
)


def _get_async_url(url: str) -> str:
    """Swap a plain driver prefix for its async driver; other URLs pass through."""
    for plain, async_prefix in _DRIVER_PREFIXES:
        if url.startswith(plain):
            return async_prefix + url[len(plain):]
    return url


def _engine_options(url: str) -> dict[str, Any]:
    # SQL echo is governed by the sqlalchemy.engine logger level (LOG_LEVEL_SQL).
    if url.startswith("sqlite"):
        # Concurrent writers from several tabs wait on the file lock instead of failing.
        return {"connect_args": {"timeout": 30}}
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


settings = get_settings()
_async_url = _get_async_url(settings.database_url)

engine = create_async_engine(_async_url, **_engine_options(_async_url))

async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: commit when the handler returns, roll back if it raises."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
