"""Database engine and session factory."""

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from finsight.config import Settings, get_settings

# Engine and session factory (lazy initialized)
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Get or create the async database engine."""
    global _engine
    if _engine is None:
        if settings is None:
            settings = get_settings()
        url = str(settings.database_url)
        kwargs: dict[str, Any] = {"echo": settings.app_debug}
        # sqlite uses a static/singleton pool that rejects sizing arguments
        if not url.startswith("sqlite"):
            kwargs["pool_size"] = settings.database_pool_size
            kwargs["max_overflow"] = settings.database_max_overflow
            kwargs["pool_pre_ping"] = True
        _engine = create_async_engine(url, **kwargs)
    assert _engine is not None
    return _engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_session_factory(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """Get or create the async session factory."""
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = build_session_factory(get_engine(settings))
    assert _async_session_factory is not None
    return _async_session_factory


async def create_tables(engine: AsyncEngine | None = None) -> None:
    """Create all tables that do not exist yet."""
    from finsight.infrastructure.database.models import Base

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_factory = None
