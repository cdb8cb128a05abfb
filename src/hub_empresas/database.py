"""Async database engine and session management.

The engine is created once at application startup by ``init_database`` and
disposed at shutdown. Request handlers receive a session through the
``get_db_session`` FastAPI dependency, which commits when the request
succeeds and rolls back when it raises.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hub_empresas.observability import get_logger
from hub_empresas.settings import Settings

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _normalise_url(url: str) -> str:
    """Rewrite plain postgres URLs to the asyncpg driver form.

    Hosted Postgres providers hand out ``postgres://`` URLs, which SQLAlchemy
    does not accept.
    """
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def init_database(settings: Settings) -> AsyncEngine:
    """Create the process-wide async engine and session factory.

    Args:
        settings: Service settings with database_url, pool size and echo flag.

    Returns:
        The created AsyncEngine.
    """
    global _engine, _session_factory

    url = _normalise_url(settings.database_url)
    engine_kwargs: dict[str, object] = {"echo": settings.database_echo}
    if not url.startswith("sqlite"):
        engine_kwargs.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_pool_size * 2,
            pool_recycle=1800,
            pool_pre_ping=True,
        )

    _engine = create_async_engine(url, **engine_kwargs)
    _session_factory = async_sessionmaker(
        bind=_engine,
        autoflush=False,
        expire_on_commit=False,
    )

    logger.info("Database engine initialised", pool_size=settings.database_pool_size)
    return _engine


async def dispose_database() -> None:
    """Dispose the engine's connection pool at shutdown."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session.

    Yields:
        AsyncSession committed on success, rolled back on error.

    Raises:
        RuntimeError: If init_database has not been called.
    """
    if _session_factory is None:
        raise RuntimeError("Database is not initialised; call init_database() first")

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
