"""Database configuration and session management."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ledger_recon.config import settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


def _engine_options(database_url: str) -> dict[str, object]:
    # SQLite does not take pool sizing arguments
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,
    }


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    **_engine_options(settings.database_url),
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Test hook to override session maker
_test_session_maker = None


def set_test_session_maker(
    maker: async_sessionmaker[AsyncSession] | None,
) -> async_sessionmaker[AsyncSession] | None:
    """Set test session maker and return the previous value."""
    global _test_session_maker
    previous = _test_session_maker
    _test_session_maker = maker
    return previous


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Return the active session maker (test override first)."""
    return _test_session_maker or async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for database session."""
    async with get_session_maker()() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_schema(bind: AsyncEngine) -> None:
    """Create all tables on the given engine."""
    from ledger_recon import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """Create the override table if it does not exist yet."""
    from ledger_recon.logger import get_logger

    logger = get_logger(__name__)
    await create_schema(engine)
    logger.info("Database initialized", database=engine.url.render_as_string(hide_password=True))
