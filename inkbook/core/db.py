from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from inkbook.core.config import settings


def _async_database_url(url: str) -> str:
    """Use asyncpg for PostgreSQL. asyncpg does not accept psycopg params like sslmode/channel_binding."""
    parsed = make_url(url)
    if parsed.get_backend_name() not in ("postgresql", "postgres"):
        return url
    parsed = parsed.set(drivername="postgresql+asyncpg").difference_update_query(["sslmode", "channel_binding"])
    return parsed.render_as_string(hide_password=False)


async_database_url = _async_database_url(settings.database_url)


def _engine_options(url: str) -> dict[str, Any]:
    # Pool sizing and SSL only apply to the PostgreSQL driver; SQLite (local dev, tests) takes neither.
    if not url.startswith("postgresql"):
        return {}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "connect_args": {"ssl": True},
    }


engine = create_async_engine(
    async_database_url,
    echo=settings.env == "development",
    pool_pre_ping=True,
    **_engine_options(async_database_url),
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
