import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

os.environ.setdefault('DATABASE_URL', 'sqlite+aiosqlite:///./test.db')

import inkbook.models  # noqa: E402,F401 - register tables
from inkbook.core.db import get_session  # noqa: E402
from inkbook.main import app  # noqa: E402


def _create_tables(db_path) -> None:
    sync_engine = create_engine(f'sqlite:///{db_path}')
    SQLModel.metadata.create_all(sync_engine)
    sync_engine.dispose()


@pytest.fixture
async def session(tmp_path):
    db_path = tmp_path / 'services.db'
    _create_tables(db_path)
    engine = create_async_engine(f'sqlite+aiosqlite:///{db_path}', poolclass=NullPool)
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with maker() as db:
        yield db
    await engine.dispose()


@pytest.fixture
def client(tmp_path):
    db_path = tmp_path / 'api.db'
    _create_tables(db_path)
    engine = create_async_engine(f'sqlite+aiosqlite:///{db_path}', poolclass=NullPool)
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with maker() as db:
            try:
                yield db
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
