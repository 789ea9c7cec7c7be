"""Fixtures for tests against a real SQL database (aiosqlite file per test)."""

import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from machine_booking.infrastructure.db.engine import build_sessionmaker
from machine_booking.infrastructure.db.tables import metadata


@pytest_asyncio.fixture
async def sql_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'machine_booking.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(sql_engine):
    return build_sessionmaker(sql_engine)
