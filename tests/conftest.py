from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from services.db import Base


@asynccontextmanager
async def memory_session():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session = async_sessionmaker(eng, expire_on_commit=False)
    try:
        async with async_session() as session:
            yield session
    finally:
        await eng.dispose()


@pytest.fixture
def run_db():
    """Run `scenario(db)` against a fresh in-memory database, return its result."""

    def _run(scenario):
        async def _main():
            async with memory_session() as db:
                return await scenario(db)

        return asyncio.run(_main())

    return _run
