"""Shared pytest fixtures for database-backed service tests."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import select

from offline_search.config import DatabaseSettings, SearchSettings
from offline_search.db.models import CachedUser
from offline_search.db.session import Database


@pytest.fixture
def make_settings(tmp_path):
    def factory(**overrides) -> SearchSettings:
        dsn = f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}"
        return SearchSettings(database=DatabaseSettings(dsn=dsn), **overrides)

    return factory


@pytest_asyncio.fixture
async def database(make_settings):
    db = Database(settings=make_settings())
    await db.create_schema()
    try:
        yield db
    finally:
        await db.dispose()


@pytest.fixture
def stored_users(database):
    async def fetch() -> list[CachedUser]:
        async with database.session() as session:
            result = await session.execute(select(CachedUser).order_by(CachedUser.id))
            return list(result.scalars().all())

    return fetch
