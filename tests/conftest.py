"""Shared fixtures: in-memory async SQLite, a fresh Redis-backed page cache, and an HTTP client."""

import os

# db.py refuses to import without a URL
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from db import get_session
from effects import PageCache
from invoice_route import get_cache
from main import app
import models  # noqa: F401  registers the tables


@pytest.fixture
async def test_engine():
  engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
  async with engine.begin() as conn:
    await conn.run_sync(SQLModel.metadata.create_all)
  yield engine
  await engine.dispose()


@pytest.fixture
async def session_factory(test_engine):
  return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
  async with session_factory() as s:
    yield s


@pytest.fixture
async def cache():
  c = PageCache(client=fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True))
  yield c
  await c.close()


@pytest.fixture
async def client(session_factory, cache):
  async def override_get_session():
    async with session_factory() as s:
      yield s

  app.dependency_overrides[get_session] = override_get_session
  app.dependency_overrides[get_cache] = lambda: cache

  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
    yield c

  app.dependency_overrides.clear()
