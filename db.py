# db.py
import os
from typing import AsyncGenerator, Optional, Tuple

from dotenv import load_dotenv
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "").strip()
if not DATABASE_URL:
  raise RuntimeError("DATABASE_URL is not set in backend .env")

# empty means: take sslmode from the URL, else require TLS
DATABASE_SSL = os.getenv("DATABASE_SSL", "").strip()


def async_url(url: str) -> Tuple[URL, Optional[str]]:
  """Point postgres URLs at the asyncpg driver and pull out ?sslmode=.

  asyncpg rejects sslmode as a connect() keyword; it is passed back so it can
  go in as ssl= instead.
  """
  u = make_url(url)
  if u.drivername in ("postgres", "postgresql"):
    u = u.set(drivername="postgresql+asyncpg")
  sslmode = u.query.get("sslmode")
  if sslmode is not None:
    u = u.difference_update_query(["sslmode"])
    if isinstance(sslmode, tuple):
      sslmode = sslmode[0]
  return u, sslmode


def connect_args(url: URL, sslmode: Optional[str] = None) -> dict:
  if url.drivername != "postgresql+asyncpg":
    return {}
  return {"ssl": DATABASE_SSL or sslmode or "require"}


_url, _sslmode = async_url(DATABASE_URL)
engine = create_async_engine(_url, echo=False, pool_pre_ping=True, connect_args=connect_args(_url, _sslmode))
session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

async def init_db() -> None:
  async with engine.begin() as conn:
    await conn.run_sync(SQLModel.metadata.create_all)

async def get_session() -> AsyncGenerator[AsyncSession, None]:
  async with session_factory() as session:
    yield session
