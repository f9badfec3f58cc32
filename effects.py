# effects.py
import json
import logging
import os
from typing import Any, Optional

from dotenv import load_dotenv
from redis.asyncio import Redis
from redis.exceptions import RedisError

from schemas import Redirect

load_dotenv()

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0").strip()
CACHE_KEY_PREFIX = os.getenv("CACHE_KEY_PREFIX", "cache:").strip()
CACHE_TTL = int(os.getenv("CACHE_TTL", "60"))

logger = logging.getLogger(__name__)

INVOICES_PATH = "/dashboard/invoices"


class PageCache:
  """Rendered snapshots of views in Redis, keyed by path.

  A missing key means the view is stale and must be recomputed from the
  store on next access. Redis being down behaves like a miss.
  """

  def __init__(self, client: Optional[Redis] = None, url: str = REDIS_URL,
               prefix: str = CACHE_KEY_PREFIX, ttl: int = CACHE_TTL) -> None:
    self._client = client
    self._url = url
    self.prefix = prefix
    self.ttl = ttl

  def _redis(self) -> Redis:
    if self._client is None:
      self._client = Redis.from_url(self._url, decode_responses=True)
    return self._client

  def _key(self, path: str) -> str:
    return f"{self.prefix}{path}"

  async def get(self, path: str) -> Optional[Any]:
    try:
      raw = await self._redis().get(self._key(path))
    except RedisError as e:
      logger.warning("cache get failed %s: %s", path, e)
      return None
    if raw is None:
      return None
    return json.loads(raw)

  async def set(self, path: str, value: Any) -> bool:
    try:
      await self._redis().setex(self._key(path), self.ttl, json.dumps(value, ensure_ascii=False, default=str))
    except RedisError as e:
      logger.warning("cache set failed %s: %s", path, e)
      return False
    return True

  async def delete(self, path: str) -> bool:
    try:
      return bool(await self._redis().delete(self._key(path)))
    except RedisError as e:
      # the TTL still bounds how long the stale snapshot lives
      logger.error("cache delete failed %s: %s", path, e)
      return False

  async def close(self) -> None:
    if self._client is not None:
      await self._client.aclose()
      self._client = None


page_cache = PageCache()


async def revalidate_path(path: str, cache: PageCache = page_cache) -> None:
  dropped = await cache.delete(path)
  logger.debug("revalidated %s (cached=%s)", path, dropped)


def redirect(path: str) -> Redirect:
  return Redirect(to=path)
