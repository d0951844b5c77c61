"""Redis-backed JSON cache for oracle column answers, with a no-op fallback.

The same sheet schema asks the oracle the same question on every reload, so
answers are stored under `cache_key("columns", sample)` for a day. Redis errors
never reach a request: reads miss and writes report False.
"""
from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import os
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "sheetmap"
DEFAULT_TTL_SECONDS = 86400
PING_TIMEOUT_SECONDS = 0.75


def cache_key(namespace: str, payload: Any) -> str:
    blob = json.dumps(payload, sort_keys=True, default=str, ensure_ascii=False)
    return f"{namespace}:{hashlib.sha1(blob.encode('utf-8')).hexdigest()}"


class NoopCache:
    async def get_json(self, key: str) -> Optional[Any]:
        return None

    async def set_json(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        return False

    async def close(self) -> None:
        return None


class RedisCache:
    def __init__(self, client: Any, prefix: str = DEFAULT_PREFIX, default_ttl: int = DEFAULT_TTL_SECONDS):
        self.client = client
        self.prefix = prefix.rstrip(":")
        self.default_ttl = default_ttl

    def _full_key(self, key: str) -> str:
        return f"{self.prefix}:{key}" if self.prefix else key

    async def get_json(self, key: str) -> Optional[Any]:
        try:
            raw = await self.client.get(self._full_key(key))
        except RedisError as e:
            logger.debug("cache read failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.debug("discarding undecodable cache entry %s", key)
            return None

    async def set_json(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        data = json.dumps(value, separators=(",", ":"))
        try:
            await self.client.set(self._full_key(key), data, ex=ttl if ttl is not None else self.default_ttl)
        except RedisError as e:
            logger.debug("cache write failed for %s: %s", key, e)
            return False
        return True

    async def close(self) -> None:
        # redis-py 5 renamed close() to aclose()
        closer = getattr(self.client, "aclose", None) or self.client.close
        try:
            await closer()
        except RedisError as e:
            logger.debug("cache close failed: %s", e)


def _ttl_from_env() -> int:
    try:
        return int(os.getenv("CACHE_TTL_SECONDS", str(DEFAULT_TTL_SECONDS)))
    except ValueError:
        return DEFAULT_TTL_SECONDS


async def build_cache_from_env() -> RedisCache | NoopCache:
    """RedisCache when REDIS_URL is set and answers a ping, else NoopCache.

    Env vars:
      REDIS_URL          e.g. redis://redis:6379/0
      CACHE_DISABLE=1    force the no-op cache
      CACHE_PREFIX       key namespace (default 'sheetmap')
      CACHE_TTL_SECONDS  entry lifetime (default 86400)
    """
    url = os.getenv("REDIS_URL")
    if os.getenv("CACHE_DISABLE") == "1" or not url:
        return NoopCache()
    try:
        client = redis.from_url(url, encoding="utf-8", decode_responses=False)
        await asyncio.wait_for(client.ping(), timeout=PING_TIMEOUT_SECONDS)
    except (RedisError, OSError, ValueError, asyncio.TimeoutError) as e:
        logger.info("Redis unavailable (%s); proceeding without cache", e)
        return NoopCache()
    return RedisCache(client, prefix=os.getenv("CACHE_PREFIX", DEFAULT_PREFIX), default_ttl=_ttl_from_env())
