from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from tournament_finder.settings import get_settings

logger = logging.getLogger(__name__)

_DEFAULT_TTL_SECONDS = 600
_CONFIG_PREFIX = "tournaments:config"

_LOCAL_CACHE_DEFAULT_TTL = 300
_local_cache: dict[str, tuple[float, Any]] = {}
_local_cache_lock = asyncio.Lock()

_redis_client: Redis | None = None
_client_lock = asyncio.Lock()
_redis_disabled = False


async def local_cache_get(key: str) -> Any | None:
    """Return a value from the in-process fallback cache when it remains valid."""

    async with _local_cache_lock:
        cached_entry = _local_cache.get(key)
        if cached_entry is None:
            return None

        expires_at, value = cached_entry
        if expires_at < time.time():
            _local_cache.pop(key, None)
            return None
        return value


async def local_cache_set(key: str, value: Any, ttl: int | None = None) -> None:
    """Persist ``value`` in the in-process cache while respecting the supplied TTL."""

    ttl_seconds = ttl if ttl is not None and ttl > 0 else _LOCAL_CACHE_DEFAULT_TTL
    async with _local_cache_lock:
        _local_cache[key] = (time.time() + ttl_seconds, value)


def config_key(base_url: str) -> str:
    """Cache key for the facet config of one upstream deployment."""

    return f"{_CONFIG_PREFIX}:{base_url.rstrip('/')}"


def _is_redis_connection_error(exc: BaseException) -> bool:
    return isinstance(exc, (RedisConnectionError, RedisTimeoutError, OSError))


async def get_redis() -> Redis | None:
    """Get the shared Redis client, returning None if the server is unreachable."""
    global _redis_client, _redis_disabled

    if _redis_disabled:
        logger.debug("Redis connection disabled after previous failure; skipping attempt.")
        return None

    async with _client_lock:
        if _redis_client is not None:
            return _redis_client

        if _redis_disabled:
            return None

        client = Redis.from_url(
            get_settings().redis_url, decode_responses=True, encoding="utf-8"
        )
        try:
            await client.ping()
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_connection_error(exc):
                logger.warning(f"Redis connection failed: {exc}. Caching will be in-process only.")
                await client.aclose()
                _redis_disabled = True
                return None
            raise
        _redis_client = client
        logger.info("Redis connection established successfully")
        return _redis_client


class CacheClient:
    """JSON get/set over Redis that treats connection failures as cache misses."""

    def __init__(self, redis: Redis | None) -> None:
        self._redis = redis

    async def get_json(self, key: str) -> Any:
        if self._redis is None:
            return None
        try:
            payload = await self._redis.get(key)
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_connection_error(exc):
                logger.debug(f"Redis get failed for key {key}: {exc}")
                return None
            raise
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._redis is None:
            return
        encoded = json.dumps(value, default=str, ensure_ascii=False)
        try:
            await self._redis.set(key, encoded, ex=ttl or _DEFAULT_TTL_SECONDS)
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_connection_error(exc):
                logger.debug(f"Redis set failed for key {key}: {exc}")
                return
            raise


async def get_cache_client() -> CacheClient:
    redis = await get_redis()
    return CacheClient(redis)


async def close_redis() -> None:
    """Close the global Redis connection gracefully."""
    global _redis_client, _redis_disabled
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
    _redis_disabled = False


__all__ = [
    "CacheClient",
    "close_redis",
    "config_key",
    "get_cache_client",
    "get_redis",
    "local_cache_get",
    "local_cache_set",
]
