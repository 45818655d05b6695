"""Caching utilities shared across service layers.

The :func:`cached` decorator wraps async service methods with two-tier
caching (Redis + in-process) and optional serialisation hooks.  A
``should_cache`` predicate lets a method opt individual results out, which is
how sample-data fallbacks are kept out of the cache.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, Concatenate, ParamSpec, TypeVar, cast

from tournament_finder.cache import CacheClient, local_cache_get, local_cache_set

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

CacheKeyBuilder = Callable[Concatenate["CacheableService", P], str | None]
CacheSerializer = Callable[[T], Any]
CacheDeserializer = Callable[[Any], T]
CachePredicate = Callable[[T], bool]
DecoratedCallable = Callable[Concatenate["CacheableService", P], Awaitable[T]]


class CacheableService:
    """Base class that exposes helper methods for two-tier caching.

    ``_cache_get`` consults the distributed cache first and then the
    in-process dictionary; ``_cache_set`` writes to both.
    """

    def __init__(self, cache: CacheClient | None = None) -> None:
        self._cache = cache

    async def _cache_get(self, key: str) -> Any:
        cached: Any | None = None
        if self._cache is not None:
            cached = await self._cache.get_json(key)
        if cached is not None:
            return cached
        return await local_cache_get(key)

    async def _cache_set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._cache is not None:
            await self._cache.set_json(key, value, ttl=ttl)
        if value is not None:
            await local_cache_set(key, value, ttl=ttl)


def cached(
    key_builder: CacheKeyBuilder[P],
    *,
    ttl: int | Callable[[Any], int | None] | None = None,
    serializer: CacheSerializer[T] | None = None,
    deserializer: CacheDeserializer[T] | None = None,
    should_cache: CachePredicate[T] | None = None,
    deserialize_error_message: str | None = None,
) -> Callable[[DecoratedCallable], DecoratedCallable]:
    """Decorate an async service method with transparent caching behaviour.

    Parameters
    ----------
    key_builder:
        Callable that returns the cache key for the invocation.  Returning
        ``None`` short-circuits caching for the call.
    ttl:
        Cache lifetime in seconds, or a callable receiving the service
        instance and returning it (for per-instance configuration).
    serializer / deserializer:
        Hooks converting between Python objects and JSON-serialisable payloads.
    should_cache:
        Predicate evaluated on a fresh result; ``False`` skips the write.
    deserialize_error_message:
        Optional ``str.format`` template logged when a cached payload cannot
        be deserialised.
    """

    def decorator(func: DecoratedCallable) -> DecoratedCallable:
        @wraps(func)
        async def wrapper(
            self: "CacheableService", *args: P.args, **kwargs: P.kwargs
        ) -> T:
            cache_key = key_builder(self, *args, **kwargs)
            if cache_key:
                cached_value = await self._cache_get(cache_key)
                if cached_value is not None:
                    if deserializer is None:
                        return cast(T, cached_value)
                    try:
                        return deserializer(cached_value)
                    except Exception as exc:  # pragma: no cover - corrupted entries
                        if deserialize_error_message:
                            logger.warning(
                                deserialize_error_message.format(key=cache_key, error=exc)
                            )

            result = await func(self, *args, **kwargs)

            if not cache_key or result is None:
                return result
            if should_cache is not None and not should_cache(result):
                return result

            payload: Any = serializer(result) if serializer is not None else result
            lifetime = ttl(self) if callable(ttl) else ttl
            try:
                await self._cache_set(cache_key, payload, ttl=lifetime)
            except Exception as exc:  # pragma: no cover - cache backend issues
                logger.warning(
                    "Failed to persist cache entry for key %s: %s", cache_key, exc
                )
            return result

        return wrapper

    return decorator


__all__ = ["CacheableService", "cached"]
