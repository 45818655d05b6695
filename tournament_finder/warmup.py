"""Startup warmup to eliminate cold start delays.

Opens the Redis connection and primes the upstream HTTP pool (and the config
cache) before the first request is served.
"""

from __future__ import annotations

import logging
import time

from tournament_finder.services.tournament_source import (
    DataSourceError,
    TournamentSourceProtocol,
)

logger = logging.getLogger(__name__)


async def warmup_redis() -> None:
    """Warm up Redis connection.

    Establishes connection and tests with PING command.
    Gracefully degrades if Redis is unavailable.
    """
    from tournament_finder.cache import get_redis

    try:
        start = time.time()
        redis = await get_redis()

        if redis is None:
            logger.info("⚠ Redis warmup skipped (connection unavailable)")
            return

        await redis.ping()

        elapsed = (time.time() - start) * 1000
        logger.info(f"✓ Redis connection warmed up ({elapsed:.0f}ms)")
    except Exception as e:
        logger.warning(f"Redis warmup failed: {e}")


async def warmup_upstream(source: TournamentSourceProtocol) -> None:
    """Fetch the facet config once so the HTTP pool is connected.

    A sample-data fallback here only means the upstream is down at startup;
    requests will keep retrying it.
    """
    try:
        start = time.time()
        fetched = await source.load_config()
        elapsed = (time.time() - start) * 1000
        if fetched.fallback:
            logger.info(f"⚠ Upstream warmup served sample config ({elapsed:.0f}ms)")
        else:
            logger.info(f"✓ Upstream connection warmed up ({elapsed:.0f}ms)")
    except DataSourceError as e:
        logger.warning(f"Upstream warmup failed: {e}")


async def warmup_all(source: TournamentSourceProtocol) -> None:
    """Run every warmup step in sequence and log the total time."""
    logger.info("=" * 60)
    logger.info("Warming up service connections...")
    logger.info("=" * 60)

    start = time.time()

    await warmup_redis()
    await warmup_upstream(source)

    total_elapsed = (time.time() - start) * 1000
    logger.info("=" * 60)
    logger.info(f"✓ Warmup complete ({total_elapsed:.0f}ms)")
    logger.info("=" * 60)
