"""FastAPI dependency wiring for tournament services.

Keeping the factories here leaves the service modules free of web-layer
concerns so the CLI and the tests can construct them directly.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Request

from tournament_finder.cache import CacheClient, get_cache_client
from tournament_finder.services.tournament_service import TournamentQueryService
from tournament_finder.services.tournament_source import ClientContext, TournamentSource
from tournament_finder.settings import get_settings


@lru_cache(maxsize=1)
def get_tournament_source() -> TournamentSource:
    """Return the process-wide upstream client (one pooled HTTP connection)."""

    return TournamentSource.from_settings(get_settings())


def get_client_context(request: Request) -> ClientContext:
    """Describe the inbound caller so its identity can be forwarded upstream."""

    peer_host = request.client.host if request.client else None
    return ClientContext.from_headers(request.headers, peer_host)


def get_tournament_query_service(
    source: TournamentSource = Depends(get_tournament_source),
    cache: CacheClient = Depends(get_cache_client),
) -> TournamentQueryService:
    """Provide a fully-wired :class:`TournamentQueryService` instance."""

    settings = get_settings()
    return TournamentQueryService(
        source,
        cache=cache,
        page_size=settings.page_size,
        date_filter_mode=settings.date_filter_mode,
        sortable_fields=settings.sortable_fields,
        config_ttl=settings.config_cache_ttl_seconds,
    )


__all__ = [
    "get_client_context",
    "get_tournament_query_service",
    "get_tournament_source",
]
