from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from tournament_finder.cache import CacheClient, config_key
from tournament_finder.engine import compute_page, extract_reward_categories
from tournament_finder.schemas.tournament import (
    FilterCriteria,
    PaginatedTournamentsResponse,
    SortField,
    SortSpec,
    TournamentConfig,
    TournamentFilterOptions,
    TournamentRecord,
)
from tournament_finder.services.caching import CacheableService, cached
from tournament_finder.services.tournament_source import (
    ClientContext,
    Fetched,
    TournamentSourceProtocol,
    UpstreamFilters,
)
from tournament_finder.settings import (
    DEFAULT_CONFIG_CACHE_TTL_SECONDS,
    DEFAULT_PAGE_SIZE,
    DateFilterMode,
)

logger = logging.getLogger(__name__)


def _config_cache_key(self: TournamentQueryService) -> str:
    return config_key(self.upstream_identity)


def _serialize_config(fetched: Fetched[TournamentConfig]) -> dict[str, Any]:
    return fetched.value.model_dump()


def _deserialize_config(payload: Any) -> Fetched[TournamentConfig]:
    if not isinstance(payload, dict):
        raise TypeError("Cached tournament config payload must be a mapping")
    return Fetched(TournamentConfig.model_validate(payload))


class TournamentQueryService(CacheableService):
    """Joins the upstream data source with the local filter engine."""

    def __init__(
        self,
        source: TournamentSourceProtocol,
        *,
        cache: CacheClient | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        date_filter_mode: DateFilterMode = DateFilterMode.UPSTREAM,
        sortable_fields: Sequence[str] | None = None,
        config_ttl: int = DEFAULT_CONFIG_CACHE_TTL_SECONDS,
    ) -> None:
        super().__init__(cache=cache)
        self._source = source
        self._page_size = page_size
        self._date_filter_mode = date_filter_mode
        self._sortable_fields = list(sortable_fields) if sortable_fields is not None else None
        self._config_ttl = config_ttl

    @property
    def upstream_identity(self) -> str:
        """Identifier of the upstream deployment, used to namespace cache keys."""

        return getattr(self._source, "base_url", type(self._source).__name__)

    @property
    def sortable_fields(self) -> list[str]:
        if self._sortable_fields is None:
            return [field.value for field in SortField]
        return list(self._sortable_fields)

    async def list_tournaments(
        self,
        filters: UpstreamFilters | None = None,
        client: ClientContext | None = None,
    ) -> list[TournamentRecord]:
        """Proxy the upstream record list (sample data on failure)."""

        fetched = await self._source.load_tournaments(filters, client)
        return fetched.value

    @cached(
        _config_cache_key,
        ttl=lambda self: self._config_ttl,
        serializer=_serialize_config,
        deserializer=_deserialize_config,
        should_cache=lambda fetched: not fetched.fallback,
        deserialize_error_message=(
            "Failed to deserialize cached tournament config for key {key}: {error}"
        ),
    )
    async def _load_config(self) -> Fetched[TournamentConfig]:
        return await self._source.load_config()

    async def get_config(self) -> TournamentConfig:
        """Return the facet config, cached when it came from the upstream."""

        return (await self._load_config()).value

    async def search(
        self,
        criteria: FilterCriteria,
        sort: SortSpec,
        *,
        page: int = 1,
        client: ClientContext | None = None,
    ) -> PaginatedTournamentsResponse:
        """Fetch the record set and return one filtered, sorted page."""

        filters = UpstreamFilters.for_criteria(
            criteria, date_filter_mode=self._date_filter_mode
        )
        fetched = await self._source.load_tournaments(filters, client)
        result = compute_page(
            fetched.value,
            criteria,
            sort,
            page=page,
            page_size=self._page_size,
            date_filter_mode=self._date_filter_mode,
            sortable_fields=self._sortable_fields,
        )
        logger.debug(
            "Search matched %d of %d tournaments (page %d/%d, sort=%s)",
            result.total,
            len(fetched.value),
            result.page,
            result.total_pages,
            sort,
        )
        return PaginatedTournamentsResponse(
            tournaments=result.items,
            total=result.total,
            page=result.page,
            page_size=result.page_size,
            total_pages=result.total_pages,
            has_more=result.has_more,
            sort=str(sort),
        )

    async def get_filter_options(
        self, client: ClientContext | None = None
    ) -> TournamentFilterOptions:
        """Return choice lists for the filter controls.

        Prefectures, shops and wards come from the config so they do not
        shrink with the result set; reward categories are derived from the
        full upstream record set.
        """

        config = await self.get_config()
        fetched = await self._source.load_tournaments(UpstreamFilters(), client)
        return TournamentFilterOptions(
            prefectures=list(config.all_prefecture),
            shop_names=list(config.all_shop_name),
            city_wards=list(config.all_city_ward),
            reward_categories=extract_reward_categories(fetched.value),
            sort_fields=self.sortable_fields,
        )


__all__ = ["TournamentQueryService"]
