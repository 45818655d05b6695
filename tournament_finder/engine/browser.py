"""Interactive browsing session over one tournament record set.

A :class:`TournamentBrowser` owns the single mutable tuple of a session:
the loaded records, the facet config, the filter criteria, the sort order and
the current page.  Everything visible is recomputed from that tuple by the
pure engine functions.  Fetching is the only suspending operation; while a
fetch is outstanding the previous records stay visible and the loading flags
tell callers whether to show a placeholder or dim stale rows.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from tournament_finder.engine.facets import extract_reward_categories
from tournament_finder.engine.filters import filter_tournaments
from tournament_finder.engine.pagination import Page, clamp_page
from tournament_finder.engine.pipeline import compute_page
from tournament_finder.engine.sorting import ensure_sortable
from tournament_finder.schemas.tournament import (
    FilterCriteria,
    SortSpec,
    TournamentConfig,
    TournamentRecord,
)
from tournament_finder.services.tournament_source import (
    ClientContext,
    DataSourceError,
    TournamentSourceProtocol,
    UpstreamFilters,
)
from tournament_finder.settings import DEFAULT_PAGE_SIZE, AppSettings, DateFilterMode

logger = logging.getLogger(__name__)


class TournamentBrowser:
    """Session state plus reactive recomputation of the visible page."""

    def __init__(
        self,
        source: TournamentSourceProtocol,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        date_filter_mode: DateFilterMode = DateFilterMode.UPSTREAM,
        sortable_fields: Sequence[str] | None = None,
        criteria: FilterCriteria | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be a positive integer")
        self._source = source
        self._page_size = page_size
        self._date_filter_mode = date_filter_mode
        self._sortable_fields = list(sortable_fields) if sortable_fields is not None else None
        self._criteria = criteria.model_copy() if criteria is not None else FilterCriteria()
        self._sort = SortSpec()
        self._page = 1
        self._records: list[TournamentRecord] | None = None
        self._config: TournamentConfig | None = None
        self._reward_categories: list[str] = []
        self._fetched_filters: UpstreamFilters | None = None
        self._pending = 0
        self._error: DataSourceError | None = None

    @classmethod
    def from_settings(
        cls, source: TournamentSourceProtocol, settings: AppSettings
    ) -> TournamentBrowser:
        return cls(
            source,
            page_size=settings.page_size,
            date_filter_mode=settings.date_filter_mode,
            sortable_fields=settings.sortable_fields,
        )

    # -- Loading state ---------------------------------------------------------

    @property
    def is_initial_loading(self) -> bool:
        """A fetch is outstanding and no record set has arrived yet."""

        return self._pending > 0 and self._records is None

    @property
    def is_refreshing(self) -> bool:
        """A fetch is outstanding while earlier results remain visible."""

        return self._pending > 0 and self._records is not None

    @property
    def error(self) -> DataSourceError | None:
        """The failure of the most recent unsuccessful fetch, if any."""

        return self._error

    @property
    def has_loaded(self) -> bool:
        return self._records is not None

    @property
    def needs_refresh(self) -> bool:
        """The delegated filters changed since the loaded record set was fetched.

        Until the next :meth:`refresh` the date window is applied locally to
        the stale records so nothing outside it stays visible.
        """

        if self._records is None:
            return False
        current = UpstreamFilters.for_criteria(
            self._criteria, date_filter_mode=self._date_filter_mode
        )
        return current != self._fetched_filters

    def _effective_date_mode(self) -> DateFilterMode:
        if self.needs_refresh:
            return DateFilterMode.LOCAL
        return self._date_filter_mode

    async def refresh(self, client: ClientContext | None = None) -> None:
        """Fetch a new record set and config from the data source.

        Overlapping calls are allowed; each completion replaces the records
        (last write wins).  Failures are not retried.
        """

        self._pending += 1
        filters = UpstreamFilters.for_criteria(
            self._criteria, date_filter_mode=self._date_filter_mode
        )
        try:
            fetched = await self._source.load_tournaments(filters, client)
            config = await self._source.load_config()
        except DataSourceError as exc:
            logger.warning("Tournament refresh failed: %s", exc)
            self._error = exc
            return
        finally:
            self._pending -= 1

        self._records = list(fetched.value)
        self._fetched_filters = filters
        self._config = config.value
        self._reward_categories = extract_reward_categories(self._records)
        self._error = None
        logger.debug(
            "Loaded %d tournaments (fallback=%s)", len(self._records), fetched.fallback
        )

    # -- Inputs ----------------------------------------------------------------

    @property
    def criteria(self) -> FilterCriteria:
        """A copy of the active criteria; mutate through :meth:`update_criteria`."""

        return self._criteria.model_copy()

    @property
    def sort(self) -> SortSpec:
        return self._sort

    @property
    def page(self) -> int:
        """The current page, clamped to the current result size."""

        return clamp_page(self._page, len(self._matching()), self._page_size)

    @property
    def page_size(self) -> int:
        return self._page_size

    def update_criteria(self, **changes: Any) -> FilterCriteria:
        """Apply ``changes`` to the criteria and return to page 1."""

        merged = {**self._criteria.model_dump(), **changes}
        return self.set_criteria(FilterCriteria.model_validate(merged))

    def set_criteria(self, criteria: FilterCriteria) -> FilterCriteria:
        """Replace the criteria and return to page 1."""

        self._criteria = criteria.model_copy()
        self._page = 1
        return self.criteria

    def reset_criteria(self) -> FilterCriteria:
        return self.set_criteria(FilterCriteria())

    def set_sort(self, sort: SortSpec | str | None) -> SortSpec:
        """Change the sort order and return to page 1."""

        spec = sort if isinstance(sort, SortSpec) else SortSpec.parse(sort)
        ensure_sortable(spec, self._sortable_fields)
        self._sort = spec
        self._page = 1
        return spec

    def go_to_page(self, page: int) -> int:
        """Move to ``page`` (clamped) and return the page actually selected."""

        self._page = clamp_page(page, len(self._matching()), self._page_size)
        return self._page

    # -- Derived views ---------------------------------------------------------

    @property
    def records(self) -> list[TournamentRecord]:
        return list(self._records or [])

    @property
    def reward_category_options(self) -> list[str]:
        return list(self._reward_categories)

    @property
    def prefecture_options(self) -> list[str]:
        return list(self._config.all_prefecture) if self._config else []

    @property
    def shop_options(self) -> list[str]:
        return list(self._config.all_shop_name) if self._config else []

    @property
    def city_ward_options(self) -> list[str]:
        return list(self._config.all_city_ward) if self._config else []

    def _matching(self) -> list[TournamentRecord]:
        return filter_tournaments(
            self._records or [], self._criteria, date_filter_mode=self._effective_date_mode()
        )

    def view(self) -> Page[TournamentRecord]:
        """Return the page currently visible to the user."""

        return compute_page(
            self._records or [],
            self._criteria,
            self._sort,
            page=self._page,
            page_size=self._page_size,
            date_filter_mode=self._effective_date_mode(),
            sortable_fields=self._sortable_fields,
        )


__all__ = ["TournamentBrowser"]
