"""Filter -> sort -> paginate in one call."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from tournament_finder.engine.filters import filter_tournaments
from tournament_finder.engine.pagination import Page, paginate
from tournament_finder.engine.sorting import ensure_sortable, sort_tournaments
from tournament_finder.schemas.tournament import (
    FilterCriteria,
    SortSpec,
    TournamentRecord,
)
from tournament_finder.settings import DateFilterMode


def compute_page(
    records: Iterable[TournamentRecord],
    criteria: FilterCriteria,
    sort: SortSpec,
    *,
    page: int,
    page_size: int,
    date_filter_mode: DateFilterMode = DateFilterMode.UPSTREAM,
    sortable_fields: Sequence[str] | None = None,
) -> Page[TournamentRecord]:
    """Return the visible page for ``records`` under the given inputs.

    The result depends on nothing but the arguments.
    """

    ensure_sortable(sort, sortable_fields)
    matched = filter_tournaments(records, criteria, date_filter_mode=date_filter_mode)
    ordered = sort_tournaments(matched, sort)
    return paginate(ordered, page, page_size)


__all__ = ["compute_page"]
