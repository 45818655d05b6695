"""Pure filter, sort, pagination and facet helpers for tournament listings."""

from .browser import TournamentBrowser
from .collation import configure_collation
from .facets import extract_reward_categories
from .filters import filter_tournaments, tournament_matches
from .pagination import Page, clamp_page, paginate, total_pages_for
from .pipeline import compute_page
from .sorting import InvalidSortError, ensure_sortable, sort_tournaments

__all__ = [
    "InvalidSortError",
    "Page",
    "TournamentBrowser",
    "clamp_page",
    "compute_page",
    "configure_collation",
    "ensure_sortable",
    "extract_reward_categories",
    "filter_tournaments",
    "paginate",
    "sort_tournaments",
    "total_pages_for",
    "tournament_matches",
]
