"""Pydantic schemas for API responses."""

from tournament_finder.schemas.error import (  # noqa: F401
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from tournament_finder.schemas.tournament import (  # noqa: F401
    FilterCriteria,
    PaginatedTournamentsResponse,
    SortDirection,
    SortField,
    SortSpec,
    TournamentConfig,
    TournamentConfigResponse,
    TournamentFilterOptions,
    TournamentRecord,
)
