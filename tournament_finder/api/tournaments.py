from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from tournament_finder.schemas.tournament import (
    FilterCriteria,
    PaginatedTournamentsResponse,
    SortSpec,
    TournamentConfigResponse,
    TournamentFilterOptions,
    TournamentRecord,
)
from tournament_finder.services.dependencies import (
    get_client_context,
    get_tournament_query_service,
)
from tournament_finder.services.tournament_service import TournamentQueryService
from tournament_finder.services.tournament_source import ClientContext, UpstreamFilters

router = APIRouter()


@router.get("", response_model=list[TournamentRecord])
@router.get("/", response_model=list[TournamentRecord])
async def list_tournaments(
    key_word: str | None = Query(None, description="Free-text keyword forwarded upstream."),
    prefecture: str | None = Query(None, description="Exact prefecture name."),
    city_ward: str | None = Query(None, description="Exact city or ward name."),
    shop_name: list[str] | None = Query(
        None, description="Shop name. Multiple values allowed (OR logic)."
    ),
    reward_categories: list[str] | None = Query(
        None, description="Reward category label. Multiple values allowed (OR logic)."
    ),
    min_entry_fee: int | None = Query(None, ge=0, description="Minimum entry fee."),
    max_entry_fee: int | None = Query(None, ge=0, description="Maximum entry fee."),
    start_date: date | None = Query(None, description="First day of the start-date window."),
    end_date: date | None = Query(None, description="Last day of the start-date window."),
    client: ClientContext = Depends(get_client_context),
    service: TournamentQueryService = Depends(get_tournament_query_service),
) -> list[TournamentRecord]:
    """Proxy the upstream tournament list.

    Filters are forwarded as-is; when the upstream is unavailable the built-in
    sample tournaments are returned instead.
    """

    filters = UpstreamFilters(
        key_word=key_word,
        prefecture=prefecture or None,
        city_ward=city_ward or None,
        shop_names=tuple(shop_name or ()),
        reward_categories=tuple(reward_categories or ()),
        min_entry_fee=min_entry_fee,
        max_entry_fee=max_entry_fee,
        start_date=start_date,
        end_date=end_date,
    )
    return await service.list_tournaments(filters, client)


@router.get("/config", response_model=TournamentConfigResponse)
async def get_tournament_config(
    service: TournamentQueryService = Depends(get_tournament_query_service),
) -> TournamentConfigResponse:
    """Return the facet lists used to populate the filter controls."""
    return TournamentConfigResponse(data=await service.get_config())


@router.get("/search", response_model=PaginatedTournamentsResponse)
async def search_tournaments(
    key_word: str = Query("", description="Substring matched against event, shop and reward text."),
    prefecture: str | None = Query(None, description="Exact prefecture name."),
    city_ward: str | None = Query(None, description="Exact city or ward name."),
    shop_name: list[str] | None = Query(
        None, description="Shop name. Multiple values allowed (OR logic)."
    ),
    reward_categories: list[str] | None = Query(
        None, description="Reward category label. Multiple values allowed (OR logic)."
    ),
    min_entry_fee: int = Query(0, ge=0, description="Minimum entry fee (inclusive)."),
    max_entry_fee: int | None = Query(
        None, ge=0, description="Maximum entry fee (inclusive). Omit for no upper bound."
    ),
    start_date: date | None = Query(None, description="First day of the start-date window."),
    end_date: date | None = Query(None, description="Last day of the start-date window."),
    sort: str = Query(
        "none",
        description="Sort order as 'field:direction', e.g. 'entry_fee:asc'. 'none' keeps source order.",
    ),
    page: int = Query(1, ge=1, description="1-based page number; clamped to the last page."),
    client: ClientContext = Depends(get_client_context),
    service: TournamentQueryService = Depends(get_tournament_query_service),
) -> PaginatedTournamentsResponse:
    """Filter, sort and paginate tournaments.

    Examples:
        /api/tournaments/search?prefecture=東京都&sort=entry_fee:asc
        /api/tournaments/search?reward_categories=チケット&page=2
    """

    try:
        sort_spec = SortSpec.parse(sort)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    criteria = FilterCriteria(
        query=key_word,
        prefecture=prefecture,
        city_ward=city_ward,
        shop_names=shop_name or [],
        reward_categories=reward_categories or [],
        min_entry_fee=min_entry_fee,
        max_entry_fee=max_entry_fee,
        start_date=start_date,
        end_date=end_date,
    )
    return await service.search(criteria, sort_spec, page=page, client=client)


@router.get("/filters/options", response_model=TournamentFilterOptions)
async def get_filter_options(
    client: ClientContext = Depends(get_client_context),
    service: TournamentQueryService = Depends(get_tournament_query_service),
) -> TournamentFilterOptions:
    """Get available filter options (prefectures, shops, wards, reward categories)."""
    return await service.get_filter_options(client)
