"""Behavioural tests for the interactive browsing session."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from tournament_finder.engine.browser import TournamentBrowser
from tournament_finder.engine.sorting import InvalidSortError
from tournament_finder.schemas.tournament import (
    FilterCriteria,
    SortSpec,
    TournamentConfig,
    TournamentRecord,
)
from tournament_finder.services.tournament_source import (
    ClientContext,
    Fetched,
    UpstreamFilters,
    UpstreamUnavailableError,
)
from tournament_finder.settings import DateFilterMode


class FakeSource:
    """In-memory data source that records the filters it was asked for."""

    def __init__(
        self,
        records: list[TournamentRecord],
        config: TournamentConfig | None = None,
    ) -> None:
        self.records = records
        self.config = config or TournamentConfig(
            all_prefecture=["東京都"], all_shop_name=["Alpha Poker"], all_city_ward=["渋谷区"]
        )
        self.filters: list[UpstreamFilters | None] = []
        self.fail_with: Exception | None = None

    async def load_tournaments(
        self,
        filters: UpstreamFilters | None = None,
        client: ClientContext | None = None,
    ) -> Fetched[list[TournamentRecord]]:
        self.filters.append(filters)
        if self.fail_with is not None:
            raise self.fail_with
        return Fetched(list(self.records))

    async def load_config(self) -> Fetched[TournamentConfig]:
        return Fetched(self.config)


class GatedSource(FakeSource):
    """Source whose responses are released manually, one gate per call."""

    def __init__(self) -> None:
        super().__init__([])
        self.gates: list[asyncio.Future[list[TournamentRecord]]] = []

    async def load_tournaments(self, filters=None, client=None):
        gate: asyncio.Future[list[TournamentRecord]] = (
            asyncio.get_running_loop().create_future()
        )
        self.gates.append(gate)
        return Fetched(await gate)


@pytest.mark.asyncio
async def test_daily_turbo_and_high_roller_scenario(make_record) -> None:
    turbo = make_record(id=1, event_name="Daily Turbo", entry_fee=3000, reward_categories='["コイン","チケット"]')
    high_roller = make_record(id=2, event_name="High Roller", entry_fee=20000, reward_categories='["コイン"]')
    browser = TournamentBrowser(FakeSource([turbo, high_roller]))

    await browser.refresh()

    assert browser.reward_category_options == ["コイン", "チケット"]

    browser.update_criteria(reward_categories={"チケット"})
    assert [record.id for record in browser.view().items] == [1]

    browser.update_criteria(reward_categories=set(), max_entry_fee=10000)
    assert [record.id for record in browser.view().items] == [1]

    browser.update_criteria(max_entry_fee=None)
    browser.set_sort("entry_fee:desc")
    assert [record.id for record in browser.view().items] == [2, 1]


@pytest.mark.asyncio
async def test_forty_five_records_paginate_and_clamp(make_record) -> None:
    records = [make_record(id=index) for index in range(1, 46)]
    browser = TournamentBrowser(FakeSource(records), page_size=20)
    await browser.refresh()

    view = browser.view()
    assert len(view.items) == 20
    assert view.total_pages == 3

    assert browser.go_to_page(3) == 3
    assert len(browser.view().items) == 5

    assert browser.go_to_page(10) == 3
    assert browser.page == 3


@pytest.mark.asyncio
async def test_changing_inputs_returns_to_first_page(make_record) -> None:
    records = [make_record(id=index, entry_fee=index) for index in range(1, 46)]
    browser = TournamentBrowser(FakeSource(records), page_size=20)
    await browser.refresh()

    browser.go_to_page(2)
    browser.update_criteria(query="Tournament")
    assert browser.page == 1

    browser.go_to_page(2)
    browser.set_sort(SortSpec.parse("entry_fee:asc"))
    assert browser.page == 1

    browser.go_to_page(2)
    browser.reset_criteria()
    assert browser.page == 1
    assert browser.criteria == FilterCriteria()


@pytest.mark.asyncio
async def test_page_is_clamped_when_results_shrink(make_record) -> None:
    records = [make_record(id=index) for index in range(1, 46)]
    source = FakeSource(records)
    browser = TournamentBrowser(source, page_size=20)
    await browser.refresh()
    browser.go_to_page(3)

    source.records = records[:5]
    await browser.refresh()

    assert browser.page == 1
    assert browser.view().page == 1


@pytest.mark.asyncio
async def test_loading_flags_distinguish_initial_load_from_refresh(make_record) -> None:
    source = GatedSource()
    browser = TournamentBrowser(source)

    assert not browser.is_initial_loading
    first = asyncio.create_task(browser.refresh())
    await asyncio.sleep(0)
    assert browser.is_initial_loading
    assert not browser.is_refreshing

    source.gates[0].set_result([make_record(id=1)])
    await first
    assert not browser.is_initial_loading
    assert not browser.is_refreshing

    second = asyncio.create_task(browser.refresh())
    await asyncio.sleep(0)
    assert browser.is_refreshing
    assert [record.id for record in browser.view().items] == [1]

    source.gates[1].set_result([make_record(id=2)])
    await second
    assert not browser.is_refreshing
    assert [record.id for record in browser.view().items] == [2]


@pytest.mark.asyncio
async def test_overlapping_refreshes_last_completion_wins(make_record) -> None:
    source = GatedSource()
    browser = TournamentBrowser(source)

    early = asyncio.create_task(browser.refresh())
    late = asyncio.create_task(browser.refresh())
    await asyncio.sleep(0)

    source.gates[1].set_result([make_record(id=2)])
    await late
    assert browser.is_refreshing

    source.gates[0].set_result([make_record(id=1)])
    await early

    assert [record.id for record in browser.records] == [1]
    assert not browser.is_refreshing


@pytest.mark.asyncio
async def test_failed_refresh_keeps_previous_records_and_exposes_error(make_record) -> None:
    source = FakeSource([make_record(id=1)])
    browser = TournamentBrowser(source)
    await browser.refresh()

    source.fail_with = UpstreamUnavailableError("/api/tournament/query", "HTTP 500")
    await browser.refresh()

    assert isinstance(browser.error, UpstreamUnavailableError)
    assert [record.id for record in browser.records] == [1]
    assert not browser.is_refreshing

    source.fail_with = None
    await browser.refresh()
    assert browser.error is None


@pytest.mark.asyncio
async def test_initial_failure_leaves_an_empty_view(make_record) -> None:
    source = FakeSource([])
    source.fail_with = UpstreamUnavailableError("/api/tournament/query", "transport error")
    browser = TournamentBrowser(source)

    await browser.refresh()

    assert not browser.has_loaded
    assert browser.view().items == []
    assert browser.prefecture_options == []


@pytest.mark.asyncio
async def test_refresh_delegates_date_window_only_in_upstream_mode(make_record) -> None:
    criteria = FilterCriteria(
        query="turbo",
        prefecture="東京都",
        start_date=date(2025, 9, 1),
        end_date=date(2025, 9, 30),
    )

    upstream_source = FakeSource([])
    await TournamentBrowser(upstream_source, criteria=criteria).refresh()
    assert upstream_source.filters[-1] == UpstreamFilters(
        start_date=date(2025, 9, 1), end_date=date(2025, 9, 30)
    )

    local_source = FakeSource([])
    await TournamentBrowser(
        local_source, criteria=criteria, date_filter_mode=DateFilterMode.LOCAL
    ).refresh()
    assert local_source.filters[-1] == UpstreamFilters()


@pytest.mark.asyncio
async def test_date_change_in_upstream_mode_hides_records_outside_new_window(
    make_record,
) -> None:
    september = make_record(event_name="Sept", start_date="2025-09-03")
    december = make_record(event_name="Dec", start_date="2025-12-03")
    source = FakeSource([september, december])
    browser = TournamentBrowser(source)
    await browser.refresh()
    assert browser.needs_refresh is False

    browser.update_criteria(start_date=date(2025, 12, 1), end_date=date(2025, 12, 31))

    assert browser.needs_refresh is True
    assert [record.event_name for record in browser.view().items] == ["Dec"]

    source.records = [december]
    await browser.refresh()

    assert browser.needs_refresh is False
    assert source.filters[-1] == UpstreamFilters(
        start_date=date(2025, 12, 1), end_date=date(2025, 12, 31)
    )
    assert [record.event_name for record in browser.view().items] == ["Dec"]


@pytest.mark.asyncio
async def test_local_mode_date_change_needs_no_refresh(make_record) -> None:
    browser = TournamentBrowser(
        FakeSource([make_record(start_date="2025-09-03")]),
        date_filter_mode=DateFilterMode.LOCAL,
    )
    await browser.refresh()

    browser.update_criteria(start_date=date(2025, 12, 1))

    assert browser.needs_refresh is False
    assert browser.view().total == 0


@pytest.mark.asyncio
async def test_config_options_come_from_the_source(make_record) -> None:
    browser = TournamentBrowser(FakeSource([make_record()]))
    await browser.refresh()

    assert browser.prefecture_options == ["東京都"]
    assert browser.shop_options == ["Alpha Poker"]
    assert browser.city_ward_options == ["渋谷区"]


def test_disabled_sort_fields_are_rejected() -> None:
    browser = TournamentBrowser(FakeSource([]), sortable_fields=["entry_fee"])

    with pytest.raises(InvalidSortError):
        browser.set_sort("shop_name:asc")

    assert browser.set_sort("entry_fee:desc") == SortSpec.parse("entry_fee:desc")


def test_criteria_property_returns_a_copy() -> None:
    browser = TournamentBrowser(FakeSource([]))

    snapshot = browser.criteria
    snapshot.query = "changed"

    assert browser.criteria.query == ""


def test_page_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        TournamentBrowser(FakeSource([]), page_size=0)
