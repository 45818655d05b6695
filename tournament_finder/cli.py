"""
Browse tournaments from the command line.

Usage:
    python -m tournament_finder.cli --prefecture 東京都 --sort entry_fee:asc
    python -m tournament_finder.cli --category チケット --page 2 --json
"""

from __future__ import annotations

import asyncio
import json
import sys
from datetime import datetime

import click
from rich.console import Console
from rich.table import Table

from tournament_finder.engine import TournamentBrowser, configure_collation
from tournament_finder.engine.pagination import Page
from tournament_finder.engine.sorting import ensure_sortable
from tournament_finder.schemas.tournament import SortSpec, TournamentRecord
from tournament_finder.services.tournament_source import TournamentSource
from tournament_finder.settings import get_settings

console = Console()


def build_source() -> TournamentSource:
    return TournamentSource.from_settings(get_settings())


async def browse(
    source: TournamentSource,
    *,
    criteria: dict,
    sort: SortSpec,
    page: int,
) -> TournamentBrowser:
    """Run one browsing session and leave it positioned on ``page``."""
    browser = TournamentBrowser.from_settings(source, get_settings())
    browser.update_criteria(**criteria)
    browser.set_sort(sort)
    try:
        await browser.refresh()
    finally:
        await source.aclose()
    browser.go_to_page(page)
    return browser


def _format_fee(record: TournamentRecord) -> str:
    return f"¥{record.entry_fee:,}"


def _format_start(record: TournamentRecord) -> str:
    if record.starts_at is None:
        return record.start_date or record.start_time or "-"
    return record.starts_at.strftime("%Y-%m-%d %H:%M")


def render_table(view: Page[TournamentRecord]) -> Table:
    table = Table(
        title=f"Tournaments (page {view.page}/{view.total_pages}, {view.total} matches)"
    )
    table.add_column("ID", justify="right")
    table.add_column("Event")
    table.add_column("Start")
    table.add_column("Fee", justify="right")
    table.add_column("Shop")
    table.add_column("Area")
    table.add_column("Rewards")
    for record in view.items:
        area = " ".join(part for part in (record.prefecture, record.city_ward) if part)
        table.add_row(
            str(record.id),
            record.event_name,
            _format_start(record),
            _format_fee(record),
            record.shop_name,
            area,
            ", ".join(record.categories.facet_labels()),
        )
    return table


@click.command()
@click.option("--query", "-q", default="", help="Substring matched against event, shop and rewards")
@click.option("--prefecture", default=None, help="Exact prefecture")
@click.option("--city-ward", default=None, help="Exact city or ward")
@click.option("--shop", "shops", multiple=True, help="Shop name (repeatable, OR logic)")
@click.option("--category", "categories", multiple=True, help="Reward category (repeatable, OR logic)")
@click.option("--min-fee", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--max-fee", type=click.IntRange(min=0), default=None, help="Omit for no upper bound")
@click.option("--start-date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--end-date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--sort", default="none", show_default=True, help="field:direction, e.g. entry_fee:desc")
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--json", "output_json", is_flag=True, help="Print the page as JSON instead of a table")
def main(
    query: str,
    prefecture: str | None,
    city_ward: str | None,
    shops: tuple[str, ...],
    categories: tuple[str, ...],
    min_fee: int,
    max_fee: int | None,
    start_date: datetime | None,
    end_date: datetime | None,
    sort: str,
    page: int,
    output_json: bool,
):
    """Filter, sort and page through tournaments from the configured upstream."""
    configure_collation(get_settings().collation_locale)

    criteria = {
        "query": query,
        "prefecture": prefecture,
        "city_ward": city_ward,
        "shop_names": list(shops),
        "reward_categories": list(categories),
        "min_entry_fee": min_fee,
        "max_entry_fee": max_fee,
        "start_date": start_date.date() if start_date else None,
        "end_date": end_date.date() if end_date else None,
    }

    try:
        sort_spec = SortSpec.parse(sort)
        ensure_sortable(sort_spec, get_settings().sortable_fields)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--sort") from exc

    browser = asyncio.run(
        browse(build_source(), criteria=criteria, sort=sort_spec, page=page)
    )

    if browser.error is not None:
        console.print(f"[red]✗ Could not load tournaments:[/red] {browser.error}")
        sys.exit(1)

    view = browser.view()
    if output_json:
        output = {
            "tournaments": [record.model_dump(mode="json") for record in view.items],
            "total": view.total,
            "page": view.page,
            "page_size": view.page_size,
            "total_pages": view.total_pages,
            "has_more": view.has_more,
            "sort": str(browser.sort),
        }
        click.echo(json.dumps(output, indent=2, ensure_ascii=False))
        return

    if not view.items:
        console.print("[yellow]No tournaments match the current filters[/yellow]")
        return
    console.print(render_table(view))


if __name__ == "__main__":
    main()
