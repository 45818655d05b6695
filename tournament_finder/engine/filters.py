"""Tournament filtering helpers shared by the search service and the browser."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, time

from tournament_finder.schemas.tournament import FilterCriteria, TournamentRecord
from tournament_finder.settings import DateFilterMode

_END_OF_DAY = time(23, 59, 59)


def _matches_query(record: TournamentRecord, needle: str) -> bool:
    if not needle:
        return True
    return any(
        needle in value.casefold()
        for value in (record.event_name, record.shop_name, record.reward_summary)
    )


def _matches_fee(record: TournamentRecord, criteria: FilterCriteria) -> bool:
    if record.entry_fee < criteria.min_entry_fee:
        return False
    return criteria.max_entry_fee is None or record.entry_fee <= criteria.max_entry_fee


def _matches_date_window(record: TournamentRecord, criteria: FilterCriteria) -> bool:
    starts_at = record.starts_at
    if starts_at is None:
        # An unreadable start date is never grounds for dropping a record.
        return True
    if criteria.start_date is not None:
        if starts_at < datetime.combine(criteria.start_date, time.min):
            return False
    if criteria.end_date is not None:
        if starts_at > datetime.combine(criteria.end_date, _END_OF_DAY):
            return False
    return True


def tournament_matches(
    record: TournamentRecord,
    criteria: FilterCriteria,
    *,
    date_filter_mode: DateFilterMode = DateFilterMode.UPSTREAM,
) -> bool:
    """Return ``True`` when ``record`` satisfies every active criterion.

    The date window is only evaluated for :attr:`DateFilterMode.LOCAL`; in
    upstream mode it has already been applied by the tournament API.
    """

    needle = criteria.query.casefold() if criteria.query.strip() else ""
    if not _matches_query(record, needle):
        return False
    if criteria.prefecture is not None and record.prefecture != criteria.prefecture:
        return False
    if criteria.city_ward is not None and record.city_ward != criteria.city_ward:
        return False
    if criteria.shop_names and record.shop_name not in criteria.shop_names:
        return False
    if criteria.reward_categories and not record.categories.matches(
        criteria.reward_categories
    ):
        return False
    if not _matches_fee(record, criteria):
        return False
    if date_filter_mode is DateFilterMode.LOCAL:
        return _matches_date_window(record, criteria)
    return True


def filter_tournaments(
    records: Iterable[TournamentRecord],
    criteria: FilterCriteria,
    *,
    date_filter_mode: DateFilterMode = DateFilterMode.UPSTREAM,
) -> list[TournamentRecord]:
    """Return the records that satisfy ``criteria``, preserving input order."""

    return [
        record
        for record in records
        if tournament_matches(record, criteria, date_filter_mode=date_filter_mode)
    ]


__all__ = ["filter_tournaments", "tournament_matches"]
