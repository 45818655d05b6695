"""Comparators for ordering filtered tournament lists."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from functools import cmp_to_key

from tournament_finder.engine.collation import compare_text
from tournament_finder.schemas.tournament import (
    SortDirection,
    SortField,
    SortSpec,
    TournamentRecord,
)

Comparator = Callable[[TournamentRecord, TournamentRecord], int]


class InvalidSortError(ValueError):
    """Raised when a sort field is not enabled for this deployment."""

    def __init__(self, field: SortField, allowed: Sequence[str]) -> None:
        self.field = field
        self.allowed = list(allowed)
        super().__init__(
            f"Sorting by '{field.value}' is not enabled; "
            f"allowed fields: {', '.join(self.allowed) or 'none'}"
        )


def _fee_ascending(left: TournamentRecord, right: TournamentRecord) -> int:
    return left.entry_fee - right.entry_fee


def _fee_descending(left: TournamentRecord, right: TournamentRecord) -> int:
    return right.entry_fee - left.entry_fee


def _start_comparator(descending: bool) -> Comparator:
    def compare(left: TournamentRecord, right: TournamentRecord) -> int:
        left_start, right_start = left.starts_at, right.starts_at
        # Unreadable dates go last in either direction.
        if left_start is None or right_start is None:
            return (left_start is None) - (right_start is None)
        if left_start == right_start:
            return 0
        earlier = -1 if left_start < right_start else 1
        return -earlier if descending else earlier

    return compare


def _shop_ascending(left: TournamentRecord, right: TournamentRecord) -> int:
    return compare_text(left.shop_name, right.shop_name)


def _shop_descending(left: TournamentRecord, right: TournamentRecord) -> int:
    return compare_text(right.shop_name, left.shop_name)


_COMPARATORS: dict[tuple[SortField, SortDirection], Comparator] = {
    (SortField.ENTRY_FEE, SortDirection.ASC): _fee_ascending,
    (SortField.ENTRY_FEE, SortDirection.DESC): _fee_descending,
    (SortField.START_DATE, SortDirection.ASC): _start_comparator(descending=False),
    (SortField.START_DATE, SortDirection.DESC): _start_comparator(descending=True),
    (SortField.SHOP_NAME, SortDirection.ASC): _shop_ascending,
    (SortField.SHOP_NAME, SortDirection.DESC): _shop_descending,
}


def ensure_sortable(sort: SortSpec, allowed_fields: Sequence[str] | None) -> None:
    """Raise :class:`InvalidSortError` when ``sort`` uses a disabled field."""

    if sort.field is None or allowed_fields is None:
        return
    if sort.field.value not in allowed_fields:
        raise InvalidSortError(sort.field, allowed_fields)


def sort_tournaments(
    records: Iterable[TournamentRecord], sort: SortSpec
) -> list[TournamentRecord]:
    """Return ``records`` ordered by ``sort``.

    ``sorted`` is stable, so ties and ``SortSpec(field=None)`` keep the input
    order.
    """

    items = list(records)
    if sort.field is None:
        return items
    comparator = _COMPARATORS[(sort.field, sort.direction)]
    return sorted(items, key=cmp_to_key(comparator))


__all__ = ["InvalidSortError", "ensure_sortable", "sort_tournaments"]
