"""Parsing helpers for loosely-typed upstream tournament fields.

The upstream API ships a few fields whose shape is not fixed: the reward
categories are sometimes a JSON encoded array and sometimes a bare label, and
start dates arrive either as a ``YYYY-MM-DD`` date plus an ``HH:MM`` time or as
a single timestamp.  Both are resolved once when a record is ingested so the
filter engine never re-parses them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime, time

__all__ = [
    "CategoryList",
    "RewardCategories",
    "SingleCategory",
    "parse_reward_categories",
    "parse_start",
]


@dataclass(frozen=True, slots=True)
class CategoryList:
    """Reward categories that decoded as a JSON array of labels."""

    labels: tuple[str, ...]

    def matches(self, selected: frozenset[str]) -> bool:
        return not selected.isdisjoint(self.labels)

    def facet_labels(self) -> tuple[str, ...]:
        return tuple(label for label in self.labels if label)


@dataclass(frozen=True, slots=True)
class SingleCategory:
    """Reward categories field that is one opaque label."""

    label: str

    def matches(self, selected: frozenset[str]) -> bool:
        return self.label in selected

    def facet_labels(self) -> tuple[str, ...]:
        return (self.label,) if self.label else ()


RewardCategories = CategoryList | SingleCategory


def parse_reward_categories(raw: str | None) -> RewardCategories:
    """Resolve the dual-shape ``reward_categories`` wire value.

    A JSON array becomes a :class:`CategoryList` of its string members; other
    members are ignored.  Anything else (plain text, a comma separated string,
    JSON of another shape) is kept verbatim as a :class:`SingleCategory`.  This
    never raises.
    """

    value = raw or ""
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError):
        return SingleCategory(value)

    if isinstance(decoded, list):
        return CategoryList(tuple(item for item in decoded if isinstance(item, str)))
    return SingleCategory(value)


_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d")
_TIME_FORMATS = ("%H:%M", "%H:%M:%S")
_TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
)


def _parse_date(value: str) -> date | None:
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def _parse_time(value: str | None) -> time | None:
    if not value:
        return None
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
    return None


def _parse_timestamp(value: str) -> datetime | None:
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def parse_start(start_date: str | None, start_time: str | None) -> datetime | None:
    """Return the tournament start as a naive local ``datetime``.

    ``start_date`` wins when present; ``start_time`` then only contributes the
    clock time (midnight when it is missing or unreadable).  Records from the
    legacy upstream carry the full timestamp in ``start_time`` instead.
    ``None`` means the start could not be determined.
    """

    if start_date and start_date.strip():
        day = _parse_date(start_date.strip())
        if day is None:
            return _parse_timestamp(start_date.strip())
        return datetime.combine(day, _parse_time(start_time) or time.min)

    if start_time and start_time.strip():
        return _parse_timestamp(start_time.strip())

    return None
