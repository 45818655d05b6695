"""Tests for the loosely-typed upstream field parsers."""

from __future__ import annotations

from datetime import datetime

import pytest

from tournament_finder.utils.parsing import (
    CategoryList,
    SingleCategory,
    parse_reward_categories,
    parse_start,
)


def test_json_array_of_strings_becomes_category_list() -> None:
    parsed = parse_reward_categories('[\n  "コイン",\n  "チケット"\n]')

    assert parsed == CategoryList(("コイン", "チケット"))
    assert parsed.matches(frozenset({"チケット"}))
    assert not parsed.matches(frozenset({"Cash"}))


@pytest.mark.parametrize(
    "raw",
    ["Cash", "Cash,Tickets", '{"a": 1}', "[not json"],
)
def test_everything_else_is_one_opaque_label(raw: str) -> None:
    parsed = parse_reward_categories(raw)

    assert parsed == SingleCategory(raw)
    assert parsed.matches(frozenset({raw}))


def test_json_array_keeps_only_its_string_members() -> None:
    parsed = parse_reward_categories('["Cash", 1, null]')

    assert parsed == CategoryList(("Cash",))
    assert parsed.matches(frozenset({"Cash"}))
    assert parsed.facet_labels() == ("Cash",)
    assert parse_reward_categories("[1, 2]") == CategoryList(())


def test_missing_value_is_an_empty_label() -> None:
    parsed = parse_reward_categories(None)

    assert parsed == SingleCategory("")
    assert parsed.facet_labels() == ()


@pytest.mark.parametrize(
    ("start_date", "start_time", "expected"),
    [
        ("2025-09-03", "13:00", datetime(2025, 9, 3, 13, 0)),
        ("2025/09/03", "13:00:30", datetime(2025, 9, 3, 13, 0, 30)),
        ("2025-09-03", None, datetime(2025, 9, 3)),
        ("2025-09-03", "late", datetime(2025, 9, 3)),
        (None, "2024-07-10 19:00:00", datetime(2024, 7, 10, 19, 0)),
        ("2024-07-10T19:00:00", None, datetime(2024, 7, 10, 19, 0)),
    ],
)
def test_parse_start_accepts_known_layouts(
    start_date: str | None, start_time: str | None, expected: datetime
) -> None:
    assert parse_start(start_date, start_time) == expected


@pytest.mark.parametrize(
    ("start_date", "start_time"),
    [(None, None), ("", ""), ("TBA", None), (None, "19:00")],
)
def test_parse_start_returns_none_when_unreadable(
    start_date: str | None, start_time: str | None
) -> None:
    assert parse_start(start_date, start_time) is None
