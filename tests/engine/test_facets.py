from __future__ import annotations

from tournament_finder.engine.facets import extract_reward_categories


def test_reward_categories_are_flattened_deduplicated_and_sorted(make_record) -> None:
    records = [
        make_record(reward_categories='["チケット","コイン"]'),
        make_record(reward_categories='["コイン"]'),
        make_record(reward_categories="Cash"),
    ]

    assert extract_reward_categories(records) == ["Cash", "コイン", "チケット"]


def test_empty_labels_are_dropped(make_record) -> None:
    records = [
        make_record(reward_categories=""),
        make_record(reward_categories='["", "Seat"]'),
        make_record(reward_categories="[]"),
    ]

    assert extract_reward_categories(records) == ["Seat"]


def test_non_json_field_counts_as_one_label(make_record) -> None:
    records = [make_record(reward_categories="Cash,Tickets")]

    assert extract_reward_categories(records) == ["Cash,Tickets"]


def test_no_records_yield_no_categories() -> None:
    assert extract_reward_categories([]) == []
