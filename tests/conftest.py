"""Pytest configuration helpers for the tournament finder project.

The ``pytest`` plugin system automatically imports ``tests.conftest``. We use
that behavior to ensure the repository root is present on ``sys.path`` before
any test modules import application code, and to share record factories.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from tests import _ensure_repo_on_path

_ensure_repo_on_path()

from tournament_finder import cache  # noqa: E402
from tournament_finder.engine.collation import configure_collation  # noqa: E402
from tournament_finder.schemas.tournament import TournamentRecord  # noqa: E402

RecordFactory = Callable[..., TournamentRecord]


def pytest_configure(config: pytest.Config) -> None:
    """Hook executed by pytest prior to running any tests."""

    _ensure_repo_on_path()


@pytest.fixture(autouse=True, scope="session")
def _plain_collation() -> None:
    """Pin collation to code point order so string ordering is reproducible."""

    configure_collation("C")


@pytest.fixture(autouse=True)
def _clear_local_cache() -> None:
    """Keep the in-process cache from leaking entries between tests."""

    cache._local_cache.clear()


@pytest.fixture
def make_record() -> Iterator[RecordFactory]:
    """Build :class:`TournamentRecord` instances with sensible defaults."""

    counter = iter(range(1, 10_000))

    def _factory(**overrides: Any) -> TournamentRecord:
        record_id = overrides.pop("id", None) or next(counter)
        payload: dict[str, Any] = {
            "id": record_id,
            "event_id": 1000 + record_id,
            "event_name": f"Tournament {record_id}",
            "start_date": "2025-09-03",
            "start_time": "13:00",
            "entry_fee": 3000,
            "reward_categories": '["コイン"]',
            "reward_summary": "1st: 10000コイン",
            "shop_id": 1,
            "shop_name": "Alpha Poker",
            "prefecture": "東京都",
            "city_ward": "渋谷区",
        }
        payload.update(overrides)
        return TournamentRecord.model_validate(payload)

    yield _factory


@pytest.fixture
def upstream_payload() -> list[dict[str, Any]]:
    """Two upstream records in the current wire format."""

    return [
        {
            "id": 10,
            "event_id": 500010,
            "event_name": "Daily Turbo 3K★",
            "start_date": "2025-09-03",
            "start_time": "13:00",
            "entry_fee": 3000,
            "reward_categories": '["コイン","チケット"]',
            "reward_summary": "1st: 22000コイン",
            "shop_id": 166,
            "shop_name": "GoodGame Poker Live SHIBUYA",
            "prefecture": "東京都",
            "city_ward": "渋谷区",
        },
        {
            "id": 11,
            "event_id": 500011,
            "event_name": "High Roller",
            "start_date": "2025-09-04",
            "start_time": "19:00",
            "entry_fee": 20000,
            "reward_categories": '["コイン"]',
            "reward_summary": "1st: 200000コイン",
            "shop_id": 167,
            "shop_name": "UNIVERSE",
            "prefecture": "東京都",
            "city_ward": "新宿区",
        },
    ]
