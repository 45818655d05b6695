"""Smoke tests for the command line browser."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
from click.testing import CliRunner

from tournament_finder import cli
from tournament_finder.services.tournament_source import TournamentSource


def _patch_source(
    monkeypatch: pytest.MonkeyPatch, handler, *, fallback_enabled: bool = True
) -> None:
    def _build() -> TournamentSource:
        return TournamentSource(
            base_url="https://upstream.test",
            fallback_enabled=fallback_enabled,
            transport=httpx.MockTransport(handler),
        )

    monkeypatch.setattr(cli, "build_source", _build)
    monkeypatch.setattr(cli, "configure_collation", lambda locale_name: "C")


def _upstream(records: list[dict[str, Any]]):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/config"):
            return httpx.Response(200, json={"data": {"all_prefecture": ["東京都"]}})
        return httpx.Response(200, json={"data": records})

    return handler


def test_json_output_is_filtered_and_sorted(
    monkeypatch: pytest.MonkeyPatch, upstream_payload: list[dict[str, Any]]
) -> None:
    _patch_source(monkeypatch, _upstream(upstream_payload))

    result = CliRunner().invoke(cli.main, ["--sort", "entry_fee:desc", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [item["id"] for item in payload["tournaments"]] == [11, 10]
    assert payload["sort"] == "entry_fee:desc"


def test_table_output_lists_matching_events(
    monkeypatch: pytest.MonkeyPatch, upstream_payload: list[dict[str, Any]]
) -> None:
    _patch_source(monkeypatch, _upstream(upstream_payload))

    result = CliRunner().invoke(cli.main, ["--max-fee", "5000"])

    assert result.exit_code == 0, result.output
    assert "1 matches" in result.output
    assert "Roller" not in result.output


def test_invalid_sort_is_a_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_source(monkeypatch, _upstream([]))

    result = CliRunner().invoke(cli.main, ["--sort", "prize:asc"])

    assert result.exit_code == 2
    assert "--sort" in result.output


def test_upstream_failure_without_fallback_exits_non_zero(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _patch_source(
        monkeypatch, lambda request: httpx.Response(500), fallback_enabled=False
    )

    result = CliRunner().invoke(cli.main, [])

    assert result.exit_code == 1
    assert "Could not load tournaments" in result.output
