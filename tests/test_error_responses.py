"""Tests covering the helper utilities that construct error responses."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from tournament_finder.schemas.error import ErrorType, ValidationErrorDetail
from tournament_finder.utils import error_responses
from tournament_finder.utils.error_responses import (
    build_error_response,
    build_validation_error_response,
    validation_details,
)
from tournament_finder.utils.request_context import clear_request_id, set_request_id


def _freeze_timestamp(monkeypatch: pytest.MonkeyPatch, fixed: datetime) -> None:
    """Override ``_current_timestamp`` to yield the provided ``datetime``."""

    monkeypatch.setattr(error_responses, "_current_timestamp", lambda: fixed)


def test_build_validation_error_response_includes_context_metadata(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """The helper should embed the request ID and a timezone-aware timestamp."""

    fixed_timestamp = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
    _freeze_timestamp(monkeypatch, fixed_timestamp)

    token = set_request_id("req-123")
    try:
        errors = [
            ValidationErrorDetail(
                field="query.page",
                message="Input should be greater than or equal to 1",
                value=0,
            )
        ]

        response = build_validation_error_response(
            message="Request validation failed",
            detail="1 validation error(s)",
            status_code=422,
            path="/api/tournaments/search",
            errors=errors,
        )

        assert response.request_id == "req-123"
        assert response.timestamp == fixed_timestamp
        assert response.errors == errors
        assert response.error_type is ErrorType.VALIDATION_ERROR
    finally:
        clear_request_id(token)


def test_build_error_response_allows_request_id_override(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Explicit request identifiers should take precedence over context values."""

    fixed_timestamp = datetime(2024, 1, 2, 6, 30, 0, tzinfo=UTC)
    _freeze_timestamp(monkeypatch, fixed_timestamp)

    clear_request_id()

    response = build_error_response(
        error_type=ErrorType.UPSTREAM_ERROR,
        message="Tournament data unavailable",
        detail="/api/tournament/query: HTTP 500",
        status_code=502,
        path="/api/tournaments",
        retry_after=30,
        request_id="override-id",
    )

    assert response.request_id == "override-id"
    assert response.timestamp == fixed_timestamp
    assert response.retry_after == 30


def test_validation_details_flatten_error_locations() -> None:
    details = validation_details(
        [{"loc": ("query", "min_entry_fee"), "msg": "bad", "input": "-1"}]
    )

    assert details == [
        ValidationErrorDetail(field="query.min_entry_fee", message="bad", value="-1")
    ]
