"""Helper functions for constructing structured API error responses.

Every payload carries the current request ID and a timezone-aware timestamp so
error bodies share one shape regardless of which handler produced them.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from tournament_finder.schemas.error import (
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from tournament_finder.utils.request_context import get_request_id

__all__ = [
    "build_error_response",
    "build_validation_error_response",
    "validation_details",
]

UPSTREAM_RETRY_AFTER_SECONDS = 30


def _current_timestamp() -> datetime:
    """Return the timestamp embedded in error payloads (patched in tests)."""

    return datetime.now(UTC)


def validation_details(errors: Sequence[dict]) -> list[ValidationErrorDetail]:
    """Convert pydantic/FastAPI error dictionaries into response details."""

    return [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error.get("loc", ())),
            message=error.get("msg", ""),
            value=error.get("input"),
        )
        for error in errors
    ]


def build_validation_error_response(
    *,
    errors: Sequence[ValidationErrorDetail],
    message: str,
    detail: str,
    status_code: int,
    path: str,
    request_id: str | None = None,
) -> ValidationErrorResponse:
    """Construct a ``ValidationErrorResponse`` enriched with metadata."""

    return ValidationErrorResponse(
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id(),
        path=path,
        errors=list(errors),
    )


def build_error_response(
    *,
    error_type: ErrorType,
    message: str,
    detail: str,
    status_code: int,
    path: str,
    retry_after: int | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    """Construct a generic ``ErrorResponse`` enriched with metadata."""

    return ErrorResponse(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id(),
        path=path,
        retry_after=retry_after,
    )
