"""HTTP client for the external tournament API with sample-data degradation.

The upstream service is an externally owned contract: ``GET
/api/tournament/query`` returns ``{"data": [...records...]}`` and ``GET
/api/tournament/config`` returns ``{"data": {...facet lists...}}``.  Any
failure on the way (transport errors, non-2xx statuses, undecodable JSON, a
body of the wrong shape, records that fail validation) degrades to the
built-in sample data unless fallback has been disabled in the settings.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

import httpx
from pydantic import ValidationError

from tournament_finder.schemas.tournament import (
    FilterCriteria,
    TournamentConfig,
    TournamentRecord,
)
from tournament_finder.services.sample_data import sample_config, sample_tournaments
from tournament_finder.settings import AppSettings, DateFilterMode

logger = logging.getLogger(__name__)

QUERY_PATH = "/api/tournament/query"
CONFIG_PATH = "/api/tournament/config"
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; tournament-finder/1.0)"
UPSTREAM_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

T = TypeVar("T")


class DataSourceError(Exception):
    """Base class for failures reported by a tournament data source."""


class UpstreamUnavailableError(DataSourceError):
    """The upstream API could not produce a usable response."""

    def __init__(self, endpoint: str, reason: str) -> None:
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"Upstream request to {endpoint} failed: {reason}")


@dataclass(frozen=True, slots=True)
class Fetched(Generic[T]):
    """A data source result tagged with whether it came from the fallback."""

    value: T
    fallback: bool = False


@dataclass(frozen=True, slots=True)
class UpstreamFilters:
    """Server-side filters understood by the upstream query endpoint."""

    key_word: str | None = None
    prefecture: str | None = None
    city_ward: str | None = None
    shop_names: tuple[str, ...] = ()
    reward_categories: tuple[str, ...] = ()
    min_entry_fee: int | None = None
    max_entry_fee: int | None = None
    start_date: date | None = None
    end_date: date | None = None

    @classmethod
    def for_criteria(
        cls,
        criteria: FilterCriteria,
        *,
        date_filter_mode: DateFilterMode,
    ) -> UpstreamFilters:
        """Return the filters to delegate for ``criteria``.

        Only the date window is delegated, and only in upstream mode; every
        other criterion is evaluated locally so the full record set remains
        available for facet extraction.
        """

        if date_filter_mode is not DateFilterMode.UPSTREAM:
            return cls()
        return cls(start_date=criteria.start_date, end_date=criteria.end_date)

    def to_params(self) -> dict[str, str]:
        """Encode the filters as query parameters, omitting empty values."""

        params: dict[str, str] = {}
        if self.key_word and self.key_word.strip():
            params["key_word"] = self.key_word.strip()
        if self.prefecture:
            params["prefecture"] = self.prefecture
        if self.city_ward:
            params["city_ward"] = self.city_ward
        shop_names = [name for name in self.shop_names if name]
        if shop_names:
            params["shop_name"] = ",".join(shop_names)
        categories = [label for label in self.reward_categories if label]
        if categories:
            params["reward_categories"] = ",".join(categories)
        if self.min_entry_fee is not None:
            params["min_entry_fee"] = str(self.min_entry_fee)
        if self.max_entry_fee is not None:
            params["max_entry_fee"] = str(self.max_entry_fee)
        if self.start_date is not None:
            params["start_date"] = datetime.combine(self.start_date, time.min).strftime(
                UPSTREAM_DATETIME_FORMAT
            )
        if self.end_date is not None:
            params["end_date"] = datetime.combine(
                self.end_date, time(23, 59, 59)
            ).strftime(UPSTREAM_DATETIME_FORMAT)
        return params


def resolve_client_ip(headers: Mapping[str, str], peer_host: str | None = None) -> str:
    """Return the originating client IP from proxy headers or the socket peer."""

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    for header in ("x-real-ip", "cf-connecting-ip"):
        value = headers.get(header)
        if value:
            return value
    return peer_host or "unknown"


@dataclass(frozen=True, slots=True)
class ClientContext:
    """Details of the inbound caller that are forwarded upstream."""

    ip: str = "unknown"
    user_agent: str = "unknown"
    referer: str = ""
    accept_language: str = ""

    @classmethod
    def from_headers(
        cls, headers: Mapping[str, str], peer_host: str | None = None
    ) -> ClientContext:
        return cls(
            ip=resolve_client_ip(headers, peer_host),
            user_agent=headers.get("user-agent") or "unknown",
            referer=headers.get("referer") or "",
            accept_language=headers.get("accept-language") or "",
        )

    def forwarding_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "X-Client-IP": self.ip,
            "X-Original-User-Agent": self.user_agent,
            "X-Client-Referer": self.referer,
            "X-Client-Accept-Language": self.accept_language,
        }


@runtime_checkable
class TournamentSourceProtocol(Protocol):
    """Read-only surface consumed by the engine and the query service."""

    async def load_tournaments(
        self,
        filters: UpstreamFilters | None = None,
        client: ClientContext | None = None,
    ) -> Fetched[list[TournamentRecord]]:
        """Return every record matching ``filters``."""

    async def load_config(self) -> Fetched[TournamentConfig]:
        """Return the facet configuration."""


class _UpstreamFailure(Exception):
    """Internal signal carrying the reason an upstream call was unusable."""

    def __init__(self, reason: str, detail: str = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.detail = detail


def _parse_records(items: list[Any]) -> list[TournamentRecord]:
    """Validate each upstream item, skipping the ones that cannot be read."""

    records: list[TournamentRecord] = []
    for index, item in enumerate(items):
        try:
            records.append(TournamentRecord.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "Skipping upstream tournament at index %d: %d validation error(s)",
                index,
                exc.error_count(),
            )
    return records


class TournamentSource:
    """Async client for the upstream tournament API."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 10.0,
        fallback_enabled: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._fallback_enabled = fallback_enabled
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> TournamentSource:
        return cls(
            base_url=settings.upstream_base_url,
            timeout=settings.upstream_timeout_seconds,
            fallback_enabled=settings.upstream_fallback_enabled,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def _http(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"Accept": "application/json", "Connection": "keep-alive"},
            )
        return self._client

    async def aclose(self) -> None:
        """Close the pooled HTTP client."""

        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get_data(
        self,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """GET ``path`` and return the value under the ``data`` key."""

        try:
            response = await self._http().get(path, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise _UpstreamFailure("transport error", f"{type(exc).__name__}: {exc}") from exc

        logger.debug("Upstream %s responded with status %s", path, response.status_code)
        if not response.is_success:
            raise _UpstreamFailure(
                f"HTTP {response.status_code}", response.text[:200]
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise _UpstreamFailure("malformed JSON", response.text[:200]) from exc

        if not isinstance(payload, dict) or "data" not in payload:
            raise _UpstreamFailure("unexpected body shape", "missing 'data' key")
        return payload["data"]

    def _degrade(self, path: str, failure: _UpstreamFailure) -> None:
        """Log ``failure`` and raise when fallback is disabled."""

        if not self._fallback_enabled:
            logger.error(
                "Upstream %s failed (%s): %s", path, failure.reason, failure.detail
            )
            raise UpstreamUnavailableError(path, failure.reason) from failure
        logger.warning(
            "Upstream %s failed (%s); serving sample data. %s",
            path,
            failure.reason,
            failure.detail,
        )

    async def load_tournaments(
        self,
        filters: UpstreamFilters | None = None,
        client: ClientContext | None = None,
    ) -> Fetched[list[TournamentRecord]]:
        """Fetch tournament records, degrading to the sample list on failure."""

        params = (filters or UpstreamFilters()).to_params()
        headers = (client or ClientContext(user_agent=DEFAULT_USER_AGENT)).forwarding_headers()
        logger.info("Fetching tournaments from %s%s params=%s", self._base_url, QUERY_PATH, params)

        try:
            data = await self._get_data(QUERY_PATH, params=params, headers=headers)
            if not isinstance(data, list):
                raise _UpstreamFailure("unexpected body shape", "'data' is not an array")
            records = _parse_records(data)
        except _UpstreamFailure as failure:
            self._degrade(QUERY_PATH, failure)
            return Fetched(sample_tournaments(), fallback=True)

        logger.info("Upstream returned %d tournaments", len(records))
        return Fetched(records)

    async def load_config(self) -> Fetched[TournamentConfig]:
        """Fetch the facet configuration, degrading to the sample config on failure."""

        try:
            data = await self._get_data(
                CONFIG_PATH, headers={"User-Agent": DEFAULT_USER_AGENT}
            )
            if not isinstance(data, dict):
                raise _UpstreamFailure("unexpected body shape", "'data' is not an object")
            try:
                config = TournamentConfig.model_validate(data)
            except ValidationError as exc:
                raise _UpstreamFailure(
                    "invalid config", f"{exc.error_count()} validation error(s)"
                ) from exc
        except _UpstreamFailure as failure:
            self._degrade(CONFIG_PATH, failure)
            return Fetched(sample_config(), fallback=True)

        return Fetched(config)

    async def fetch_tournaments(
        self,
        filters: UpstreamFilters | None = None,
        client: ClientContext | None = None,
    ) -> list[TournamentRecord]:
        return (await self.load_tournaments(filters, client)).value

    async def fetch_config(self) -> TournamentConfig:
        return (await self.load_config()).value


__all__ = [
    "CONFIG_PATH",
    "ClientContext",
    "DataSourceError",
    "Fetched",
    "QUERY_PATH",
    "TournamentSource",
    "TournamentSourceProtocol",
    "UpstreamFilters",
    "UpstreamUnavailableError",
    "resolve_client_ip",
]
