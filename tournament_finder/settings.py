"""Centralized configuration management for the tournament finder service."""

from __future__ import annotations

import logging
import os
from enum import Enum
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables defined in a local .env file before instantiating the
# settings singleton so every consumer importing :mod:`tournament_finder.settings`
# observes the same values.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_UPSTREAM_BASE_URL = "https://api.eriri.cc"
DEFAULT_UPSTREAM_TIMEOUT_SECONDS = 10.0
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_PAGE_SIZE = 20
DEFAULT_COLLATION_LOCALE = "ja_JP.UTF-8"
DEFAULT_CONFIG_CACHE_TTL_SECONDS = 300
DEFAULT_SORTABLE_FIELDS = "entry_fee,start_date,shop_name"


class DateFilterMode(str, Enum):
    """Where the start-date window is evaluated."""

    UPSTREAM = "upstream"
    LOCAL = "local"


def _normalize_origin(origin: str) -> str:
    """Return the origin stripped of whitespace and trailing slashes."""

    return origin.strip().rstrip("/")


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Besides the upstream connection details the settings carry the two
    deployment switches of the filter engine: whether the date window is
    delegated to the upstream API (``DATE_FILTER_MODE``) and which fields the
    list may be sorted by (``SORTABLE_FIELDS``).
    """

    _explicit_redis_url: bool = PrivateAttr(default=False)
    _explicit_cors_allow_origins: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:  # noqa: D401 - short override explanation
        """Capture explicit overrides prior to delegating to ``BaseSettings``."""

        normalized_keys = {str(key).lower() for key in values}
        super().__init__(**values)
        self._explicit_redis_url = "redis_url" in normalized_keys
        self._explicit_cors_allow_origins = (
            "cors_allow_origins_raw" in normalized_keys
            or "cors_allow_origins" in normalized_keys
        )
        redis_env = os.getenv("REDIS_URL")
        if redis_env is not None and redis_env.strip():
            self._explicit_redis_url = True
        cors_env = os.getenv("CORS_ALLOW_ORIGINS")
        if cors_env is not None and cors_env.strip():
            self._explicit_cors_allow_origins = True

    upstream_base_url: str = Field(
        default=DEFAULT_UPSTREAM_BASE_URL,
        alias="UPSTREAM_BASE_URL",
        description="Base URL of the external tournament API (no trailing slash needed).",
    )
    upstream_timeout_seconds: float = Field(
        default=DEFAULT_UPSTREAM_TIMEOUT_SECONDS,
        alias="UPSTREAM_TIMEOUT_SECONDS",
        description="Total timeout applied to each upstream GET request.",
    )
    upstream_fallback_enabled: bool = Field(
        default=True,
        alias="UPSTREAM_FALLBACK_ENABLED",
        description=(
            "Serve the built-in sample data when the upstream call fails. When"
            " disabled the failure is raised to the caller instead."
        ),
    )
    date_filter_mode: DateFilterMode = Field(
        default=DateFilterMode.UPSTREAM,
        alias="DATE_FILTER_MODE",
        description=(
            "'upstream' sends the date window to the tournament API, 'local'"
            " evaluates it in the filter engine. Never both."
        ),
    )
    sortable_fields_raw: str = Field(
        default=DEFAULT_SORTABLE_FIELDS,
        alias="SORTABLE_FIELDS",
        description="Comma-separated list of fields the result list may be sorted by.",
    )
    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE,
        alias="PAGE_SIZE",
        ge=1,
        le=200,
        description="Fixed number of tournaments per result page.",
    )
    collation_locale: str = Field(
        default=DEFAULT_COLLATION_LOCALE,
        alias="COLLATION_LOCALE",
        description="Locale used for shop name collation and facet ordering.",
    )
    config_cache_ttl_seconds: int = Field(
        default=DEFAULT_CONFIG_CACHE_TTL_SECONDS,
        alias="CONFIG_CACHE_TTL_SECONDS",
        description="Lifetime of the cached upstream facet configuration.",
    )
    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        alias="REDIS_URL",
        description=(
            "Redis connection string consumed by cache utilities. Defaults to a"
            " localhost instance; the in-process cache is used when unreachable."
        ),
    )
    cors_allow_origins_raw: str | None = Field(
        default=None,
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of additional CORS origins.",
    )
    cors_allow_origin_regex: str | None = Field(
        default=None,
        alias="CORS_ALLOW_ORIGIN_REGEX",
        description="Optional regular expression evaluated by FastAPI's CORS middleware.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )

    @field_validator("upstream_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def sortable_fields(self) -> list[str]:
        """Return the normalised, de-duplicated list of sortable field names."""

        fields: list[str] = []
        for item in self.sortable_fields_raw.split(","):
            name = item.strip().lower()
            if name and name not in fields:
                fields.append(name)
        return fields

    @property
    def cors_allow_origins(self) -> list[str]:
        """Return normalised CORS origins supplied via environment variables."""

        if not self.cors_allow_origins_raw:
            return []

        origins = [
            _normalize_origin(origin)
            for origin in self.cors_allow_origins_raw.split(",")
            if origin.strip()
        ]
        return [origin for origin in origins if origin]

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if not self._explicit_redis_url and self.redis_url == DEFAULT_REDIS_URL:
            warnings.append(
                "REDIS_URL is not set - caching will use in-memory fallback "
                "(performance may be degraded)"
            )

        if not self._explicit_cors_allow_origins and not self.cors_allow_origins:
            warnings.append(
                "CORS_ALLOW_ORIGINS is not set - using default localhost origins only "
                "(may cause CORS issues in production)"
            )

        if not self.upstream_fallback_enabled:
            warnings.append(
                "UPSTREAM_FALLBACK_ENABLED is false - upstream failures will be "
                "reported to clients instead of serving sample data"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


# Module-level singleton; the getter remains available for tests that prefer
# dependency injection.
settings = get_settings()

__all__ = [
    "AppSettings",
    "DEFAULT_COLLATION_LOCALE",
    "DEFAULT_CONFIG_CACHE_TTL_SECONDS",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_REDIS_URL",
    "DEFAULT_SORTABLE_FIELDS",
    "DEFAULT_UPSTREAM_BASE_URL",
    "DEFAULT_UPSTREAM_TIMEOUT_SECONDS",
    "DateFilterMode",
    "get_settings",
    "settings",
]
