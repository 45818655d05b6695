from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from tournament_finder.utils.parsing import (
    RewardCategories,
    parse_reward_categories,
    parse_start,
)


class TournamentRecord(BaseModel):
    """One tournament listing as served by the upstream API."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    event_id: int | None = None
    event_name: str = ""
    event_link: str | None = None
    start_date: str | None = None
    start_time: str | None = None
    late_time: str | None = None
    entry_fee: int = Field(default=0, ge=0)
    prizes_original: str | None = None
    reward_categories: str = ""
    reward_summary: str = ""
    shop_id: int | None = None
    shop_name: str = ""
    shop_link: str | None = None
    official_page: str | None = None
    prefecture: str = ""
    city_ward: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    _categories: RewardCategories = PrivateAttr()
    _starts_at: datetime | None = PrivateAttr(default=None)

    @field_validator(
        "event_name", "reward_categories", "reward_summary", "shop_name", "prefecture",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("entry_fee", mode="before")
    @classmethod
    def _tolerant_fee(cls, value: Any) -> int:
        try:
            fee = int(value)
        except (TypeError, ValueError, OverflowError):
            return 0
        return max(fee, 0)

    @field_validator("event_id", "shop_id", mode="before")
    @classmethod
    def _tolerant_optional_id(cls, value: Any) -> int | None:
        try:
            return int(value)
        except (TypeError, ValueError, OverflowError):
            return None

    @field_validator("reward_categories", mode="before")
    @classmethod
    def _encode_decoded_categories(cls, value: Any) -> Any:
        # Some upstream builds send the array already decoded.
        if isinstance(value, list):
            return json.dumps(value, ensure_ascii=False)
        return value

    def model_post_init(self, __context: Any) -> None:
        self._categories = parse_reward_categories(self.reward_categories)
        self._starts_at = parse_start(self.start_date, self.start_time)

    @property
    def categories(self) -> RewardCategories:
        """Reward categories resolved when the record was validated."""

        return self._categories

    @property
    def starts_at(self) -> datetime | None:
        """Parsed start timestamp, ``None`` when the upstream value is unreadable."""

        return self._starts_at


class TournamentConfig(BaseModel):
    """Facet values published by the upstream API independent of any query."""

    all_prefecture: list[str] = Field(default_factory=list)
    all_shop_name: list[str] = Field(default_factory=list)
    all_city_ward: list[str] = Field(default_factory=list)


class TournamentConfigResponse(BaseModel):
    """Wire envelope for :class:`TournamentConfig`."""

    data: TournamentConfig


class SortField(str, Enum):
    ENTRY_FEE = "entry_fee"
    START_DATE = "start_date"
    SHOP_NAME = "shop_name"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortSpec(BaseModel):
    """Sort order for the result list; ``field=None`` keeps upstream order."""

    model_config = ConfigDict(frozen=True)

    field: SortField | None = None
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def parse(cls, value: str | None) -> SortSpec:
        """Build a spec from ``"field"`` or ``"field:direction"``.

        Empty input and ``"none"`` mean no sorting.  Unknown fields or
        directions raise ``ValueError``.
        """

        if value is None or not value.strip() or value.strip().lower() == "none":
            return cls()
        name, _, direction = value.strip().lower().partition(":")
        return cls(
            field=SortField(name.strip()),
            direction=SortDirection(direction.strip() or SortDirection.ASC.value),
        )

    def __str__(self) -> str:
        if self.field is None:
            return "none"
        return f"{self.field.value}:{self.direction.value}"


class FilterCriteria(BaseModel):
    """User-selected filter inputs.

    ``prefecture``/``city_ward`` of ``None`` and empty shop or category sets
    place no restriction.  ``max_entry_fee=None`` means there is no upper
    bound.  The date window bounds are inclusive whole days.
    """

    model_config = ConfigDict(validate_assignment=True)

    query: str = ""
    prefecture: str | None = None
    city_ward: str | None = None
    shop_names: frozenset[str] = Field(default_factory=frozenset)
    reward_categories: frozenset[str] = Field(default_factory=frozenset)
    min_entry_fee: int = Field(default=0, ge=0)
    max_entry_fee: int | None = Field(default=None, ge=0)
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("prefecture", "city_ward", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("shop_names", "reward_categories", mode="before")
    @classmethod
    def _drop_blank_members(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = [value]
        return frozenset(item for item in value if isinstance(item, str) and item)


class PaginatedTournamentsResponse(BaseModel):
    """One page of filtered and sorted tournaments."""

    tournaments: list[TournamentRecord]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_more: bool
    sort: str = "none"


class TournamentFilterOptions(BaseModel):
    """Choice lists for the filter controls."""

    prefectures: list[str]
    shop_names: list[str]
    city_wards: list[str]
    reward_categories: list[str]
    sort_fields: list[str]
