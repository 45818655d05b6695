"""Page slicing for filtered and sorted tournament lists."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from math import ceil
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """A single page of results plus the metadata needed to navigate."""

    items: list[T]
    page: int
    page_size: int
    total: int
    total_pages: int

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages


def total_pages_for(total: int, page_size: int) -> int:
    """Return ``ceil(total / page_size)``, with an empty result still one page."""

    if page_size < 1:
        raise ValueError("page_size must be a positive integer")
    return max(1, ceil(total / page_size))


def clamp_page(page: int, total: int, page_size: int) -> int:
    """Clamp ``page`` into ``1..total_pages``."""

    return min(max(page, 1), total_pages_for(total, page_size))


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice ``items`` to the requested 1-based page, clamping out-of-range pages."""

    total = len(items)
    current = clamp_page(page, total, page_size)
    start = (current - 1) * page_size
    end = min(current * page_size, total)
    return Page(
        items=list(items[start:end]),
        page=current,
        page_size=page_size,
        total=total,
        total_pages=total_pages_for(total, page_size),
    )


__all__ = ["Page", "clamp_page", "paginate", "total_pages_for"]
