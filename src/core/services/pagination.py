"""
Pagination helpers.

Every paginated list in the admin and public API returns
`{data, total, page, pageSize}`. Inputs are clamped rather than rejected so
hand-edited query strings never produce a 4xx:

- page < 1 or garbage -> 1
- page_size garbage -> default, otherwise clamped to [1, max_page_size]
- a page past the end returns no rows (not an error)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

Ellipsis_ = Literal["..."]

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageRequest:
    """A validated (page, page_size) pair."""

    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return page_offset(self.page, self.page_size)

    @property
    def limit(self) -> int:
        return self.page_size


class Page(BaseModel, Generic[T]):
    """One page of results."""

    model_config = ConfigDict(populate_by_name=True)

    data: list[T]
    total: int
    page: int
    page_size: int = Field(alias="pageSize")


def _to_int(value: Any, default: int) -> int:
    try:
        return math.floor(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def clamp_page_request(
    page: Any = 1,
    page_size: Any = DEFAULT_PAGE_SIZE,
    *,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> PageRequest:
    """Normalize raw page inputs."""
    validated_page = max(1, _to_int(page, 1))
    size = _to_int(page_size, default_page_size)
    if size == 0:
        size = default_page_size
    validated_size = max(1, min(max_page_size, size))
    return PageRequest(page=validated_page, page_size=validated_size)


def page_offset(page: int, page_size: int) -> int:
    """Zero-based row offset of the first row of `page`."""
    return max(0, (page - 1) * page_size)


def total_pages(total: int, page_size: int) -> int:
    """Number of pages needed for `total` rows (0 when there are no rows)."""
    if total <= 0:
        return 0
    return math.ceil(total / page_size)


def build_page(items: list[T], total: int, request: PageRequest) -> Page[T]:
    return Page(data=items, total=total, page=request.page, page_size=request.page_size)


def slice_page(items: list[T], request: PageRequest) -> tuple[list[T], int]:
    """Paginate an in-memory list. Returns (rows, total)."""
    start = request.offset
    return items[start : start + request.page_size], len(items)


def generate_pagination_range(
    current_page: int,
    total_page_count: int,
    max_visible: int = 7,
) -> list[int | Ellipsis_]:
    """
    Page buttons to render, with "..." for gaps.

    generate_pagination_range(1, 10)  -> [1, 2, 3, 4, 5, "...", 10]
    generate_pagination_range(5, 10)  -> [1, "...", 3, 4, 5, 6, 7, "...", 10]
    generate_pagination_range(10, 10) -> [1, "...", 5, 6, 7, 8, 9, 10]
    """
    if total_page_count <= max_visible:
        return list(range(1, total_page_count + 1))

    # first, last and current are always shown
    side_pages = (max_visible - 3) // 2

    pages: list[int | Ellipsis_] = [1]

    start_page = max(2, current_page - side_pages)
    end_page = min(total_page_count - 1, current_page + side_pages)

    if current_page <= side_pages + 2:
        start_page = 2
        end_page = min(total_page_count - 1, max_visible - 2)

    if current_page >= total_page_count - side_pages - 1:
        start_page = max(2, total_page_count - max_visible + 2)
        end_page = total_page_count - 1

    if start_page > 2:
        pages.append("...")

    pages.extend(range(start_page, end_page + 1))

    if end_page < total_page_count - 1:
        pages.append("...")

    if total_page_count > 1:
        pages.append(total_page_count)

    return pages
