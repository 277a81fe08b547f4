"""Paging options and paged results for ``get_paged`` operations."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Generic, Iterator, Optional, TypeVar

import httpx

T = TypeVar("T")


class SortDirection(str, enum.Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class OrderBy:
    """Ordering field and direction; an empty ``name`` means server order."""

    name: str = ""
    direction: SortDirection = SortDirection.ASCENDING


@dataclass(frozen=True)
class PageOptions:
    """Which page to fetch.

    Components left at zero (or an empty ``order_by``) are not sent, so the
    API applies its own defaults for them.

    Example::

        PageOptions(page_index=2, page_size=50, order_by=OrderBy("created_at", SortDirection.DESCENDING))
    """

    page_index: int = 0
    page_size: int = 0
    order_by: OrderBy = field(default_factory=OrderBy)


def _header_int(response: httpx.Response, name: str) -> Optional[int]:
    value = response.headers.get(name, "").strip()
    return int(value) if value.isdigit() else None


@dataclass(frozen=True)
class PagedResponse(Generic[T]):
    """One page of results plus the paging headers the API returned."""

    items: tuple[T, ...]
    page: Optional[int] = None
    per_page: Optional[int] = None
    total: Optional[int] = None
    total_pages: Optional[int] = None
    next_page: Optional[int] = None
    previous_page: Optional[int] = None

    @classmethod
    def from_response(cls, response: httpx.Response, items: tuple[T, ...]) -> PagedResponse[T]:
        """Read the ``X-Page`` family of headers from *response*."""
        return cls(
            items=items,
            page=_header_int(response, "X-Page"),
            per_page=_header_int(response, "X-Per-Page"),
            total=_header_int(response, "X-Total"),
            total_pages=_header_int(response, "X-Total-Pages"),
            next_page=_header_int(response, "X-Next-Page"),
            previous_page=_header_int(response, "X-Prev-Page"),
        )

    @property
    def has_next_page(self) -> bool:
        return self.next_page is not None

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
