"""Pagination helpers over Protean query sets."""

import math
from dataclasses import dataclass, field

from ordering.errors import InvalidInput

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
_BATCH = 100


@dataclass(frozen=True)
class Page:
    items: list = field(default_factory=list)
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    total: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    def as_pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


def validate_paging(page: int, limit: int) -> None:
    if page < 1:
        raise InvalidInput("page must be greater than or equal to 1")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise InvalidInput(f"limit must be between 1 and {MAX_PAGE_SIZE}")


def fetch_page(queryset, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Page:
    result = queryset.offset((page - 1) * limit).limit(limit).all()
    return Page(items=list(result.items), page=page, limit=limit, total=result.total)


def fetch_all(queryset) -> list:
    """Read every record of ``queryset``, batch by batch."""
    items = []
    offset = 0
    while True:
        batch = queryset.offset(offset).limit(_BATCH).all().items
        items.extend(batch)
        if len(batch) < _BATCH:
            return items
        offset += _BATCH
