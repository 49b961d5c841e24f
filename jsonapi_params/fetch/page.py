"""Paginated result container."""
from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from jsonapi_params.schema.options import PageParams


@dataclass(frozen=True)
class PageMeta:
    """Pagination metadata for one fetched page.

    Page-based fetches fill ``page`` / ``page_size`` / ``page_count``;
    offset-based fetches fill ``offset`` / ``limit``.  ``row_count`` and
    ``page_count`` are ``None`` when row counting is disabled.
    """

    page: int | None = None
    page_size: int | None = None
    page_count: int | None = None
    offset: int | None = None
    limit: int | None = None
    row_count: int | None = None

    @classmethod
    def from_params(cls, params: PageParams, row_count: int | None) -> PageMeta:
        """Build the metadata for resolved ``params`` and a total row count."""
        if params.style == "offset":
            return cls(offset=params.offset, limit=params.limit, row_count=row_count)
        page_count = None
        if row_count is not None and params.size:
            page_count = math.ceil(row_count / params.size)
        return cls(
            page=params.number,
            page_size=params.size,
            page_count=page_count,
            row_count=row_count,
        )

    def as_meta(self) -> dict[str, int]:
        """Return the set values with camelCase keys, for a JSON:API ``meta``."""
        names = {
            "page": "page",
            "page_size": "pageSize",
            "page_count": "pageCount",
            "offset": "offset",
            "limit": "limit",
            "row_count": "rowCount",
        }
        return {
            camel: getattr(self, attr)
            for attr, camel in names.items()
            if getattr(self, attr) is not None
        }


@dataclass(frozen=True)
class Page:
    """A page of fetched entities.

    Attributes:
        items: The entities on this page, in query order.
        pagination: Pagination metadata.
        resource_type: JSON:API type of the items.
    """

    items: list[Any] = field(default_factory=list)
    pagination: PageMeta = field(default_factory=PageMeta)
    resource_type: str | None = None

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
