"""Runtime configuration for the translator.

``JsonApiConfig`` is an explicit value handed to every call (directly, or
through the :class:`~jsonapi_params.plugin.JsonApiParams` object installed
on a declarative base).  There is no process-wide state.

Example::

    config = JsonApiConfig(
        pagination={"size": 25},     # default page for collection fetches
        formatter=snake_case,        # createdAt -> created_at
        max_page_size=100,           # clamp page[size] / page[limit]
    )
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from jsonapi_params.errors import ConfigError, InvalidPageError
from jsonapi_params.schema.formatting import ColumnFormatter
from jsonapi_params.schema.options import PageParams


@dataclass
class JsonApiConfig:
    """Configuration applied to every fetch.

    Attributes:
        pagination: Default pagination for collection fetches that carry no
            ``page`` parameters.  ``None`` (the default) leaves such fetches
            unpaginated.  Accepts :class:`PageParams` or a mapping such as
            ``{"size": 25}`` or ``{"limit": 50}``.
        formatter: Default column-name formatter for models that do not
            declare ``__jsonapi_formatter__``.
        max_page_size: Upper bound for ``size`` / ``limit`` (``0`` = none).
        count_rows: Whether paginated fetches issue a ``COUNT(*)`` to fill
            ``row_count`` and ``page_count``.
    """

    pagination: PageParams | Mapping[str, Any] | None = None
    formatter: ColumnFormatter | None = None
    max_page_size: int = 0
    count_rows: bool = True

    def __post_init__(self) -> None:
        if self.max_page_size < 0:
            raise ConfigError(f"max_page_size must be >= 0, got {self.max_page_size}.")
        if self.pagination is not None and not isinstance(self.pagination, PageParams):
            if not isinstance(self.pagination, Mapping):
                raise ConfigError(
                    f"pagination must be a PageParams or a mapping, got {self.pagination!r}."
                )
            try:
                self.pagination = PageParams.model_validate(dict(self.pagination))
            except InvalidPageError as exc:
                raise ConfigError(f"Invalid default pagination: {exc}") from exc

    @property
    def default_page(self) -> PageParams | None:
        """The default pagination, or ``None`` when none is configured."""
        if self.pagination is None or self.pagination.is_empty:
            return None
        return self.pagination
