"""Pydantic models for incoming JSON:API query parameters.

``JsonApiOptions`` is parsed once at the entry point and never probed again
at runtime.  Every field has an explicit absent state (``None``); badly
shaped values (``include=42``, ``fields=["title"]``, ...) are dropped to the
absent state rather than rejected, so a sloppy client degrades to an
unrestricted query instead of an error.

Two construction paths are supported::

    # Already-structured options (e.g. from a framework that parsed them)
    opts = JsonApiOptions.model_validate(
        {"include": ["comments"], "fields": {"articles": ["title"]}}
    )

    # Raw query-string pairs
    opts = JsonApiOptions.from_query_params(
        {"include": "comments", "fields[articles]": "title", "sort": "-createdAt"}
    )
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from jsonapi_params.errors import InvalidPageError

#: Page size used when only a page number or offset was supplied.
DEFAULT_PAGE_SIZE = 10

_PARAM_NAME = re.compile(r"^(?P<name>[A-Za-z_][\w-]*)(?P<path>(?:\[[^\[\]]*\])*)$")
_PARAM_SEGMENT = re.compile(r"\[([^\[\]]*)\]")


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _string_list(value: Any) -> list[str] | None:
    """Coerce ``value`` to a list of strings, or ``None`` if it has the wrong shape."""
    if isinstance(value, str):
        return _split_csv(value)
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, str)]
    return None


def _filter_group(value: Mapping) -> dict[str, Any]:
    """Keep only the string-keyed constraints of one filter mapping."""
    return {key: item for key, item in value.items() if isinstance(key, str)}


class PageParams(BaseModel):
    """Pagination parameters (``page[...]``).

    Either page-based (``number`` / ``size``) or offset-based
    (``offset`` / ``limit``); mixing the two is rejected.

    Attributes:
        number: 1-based page number (alias ``page``).
        size: Rows per page (alias ``pageSize``).
        offset: Rows to skip.
        limit: Maximum rows to return.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    number: int | None = Field(default=None, validation_alias=AliasChoices("number", "page"))
    size: int | None = Field(default=None, validation_alias=AliasChoices("size", "pageSize"))
    offset: int | None = None
    limit: int | None = None

    @field_validator("number", "size", "offset", "limit", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any, info: ValidationInfo) -> int | None:
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise InvalidPageError(info.field_name, value, "Expected an integer.")
        if isinstance(value, str):
            text = value.strip()
            digits = text[1:] if text.startswith("-") else text
            if not digits.isdecimal():
                raise InvalidPageError(info.field_name, value, "Expected an integer.")
            value = int(text)
        if not isinstance(value, int):
            raise InvalidPageError(info.field_name, value, "Expected an integer.")
        if value < 0:
            raise InvalidPageError(info.field_name, value, "Must not be negative.")
        if info.field_name == "number" and value == 0:
            raise InvalidPageError(info.field_name, value, "Page numbers start at 1.")
        return value

    @model_validator(mode="after")
    def _check_single_style(self) -> PageParams:
        if (self.number is not None or self.size is not None) and (
            self.offset is not None or self.limit is not None
        ):
            raise InvalidPageError(
                "page",
                self.model_dump(exclude_none=True),
                "Use either number/size or offset/limit, not both.",
            )
        return self

    @property
    def is_empty(self) -> bool:
        """True when no pagination value was supplied."""
        return all(
            v is None for v in (self.number, self.size, self.offset, self.limit)
        )

    @property
    def style(self) -> Literal["page", "offset"]:
        """``'offset'`` when offset/limit were given, otherwise ``'page'``."""
        if self.offset is not None or self.limit is not None:
            return "offset"
        return "page"

    def resolve(self, max_page_size: int = 0) -> PageParams:
        """Return a copy with defaults filled in and the size clamped.

        Args:
            max_page_size: Upper bound for ``size`` / ``limit``; ``0``
                disables clamping.

        Returns:
            A fully-populated :class:`PageParams` of the same style.
        """
        if self.style == "offset":
            limit = self.limit if self.limit is not None else DEFAULT_PAGE_SIZE
            if max_page_size > 0:
                limit = min(limit, max_page_size)
            return PageParams(offset=self.offset or 0, limit=limit)

        size = self.size if self.size is not None else DEFAULT_PAGE_SIZE
        if max_page_size > 0:
            size = min(size, max_page_size)
        return PageParams(number=self.number or 1, size=size)


class JsonApiOptions(BaseModel):
    """The five JSON:API query parameters understood by the translator.

    Attributes:
        include: Relationship paths to eager-load (``comments``,
            ``comments.author``).
        fields: Sparse fieldsets keyed by resource type or include path.
        sort: Sort keys; a leading ``-`` means descending.
        page: Pagination parameters.
        filter: Equality constraints (mapping, or list of mappings ANDed
            together).  ``{"field": {"op": value}}`` selects a registered
            filter operator.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    include: list[str] | None = None
    fields: dict[str, list[str]] | None = None
    sort: list[str] | None = None
    page: PageParams | None = None
    filter: dict[str, Any] | list[dict[str, Any]] | None = None

    @field_validator("include", "sort", mode="before")
    @classmethod
    def _coerce_name_list(cls, value: Any) -> list[str] | None:
        return _string_list(value)

    @field_validator("fields", mode="before")
    @classmethod
    def _coerce_fields(cls, value: Any) -> dict[str, list[str]] | None:
        if not isinstance(value, Mapping):
            return None
        fields: dict[str, list[str]] = {}
        for key, names in value.items():
            columns = _string_list(names)
            if isinstance(key, str) and columns is not None:
                fields[key] = columns
        return fields

    @field_validator("page", mode="before")
    @classmethod
    def _coerce_page(cls, value: Any) -> Any:
        if isinstance(value, (PageParams, Mapping)):
            return value
        return None

    @field_validator("filter", mode="before")
    @classmethod
    def _coerce_filter(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            group = _filter_group(value)
            return group if group or not value else None
        if isinstance(value, (list, tuple)):
            groups = [_filter_group(item) for item in value if isinstance(item, Mapping)]
            return [group for group in groups if group]
        return None

    @property
    def is_empty(self) -> bool:
        """True when none of the five parameters carries a value."""
        return not any((self.include, self.fields, self.sort, self.filter)) and (
            self.page is None or self.page.is_empty
        )

    def with_page(self, page: PageParams | None) -> JsonApiOptions:
        """Return a copy whose ``page`` is replaced by ``page``."""
        return self.model_copy(update={"page": page})

    # ------------------------------------------------------------------
    # Query-string parsing
    # ------------------------------------------------------------------

    @classmethod
    def from_query_params(
        cls,
        params: Mapping[str, Any] | Iterable[tuple[str, str]],
    ) -> JsonApiOptions:
        """Parse raw JSON:API query-string parameters.

        Understands ``include``, ``sort``, ``fields[TYPE]``, ``page[KEY]``,
        ``filter[FIELD]`` and ``filter[FIELD][OP]``.  Other parameters are
        ignored.  Comma-separated filter values become lists (``IN``).

        Args:
            params: A mapping whose values are strings or lists of strings
                (e.g. ``dict(request.query_params)``) or an iterable of
                ``(key, value)`` pairs (e.g. ``request.query_params.multi_items()``).

        Returns:
            The parsed :class:`JsonApiOptions`.

        Raises:
            InvalidPageError: If a ``page[...]`` value is not an integer.
        """
        raw: dict[str, Any] = {}
        for key, value in _iter_pairs(params):
            match = _PARAM_NAME.match(key)
            if match is None:
                continue
            name = match.group("name")
            path = _PARAM_SEGMENT.findall(match.group("path"))

            if name in ("include", "sort") and not path:
                raw[name] = value
            elif name == "fields" and len(path) == 1:
                raw.setdefault("fields", {})[path[0]] = value
            elif name == "page" and len(path) == 1:
                raw.setdefault("page", {})[path[0]] = value
            elif name == "filter" and len(path) == 1:
                raw.setdefault("filter", {})[path[0]] = _filter_value(value)
            elif name == "filter" and len(path) == 2:
                field_name, operator = path
                existing = raw.setdefault("filter", {}).get(field_name)
                if not isinstance(existing, dict):
                    existing = {}
                    raw["filter"][field_name] = existing
                existing[operator] = _filter_value(value)
        return cls.model_validate(raw)


def _iter_pairs(params: Mapping[str, Any] | Iterable[tuple[str, str]]):
    items = params.items() if isinstance(params, Mapping) else params
    for key, value in items:
        if isinstance(value, (list, tuple)):
            for item in value:
                yield key, item
        else:
            yield key, value


def _filter_value(value: Any) -> Any:
    if isinstance(value, str) and "," in value:
        return _split_csv(value)
    return value
