"""jsonapi-params – JSON:API query parameters for SQLAlchemy.

Translate ``include``, ``fields``, ``sort``, ``page`` and ``filter`` into a
SQLAlchemy ORM statement and let the session do the fetching.

Public API
----------
``fetch_json_api`` / ``afetch_json_api``
    Build and execute against a ``Session`` / ``AsyncSession``.

``build_query``
    Build without executing (inspect or execute the statement yourself).

``JsonApiParams``
    The translator bound to a :class:`JsonApiConfig`; ``install(Base)``
    adds ``fetch_json_api`` to every mapped class.

Example::

    from jsonapi_params import JsonApiOptions, fetch_json_api

    opts = JsonApiOptions.from_query_params(request.query_params.multi_items())
    result = fetch_json_api(session, Article, opts)

Extensibility
-------------
Filters are equality-only by default.  Register operators with::

    from jsonapi_params import FilterOperatorRegistry

    FilterOperatorRegistry.register_comparison_operators()
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from jsonapi_params.build.accumulator import BuildPhase, BuiltQuery, IncludeSpec, SortKey
from jsonapi_params.build.builder import QueryBuilder
from jsonapi_params.build.cardinality import Cardinality
from jsonapi_params.build.operators import FilterOperatorRegistry
from jsonapi_params.config import JsonApiConfig
from jsonapi_params.errors import (
    BuildOrderError,
    ConfigError,
    InvalidPageError,
    JsonApiParamsError,
    ParameterError,
    ParseError,
    UnknownFieldError,
    UnknownRelationError,
    UnsupportedOperatorError,
)
from jsonapi_params.fetch.dispatcher import Dispatcher
from jsonapi_params.fetch.page import Page, PageMeta
from jsonapi_params.plugin import JsonApiParams
from jsonapi_params.schema.formatting import ColumnFormatter, identity, snake_case
from jsonapi_params.schema.options import JsonApiOptions, PageParams
from jsonapi_params.schema.resource import (
    RelationInfo,
    RelationKind,
    ResourceDescriptor,
    describe_model,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import Session

__all__ = [
    # Core pipeline
    "fetch_json_api",
    "afetch_json_api",
    "build_query",
    "JsonApiParams",
    "JsonApiConfig",
    # Parameters
    "JsonApiOptions",
    "PageParams",
    # Resources
    "ResourceDescriptor",
    "RelationInfo",
    "RelationKind",
    "describe_model",
    # Formatting
    "ColumnFormatter",
    "identity",
    "snake_case",
    # Building
    "QueryBuilder",
    "BuiltQuery",
    "BuildPhase",
    "Cardinality",
    "IncludeSpec",
    "SortKey",
    "FilterOperatorRegistry",
    # Fetching
    "Dispatcher",
    "Page",
    "PageMeta",
    # Errors
    "JsonApiParamsError",
    "ParseError",
    "InvalidPageError",
    "ParameterError",
    "UnknownFieldError",
    "UnknownRelationError",
    "UnsupportedOperatorError",
    "BuildOrderError",
    "ConfigError",
]


def build_query(
    target: Any,
    options: JsonApiOptions | Mapping[str, Any] | None = None,
    resource_type: str | None = None,
    *,
    config: JsonApiConfig | None = None,
    cardinality: Cardinality | str | None = None,
) -> BuiltQuery:
    """Translate JSON:API parameters into a :class:`BuiltQuery`.

    Args:
        target: A mapped class, a mapped instance or a ``Select``.
        options: Parsed options, a plain mapping, or ``None``.
        resource_type: Optional JSON:API type; defaults to the table name.
        config: Optional configuration; defaults to ``JsonApiConfig()``.
        cardinality: Optional ``"single"`` / ``"collection"`` override.

    Returns:
        The built query; execute ``built.statement`` (or
        ``built.paged_statement()``) yourself or pass it to a
        :class:`Dispatcher`.
    """
    return JsonApiParams(config).build(target, options, resource_type, cardinality=cardinality)


def fetch_json_api(
    session: Session,
    target: Any,
    options: JsonApiOptions | Mapping[str, Any] | None = None,
    resource_type: str | None = None,
    *,
    config: JsonApiConfig | None = None,
    cardinality: Cardinality | str | None = None,
) -> Any:
    """Build and execute a JSON:API query with a synchronous ``Session``.

    This is the main entry point::

        page = fetch_json_api(
            session,
            Article,
            {"include": ["comments"], "sort": ["-created_at"], "page": {"size": 5}},
        )

    Returns:
        An entity or ``None`` (single), a list (collection) or a
        :class:`Page` (paginated collection).

    Raises:
        ParameterError: (or subclass) if a parameter names something the
            model does not map.
        InvalidPageError: If page values are not usable integers.
        sqlalchemy.exc.SQLAlchemyError: Propagated unchanged from the
            session.
    """
    return JsonApiParams(config).fetch(
        session, target, options, resource_type, cardinality=cardinality
    )


async def afetch_json_api(
    session: AsyncSession,
    target: Any,
    options: JsonApiOptions | Mapping[str, Any] | None = None,
    resource_type: str | None = None,
    *,
    config: JsonApiConfig | None = None,
    cardinality: Cardinality | str | None = None,
) -> Any:
    """Coroutine twin of :func:`fetch_json_api` for ``AsyncSession``."""
    return await JsonApiParams(config).afetch(
        session, target, options, resource_type, cardinality=cardinality
    )
