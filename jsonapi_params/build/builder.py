"""Top-level JSON:API parameters → SQLAlchemy statement translation.

``QueryBuilder`` is the orchestrator.  For each call it resolves the target,
describes the primary model, creates a fresh accumulator and drives the
clause builders through the fixed phase sequence before handing the
accumulator off as a :class:`~jsonapi_params.build.accumulator.BuiltQuery`.

Sub-builder sequence
--------------------
QueryBuilder
  ├── FilterClauseBuilder   (clause_builders.py)   UNRESOLVED → FILTERED
  ├── FieldsClauseBuilder   (clause_builders.py)   → FIELD_SELECTED
  ├── SortClauseBuilder     (clause_builders.py)   → SORTED
  └── IncludeClauseBuilder  (clause_builders.py)   → INCLUDE_RESOLVED

Filters run first so column restriction never narrows what they can see;
fields run before includes because the primary selection must know which
relations were requested.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from jsonapi_params.build.accumulator import BuildPhase, BuiltQuery, QueryAccumulator
from jsonapi_params.build.cardinality import Cardinality, infer_cardinality, resolve_target
from jsonapi_params.build.clause_builders import (
    FieldsClauseBuilder,
    FilterClauseBuilder,
    IncludeClauseBuilder,
    SortClauseBuilder,
)
from jsonapi_params.build.context import BuildContext
from jsonapi_params.config import JsonApiConfig
from jsonapi_params.errors import ConfigError
from jsonapi_params.schema.options import JsonApiOptions, PageParams
from jsonapi_params.schema.resource import describe_model

logger = logging.getLogger(__name__)

_PHASES = (
    (FilterClauseBuilder, BuildPhase.FILTERED),
    (FieldsClauseBuilder, BuildPhase.FIELD_SELECTED),
    (SortClauseBuilder, BuildPhase.SORTED),
    (IncludeClauseBuilder, BuildPhase.INCLUDE_RESOLVED),
)


def _coerce_cardinality(value: Cardinality | str | None) -> Cardinality | None:
    if value is None:
        return None
    try:
        return Cardinality(value)
    except ValueError as exc:
        choices = ", ".join(repr(c.value) for c in Cardinality)
        raise ConfigError(
            f"Invalid cardinality {value!r}; expected one of {choices}."
        ) from exc


def coerce_options(options: JsonApiOptions | Mapping[str, Any] | None) -> JsonApiOptions:
    """Accept parsed options, a plain mapping, or ``None``."""
    if options is None:
        return JsonApiOptions()
    if isinstance(options, JsonApiOptions):
        return options
    if isinstance(options, Mapping):
        return JsonApiOptions.model_validate(dict(options))
    return JsonApiOptions()


class QueryBuilder:
    """Translates JSON:API parameters into a dispatch-ready query.

    Args:
        config: Translator configuration; defaults to ``JsonApiConfig()``.
    """

    def __init__(self, config: JsonApiConfig | None = None) -> None:
        self._config = config or JsonApiConfig()

    @property
    def config(self) -> JsonApiConfig:
        return self._config

    def build(
        self,
        target: Any,
        options: JsonApiOptions | Mapping[str, Any] | None = None,
        resource_type: str | None = None,
        cardinality: Cardinality | str | None = None,
    ) -> BuiltQuery:
        """Build the query for ``target``.

        Args:
            target: A mapped class, a mapped instance or a ``Select`` over
                a mapped class.
            options: The JSON:API parameters.
            resource_type: Optional JSON:API type; defaults to the table
                name.
            cardinality: Explicit ``"single"`` / ``"collection"``; when
                omitted it is inferred from ``target``.

        Returns:
            :class:`BuiltQuery` carrying the statement and dispatch data.

        Raises:
            ConfigError: If ``target`` is not something that can be queried,
                or ``cardinality`` is not a known value.
            ParameterError: (or subclass) if a parameter names an unmapped
                field or relationship, or an unregistered filter operator.
        """
        override = _coerce_cardinality(cardinality)
        resolved = resolve_target(target)
        descriptor = describe_model(resolved.model, resource_type, self._config.formatter)
        parsed = coerce_options(options)

        ctx = BuildContext(
            descriptor=descriptor,
            options=parsed,
            default_formatter=self._config.formatter,
        )
        acc = QueryAccumulator(descriptor=descriptor, base_statement=resolved.statement)
        for builder_cls, phase in _PHASES:
            builder_cls(ctx).build(acc)
            acc.advance(phase)
            logger.debug("%s: phase %s reached", descriptor.type, phase.value)

        resolved_cardinality = override or infer_cardinality(resolved, descriptor)

        page = self._resolve_page(parsed.page, resolved_cardinality)
        logger.debug(
            "%s: built %s query (columns=%s, sort=%s, include=%s, page=%s)",
            descriptor.type,
            resolved_cardinality.value,
            acc.columns or "*",
            [k.key for k in acc.order_by],
            list(ctx.include_paths),
            page,
        )
        return acc.finish(resolved_cardinality, page)

    def _resolve_page(
        self,
        page: PageParams | None,
        cardinality: Cardinality,
    ) -> PageParams | None:
        if cardinality is not Cardinality.COLLECTION:
            return None
        if page is None or page.is_empty:
            page = self._config.default_page
        if page is None:
            return None
        return page.resolve(self._config.max_page_size)
