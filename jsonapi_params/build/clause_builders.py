"""Clause-level builders.

Each class handles exactly one JSON:API parameter and writes into the
shared :class:`~jsonapi_params.build.accumulator.QueryAccumulator`.  They
run in a fixed order (filter, fields, sort, include); the accumulator
enforces it.

Classes
-------
FilterClauseBuilder   — ``filter``  → WHERE predicates
FieldsClauseBuilder   — ``fields``  → ``load_only`` on the primary model
SortClauseBuilder     — ``sort``    → ORDER BY
IncludeClauseBuilder  — ``include`` → ``selectinload`` chains
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from jsonapi_params.build.accumulator import IncludeSpec, QueryAccumulator, SortKey
from jsonapi_params.build.context import BuildContext
from jsonapi_params.build.operators import FilterOperatorRegistry, equals
from jsonapi_params.errors import UnsupportedOperatorError
from jsonapi_params.schema.formatting import format_columns
from jsonapi_params.schema.resource import RelationInfo, ResourceDescriptor


def _foreign_keys(
    declared: tuple[str, ...],
    conventional: str,
    descriptor: ResourceDescriptor,
) -> tuple[str, ...]:
    """Return the declared FK keys, or the ``<name>_id`` convention if mapped."""
    if declared:
        return declared
    if descriptor.has_column(conventional):
        return (conventional,)
    return ()


class FilterClauseBuilder:
    """Builds equality (and registered-operator) predicates from ``filter``."""

    def __init__(self, ctx: BuildContext) -> None:
        self._ctx = ctx

    def build(self, acc: QueryAccumulator) -> None:
        filters = self._ctx.options.filter
        if not filters:
            return
        groups = [filters] if isinstance(filters, Mapping) else filters
        for group in groups:
            for name, value in group.items():
                self._apply(acc, name, value)

    def _apply(self, acc: QueryAccumulator, name: str, value: Any) -> None:
        descriptor = self._ctx.descriptor
        key = descriptor.formatter(name)
        column = descriptor.column(key, parameter=f"filter[{name}]")

        if not isinstance(value, Mapping):
            acc.add_predicate(equals(column, value))
            return

        for operator, operand in value.items():
            handler = FilterOperatorRegistry.get(operator)
            if handler is None:
                raise UnsupportedOperatorError(
                    name, operator, FilterOperatorRegistry.registered_operators()
                )
            acc.add_predicate(handler(column, operand))


class FieldsClauseBuilder:
    """Builds the primary model's sparse fieldset.

    Every ``fields`` key that is not an include path is treated as a field
    list for the primary resource.  When one is present, the foreign key of
    each top-level belongs-to (and has-one) include is force-selected so the
    relationship can still be resolved.
    """

    def __init__(self, ctx: BuildContext) -> None:
        self._ctx = ctx

    def build(self, acc: QueryAccumulator) -> None:
        fields = self._ctx.options.fields
        if not fields:
            return

        descriptor = self._ctx.descriptor
        include_paths = self._ctx.include_paths
        primary_keys = [key for key in fields if key not in include_paths]
        if not primary_keys:
            return

        for key in primary_keys:
            columns = format_columns(fields[key], descriptor.formatter, descriptor.id_attribute)
            acc.add_columns(descriptor.check_columns(columns, parameter=f"fields[{key}]"))

        for path in include_paths:
            if "." in path:
                continue
            relation = descriptor.relation(descriptor.formatter(path))
            if relation.is_many:
                continue
            acc.add_columns(
                list(_foreign_keys(relation.local_keys, f"{relation.name}_id", descriptor))
            )


class SortClauseBuilder:
    """Builds ORDER BY entries; a leading ``-`` sorts descending."""

    def __init__(self, ctx: BuildContext) -> None:
        self._ctx = ctx

    def build(self, acc: QueryAccumulator) -> None:
        descriptor = self._ctx.descriptor
        for raw in self._ctx.options.sort or []:
            descending = raw.startswith("-")
            name = raw[1:] if raw[:1] in ("-", "+") else raw
            if not name:
                continue
            key = descriptor.formatter(name)
            descriptor.column(key, parameter="sort")
            acc.add_sort(SortKey(key=key, descending=descending))


class IncludeClauseBuilder:
    """Builds eager-load specs for ``include``.

    When ``fields`` carries an entry for an include path, only those columns
    (plus the related identifier) are loaded.  Unless the relationship is a
    belongs-to, the related side's foreign key back to its parent is added
    too, so the loaded rows can be matched to their owners.
    """

    def __init__(self, ctx: BuildContext) -> None:
        self._ctx = ctx

    def build(self, acc: QueryAccumulator) -> None:
        for path in self._ctx.include_paths:
            relations = self._walk(path)
            names = self._ctx.fields_for(path)
            columns = None if names is None else self._columns_for(path, relations, names)
            acc.add_include(IncludeSpec(path=path, relations=relations, columns=columns))

    def _walk(self, path: str) -> tuple[RelationInfo, ...]:
        descriptor = self._ctx.descriptor
        relations: list[RelationInfo] = []
        for segment in path.split("."):
            relation = descriptor.relation(descriptor.formatter(segment))
            relations.append(relation)
            descriptor = self._ctx.descriptor_for(relation.target)
        return tuple(relations)

    def _columns_for(
        self,
        path: str,
        relations: tuple[RelationInfo, ...],
        names: list[str],
    ) -> tuple[str, ...]:
        relation = relations[-1]
        target = self._ctx.descriptor_for(relation.target)
        columns = format_columns(names, target.formatter, target.id_attribute)

        if not relation.is_belongs_to:
            if len(relations) == 1:
                parent_type = self._ctx.descriptor.type
            else:
                parent_type = self._ctx.descriptor_for(relations[-2].target).type
            for key in _foreign_keys(relation.remote_keys, f"{parent_type}_id", target):
                if key not in columns:
                    columns.append(key)

        return tuple(target.check_columns(columns, parameter=f"fields[{path}]"))

