"""Target resolution and cardinality inference.

Nothing in a JSON:API query says whether the caller wants one resource or
many, so the translator guesses from the target it was handed:

* a mapped **instance** that already carries column values
  (``Article(id=1)``) → a single resource, looked up by those values;
* a ``Select`` whose WHERE clause references the identifier column
  (``select(Article).where(Article.id == 1)``) → a single resource;
* anything else (a mapped class, an unconstrained ``Select``) → a
  collection.

Every public entry point also takes an explicit ``cardinality=`` argument
that bypasses the guess.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Select, inspect, select
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm.state import InstanceState
from sqlalchemy.sql import visitors
from sqlalchemy.sql.elements import ColumnClause

from jsonapi_params.errors import ConfigError
from jsonapi_params.schema.resource import ResourceDescriptor


class Cardinality(str, enum.Enum):
    SINGLE = "single"
    COLLECTION = "collection"


@dataclass(frozen=True)
class ResolvedTarget:
    """The caller's target reduced to a model, a base statement and data.

    Attributes:
        model: The mapped class being queried.
        statement: Base ``Select`` cloned from the caller's query state.
        attributes: Column values carried by a mapped instance target.
    """

    model: type
    statement: Select
    attributes: dict[str, Any] = field(default_factory=dict)


def resolve_target(target: Any) -> ResolvedTarget:
    """Normalise a mapped class, mapped instance or ``Select`` target.

    Raises:
        ConfigError: If ``target`` is none of the supported shapes.
    """
    if isinstance(target, Select):
        return ResolvedTarget(model=_select_entity(target), statement=target)

    if isinstance(target, type):
        return ResolvedTarget(model=target, statement=select(target))

    try:
        state = inspect(target)
    except NoInspectionAvailable as exc:
        raise ConfigError(
            f"Cannot fetch from {target!r}: expected a mapped class, a mapped "
            "instance or a Select statement."
        ) from exc
    if not isinstance(state, InstanceState):
        raise ConfigError(f"Cannot fetch from {target!r}: not a mapped instance.")

    model = type(target)
    attributes = _instance_attributes(state)
    mapper = state.mapper
    pk_keys = [mapper.get_property_by_column(col).key for col in mapper.primary_key]
    if pk_keys and all(key in attributes for key in pk_keys):
        criteria = {key: attributes[key] for key in pk_keys}
    else:
        criteria = attributes

    statement = select(model)
    if criteria:
        statement = statement.where(
            *(getattr(model, key) == value for key, value in criteria.items())
        )
    return ResolvedTarget(model=model, statement=statement, attributes=attributes)


def infer_cardinality(target: ResolvedTarget, descriptor: ResourceDescriptor) -> Cardinality:
    """Guess whether ``target`` should produce one resource or many."""
    if target.attributes:
        return Cardinality.SINGLE
    if _constrains_identifier(target.statement, descriptor):
        return Cardinality.SINGLE
    return Cardinality.COLLECTION


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _select_entity(statement: Select) -> type:
    descriptions = statement.column_descriptions
    entity = descriptions[0].get("entity") if descriptions else None
    if entity is None:
        raise ConfigError("The Select statement does not target a mapped class.")
    return entity


def _instance_attributes(state: InstanceState) -> dict[str, Any]:
    values = state.dict
    return {
        attr.key: values[attr.key]
        for attr in state.mapper.column_attrs
        if values.get(attr.key) is not None
    }


def _constrains_identifier(statement: Select, descriptor: ResourceDescriptor) -> bool:
    where = statement.whereclause
    if where is None:
        return False

    mapper = inspect(descriptor.model)
    if descriptor.id_attribute not in mapper.column_attrs:
        return False
    prop = mapper.column_attrs[descriptor.id_attribute]
    id_columns = {(getattr(col.table, "name", None), col.name) for col in prop.columns}
    id_names = {name for _, name in id_columns}

    for element in visitors.iterate(where):
        if not isinstance(element, ColumnClause) or element.name not in id_names:
            continue
        table_name = getattr(element.table, "name", None)
        if table_name is None or (table_name, element.name) in id_columns:
            return True
    return False
