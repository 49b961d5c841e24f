"""Resource and relationship descriptors built from SQLAlchemy mappers.

:func:`describe_model` inspects a mapped class and returns a
:class:`ResourceDescriptor`: the JSON:API type name, the identifier
attribute, the column attribute keys and a classification of every
relationship.  Builders consult the descriptor instead of poking at the
mapper directly.

Relationship classification
---------------------------
SQLAlchemy's ``RelationshipProperty.direction`` drives the kind:

* ``MANYTOONE``  → :attr:`RelationKind.BELONGS_TO` (FK on the primary side)
* ``ONETOMANY``  → :attr:`RelationKind.HAS_MANY`, or
  :attr:`RelationKind.HAS_ONE` when ``uselist=False``
* ``MANYTOMANY`` → :attr:`RelationKind.MANY_TO_MANY` (FK in the secondary)

Example::

    from jsonapi_params.schema.resource import describe_model

    articles = describe_model(Article)
    articles.type                          # "articles"
    articles.relation("author").kind       # RelationKind.BELONGS_TO
    articles.relation("author").local_keys # ("author_id",)
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm import Mapper, RelationshipDirection, configure_mappers
from sqlalchemy.orm.exc import UnmappedColumnError

from jsonapi_params.errors import ConfigError, UnknownFieldError, UnknownRelationError
from jsonapi_params.schema.formatting import ColumnFormatter, resolve_formatter

#: Identifier attribute used when a mapper has no single-column primary key.
DEFAULT_ID_ATTRIBUTE = "id"


class RelationKind(str, enum.Enum):
    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    MANY_TO_MANY = "many_to_many"


@dataclass(frozen=True)
class RelationInfo:
    """One mapped relationship, seen from its owning model.

    Attributes:
        name: Relationship attribute key on the owning model.
        kind: Classification of the relationship.
        target: The related mapped class.
        local_keys: Attribute keys on the owning model holding the foreign
            key (belongs-to only).
        remote_keys: Attribute keys on the related model holding the
            foreign key back to the owner (has-one / has-many only).
    """

    name: str
    kind: RelationKind
    target: type
    local_keys: tuple[str, ...] = ()
    remote_keys: tuple[str, ...] = ()

    @property
    def is_belongs_to(self) -> bool:
        return self.kind is RelationKind.BELONGS_TO

    @property
    def is_many(self) -> bool:
        """True for has-many and many-to-many relationships."""
        return self.kind in (RelationKind.HAS_MANY, RelationKind.MANY_TO_MANY)


@dataclass(frozen=True)
class ResourceDescriptor:
    """Everything the builders need to know about one mapped class.

    Attributes:
        model: The mapped class.
        type: JSON:API resource type (table name unless overridden).
        id_attribute: Identifier attribute key.
        formatter: Column-name formatter for this model.
        column_keys: Mapped column attribute keys, in mapper order.
        relations: Relationship descriptors keyed by attribute name.
    """

    model: type
    type: str
    id_attribute: str
    formatter: ColumnFormatter
    column_keys: tuple[str, ...]
    relations: dict[str, RelationInfo] = field(default_factory=dict)

    def has_column(self, key: str) -> bool:
        return key in self.column_keys

    def column(self, key: str, parameter: str | None = None) -> Any:
        """Return the instrumented attribute for column ``key``.

        Raises:
            UnknownFieldError: If ``key`` is not a mapped column attribute.
        """
        if key not in self.column_keys:
            raise UnknownFieldError(self.type, key, list(self.column_keys), parameter)
        return getattr(self.model, key)

    def relation(self, name: str) -> RelationInfo:
        """Return the :class:`RelationInfo` for ``name``.

        Raises:
            UnknownRelationError: If ``name`` is not a mapped relationship.
        """
        info = self.relations.get(name)
        if info is None:
            raise UnknownRelationError(self.type, name, sorted(self.relations))
        return info

    def check_columns(self, keys: list[str], parameter: str | None = None) -> list[str]:
        """Raise :class:`UnknownFieldError` for the first unmapped key in ``keys``."""
        for key in keys:
            if key not in self.column_keys:
                raise UnknownFieldError(self.type, key, list(self.column_keys), parameter)
        return keys


def describe_model(
    model: type,
    resource_type: str | None = None,
    formatter: ColumnFormatter | None = None,
) -> ResourceDescriptor:
    """Build a :class:`ResourceDescriptor` for a mapped class.

    Args:
        model: A SQLAlchemy mapped class.
        resource_type: Optional JSON:API type; defaults to the mapped
            table name.
        formatter: Fallback name formatter used when the model does not
            declare ``__jsonapi_formatter__``.

    Returns:
        The descriptor.

    Raises:
        ConfigError: If ``model`` is not a mapped class.
    """
    mapper = _mapper_for(model)
    return ResourceDescriptor(
        model=mapper.class_,
        type=resource_type or _table_name(mapper),
        id_attribute=_id_attribute(mapper),
        formatter=resolve_formatter(mapper.class_, formatter),
        column_keys=tuple(attr.key for attr in mapper.column_attrs),
        relations={rel.key: _relation_info(mapper, rel) for rel in mapper.relationships},
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _mapper_for(model: type) -> Mapper:
    try:
        mapper = inspect(model)
    except NoInspectionAvailable as exc:
        raise ConfigError(f"{model!r} is not a SQLAlchemy mapped class.") from exc
    if not isinstance(mapper, Mapper):
        raise ConfigError(f"{model!r} is not a SQLAlchemy mapped class.")
    configure_mappers()
    return mapper


def _table_name(mapper: Mapper) -> str:
    tablename = getattr(mapper.class_, "__tablename__", None)
    if isinstance(tablename, str):
        return tablename
    return getattr(mapper.persist_selectable, "name", mapper.class_.__name__.lower())


def _id_attribute(mapper: Mapper) -> str:
    override = getattr(mapper.class_, "__jsonapi_id__", None)
    if isinstance(override, str):
        return override
    if len(mapper.primary_key) == 1:
        return mapper.get_property_by_column(mapper.primary_key[0]).key
    return DEFAULT_ID_ATTRIBUTE


def _column_keys(mapper: Mapper, columns: Any) -> tuple[str, ...]:
    """Map table columns to attribute keys on ``mapper``, skipping unmapped ones."""
    keys: list[str] = []
    for column in sorted(columns, key=lambda c: c.key):
        try:
            keys.append(mapper.get_property_by_column(column).key)
        except UnmappedColumnError:
            continue
    return tuple(keys)


def _relation_info(mapper: Mapper, rel: Any) -> RelationInfo:
    target = rel.mapper
    if rel.direction is RelationshipDirection.MANYTOONE:
        return RelationInfo(
            name=rel.key,
            kind=RelationKind.BELONGS_TO,
            target=target.class_,
            local_keys=_column_keys(mapper, rel.local_columns),
        )
    if rel.direction is RelationshipDirection.MANYTOMANY:
        return RelationInfo(
            name=rel.key,
            kind=RelationKind.MANY_TO_MANY,
            target=target.class_,
        )
    return RelationInfo(
        name=rel.key,
        kind=RelationKind.HAS_MANY if rel.uselist else RelationKind.HAS_ONE,
        target=target.class_,
        remote_keys=_column_keys(target, rel.remote_side),
    )
