"""Per-call query accumulator and the immutable query it produces.

A :class:`QueryAccumulator` is created for one :meth:`QueryBuilder.build`
call, filled by the clause builders in a fixed phase order and consumed
exactly once by :meth:`QueryAccumulator.finish`, which renders the
SQLAlchemy statement and returns a :class:`BuiltQuery`.

Phase order
-----------
UNRESOLVED → FILTERED → FIELD_SELECTED → SORTED → INCLUDE_RESOLVED → DISPATCHED

Each mutator only accepts calls in the phase that precedes its own, so a
builder cannot narrow the selection before filters are in, or add includes
after the query has been handed off.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy import Select, func, select
from sqlalchemy.orm import load_only, selectinload

from jsonapi_params.errors import BuildOrderError
from jsonapi_params.schema.options import PageParams
from jsonapi_params.schema.resource import RelationInfo, ResourceDescriptor

if TYPE_CHECKING:
    from jsonapi_params.build.cardinality import Cardinality


class BuildPhase(str, enum.Enum):
    UNRESOLVED = "unresolved"
    FILTERED = "filtered"
    FIELD_SELECTED = "field_selected"
    SORTED = "sorted"
    INCLUDE_RESOLVED = "include_resolved"
    DISPATCHED = "dispatched"


_PHASE_ORDER: list[BuildPhase] = list(BuildPhase)


@dataclass(frozen=True)
class SortKey:
    """A single ORDER BY entry.

    Attributes:
        key: Column attribute key on the primary model.
        descending: ``True`` for ``-key`` in the ``sort`` parameter.
    """

    key: str
    descending: bool = False


@dataclass(frozen=True)
class IncludeSpec:
    """One relationship path to eager-load.

    Attributes:
        path: Dotted include path as requested (``comments.author``).
        relations: The relationship chain walked from the primary model.
        columns: Attribute keys to load on the final relation, or ``None``
            to load every column.
    """

    path: str
    relations: tuple[RelationInfo, ...]
    columns: tuple[str, ...] | None = None

    @property
    def relation(self) -> RelationInfo:
        """The last relationship of the path."""
        return self.relations[-1]

    def loader_option(self, model: type) -> Any:
        """Return the ``selectinload`` chain for this include."""
        owner = model
        loader = None
        for rel in self.relations:
            attr = getattr(owner, rel.name)
            loader = selectinload(attr) if loader is None else loader.selectinload(attr)
            owner = rel.target
        if self.columns is not None:
            loader = loader.load_only(*(getattr(owner, key) for key in self.columns))
        return loader


@dataclass(frozen=True)
class BuiltQuery:
    """The output of a successful build, ready for dispatch.

    Attributes:
        descriptor: Descriptor of the primary resource.
        statement: ORM ``Select`` carrying filters, sparse fields, sort
            and eager loads (no pagination).
        count_statement: ``SELECT count(*)`` over the filtered rows.
        cardinality: Whether a single entity or a collection is expected.
        page: Resolved pagination parameters, or ``None`` when the fetch
            is not paginated.
        columns: Attribute keys selected on the primary model (empty means
            every column).
        order_by: Sort keys in precedence order.
        includes: Eager-load specs in request order.
    """

    descriptor: ResourceDescriptor
    statement: Select
    count_statement: Select
    cardinality: Cardinality
    page: PageParams | None = None
    columns: tuple[str, ...] = ()
    order_by: tuple[SortKey, ...] = ()
    includes: tuple[IncludeSpec, ...] = ()

    @property
    def resource_type(self) -> str:
        return self.descriptor.type

    def include(self, path: str) -> IncludeSpec | None:
        """Return the include spec for ``path``, or ``None``."""
        for spec in self.includes:
            if spec.path == path:
                return spec
        return None

    def paged_statement(self) -> Select:
        """Return :attr:`statement` with LIMIT/OFFSET applied from :attr:`page`."""
        if self.page is None:
            return self.statement
        if self.page.style == "offset":
            return self.statement.limit(self.page.limit).offset(self.page.offset)
        size = self.page.size or 0
        return self.statement.limit(size).offset(((self.page.number or 1) - 1) * size)


@dataclass
class QueryAccumulator:
    """Mutable builder state owned by a single build call.

    Args:
        descriptor: Descriptor of the primary resource.
        base_statement: The caller's query state; never mutated (SQLAlchemy
            statements are generative).
    """

    descriptor: ResourceDescriptor
    base_statement: Select
    columns: list[str] = field(default_factory=list)
    predicates: list[Any] = field(default_factory=list)
    order_by: list[SortKey] = field(default_factory=list)
    includes: list[IncludeSpec] = field(default_factory=list)
    phase: BuildPhase = BuildPhase.UNRESOLVED

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def add_predicate(self, predicate: Any) -> None:
        self._require(BuildPhase.UNRESOLVED, "add a filter")
        self.predicates.append(predicate)

    def add_columns(self, keys: list[str]) -> None:
        self._require(BuildPhase.FILTERED, "select fields")
        for key in keys:
            if key not in self.columns:
                self.columns.append(key)

    def add_sort(self, sort_key: SortKey) -> None:
        self._require(BuildPhase.FIELD_SELECTED, "add a sort key")
        self.order_by.append(sort_key)

    def add_include(self, spec: IncludeSpec) -> None:
        self._require(BuildPhase.SORTED, "add an include")
        self.includes.append(spec)

    # ------------------------------------------------------------------
    # Phase transitions
    # ------------------------------------------------------------------

    def advance(self, phase: BuildPhase) -> None:
        """Move to ``phase``, which must directly follow the current one.

        Raises:
            BuildOrderError: On a skipped or repeated phase.
        """
        current = _PHASE_ORDER.index(self.phase)
        if phase is BuildPhase.DISPATCHED or _PHASE_ORDER.index(phase) != current + 1:
            raise BuildOrderError(
                f"Cannot move from phase '{self.phase.value}' to '{phase.value}'.",
                phase=self.phase.value,
            )
        self.phase = phase

    def finish(
        self,
        cardinality: Cardinality,
        page: PageParams | None = None,
    ) -> BuiltQuery:
        """Render the statement and hand the accumulator off.

        Raises:
            BuildOrderError: If includes are not resolved yet, or the
                accumulator was already consumed.
        """
        self._require(BuildPhase.INCLUDE_RESOLVED, "dispatch")
        self.phase = BuildPhase.DISPATCHED

        model = self.descriptor.model
        filtered = self.base_statement
        if self.predicates:
            filtered = filtered.where(*self.predicates)

        statement = filtered
        if self.columns:
            statement = statement.options(
                load_only(*(getattr(model, key) for key in self.columns))
            )
        for sort_key in self.order_by:
            attr = getattr(model, sort_key.key)
            statement = statement.order_by(attr.desc() if sort_key.descending else attr.asc())
        for spec in self.includes:
            statement = statement.options(spec.loader_option(model))

        count_statement = select(func.count()).select_from(
            filtered.order_by(None).limit(None).offset(None).subquery()
        )

        return BuiltQuery(
            descriptor=self.descriptor,
            statement=statement,
            count_statement=count_statement,
            cardinality=cardinality,
            page=page,
            columns=tuple(self.columns),
            order_by=tuple(self.order_by),
            includes=tuple(self.includes),
        )

    def _require(self, phase: BuildPhase, action: str) -> None:
        if self.phase is not phase:
            raise BuildOrderError(
                f"Cannot {action} in phase '{self.phase.value}' "
                f"(expected '{phase.value}').",
                phase=self.phase.value,
            )
