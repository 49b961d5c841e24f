"""Filter operator registry.

Filters are equality-only out of the box: ``filter[status]=published``
renders ``status = 'published'``, a list value renders ``IN`` and ``None``
renders ``IS NULL``.  Any other ``filter[field][op]=value`` is rejected
unless ``op`` has been registered here, so richer comparison is an opt-in
extension rather than a default.

Usage::

    from jsonapi_params.build.operators import FilterOperatorRegistry

    # Opt into the stock comparison set (ne, gt, gte, lt, lte, like, ...)
    FilterOperatorRegistry.register_comparison_operators()

    # Or add a single custom operator
    @FilterOperatorRegistry.register("startswith")
    def _startswith(column, value):
        return column.startswith(value)
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar

from sqlalchemy.sql.elements import ColumnElement

#: ``(instrumented_attribute, value) -> boolean SQL expression``
OperatorHandler = Callable[[Any, Any], ColumnElement]


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def equals(column: Any, value: Any) -> ColumnElement:
    """Equality; list values become ``IN`` and ``None`` becomes ``IS NULL``."""
    if value is None:
        return column.is_(None)
    if isinstance(value, (list, tuple, set, frozenset)):
        return column.in_(list(value))
    return column == value


def _is_null(column: Any, value: Any) -> ColumnElement:
    wanted = value if isinstance(value, bool) else str(value).lower() not in ("0", "false", "no")
    return column.is_(None) if wanted else column.is_not(None)


# Maps query-string operator names to SQLAlchemy column operations.
COMPARISON_OPERATORS: dict[str, OperatorHandler] = {
    "ne": lambda c, v: c.is_not(None) if v is None else c != v,
    "gt": lambda c, v: c > v,
    "gte": lambda c, v: c >= v,
    "lt": lambda c, v: c < v,
    "lte": lambda c, v: c <= v,
    "like": lambda c, v: c.like(v),
    "ilike": lambda c, v: c.ilike(v),
    "in": lambda c, v: c.in_(_as_list(v)),
    "nin": lambda c, v: c.not_in(_as_list(v)),
    "null": _is_null,
}


class FilterOperatorRegistry:
    """Registry mapping filter operator names to SQL expression handlers.

    Only ``eq`` is registered at import time.
    """

    _operators: ClassVar[dict[str, OperatorHandler]] = {"eq": equals}

    @classmethod
    def register(cls, name: str) -> Callable[[OperatorHandler], OperatorHandler]:
        """Decorator that registers an operator handler under ``name``.

        Args:
            name: The operator key used in ``filter[field][name]``.

        Returns:
            A decorator that registers and returns the handler.
        """

        def decorator(handler: OperatorHandler) -> OperatorHandler:
            cls._operators[name] = handler
            return handler

        return decorator

    @classmethod
    def register_handler(cls, name: str, handler: OperatorHandler) -> None:
        """Register an operator handler without using the decorator form."""
        cls._operators[name] = handler

    @classmethod
    def register_comparison_operators(cls) -> None:
        """Register every handler in :data:`COMPARISON_OPERATORS`."""
        cls._operators.update(COMPARISON_OPERATORS)

    @classmethod
    def unregister(cls, name: str) -> None:
        """Remove ``name``; ``eq`` cannot be removed."""
        if name != "eq":
            cls._operators.pop(name, None)

    @classmethod
    def get(cls, name: str) -> OperatorHandler | None:
        """Return the handler for ``name``, or ``None`` if not registered."""
        return cls._operators.get(name)

    @classmethod
    def registered_operators(cls) -> list[str]:
        """Return the sorted list of registered operator names."""
        return sorted(cls._operators)
