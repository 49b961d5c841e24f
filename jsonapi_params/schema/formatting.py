"""Column-name formatting.

JSON:API parameter names are usually camelCase or dash-case while mapped
attributes are usually snake_case.  A :data:`ColumnFormatter` converts one
incoming name into the attribute key used by the mapped class.  Models pick
their convention with a ``__jsonapi_formatter__`` class attribute, otherwise
the configured default (or :func:`identity`) applies.
"""
from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import Any

#: Converts one JSON:API member name into a mapped attribute key.
ColumnFormatter = Callable[[str], str]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def identity(name: str) -> str:
    """Return ``name`` unchanged."""
    return name


def snake_case(name: str) -> str:
    """Convert camelCase, PascalCase and dash-case names to snake_case.

    Example::

        >>> snake_case("createdAt")
        'created_at'
        >>> snake_case("created-at")
        'created_at'
        >>> snake_case("HTTPStatus")
        'http_status'
    """
    name = name.replace("-", "_").replace(" ", "_")
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def format_columns(
    names: Iterable[str],
    formatter: ColumnFormatter,
    id_attribute: str | None = None,
) -> list[str]:
    """Format ``names`` and append ``id_attribute`` when it is missing.

    Order is preserved and duplicates are dropped.  The identifier is
    re-injected because every JSON:API resource object carries its id.

    Args:
        names: Incoming member names.
        formatter: Name formatter for the owning model.
        id_attribute: Identifier attribute key; ``None`` skips re-injection.

    Returns:
        De-duplicated list of attribute keys.
    """
    formatted: list[str] = []
    for name in names:
        key = formatter(name)
        if key not in formatted:
            formatted.append(key)
    if id_attribute is not None and id_attribute not in formatted:
        formatted.append(id_attribute)
    return formatted


def resolve_formatter(model: Any, default: ColumnFormatter | None = None) -> ColumnFormatter:
    """Pick the formatter for ``model``.

    The model's own ``__jsonapi_formatter__`` wins over ``default``; plain
    functions stored on a class are read through ``__dict__`` so they are
    not bound as methods.
    """
    for klass in getattr(model, "__mro__", (type(model),)):
        formatter = klass.__dict__.get("__jsonapi_formatter__")
        if formatter is not None:
            if isinstance(formatter, staticmethod):
                formatter = formatter.__func__
            return formatter
    return default or identity
