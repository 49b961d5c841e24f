"""Build context value object.

Packages the ``(descriptor, options, formatter)`` data clump shared by
``QueryBuilder`` and every clause builder into a single object, plus a
per-build cache of descriptors for related models.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property

from jsonapi_params.schema.formatting import ColumnFormatter
from jsonapi_params.schema.options import JsonApiOptions
from jsonapi_params.schema.resource import ResourceDescriptor, describe_model


def expand_include_paths(include: list[str] | None) -> tuple[str, ...]:
    """Return every requested include path plus its intermediate prefixes.

    ``["comments.author"]`` becomes ``("comments", "comments.author")``:
    a JSON:API server must return the intermediate resources too.
    """
    paths: list[str] = []
    for raw in include or []:
        segments = [segment for segment in raw.strip().split(".") if segment]
        for depth in range(1, len(segments) + 1):
            path = ".".join(segments[:depth])
            if path not in paths:
                paths.append(path)
    return tuple(paths)


@dataclass(frozen=True)
class BuildContext:
    """Immutable context for a single build run.

    Attributes:
        descriptor: Descriptor of the primary resource.
        options: The parsed JSON:API parameters.
        default_formatter: Formatter for related models that declare none.
    """

    descriptor: ResourceDescriptor
    options: JsonApiOptions
    default_formatter: ColumnFormatter | None = None
    _descriptors: dict[type, ResourceDescriptor] = field(
        default_factory=dict, compare=False, repr=False
    )

    @cached_property
    def include_paths(self) -> tuple[str, ...]:
        return expand_include_paths(self.options.include)

    def fields_for(self, key: str) -> list[str] | None:
        """Return the requested field names for ``key``, or ``None``."""
        if not self.options.fields:
            return None
        return self.options.fields.get(key)

    def descriptor_for(self, model: type) -> ResourceDescriptor:
        """Return the (cached) descriptor for a related model."""
        if model is self.descriptor.model:
            return self.descriptor
        if model not in self._descriptors:
            self._descriptors[model] = describe_model(model, formatter=self.default_formatter)
        return self._descriptors[model]
