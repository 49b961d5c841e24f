"""jsonapi-params schema models: options, resource descriptors, formatting."""
from jsonapi_params.schema.formatting import ColumnFormatter, identity, snake_case
from jsonapi_params.schema.options import JsonApiOptions, PageParams
from jsonapi_params.schema.resource import (
    RelationInfo,
    RelationKind,
    ResourceDescriptor,
    describe_model,
)

__all__ = [
    "ColumnFormatter",
    "identity",
    "snake_case",
    "JsonApiOptions",
    "PageParams",
    "RelationInfo",
    "RelationKind",
    "ResourceDescriptor",
    "describe_model",
]
