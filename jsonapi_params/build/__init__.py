"""jsonapi-params build layer: JSON:API parameters → SQLAlchemy statement."""
from jsonapi_params.build.accumulator import BuildPhase, BuiltQuery, QueryAccumulator
from jsonapi_params.build.builder import QueryBuilder
from jsonapi_params.build.cardinality import Cardinality
from jsonapi_params.build.operators import FilterOperatorRegistry

__all__ = [
    "BuildPhase",
    "BuiltQuery",
    "QueryAccumulator",
    "QueryBuilder",
    "Cardinality",
    "FilterOperatorRegistry",
]
