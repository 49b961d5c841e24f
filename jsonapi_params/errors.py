"""Custom exception hierarchy for jsonapi-params.

All public errors inherit from JsonApiParamsError so callers can catch the
base class for any failure raised by this package.  Errors coming from
SQLAlchemy or the DBAPI driver during a fetch are NOT wrapped; they reach
the caller unchanged.
"""
from __future__ import annotations

from typing import Any


class JsonApiParamsError(Exception):
    """Base exception for all jsonapi-params errors."""


class ParseError(JsonApiParamsError):
    """Raised when a raw query parameter cannot be interpreted.

    Args:
        message: Human-readable description.
        raw: The raw value that failed to parse.
    """

    def __init__(self, message: str, raw: Any = None) -> None:
        super().__init__(message)
        self.raw = raw


class InvalidPageError(ParseError):
    """Raised when a ``page[...]`` value is not a usable integer."""

    def __init__(self, parameter: str, value: Any, reason: str = "") -> None:
        message = f"Invalid value for page parameter '{parameter}': {value!r}."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message, raw=value)
        self.parameter = parameter


class ParameterError(JsonApiParamsError):
    """Raised when a parameter names something the resource does not have.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. ``UNKNOWN_FIELD``).
        parameter: The query parameter at fault (e.g. ``fields[articles]``).
        details: Extra context, echoed in the error object's ``meta``.
    """

    status = "400"
    title = "Invalid Query Parameter"

    def __init__(
        self,
        message: str,
        code: str,
        parameter: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.parameter = parameter
        self.details: dict[str, Any] = details or {}

    def to_error_object(self) -> dict[str, Any]:
        """Returns a JSON:API error object describing this failure."""
        error: dict[str, Any] = {
            "status": self.status,
            "code": self.code,
            "title": self.title,
            "detail": str(self),
        }
        if self.parameter:
            error["source"] = {"parameter": self.parameter}
        if self.details:
            error["meta"] = self.details
        return error


class UnknownFieldError(ParameterError):
    """Raised when a field, sort key or filter names an unmapped column."""

    def __init__(
        self,
        resource: str,
        field: str,
        available: list[str],
        parameter: str | None = None,
    ) -> None:
        super().__init__(
            f"Resource '{resource}' has no field '{field}'.",
            code="UNKNOWN_FIELD",
            parameter=parameter,
            details={
                "resource": resource,
                "field": field,
                "available_fields": available,
            },
        )


class UnknownRelationError(ParameterError):
    """Raised when ``include`` names a relationship the model does not map."""

    def __init__(self, resource: str, relation: str, available: list[str]) -> None:
        super().__init__(
            f"Resource '{resource}' has no relationship '{relation}'.",
            code="UNKNOWN_RELATION",
            parameter="include",
            details={
                "resource": resource,
                "relation": relation,
                "available_relations": available,
            },
        )


class UnsupportedOperatorError(ParameterError):
    """Raised when a filter uses an operator that is not registered."""

    def __init__(self, field: str, operator: str, supported: list[str]) -> None:
        super().__init__(
            f"Filter operator '{operator}' is not supported (field '{field}').",
            code="UNSUPPORTED_OPERATOR",
            parameter=f"filter[{field}][{operator}]",
            details={"operator": operator, "supported_operators": supported},
        )


class BuildOrderError(JsonApiParamsError):
    """Raised when the query accumulator is driven out of phase order.

    Args:
        message: Human-readable description.
        phase: The phase the accumulator was in when the error occurred.
    """

    def __init__(self, message: str, phase: str | None = None) -> None:
        super().__init__(message)
        self.phase = phase


class ConfigError(JsonApiParamsError):
    """Raised when a JsonApiConfig or plugin installation is misconfigured.

    Detected when the configuration is created or installed, before any
    query runs.
    """
