"""Unit tests for JsonApiConfig and the error objects."""

from __future__ import annotations

import pytest

from jsonapi_params import (
    ConfigError,
    InvalidPageError,
    JsonApiConfig,
    JsonApiParamsError,
    PageParams,
    ParameterError,
    ParseError,
    UnknownFieldError,
    UnsupportedOperatorError,
)


def test_defaults():
    config = JsonApiConfig()
    assert config.pagination is None
    assert config.default_page is None
    assert config.formatter is None
    assert config.max_page_size == 0
    assert config.count_rows is True


def test_pagination_mapping_is_validated():
    config = JsonApiConfig(pagination={"pageSize": 25})
    assert config.pagination == PageParams(size=25)
    assert config.default_page == PageParams(size=25)


def test_empty_pagination_means_no_default():
    assert JsonApiConfig(pagination={}).default_page is None


@pytest.mark.parametrize(
    "pagination",
    [{"number": 1, "limit": 5}, {"size": "ten"}, ["size", 10]],
)
def test_invalid_pagination_raises_config_error(pagination):
    with pytest.raises(ConfigError):
        JsonApiConfig(pagination=pagination)


def test_negative_max_page_size_raises_config_error():
    with pytest.raises(ConfigError):
        JsonApiConfig(max_page_size=-1)


# ---------------------------------------------------------------------------
# Error hierarchy
# ---------------------------------------------------------------------------


def test_every_error_shares_the_root():
    for error_cls in (ParseError, InvalidPageError, ParameterError, ConfigError):
        assert issubclass(error_cls, JsonApiParamsError)
    assert issubclass(InvalidPageError, ParseError)
    assert issubclass(UnknownFieldError, ParameterError)


def test_invalid_page_error_keeps_raw_value():
    error = InvalidPageError("size", "ten", "Expected an integer.")
    assert error.raw == "ten"
    assert error.parameter == "size"
    assert "Expected an integer." in str(error)


def test_error_object_omits_empty_members():
    error = ParameterError("Bad.", code="BAD")
    assert error.to_error_object() == {
        "status": "400",
        "code": "BAD",
        "title": "Invalid Query Parameter",
        "detail": "Bad.",
    }


def test_unsupported_operator_error_object():
    error = UnsupportedOperatorError("age", "between", ["eq", "gt"])
    obj = error.to_error_object()
    assert obj["code"] == "UNSUPPORTED_OPERATOR"
    assert obj["source"] == {"parameter": "filter[age][between]"}
    assert obj["meta"] == {"operator": "between", "supported_operators": ["eq", "gt"]}
