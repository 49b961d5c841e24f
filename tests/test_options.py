"""Unit tests for JsonApiOptions and PageParams."""

from __future__ import annotations

import pytest

from jsonapi_params.errors import InvalidPageError
from jsonapi_params.schema.options import JsonApiOptions, PageParams


# ---------------------------------------------------------------------------
# Structured input
# ---------------------------------------------------------------------------


def test_absent_parameters_are_none():
    opts = JsonApiOptions()
    assert opts.include is None
    assert opts.fields is None
    assert opts.sort is None
    assert opts.page is None
    assert opts.filter is None
    assert opts.is_empty


def test_comma_strings_are_split():
    opts = JsonApiOptions.model_validate(
        {"include": "comments, author", "sort": "-createdAt,title", "fields": {"articles": "title,body"}}
    )
    assert opts.include == ["comments", "author"]
    assert opts.sort == ["-createdAt", "title"]
    assert opts.fields == {"articles": ["title", "body"]}


def test_malformed_shapes_are_dropped_not_rejected():
    opts = JsonApiOptions.model_validate(
        {"include": 42, "fields": ["title"], "sort": {"a": 1}, "page": "2", "filter": "status"}
    )
    assert opts.include is None
    assert opts.fields is None
    assert opts.sort is None
    assert opts.page is None
    assert opts.filter is None


def test_non_string_filter_keys_are_dropped():
    assert JsonApiOptions.model_validate({"filter": {1: "x"}}).filter is None
    opts = JsonApiOptions.model_validate({"filter": {1: "x", "status": "draft"}})
    assert opts.filter == {"status": "draft"}
    opts = JsonApiOptions.model_validate({"filter": [{"status": "draft"}, {2: "y"}]})
    assert opts.filter == [{"status": "draft"}]
    assert JsonApiOptions.model_validate({"filter": {}}).filter == {}


def test_non_string_items_are_dropped():
    opts = JsonApiOptions.model_validate(
        {"include": ["comments", 3, None], "fields": {"articles": ["title", 1], "bad": 5}}
    )
    assert opts.include == ["comments"]
    assert opts.fields == {"articles": ["title"]}


def test_filter_list_keeps_only_mappings():
    opts = JsonApiOptions.model_validate({"filter": [{"status": "published"}, "junk", {"id": 1}]})
    assert opts.filter == [{"status": "published"}, {"id": 1}]


def test_empty_containers_are_present_but_empty():
    opts = JsonApiOptions.model_validate({"include": [], "fields": {}})
    assert opts.include == []
    assert opts.fields == {}
    assert opts.is_empty


def test_with_page_returns_copy():
    opts = JsonApiOptions()
    paged = opts.with_page(PageParams(number=2))
    assert opts.page is None
    assert paged.page.number == 2


# ---------------------------------------------------------------------------
# Query-string parsing
# ---------------------------------------------------------------------------


def test_from_query_params_full_request():
    opts = JsonApiOptions.from_query_params(
        {
            "include": "comments,author",
            "fields[articles]": "title,createdAt",
            "fields[comments]": "body",
            "sort": "-createdAt",
            "page[number]": "2",
            "page[size]": "5",
            "filter[status]": "published",
        }
    )
    assert opts.include == ["comments", "author"]
    assert opts.fields == {"articles": ["title", "createdAt"], "comments": ["body"]}
    assert opts.sort == ["-createdAt"]
    assert opts.page == PageParams(number=2, size=5)
    assert opts.filter == {"status": "published"}


def test_from_query_params_accepts_pairs():
    opts = JsonApiOptions.from_query_params(
        [("filter[status]", "draft"), ("include", "tags"), ("unrelated", "x")]
    )
    assert opts.filter == {"status": "draft"}
    assert opts.include == ["tags"]


def test_from_query_params_last_value_wins_for_repeated_keys():
    opts = JsonApiOptions.from_query_params({"sort": ["title", "-id"]})
    assert opts.sort == ["-id"]


def test_filter_csv_value_becomes_list():
    opts = JsonApiOptions.from_query_params({"filter[id]": "1,3"})
    assert opts.filter == {"id": ["1", "3"]}


def test_filter_operator_segments_merge():
    opts = JsonApiOptions.from_query_params(
        {"filter[createdAt][gte]": "2024-01-01", "filter[createdAt][lt]": "2024-03-01"}
    )
    assert opts.filter == {"createdAt": {"gte": "2024-01-01", "lt": "2024-03-01"}}


def test_unknown_and_malformed_keys_are_ignored():
    opts = JsonApiOptions.from_query_params(
        {"fields": "title", "page": "3", "filter[a][b][c]": "x", "include[x]": "y", "[bad": "z"}
    )
    assert opts.is_empty


def test_invalid_page_value_raises():
    with pytest.raises(InvalidPageError) as exc_info:
        JsonApiOptions.from_query_params({"page[number]": "two"})
    assert exc_info.value.parameter == "number"


# ---------------------------------------------------------------------------
# PageParams
# ---------------------------------------------------------------------------


def test_page_aliases():
    page = PageParams.model_validate({"page": "3", "pageSize": 20})
    assert page.number == 3
    assert page.size == 20
    assert page.style == "page"


def test_page_rejects_mixed_styles():
    with pytest.raises(InvalidPageError):
        PageParams(number=1, limit=5)


@pytest.mark.parametrize(
    "value", [-1, "-4", True, 1.5, "1e3", "\u00b2", "--4", "\u0661\u0660x"]
)
def test_page_rejects_bad_integers(value):
    with pytest.raises(InvalidPageError):
        PageParams.model_validate({"size": value})


def test_page_number_zero_rejected():
    with pytest.raises(InvalidPageError):
        PageParams(number=0)


def test_resolve_fills_page_defaults():
    assert PageParams(number=3).resolve() == PageParams(number=3, size=10)
    assert PageParams(size=4).resolve() == PageParams(number=1, size=4)


def test_resolve_fills_offset_defaults():
    assert PageParams(offset=20).resolve() == PageParams(offset=20, limit=10)
    assert PageParams(limit=5).resolve() == PageParams(offset=0, limit=5)


def test_resolve_clamps_to_max_page_size():
    assert PageParams(size=500).resolve(max_page_size=50).size == 50
    assert PageParams(limit=500).resolve(max_page_size=50).limit == 50
    assert PageParams(size=500).resolve().size == 500


def test_empty_page():
    assert PageParams().is_empty
    assert PageParams.model_validate({"number": ""}).is_empty
