"""Unit tests for target resolution and cardinality inference."""

from __future__ import annotations

import pytest
from sqlalchemy import literal_column, select

from jsonapi_params import Cardinality, ConfigError, build_query
from jsonapi_params.build.cardinality import infer_cardinality, resolve_target
from jsonapi_params.schema.resource import describe_model
from tests.fixtures import Article, Comment


def _infer(target) -> Cardinality:
    resolved = resolve_target(target)
    return infer_cardinality(resolved, describe_model(resolved.model))


def _sql(statement) -> str:
    return str(statement.compile(compile_kwargs={"literal_binds": True}))


def test_mapped_class_is_a_collection():
    assert _infer(Article) is Cardinality.COLLECTION


def test_instance_with_primary_key_is_single():
    resolved = resolve_target(Article(id=1))
    assert resolved.model is Article
    assert resolved.attributes == {"id": 1}
    assert "articles.id = 1" in _sql(resolved.statement)
    assert _infer(Article(id=1)) is Cardinality.SINGLE


def test_instance_without_primary_key_filters_on_set_values():
    resolved = resolve_target(Article(title="Third", status="published"))
    sql = _sql(resolved.statement)
    assert "articles.title = 'Third'" in sql
    assert "articles.status = 'published'" in sql
    assert _infer(Article(title="Third")) is Cardinality.SINGLE


def test_primary_key_wins_over_other_values():
    resolved = resolve_target(Article(id=2, title="ignored"))
    sql = _sql(resolved.statement)
    assert "articles.id = 2" in sql
    assert "title" not in sql.split("WHERE", 1)[1]


def test_empty_instance_is_a_collection():
    assert _infer(Article()) is Cardinality.COLLECTION


def test_instance_is_single_whatever_the_options():
    built = build_query(Article(id=1), {"sort": ["title"], "filter": {"status": "draft"}})
    assert built.cardinality is Cardinality.SINGLE


def test_select_on_identifier_is_single():
    assert _infer(select(Article).where(Article.id == 1)) is Cardinality.SINGLE


def test_select_on_other_columns_is_a_collection():
    assert _infer(select(Article).where(Article.status == "draft")) is Cardinality.COLLECTION
    assert _infer(select(Article)) is Cardinality.COLLECTION


def test_select_on_another_tables_identifier_is_a_collection():
    statement = select(Article).join(Article.comments).where(Comment.id == 1)
    assert _infer(statement) is Cardinality.COLLECTION


def test_select_keeps_callers_criteria():
    built = build_query(
        select(Article).where(Article.author_id == 1), {"filter": {"status": "published"}}
    )
    sql = _sql(built.statement)
    assert "articles.author_id = 1" in sql
    assert "articles.status = 'published'" in sql


@pytest.mark.parametrize("target", ["articles", 42, object()])
def test_unsupported_targets_raise_config_error(target):
    with pytest.raises(ConfigError):
        resolve_target(target)


def test_select_without_entity_raises_config_error():
    with pytest.raises(ConfigError):
        resolve_target(select(literal_column("1")))
