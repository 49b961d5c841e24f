"""Shared pytest fixtures for jsonapi-params unit and integration tests."""
from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from jsonapi_params import FilterOperatorRegistry, JsonApiConfig, JsonApiParams
from tests.fixtures import Base, seed


@pytest.fixture()
def engine() -> Iterator[Engine]:
    """In-memory SQLite engine with the blog schema created and seeded."""
    eng = create_engine("sqlite://")
    Base.metadata.create_all(eng)
    with Session(eng) as session:
        seed(session)
    yield eng
    eng.dispose()


@pytest.fixture()
def session(engine: Engine) -> Iterator[Session]:
    """A fresh session, so nothing is already in the identity map."""
    with Session(engine) as sess:
        yield sess


@pytest.fixture()
def plugin() -> JsonApiParams:
    """Translator with no default pagination."""
    return JsonApiParams(JsonApiConfig())


@pytest.fixture()
def paginated() -> JsonApiParams:
    """Translator with a default page size of two."""
    return JsonApiParams(JsonApiConfig(pagination={"size": 2}))


@pytest.fixture()
def operators(monkeypatch: pytest.MonkeyPatch) -> type[FilterOperatorRegistry]:
    """Operator registry whose registrations are undone after the test."""
    monkeypatch.setattr(
        FilterOperatorRegistry, "_operators", dict(FilterOperatorRegistry._operators)
    )
    return FilterOperatorRegistry
