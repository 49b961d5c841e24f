"""Plugin object and declarative-base installation.

``JsonApiParams`` bundles a :class:`~jsonapi_params.config.JsonApiConfig`
with a :class:`~jsonapi_params.build.builder.QueryBuilder` and a
:class:`~jsonapi_params.fetch.dispatcher.Dispatcher`.  Installing it on a
declarative base adds ``fetch_json_api`` / ``afetch_json_api`` to every
mapped class, callable on the class (collection) or on an instance
(single resource looked up by the instance's values)::

    from sqlalchemy.orm import DeclarativeBase
    from jsonapi_params import JsonApiConfig, JsonApiParams

    class Base(DeclarativeBase):
        pass

    JsonApiParams(JsonApiConfig(pagination={"size": 20})).install(Base)

    page = Article.fetch_json_api(session, {"sort": ["-created_at"]})
    article = Article(id=1).fetch_json_api(session, {"include": ["comments"]})
    articles = await Article.afetch_json_api(async_session, {"page": {"number": 2}})
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from jsonapi_params.build.accumulator import BuiltQuery
from jsonapi_params.build.builder import QueryBuilder
from jsonapi_params.build.cardinality import Cardinality
from jsonapi_params.config import JsonApiConfig
from jsonapi_params.errors import ConfigError
from jsonapi_params.fetch.dispatcher import Dispatcher
from jsonapi_params.schema.options import JsonApiOptions

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

OptionsArg = JsonApiOptions | Mapping[str, Any] | None


class JsonApiParams:
    """The translator, bound to one configuration.

    Args:
        config: Configuration applied to every call; defaults to
            ``JsonApiConfig()`` (no default pagination, identity names).
    """

    def __init__(self, config: JsonApiConfig | None = None) -> None:
        self.config = config or JsonApiConfig()
        self._builder = QueryBuilder(self.config)
        self._dispatcher = Dispatcher(count_rows=self.config.count_rows)

    def build(
        self,
        target: Any,
        options: OptionsArg = None,
        resource_type: str | None = None,
        *,
        cardinality: Cardinality | str | None = None,
    ) -> BuiltQuery:
        """Build without executing; see :meth:`QueryBuilder.build`."""
        return self._builder.build(target, options, resource_type, cardinality)

    def fetch(
        self,
        session: Session,
        target: Any,
        options: OptionsArg = None,
        resource_type: str | None = None,
        *,
        cardinality: Cardinality | str | None = None,
    ) -> Any:
        """Build and execute with a synchronous ``Session``.

        Returns:
            An entity or ``None`` (single), a list of entities (collection)
            or a :class:`~jsonapi_params.fetch.page.Page` (paginated
            collection).
        """
        built = self.build(target, options, resource_type, cardinality=cardinality)
        return self._dispatcher.fetch(session, built)

    async def afetch(
        self,
        session: AsyncSession,
        target: Any,
        options: OptionsArg = None,
        resource_type: str | None = None,
        *,
        cardinality: Cardinality | str | None = None,
    ) -> Any:
        """Coroutine twin of :meth:`fetch` for ``AsyncSession``."""
        built = self.build(target, options, resource_type, cardinality=cardinality)
        return await self._dispatcher.afetch(session, built)

    def install(self, base: type) -> None:
        """Attach ``fetch_json_api`` and ``afetch_json_api`` to ``base``.

        Raises:
            ConfigError: If ``base`` is not a class, or already carries a
                different installation.
        """
        if not isinstance(base, type):
            raise ConfigError(f"Can only install on a class, got {base!r}.")
        existing = base.__dict__.get("__jsonapi_params__")
        if existing is not None and existing is not self:
            raise ConfigError(f"{base.__name__} already has a JsonApiParams installed.")
        base.__jsonapi_params__ = self
        base.fetch_json_api = _FetchMethod(self, asynchronous=False)
        base.afetch_json_api = _FetchMethod(self, asynchronous=True)
        logger.debug("Installed JsonApiParams on %s", base.__name__)


class _FetchMethod:
    """Descriptor binding the plugin's fetch to a mapped class or instance."""

    def __init__(self, plugin: JsonApiParams, asynchronous: bool) -> None:
        self._plugin = plugin
        self._asynchronous = asynchronous

    def __get__(self, instance: Any, owner: type) -> Any:
        target = owner if instance is None else instance
        fetch = self._plugin.afetch if self._asynchronous else self._plugin.fetch

        def fetch_json_api(
            session: Any,
            options: OptionsArg = None,
            resource_type: str | None = None,
            *,
            cardinality: Cardinality | str | None = None,
        ) -> Any:
            return fetch(session, target, options, resource_type, cardinality=cardinality)

        fetch_json_api.__name__ = "afetch_json_api" if self._asynchronous else "fetch_json_api"
        return fetch_json_api
