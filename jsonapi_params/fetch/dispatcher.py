"""Terminal fetch dispatch.

A :class:`~jsonapi_params.build.accumulator.BuiltQuery` is executed in
exactly one of three ways:

* collection with page params → :meth:`Dispatcher.fetch_page` → :class:`Page`
* collection                  → :meth:`Dispatcher.fetch_all` → ``list``
* single                      → :meth:`Dispatcher.fetch_one` → entity or ``None``

Every method has an ``a``-prefixed coroutine twin for ``AsyncSession``.
Errors raised by the session propagate unchanged; there is no retry.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from jsonapi_params.build.accumulator import BuiltQuery
from jsonapi_params.build.cardinality import Cardinality
from jsonapi_params.fetch.page import Page, PageMeta

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class Dispatcher:
    """Executes built queries against a SQLAlchemy session.

    Args:
        count_rows: Whether paginated fetches issue a ``COUNT(*)``.
    """

    def __init__(self, count_rows: bool = True) -> None:
        self._count_rows = count_rows

    # ------------------------------------------------------------------
    # Synchronous
    # ------------------------------------------------------------------

    def fetch(self, session: Session, built: BuiltQuery) -> Any:
        """Dispatch ``built`` to the matching fetch method."""
        if built.page is not None:
            logger.debug("%s: fetch_page %s", built.resource_type, built.page)
            return self.fetch_page(session, built)
        if built.cardinality is Cardinality.COLLECTION:
            logger.debug("%s: fetch_all", built.resource_type)
            return self.fetch_all(session, built)
        logger.debug("%s: fetch_one", built.resource_type)
        return self.fetch_one(session, built)

    def fetch_one(self, session: Session, built: BuiltQuery) -> Any:
        return session.scalars(built.statement.limit(1)).first()

    def fetch_all(self, session: Session, built: BuiltQuery) -> list[Any]:
        return list(session.scalars(built.statement).all())

    def fetch_page(self, session: Session, built: BuiltQuery) -> Page:
        items = list(session.scalars(built.paged_statement()).all())
        row_count = session.scalar(built.count_statement) if self._count_rows else None
        return self._page(built, items, row_count)

    # ------------------------------------------------------------------
    # Asynchronous
    # ------------------------------------------------------------------

    async def afetch(self, session: AsyncSession, built: BuiltQuery) -> Any:
        """Coroutine twin of :meth:`fetch`."""
        if built.page is not None:
            logger.debug("%s: afetch_page %s", built.resource_type, built.page)
            return await self.afetch_page(session, built)
        if built.cardinality is Cardinality.COLLECTION:
            logger.debug("%s: afetch_all", built.resource_type)
            return await self.afetch_all(session, built)
        logger.debug("%s: afetch_one", built.resource_type)
        return await self.afetch_one(session, built)

    async def afetch_one(self, session: AsyncSession, built: BuiltQuery) -> Any:
        result = await session.scalars(built.statement.limit(1))
        return result.first()

    async def afetch_all(self, session: AsyncSession, built: BuiltQuery) -> list[Any]:
        result = await session.scalars(built.statement)
        return list(result.all())

    async def afetch_page(self, session: AsyncSession, built: BuiltQuery) -> Page:
        result = await session.scalars(built.paged_statement())
        items = list(result.all())
        row_count = await session.scalar(built.count_statement) if self._count_rows else None
        return self._page(built, items, row_count)

    # ------------------------------------------------------------------

    @staticmethod
    def _page(built: BuiltQuery, items: list[Any], row_count: int | None) -> Page:
        return Page(
            items=items,
            pagination=PageMeta.from_params(built.page, row_count),
            resource_type=built.resource_type,
        )
