"""Single-flight controller for catalog searches.

At most one catalog request is outstanding at a time. ``submit`` is a no-op
while a request is in flight, when the trimmed query is empty, or when it
equals the last submitted query; typing a new query during a request does
not queue it. The in-flight flag is released when the request completes,
whether it succeeded or failed, and only a success publishes results.
"""

from __future__ import annotations

import logging

from booker.client.catalog import CatalogClient
from booker.client.state import AppState, BookAction
from booker.errors import CatalogError

logger = logging.getLogger(__name__)


class SearchController:
    def __init__(self, catalog: CatalogClient, state: AppState) -> None:
        self._catalog = catalog
        self._state = state
        self.query = ""
        self.in_flight = False
        self.last_submitted_query: str | None = None
        self.last_error: str | None = None

    def clear_query(self) -> None:
        """Empty the input without forgetting the last submitted query."""

        self.query = ""

    async def submit(self, query: str | None = None) -> bool:
        """Run one search for ``query`` (or the current ``query``).

        Returns ``True`` only when a request was issued and its results were
        published.
        """

        if query is not None:
            self.query = query
        cleaned = self.query.strip()
        if self.in_flight or not cleaned or cleaned == self.last_submitted_query:
            return False

        self.last_submitted_query = cleaned
        self.in_flight = True
        self.last_error = None
        try:
            results = await self._catalog.search(cleaned)
        except CatalogError as exc:
            logger.warning("Search for %r failed: %s", cleaned, exc.message)
            self.last_error = exc.message
            return False
        finally:
            self.in_flight = False

        self._state.dispatch(BookAction.SEARCH_BOOKS, results)
        return True
