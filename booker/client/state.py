"""Shared application state for search results.

State only changes through :meth:`AppState.dispatch`, with an action drawn
from the closed :class:`BookAction` enumeration. Each action maps to one
reducer that returns the replacement value; nothing is merged in place.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from enum import Enum

from booker.schemas.book import BookRecord

logger = logging.getLogger(__name__)


class BookAction(str, Enum):
    SEARCH_BOOKS = "SEARCH_BOOKS"


Subscriber = Callable[["AppState"], None]


class AppState:
    def __init__(self) -> None:
        self._book_search_results: tuple[BookRecord, ...] = ()
        self._subscribers: list[Subscriber] = []

    @property
    def book_search_results(self) -> tuple[BookRecord, ...]:
        return self._book_search_results

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register ``subscriber``; the returned callable unsubscribes it.

        Calling the returned function again is a no-op.
        """

        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def dispatch(self, action: BookAction, payload: Sequence[BookRecord]) -> None:
        action = BookAction(action)
        reducer = _REDUCERS[action]
        reducer(self, payload)
        logger.debug("Dispatched %s", action.value)
        for subscriber in list(self._subscribers):
            subscriber(self)

    def _replace_search_results(self, payload: Sequence[BookRecord]) -> None:
        self._book_search_results = tuple(payload)


_REDUCERS: dict[BookAction, Callable[[AppState, Sequence[BookRecord]], None]] = {
    BookAction.SEARCH_BOOKS: AppState._replace_search_results,
}
