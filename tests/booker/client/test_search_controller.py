"""Single-flight behaviour of the search controller."""

from __future__ import annotations

import asyncio

import pytest

from booker.client.search import SearchController
from booker.client.state import AppState, BookAction
from booker.errors import CatalogError
from booker.schemas.book import BookRecord


def _records(*google_ids: str) -> list[BookRecord]:
    return [BookRecord(google_id=google_id, title=google_id) for google_id in google_ids]


class GatedCatalog:
    """Catalog double whose searches block until the test releases them."""

    def __init__(self, results: dict[str, list[BookRecord]] | None = None) -> None:
        self.results = results or {}
        self.queries: list[str] = []
        self.release = asyncio.Event()
        self.release.set()
        self.fail_with: CatalogError | None = None

    async def search(self, query: str) -> list[BookRecord]:
        self.queries.append(query)
        await self.release.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return self.results.get(query, [])


@pytest.mark.asyncio
async def test_submit_storm_issues_a_single_request():
    catalog = GatedCatalog({"dune": _records("d1", "d2")})
    catalog.release.clear()
    state = AppState()
    controller = SearchController(catalog, state)

    first = asyncio.create_task(controller.submit("dune"))
    await asyncio.sleep(0)
    assert controller.in_flight

    storm = await asyncio.gather(*(controller.submit("dune") for _ in range(10)))
    catalog.release.set()

    assert await first is True
    assert storm == [False] * 10
    assert catalog.queries == ["dune"]
    assert [book.google_id for book in state.book_search_results] == ["d1", "d2"]
    assert not controller.in_flight


@pytest.mark.asyncio
async def test_new_query_is_rejected_while_a_request_is_in_flight():
    catalog = GatedCatalog({"dune": _records("d1"), "emma": _records("e1")})
    catalog.release.clear()
    controller = SearchController(catalog, AppState())

    first = asyncio.create_task(controller.submit("dune"))
    await asyncio.sleep(0)

    assert await controller.submit("emma") is False
    catalog.release.set()
    await first

    assert catalog.queries == ["dune"]
    assert controller.last_submitted_query == "dune"


@pytest.mark.asyncio
async def test_results_are_replaced_not_merged():
    catalog = GatedCatalog({"dune": _records("d1", "d2"), "emma": _records("e1")})
    state = AppState()
    controller = SearchController(catalog, state)

    await controller.submit("dune")
    await controller.submit("emma")

    assert [book.google_id for book in state.book_search_results] == ["e1"]


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   ", "\n"])
async def test_blank_queries_are_ignored(query):
    catalog = GatedCatalog()
    controller = SearchController(catalog, AppState())

    assert await controller.submit(query) is False
    assert catalog.queries == []
    assert controller.last_submitted_query is None


@pytest.mark.asyncio
async def test_repeating_the_last_submitted_query_is_a_no_op():
    catalog = GatedCatalog({"dune": _records("d1")})
    controller = SearchController(catalog, AppState())

    await controller.submit("dune")
    assert await controller.submit(" dune ") is False

    assert catalog.queries == ["dune"]


@pytest.mark.asyncio
async def test_failure_releases_the_guard_without_publishing():
    catalog = GatedCatalog({"emma": _records("e1")})
    state = AppState()
    state.dispatch(BookAction.SEARCH_BOOKS, _records("old"))
    published: list[tuple[BookRecord, ...]] = []
    state.subscribe(lambda current: published.append(current.book_search_results))
    controller = SearchController(catalog, state)

    catalog.fail_with = CatalogError("The book search failed with status 500")
    assert await controller.submit("dune") is False

    assert not controller.in_flight
    assert controller.last_error == "The book search failed with status 500"
    assert published == []
    assert [book.google_id for book in state.book_search_results] == ["old"]

    catalog.fail_with = None
    assert await controller.submit("emma") is True
    assert controller.last_error is None
    assert [book.google_id for book in state.book_search_results] == ["e1"]
    assert len(published) == 1


@pytest.mark.asyncio
async def test_submit_uses_the_current_query_when_called_without_argument():
    catalog = GatedCatalog({"dune": _records("d1")})
    controller = SearchController(catalog, AppState())
    controller.query = "  dune  "

    assert await controller.submit() is True
    assert catalog.queries == ["dune"]

    controller.clear_query()
    assert controller.query == ""
    assert controller.last_submitted_query == "dune"


def test_unsubscribe_stops_notifications():
    state = AppState()
    calls: list[int] = []
    unsubscribe = state.subscribe(lambda current: calls.append(len(current.book_search_results)))

    state.dispatch(BookAction.SEARCH_BOOKS, _records("a", "b"))
    unsubscribe()
    state.dispatch(BookAction.SEARCH_BOOKS, _records("c"))

    assert calls == [2]
    assert [book.google_id for book in state.book_search_results] == ["c"]


def test_unsubscribing_twice_is_harmless():
    state = AppState()
    unsubscribe = state.subscribe(lambda current: None)

    unsubscribe()
    unsubscribe()

    state.dispatch(BookAction.SEARCH_BOOKS, _records("a"))
    assert [book.google_id for book in state.book_search_results] == ["a"]
