"""Client-side search: catalog access, shared state, and the single-flight controller."""

from booker.client.catalog import CatalogClient, map_volume
from booker.client.search import SearchController
from booker.client.state import AppState, BookAction

__all__ = [
    "AppState",
    "BookAction",
    "CatalogClient",
    "SearchController",
    "map_volume",
]
