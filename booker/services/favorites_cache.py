"""Caching helpers dedicated to favorites listings."""

from __future__ import annotations

from pydantic import ValidationError

from booker.cache import CacheClient, favorite_list_key
from booker.schemas.book import FavoriteBook


class FavoritesCache:
    """Typed wrapper around the cached per-user favorites listing.

    The store only needs read, write, and invalidate. Keeping JSON encoding
    here means the store never sees cache payloads.
    """

    def __init__(self, client: CacheClient) -> None:
        self._client = client

    async def read_favorites(self, *, user_id: str) -> list[FavoriteBook] | None:
        """Return the cached listing, or ``None`` on a miss or unreadable entry."""

        cached = await self._client.get_json(favorite_list_key(user_id))
        if not isinstance(cached, list):
            return None
        try:
            return [FavoriteBook.model_validate(item) for item in cached]
        except ValidationError:
            await self.invalidate(user_id=user_id)
            return None

    async def write_favorites(
        self, *, user_id: str, favorites: list[FavoriteBook]
    ) -> None:
        await self._client.set_json(
            favorite_list_key(user_id),
            [book.model_dump(mode="json", by_alias=True) for book in favorites],
        )

    async def invalidate(self, *, user_id: str) -> None:
        """Drop the listing after any mutation of the user's favorites."""

        await self._client.delete(favorite_list_key(user_id))
