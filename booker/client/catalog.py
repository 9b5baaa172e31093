"""Google Books volumes client.

Provider records are untrusted: any field inside ``volumeInfo`` may be absent,
and items whose shape cannot be coerced into a :class:`BookRecord` are dropped
with a log line rather than failing the whole search.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from booker.errors import CatalogError
from booker.schemas.book import BookRecord
from booker.settings import AppSettings, get_settings

logger = logging.getLogger(__name__)


def map_volume(item: dict[str, Any]) -> BookRecord:
    """Map one provider item onto the public book shape.

    The nested ``volumeInfo`` fields pass through, ``id`` becomes ``googleId``
    and the thumbnail is lifted out of the optional ``imageLinks`` object.
    """

    info = item.get("volumeInfo") or {}
    image_links = info.get("imageLinks") or {}
    return BookRecord.model_validate(
        {
            **info,
            "googleId": item.get("id") or "",
            "thumbnail": image_links.get("thumbnail"),
        }
    )


def map_volumes(payload: Any) -> list[BookRecord]:
    if not isinstance(payload, dict):
        raise CatalogError("Catalog response was not a JSON object")

    books: list[BookRecord] = []
    for item in payload.get("items") or []:
        if not isinstance(item, dict):
            continue
        try:
            books.append(map_volume(item))
        except ValidationError as exc:
            logger.debug("Skipping malformed catalog item %r: %s", item.get("id"), exc)
    return books


class CatalogClient:
    """Thin async wrapper over the volumes endpoint.

    Pass ``client`` to share a connection pool or to inject a mock transport;
    otherwise one ``httpx.AsyncClient`` is opened per search.
    """

    def __init__(
        self,
        *,
        settings: AppSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client

    def _params(self, query: str) -> dict[str, str | int]:
        return {
            "langRestrict": self._settings.catalog_lang,
            "q": query,
            "maxResults": self._settings.catalog_max_results,
        }

    async def search(self, query: str) -> list[BookRecord]:
        """Return the mapped results for ``query`` in provider order.

        Raises :class:`CatalogError` on transport failures, timeouts, non-200
        answers, and bodies that are not JSON.
        """

        if self._client is not None:
            return await self._fetch(self._client, query)
        async with httpx.AsyncClient(
            timeout=self._settings.catalog_timeout_seconds
        ) as client:
            return await self._fetch(client, query)

    async def _fetch(self, client: httpx.AsyncClient, query: str) -> list[BookRecord]:
        try:
            response = await client.get(
                self._settings.catalog_api_url,
                params=self._params(query),
                timeout=self._settings.catalog_timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise CatalogError("The book search timed out") from exc
        except httpx.HTTPError as exc:
            raise CatalogError(f"The book search failed: {exc}") from exc

        if response.status_code != 200:
            raise CatalogError(
                f"The book search failed with status {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogError("Catalog response was not valid JSON") from exc
        return map_volumes(payload)
