"""Store adapter for a user's favorite books.

Operations delegated to the database:
* ``get_all`` – ordered listing; raises :class:`NotFound` when the user is gone.
* ``get_by_external_id`` – secondary lookup; a missing book is ``None``, a
  missing user raises :class:`NotFound`.
* ``add`` – set-union insert keyed by the catalog id; idempotent.
* ``remove`` – deletes by internal or catalog id; a missing book is a no-op.

The ``(user_id, google_id)`` unique constraint is what guarantees a single
copy per catalog id. ``add`` reads the current collection first and, when a
concurrent request inserts the same id between the read and the write, falls
back to returning the row that won. Atomicity is therefore per row, not per
collection: two concurrent adds of different books both succeed.

Mutations commit their own unit of work and only then drop the cached
listing, so a reader can never re-cache rows that predate the write.

Every operation translates connectivity failures into :class:`StoreUnavailable`
so callers only ever see the domain taxonomy.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from booker.db.models import FavoriteBook as FavoriteBookModel
from booker.db.models import User
from booker.errors import Conflict, NotFound, StoreUnavailable
from booker.schemas.book import BookRecord, FavoriteBook
from booker.services.favorites_cache import FavoritesCache
from booker.services.normalizer import book_columns, normalize_book

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"


@contextmanager
def translate_store_errors() -> Iterator[None]:
    """Re-raise SQLAlchemy failures as domain errors."""

    try:
        yield
    except IntegrityError as exc:
        raise Conflict("The store rejected the write") from exc
    except (OperationalError, SQLAlchemyTimeoutError, DBAPIError) as exc:
        logger.error("Favorites store unavailable: %s", exc)
        raise StoreUnavailable("The favorites store is unavailable") from exc


class FavoritesStore:
    """Encapsulates the SQLAlchemy operations behind a user's favorites."""

    def __init__(
        self, session: AsyncSession, cache: FavoritesCache | None = None
    ) -> None:
        self._session = session
        self._cache = cache

    async def get_all(self, user_id: str) -> list[FavoriteBook]:
        with translate_store_errors():
            if not await self._user_exists(user_id):
                raise NotFound(USER_NOT_FOUND)

            if self._cache is not None:
                cached = await self._cache.read_favorites(user_id=user_id)
                if cached is not None:
                    return cached

            query = (
                select(FavoriteBookModel)
                .where(FavoriteBookModel.user_id == user_id)
                .order_by(FavoriteBookModel.position)
            )
            result = await self._session.execute(query)
            favorites = [normalize_book(row) for row in result.scalars().all()]

        if self._cache is not None:
            await self._cache.write_favorites(user_id=user_id, favorites=favorites)
        return favorites

    async def get_by_external_id(
        self, user_id: str, external_id: str
    ) -> FavoriteBook | None:
        with translate_store_errors():
            if not await self._user_exists(user_id):
                raise NotFound(USER_NOT_FOUND)
            row = await self._find_by_google_id(user_id, external_id)
        return normalize_book(row) if row is not None else None

    async def add(self, user_id: str, book: BookRecord) -> FavoriteBook:
        """Insert ``book`` unless the user already holds its catalog id.

        Returns the stored entry in both cases, never a duplicate.
        """

        with translate_store_errors():
            user = await self._load_user(user_id)
            if user is None:
                raise NotFound(USER_NOT_FOUND)

            existing = next(
                (row for row in user.favorite_books if row.google_id == book.google_id),
                None,
            )
            if existing is not None:
                return normalize_book(existing)

            row = FavoriteBookModel(
                user_id=user.id,
                position=len(user.favorite_books),
                **book_columns(book),
            )
            try:
                async with self._session.begin_nested():
                    self._session.add(row)
            except IntegrityError:
                winner = await self._find_by_google_id(user_id, book.google_id)
                if winner is None:
                    raise
                logger.debug(
                    "Concurrent add of %s for user %s resolved to existing row",
                    book.google_id,
                    user_id,
                )
                return normalize_book(winner)
            await self._session.commit()

        logger.info("Added favorite %s for user %s", book.google_id, user_id)
        await self._invalidate(user_id)
        return normalize_book(row)

    async def remove(self, user_id: str, book_id: str) -> bool:
        """Remove the entry whose internal id or catalog id equals ``book_id``."""

        with translate_store_errors():
            user = await self._load_user(user_id)
            if user is None:
                raise NotFound(USER_NOT_FOUND)

            entry = next(
                (
                    row
                    for row in user.favorite_books
                    if row.id == book_id or row.google_id == book_id
                ),
                None,
            )
            if entry is None:
                return True

            user.favorite_books.remove(entry)
            await self._session.delete(entry)
            self._normalize_positions(user.favorite_books)
            await self._session.commit()

        logger.info("Removed favorite %s for user %s", entry.google_id, user_id)
        await self._invalidate(user_id)
        return True

    async def _user_exists(self, user_id: str) -> bool:
        result = await self._session.execute(select(User.id).where(User.id == user_id))
        return result.scalar_one_or_none() is not None

    async def _load_user(self, user_id: str) -> User | None:
        query = (
            select(User)
            .options(selectinload(User.favorite_books))
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(query)
        return result.scalars().unique().one_or_none()

    async def _find_by_google_id(
        self, user_id: str, google_id: str
    ) -> FavoriteBookModel | None:
        query = select(FavoriteBookModel).where(
            FavoriteBookModel.user_id == user_id,
            FavoriteBookModel.google_id == google_id,
        )
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    async def _invalidate(self, user_id: str) -> None:
        if self._cache is not None:
            await self._cache.invalidate(user_id=user_id)

    @staticmethod
    def _normalize_positions(rows: list[FavoriteBookModel]) -> None:
        """Keep positions contiguous after a removal."""

        for index, row in enumerate(sorted(rows, key=lambda row: row.position)):
            row.position = index
