"""Conversions between ORM rows and the public entity shapes.

Every read and write path in the store adapter and the auth service funnels
through these helpers, so the public shape (opaque string ``id`` plus fields)
is defined in exactly one place.
"""

from __future__ import annotations

from typing import Any

from booker.db.models import FavoriteBook as FavoriteBookModel
from booker.db.models import User
from booker.schemas.auth import SessionUser
from booker.schemas.book import BookRecord, FavoriteBook


def normalize_user(user: User) -> SessionUser:
    """Project a stored user onto the ``{id, username}`` session shape."""

    return SessionUser(id=str(user.id), username=user.username)


def normalize_book(row: FavoriteBookModel) -> FavoriteBook:
    """Convert a stored favorite into the public entity shape."""

    return FavoriteBook(
        id=str(row.id),
        google_id=row.google_id,
        title=row.title,
        authors=list(row.authors or []),
        page_count=row.page_count,
        categories=list(row.categories or []),
        thumbnail=row.thumbnail,
        preview_link=row.preview_link,
        description=row.description,
    )


def book_columns(record: BookRecord) -> dict[str, Any]:
    """Return ORM column values for inserting ``record`` as a favorite."""

    return {
        "google_id": record.google_id,
        "title": record.title,
        "authors": list(record.authors),
        "page_count": record.page_count,
        "categories": list(record.categories),
        "thumbnail": record.thumbnail,
        "preview_link": record.preview_link,
        "description": record.description,
    }
