"""SQLAlchemy ORM models for users and their favorite books.

A user owns an ordered collection of favorite books. The collection is keyed
by the external catalog identifier (``google_id``); the database enforces
that no user holds two rows with the same identifier, which is what makes
adding a favorite a set-union rather than an append.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def utcnow():
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Return an opaque identifier for newly inserted rows."""
    return uuid.uuid4().hex


class User(Base):
    """A registered account. Only the bcrypt hash of the password is stored."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(
        String(150), unique=True, index=True, nullable=False
    )
    password: Mapped[str] = mapped_column(
        String(60),
        nullable=False,
        doc="bcrypt hash; the plaintext password never reaches the database.",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    favorite_books: Mapped[list[FavoriteBook]] = relationship(
        "FavoriteBook",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="FavoriteBook.position",
    )


class FavoriteBook(Base):
    """A catalog book saved into a user's favorites."""

    __tablename__ = "favorite_books"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "google_id",
            name="uq_favorite_books_user_google_id",
        ),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    google_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        doc="Identifier assigned by the external catalog provider.",
    )
    title: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    authors: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list, server_default="[]"
    )
    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    categories: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list, server_default="[]"
    )
    thumbnail: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    preview_link: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        doc=(
            "Zero-based insertion order. The store keeps the sequence dense"
            " so listings never show gaps after a removal."
        ),
    )
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    user: Mapped[User] = relationship("User", back_populates="favorite_books")


__all__ = ["Base", "FavoriteBook", "User", "new_id", "utcnow"]
