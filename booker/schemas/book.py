"""Pydantic schemas describing catalog books and saved favorites.

Field names follow the catalog's camelCase wire format through aliases while
Python code keeps snake_case attributes. Dump with ``by_alias=True`` whenever
a payload leaves the service.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookRecord(BaseModel):
    """A catalog-shaped book: everything a favorite holds except its internal id."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    google_id: str = Field(
        ...,
        alias="googleId",
        description="Identifier assigned by the catalog provider; unique per user.",
    )
    title: str | None = None
    authors: list[str] = Field(default_factory=list)
    page_count: int | None = Field(default=None, alias="pageCount")
    categories: list[str] = Field(
        default_factory=list,
        description="Distinct category labels, first occurrence order preserved.",
    )
    thumbnail: str | None = None
    preview_link: str | None = Field(default=None, alias="previewLink")
    description: str | None = None

    @field_validator("google_id")
    @classmethod
    def _require_google_id(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("googleId must not be blank")
        return cleaned

    @field_validator("authors", mode="before")
    @classmethod
    def _coerce_authors(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("categories", mode="before")
    @classmethod
    def _dedupe_categories(cls, value: object) -> object:
        if value is None:
            return []
        if not isinstance(value, list):
            return value
        seen: set[str] = set()
        unique: list[object] = []
        for item in value:
            if item in seen:
                continue
            if isinstance(item, str):
                seen.add(item)
            unique.append(item)
        return unique


class FavoriteBook(BookRecord):
    """A favorite as exposed by the API: the book fields plus its opaque id."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str = Field(..., description="Identifier assigned by the store on insertion")


class BookDeletePayload(BaseModel):
    """Body of a favorites ``DELETE``: the internal id or the catalog id."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)


class FavoriteLookupResponse(BaseModel):
    """Answer to "is this catalog book one of my favorites?"."""

    favorite: FavoriteBook | None = None
