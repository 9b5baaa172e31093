"""Pydantic schemas for API payloads and responses."""

from booker.schemas.auth import Credentials, SessionStatus, SessionUser  # noqa: F401
from booker.schemas.book import (  # noqa: F401
    BookDeletePayload,
    BookRecord,
    FavoriteBook,
    FavoriteLookupResponse,
)
from booker.schemas.error import (  # noqa: F401
    ErrorBody,
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
