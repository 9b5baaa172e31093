"""Session-gated dispatch for the auth and favorites resources.

The router is transport-agnostic: it receives the HTTP method, the raw body,
and a :class:`~booker.session.SessionContext`, and returns a
:class:`RouteOutcome` that the FastAPI layer turns into a response.

Per request the session is either unauthenticated (no ``user``) or
authenticated. It only becomes authenticated through a successful login or
signup, and ``save()`` is awaited exactly once before the success outcome is
returned. It drops back to unauthenticated on logout, or when the store
reports that the session's own user no longer exists; in that case the
session is destroyed before the 401 outcome is built.

Favorites operations never reach the store for an unauthenticated caller.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import status
from pydantic import BaseModel, ValidationError

from booker.errors import (
    BookerError,
    InvalidInput,
    NotFound,
    NotSupported,
    StoreUnavailable,
)
from booker.schemas.auth import Credentials, SessionStatus, SessionUser
from booker.schemas.book import BookDeletePayload, BookRecord, FavoriteLookupResponse
from booker.services.auth_service import AuthService
from booker.services.favorites_store import FavoritesStore
from booker.session import SessionContext

logger = logging.getLogger(__name__)

NOT_AUTHORIZED = "Not Authorized, Login First"


class AuthAction(str, Enum):
    LOGIN = "login"
    LOGOUT = "logout"
    SIGNUP = "signup"


class FavoritesOperation(str, Enum):
    """Favorites operations keyed by the HTTP method that selects them."""

    ADD = "POST"
    REMOVE = "DELETE"


@dataclass(frozen=True)
class RouteOutcome:
    status_code: int
    body: Any = None
    redirect_to: str | None = None


def _parse_json(raw: bytes | str | None) -> Any:
    if raw is None or (isinstance(raw, (bytes, str)) and not raw.strip()):
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidInput(f"Request body is not valid JSON: {exc}") from exc


def _validate(model: type[BaseModel], payload: Any) -> Any:
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "body"
        raise InvalidInput(f"{field}: {first['msg']}") from exc


def _error(status_code: int, message: str) -> RouteOutcome:
    return RouteOutcome(status_code=status_code, body={"error": message})


def _not_supported(exc: NotSupported) -> RouteOutcome:
    logger.debug("Rejected request: %s", exc.message)
    return RouteOutcome(status_code=status.HTTP_404_NOT_FOUND)


def _resolve_auth_action(method: str, action: str) -> AuthAction:
    if method.upper() != "POST":
        raise NotSupported(f"{method} is not supported for auth actions")
    try:
        return AuthAction(action)
    except ValueError as exc:
        raise NotSupported(f"Unknown auth action {action!r}") from exc


def _resolve_favorites_operation(method: str) -> FavoritesOperation:
    try:
        return FavoritesOperation(method.upper())
    except ValueError as exc:
        raise NotSupported(f"{method} is not supported for favorites") from exc


def _unauthorized() -> RouteOutcome:
    return _error(status.HTTP_401_UNAUTHORIZED, NOT_AUTHORIZED)


def _domain_error(exc: BookerError) -> RouteOutcome:
    if isinstance(exc, StoreUnavailable):
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, exc.message)
    return _error(status.HTTP_400_BAD_REQUEST, exc.message)


AuthHandler = Callable[["RequestRouter", Any, SessionContext], Awaitable[RouteOutcome]]
FavoritesHandler = Callable[["RequestRouter", SessionUser, Any], Awaitable[RouteOutcome]]


class RequestRouter:
    """Maps ``(method, action)`` pairs onto the auth service and favorites store."""

    def __init__(
        self,
        *,
        auth: AuthService,
        favorites: FavoritesStore,
        signup_redirect_url: str = "/search",
    ) -> None:
        self._auth = auth
        self._favorites = favorites
        self._signup_redirect_url = signup_redirect_url

    # -- auth resource ---------------------------------------------------------

    async def handle_auth(
        self,
        method: str,
        action: str,
        body: bytes | str | None,
        session: SessionContext,
    ) -> RouteOutcome:
        try:
            auth_action = _resolve_auth_action(method, action)
        except NotSupported as exc:
            return _not_supported(exc)

        handler = _AUTH_HANDLERS[auth_action]
        try:
            return await handler(self, body, session)
        except BookerError as exc:
            logger.info("Auth action %s failed: %s", auth_action.value, exc.message)
            return _domain_error(exc)

    async def _login(self, body: Any, session: SessionContext) -> RouteOutcome:
        credentials = _validate(Credentials, _parse_json(body) or {})
        user = await self._auth.login(credentials.username, credentials.password)
        session.user = user
        await session.save()
        return RouteOutcome(status_code=status.HTTP_200_OK)

    async def _logout(self, body: Any, session: SessionContext) -> RouteOutcome:
        await session.destroy()
        return RouteOutcome(status_code=status.HTTP_200_OK)

    async def _signup(self, body: Any, session: SessionContext) -> RouteOutcome:
        credentials = _validate(Credentials, _parse_json(body) or {})
        user = await self._auth.signup(credentials.username, credentials.password)
        session.user = user
        await session.save()
        return RouteOutcome(
            status_code=status.HTTP_302_FOUND,
            redirect_to=self._signup_redirect_url,
        )

    # -- favorites resource ----------------------------------------------------

    async def handle_favorites(
        self,
        method: str,
        body: bytes | str | None,
        session: SessionContext,
    ) -> RouteOutcome:
        user = session.user
        if user is None:
            return _unauthorized()
        try:
            operation = _resolve_favorites_operation(method)
        except NotSupported as exc:
            return _not_supported(exc)

        handler = _FAVORITES_HANDLERS[operation]
        return await self._gated(session, handler(self, user, body))

    async def _add(self, user: SessionUser, body: Any) -> RouteOutcome:
        payload = _parse_json(body)
        book = _validate(BookRecord, payload)
        await self._favorites.add(user.id, book)
        return RouteOutcome(status_code=status.HTTP_200_OK, body=payload)

    async def _remove(self, user: SessionUser, body: Any) -> RouteOutcome:
        payload = _parse_json(body)
        target = _validate(BookDeletePayload, payload)
        await self._favorites.remove(user.id, target.id)
        return RouteOutcome(status_code=status.HTTP_200_OK, body=payload)

    async def list_favorites(self, session: SessionContext) -> RouteOutcome:
        user = session.user
        if user is None:
            return _unauthorized()
        return await self._gated(session, self._list(user))

    async def _list(self, user: SessionUser) -> RouteOutcome:
        books = await self._favorites.get_all(user.id)
        return RouteOutcome(
            status_code=status.HTTP_200_OK,
            body=[book.model_dump(mode="json", by_alias=True) for book in books],
        )

    async def lookup_favorite(
        self, session: SessionContext, google_id: str
    ) -> RouteOutcome:
        user = session.user
        if user is None:
            return _unauthorized()
        return await self._gated(session, self._lookup(user, google_id))

    async def _lookup(self, user: SessionUser, google_id: str) -> RouteOutcome:
        favorite = await self._favorites.get_by_external_id(user.id, google_id)
        response = FavoriteLookupResponse(favorite=favorite)
        return RouteOutcome(
            status_code=status.HTTP_200_OK,
            body=response.model_dump(mode="json", by_alias=True),
        )

    async def _gated(
        self, session: SessionContext, operation: Awaitable[RouteOutcome]
    ) -> RouteOutcome:
        """Run a store-backed operation, invalidating stale sessions."""

        try:
            return await operation
        except NotFound:
            logger.warning(
                "Session user %s no longer exists; destroying session",
                session.user.id if session.user else "<unknown>",
            )
            await session.destroy()
            return _unauthorized()
        except BookerError as exc:
            return _domain_error(exc)

    # -- session status ------------------------------------------------------

    @staticmethod
    def session_status(session: SessionContext) -> RouteOutcome:
        payload = SessionStatus(is_logged_in=session.is_authenticated, user=session.user)
        return RouteOutcome(
            status_code=status.HTTP_200_OK,
            body=payload.model_dump(mode="json", by_alias=True),
        )


_AUTH_HANDLERS: dict[AuthAction, AuthHandler] = {
    AuthAction.LOGIN: RequestRouter._login,
    AuthAction.LOGOUT: RequestRouter._logout,
    AuthAction.SIGNUP: RequestRouter._signup,
}

_FAVORITES_HANDLERS: dict[FavoritesOperation, FavoritesHandler] = {
    FavoritesOperation.ADD: RequestRouter._add,
    FavoritesOperation.REMOVE: RequestRouter._remove,
}
