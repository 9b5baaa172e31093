"""FastAPI dependency wiring for the Booker services.

Factories here only resolve infrastructure (database session, cache,
settings) and instantiate services, which keeps the service modules free of
web-layer concerns and lets tests swap any piece via
``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from booker.cache import CacheClient, get_cache_client
from booker.db.connection import get_db
from booker.services.auth_service import AuthService
from booker.services.favorites_cache import FavoritesCache
from booker.services.favorites_store import FavoritesStore
from booker.services.request_router import RequestRouter
from booker.settings import AppSettings, get_settings


def get_auth_service(
    session: AsyncSession = Depends(get_db),
    app_settings: AppSettings = Depends(get_settings),
) -> AuthService:
    return AuthService(session, bcrypt_rounds=app_settings.bcrypt_rounds)


def get_favorites_store(
    session: AsyncSession = Depends(get_db),
    cache_client: CacheClient = Depends(get_cache_client),
) -> FavoritesStore:
    return FavoritesStore(session, cache=FavoritesCache(cache_client))


def get_request_router(
    auth: AuthService = Depends(get_auth_service),
    favorites: FavoritesStore = Depends(get_favorites_store),
    app_settings: AppSettings = Depends(get_settings),
) -> RequestRouter:
    """Provide a fully-wired :class:`RequestRouter` for one request."""

    return RequestRouter(
        auth=auth,
        favorites=favorites,
        signup_redirect_url=app_settings.signup_redirect_url,
    )


__all__ = [
    "get_auth_service",
    "get_favorites_store",
    "get_request_router",
]
