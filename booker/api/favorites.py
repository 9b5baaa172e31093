"""Favorites endpoints.

``/api/book`` mutates the caller's favorites (``POST`` adds, ``DELETE``
removes); ``/api/favorites`` reads them. The caller is always identified by
the session, never by anything in the request payload.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from booker.api.responses import ALL_METHODS, ERROR_RESPONSES, to_response
from booker.schemas.book import FavoriteBook, FavoriteLookupResponse
from booker.services.dependencies import get_request_router
from booker.services.request_router import RequestRouter
from booker.session import SessionContext, get_session_context

router = APIRouter()


@router.api_route(
    "/book", methods=ALL_METHODS, response_model=None, responses=ERROR_RESPONSES
)
async def book(
    request: Request,
    session: SessionContext = Depends(get_session_context),
    request_router: RequestRouter = Depends(get_request_router),
) -> Response:
    """Add or remove one favorite. The body is the JSON-encoded book or ``{id}``."""

    body = await request.body()
    outcome = await request_router.handle_favorites(request.method, body, session)
    return to_response(outcome)


@router.get(
    "/favorites", response_model=list[FavoriteBook], responses=ERROR_RESPONSES
)
async def list_favorites(
    session: SessionContext = Depends(get_session_context),
    request_router: RequestRouter = Depends(get_request_router),
) -> Response:
    return to_response(await request_router.list_favorites(session))


@router.get(
    "/favorites/{google_id}",
    response_model=FavoriteLookupResponse,
    responses=ERROR_RESPONSES,
)
async def lookup_favorite(
    google_id: str,
    session: SessionContext = Depends(get_session_context),
    request_router: RequestRouter = Depends(get_request_router),
) -> Response:
    """Return the saved entry for ``google_id``, or ``{"favorite": null}``."""

    return to_response(await request_router.lookup_favorite(session, google_id))
