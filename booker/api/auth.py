"""Auth action endpoint: ``POST /api/auth/{login|logout|signup}``.

Every method is routed here so that unsupported methods and unknown actions
answer 404 with no body instead of FastAPI's default 405/422 responses.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from booker.api.responses import ALL_METHODS, ERROR_RESPONSES, to_response
from booker.schemas.auth import SessionStatus
from booker.services.dependencies import get_request_router
from booker.services.request_router import RequestRouter
from booker.session import SessionContext, get_session_context

router = APIRouter()


@router.api_route(
    "/auth/{action}",
    methods=ALL_METHODS,
    response_model=None,
    responses=ERROR_RESPONSES,
)
async def auth_action(
    action: str,
    request: Request,
    session: SessionContext = Depends(get_session_context),
    request_router: RequestRouter = Depends(get_request_router),
) -> Response:
    """Log in, log out, or sign up depending on ``action``."""

    body = await request.body()
    outcome = await request_router.handle_auth(request.method, action, body, session)
    return to_response(outcome)


@router.get("/session", response_model=SessionStatus)
async def session_status(
    session: SessionContext = Depends(get_session_context),
) -> Response:
    """Report whether the caller holds an authenticated session."""

    return to_response(RequestRouter.session_status(session))
