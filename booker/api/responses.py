"""Translate :class:`RouteOutcome` values into Starlette responses."""

from __future__ import annotations

from typing import Any

from fastapi import Response
from fastapi.responses import JSONResponse, RedirectResponse

from booker.schemas.error import ErrorBody
from booker.services.request_router import RouteOutcome

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def to_response(outcome: RouteOutcome) -> Response:
    if outcome.redirect_to is not None:
        return RedirectResponse(outcome.redirect_to, status_code=outcome.status_code)
    if outcome.body is None:
        return Response(status_code=outcome.status_code)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorBody, "description": "Invalid input or rejected credentials"},
    401: {"model": ErrorBody, "description": "No session, or the session user is gone"},
    503: {"model": ErrorBody, "description": "The favorites store is unavailable"},
}
