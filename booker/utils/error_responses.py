"""Structured error bodies for the application-wide exception handlers.

A handler only describes the failure; :func:`error_json_response` stamps it
with the request id, the path and the time, and mirrors ``retry_after`` into
a ``Retry-After`` header. Supplying ``errors`` selects the validation shape.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from fastapi.responses import JSONResponse
from starlette.requests import Request

from booker.schemas.error import (
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from booker.utils.request_context import current_request_id

__all__ = ["build_error_response", "error_json_response"]


def _now() -> datetime:
    return datetime.now(UTC)


def build_error_response(
    *,
    error_type: ErrorType,
    message: str,
    detail: str,
    status_code: int,
    path: str,
    retry_after: int | None = None,
    errors: Sequence[ValidationErrorDetail] | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    fields = {
        "error_type": error_type,
        "message": message,
        "detail": detail,
        "status_code": status_code,
        "timestamp": _now(),
        "request_id": request_id or current_request_id(),
        "path": path,
        "retry_after": retry_after,
    }
    if errors is None:
        return ErrorResponse(**fields)
    return ValidationErrorResponse(**fields, errors=list(errors))


def error_json_response(
    request: Request,
    *,
    error_type: ErrorType,
    message: str,
    detail: str,
    status_code: int,
    retry_after: int | None = None,
    errors: Sequence[ValidationErrorDetail] | None = None,
) -> JSONResponse:
    body = build_error_response(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        path=request.url.path,
        retry_after=retry_after,
        errors=errors,
        request_id=current_request_id(request),
    )
    headers = {"Retry-After": str(retry_after)} if retry_after else None
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )
