"""Tests for structured error bodies and request correlation ids."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest
from starlette.datastructures import Headers
from starlette.requests import Request

from booker.schemas.error import (
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from booker.utils import error_responses
from booker.utils.error_responses import build_error_response, error_json_response
from booker.utils.request_context import bind_request_id, current_request_id


def _request(path: str = "/api/book", headers: dict[str, str] | None = None) -> Request:
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": path,
            "headers": Headers(headers or {}).raw,
        }
    )


def _freeze_now(monkeypatch: pytest.MonkeyPatch, fixed: datetime) -> None:
    monkeypatch.setattr(error_responses, "_now", lambda: fixed)


def test_errors_select_the_validation_shape(monkeypatch: pytest.MonkeyPatch) -> None:
    fixed = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)
    _freeze_now(monkeypatch, fixed)
    errors = [ValidationErrorDetail(field="path.google_id", message="Field required")]

    plain = build_error_response(
        error_type=ErrorType.DATABASE_ERROR,
        message="Database connection failed",
        detail="Unable to connect",
        status_code=503,
        path="/api/book",
        request_id="req-1",
    )
    detailed = build_error_response(
        error_type=ErrorType.VALIDATION_ERROR,
        message="Request validation failed",
        detail="1 validation error(s)",
        status_code=422,
        path="/api/favorites/g1",
        errors=errors,
        request_id="req-2",
    )

    assert type(plain) is ErrorResponse
    assert isinstance(detailed, ValidationErrorResponse)
    assert detailed.errors == errors
    assert detailed.timestamp == plain.timestamp == fixed


def test_json_response_carries_retry_after_and_bound_request_id() -> None:
    request = _request(headers={"X-Request-ID": "req-123"})
    bind_request_id(request)

    response = error_json_response(
        request,
        error_type=ErrorType.TIMEOUT_ERROR,
        message="Database query timeout",
        detail="Too slow",
        status_code=504,
        retry_after=3,
    )

    body = json.loads(response.body.decode())
    assert response.status_code == 504
    assert response.headers["Retry-After"] == "3"
    assert body["request_id"] == "req-123"
    assert body["path"] == "/api/book"
    assert body["error_type"] == "timeout_error"


def test_json_response_without_retry_after_has_no_header() -> None:
    response = error_json_response(
        _request(),
        error_type=ErrorType.DATABASE_ERROR,
        message="Data integrity constraint violation",
        detail="Duplicate",
        status_code=409,
    )

    assert "retry-after" not in response.headers
    assert json.loads(response.body.decode())["retry_after"] is None


@pytest.mark.parametrize(
    "inbound",
    ["", "has spaces", "x" * 129, "semi;colon"],
)
def test_malformed_inbound_request_ids_are_replaced(inbound: str) -> None:
    request = _request(headers={"X-Request-ID": inbound} if inbound else None)

    request_id = bind_request_id(request)

    assert request_id != inbound
    assert len(request_id) == 32
    assert current_request_id(request) == request_id
