"""Correlation id for the request being served.

The id travels in ``X-Request-ID``: a caller-supplied value is kept when it
is a plain token, otherwise a fresh one is minted. It is stored both on
``request.state`` and in a context variable, so exception handlers that run
outside the middleware stack can still find it.
"""

from __future__ import annotations

import re
import uuid
from contextvars import ContextVar

from starlette.requests import Request

__all__ = [
    "REQUEST_ID_HEADER",
    "bind_request_id",
    "current_request_id",
]

REQUEST_ID_HEADER = "X-Request-ID"

_ACCEPTABLE_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")
_request_id: ContextVar[str] = ContextVar("request_id", default="")


def bind_request_id(request: Request) -> str:
    inbound = request.headers.get(REQUEST_ID_HEADER, "")
    request_id = inbound if _ACCEPTABLE_ID.match(inbound) else uuid.uuid4().hex
    request.state.request_id = request_id
    _request_id.set(request_id)
    return request_id


def current_request_id(request: Request | None = None) -> str:
    """Return the id bound to ``request``, else the one for the running task."""

    if request is not None:
        bound = getattr(request.state, "request_id", None)
        if bound:
            return bound
    return _request_id.get()
