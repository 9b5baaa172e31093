"""Explicit session context handed to the request router.

The signed-cookie transport (Starlette's ``SessionMiddleware``) exposes the
session as a plain mutable mapping on the request. :class:`SessionContext`
wraps that mapping so the router works against an object with a typed
``user`` attribute and two explicit effects:

* ``save()`` – copies the pending ``user`` into the transport; nothing the
  router assigns is persisted until this is awaited.
* ``destroy()`` – clears the transport so the cookie is invalidated on the
  way out.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any

from fastapi import Request
from pydantic import ValidationError

from booker.schemas.auth import SessionUser

logger = logging.getLogger(__name__)

_USER_KEY = "user"


class SessionContext:
    """Per-request view of the session bag."""

    def __init__(self, store: MutableMapping[str, Any] | None = None) -> None:
        self._store: MutableMapping[str, Any] = store if store is not None else {}
        self._user = self._read_user(self._store.get(_USER_KEY))

    @staticmethod
    def _read_user(raw: Any) -> SessionUser | None:
        if raw is None:
            return None
        try:
            return SessionUser.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding malformed session user payload")
            return None

    @property
    def user(self) -> SessionUser | None:
        return self._user

    @user.setter
    def user(self, value: SessionUser | None) -> None:
        self._user = value

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    async def save(self) -> None:
        """Persist the pending state into the transport."""

        if self._user is None:
            self._store.pop(_USER_KEY, None)
        else:
            self._store[_USER_KEY] = self._user.model_dump()

    async def destroy(self) -> None:
        """Invalidate the session entirely."""

        self._store.clear()
        self._user = None


def get_session_context(request: Request) -> SessionContext:
    """FastAPI dependency building a :class:`SessionContext` for ``request``."""

    return SessionContext(request.session)
