"""Credential verification and account creation.

Passwords are only ever handled as bcrypt hashes once they reach the store,
and ``bcrypt.checkpw`` performs the constant-time comparison. The service has
no side effects beyond the user insert, which ``signup`` commits before it
returns so a session cookie never names an uncommitted account. Populating
the session is the request router's job.
"""

from __future__ import annotations

import asyncio
import logging

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booker.db.models import User
from booker.errors import Conflict, InvalidInput, NotFound, Unauthorized
from booker.schemas.auth import SessionUser
from booker.services.favorites_store import translate_store_errors
from booker.services.normalizer import normalize_user
from booker.settings import get_settings

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS = "Must include username and password"
# bcrypt ignores everything past the 72nd byte of the secret.
_BCRYPT_MAX_BYTES = 72


def hash_password(password: str, *, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or get_settings().bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def _require_credentials(
    username: str | None, password: str | None
) -> tuple[str, str]:
    cleaned = (username or "").strip()
    if not cleaned or not password:
        raise InvalidInput(MISSING_CREDENTIALS)
    if len(password.encode("utf-8")) > _BCRYPT_MAX_BYTES:
        raise InvalidInput("Password must be at most 72 bytes")
    return cleaned, password


class AuthService:
    """Login and signup against the users table."""

    def __init__(self, session: AsyncSession, *, bcrypt_rounds: int | None = None) -> None:
        self._session = session
        self._bcrypt_rounds = bcrypt_rounds

    async def login(self, username: str | None, password: str | None) -> SessionUser:
        username, password = _require_credentials(username, password)

        with translate_store_errors():
            result = await self._session.execute(
                select(User).where(User.username == username)
            )
            user = result.scalar_one_or_none()

        if user is None:
            raise NotFound("User not found")

        # bcrypt is CPU bound; keep the event loop free while it runs.
        is_password_correct = await asyncio.to_thread(
            verify_password, password, user.password
        )
        if not is_password_correct:
            logger.info("Rejected login for user %s", user.id)
            raise Unauthorized("Password is incorrect")

        return normalize_user(user)

    async def signup(self, username: str | None, password: str | None) -> SessionUser:
        username, password = _require_credentials(username, password)

        password_hash = await asyncio.to_thread(
            hash_password, password, rounds=self._bcrypt_rounds
        )
        user = User(username=username, password=password_hash)

        with translate_store_errors():
            try:
                async with self._session.begin_nested():
                    self._session.add(user)
            except IntegrityError as exc:
                raise Conflict("Error inserting User") from exc
            await self._session.commit()

        logger.info("Created user %s", user.id)
        return normalize_user(user)
