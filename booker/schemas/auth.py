"""Schemas for credentials and the session's user projection."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Credentials(BaseModel):
    """Login/signup body.

    Both fields are optional at the schema level: the auth service owns the
    "must include username and password" rule so the message stays uniform
    regardless of whether a field is missing or blank.
    """

    model_config = ConfigDict(extra="ignore")

    username: str | None = None
    password: str | None = Field(default=None, repr=False)


class SessionUser(BaseModel):
    """Lightweight ``{id, username}`` projection kept in the session."""

    id: str
    username: str


class SessionStatus(BaseModel):
    """Response of the session status endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    is_logged_in: bool = Field(..., alias="isLoggedIn")
    user: SessionUser | None = None
