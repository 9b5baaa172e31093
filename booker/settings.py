"""Centralized configuration management for the Booker service."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables defined in a local .env file before instantiating the
# settings singleton so every consumer importing :mod:`booker.settings` observes
# the same values as the FastAPI application.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_SQLITE_DATABASE_URL = "sqlite+aiosqlite:///./data/booker.db"
POSTGRES_ASYNC_PREFIX = "postgresql+psycopg://"
POSTGRES_SYNC_PREFIXES = ("postgres://", "postgresql://")
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_SESSION_SECRET = "booker-development-secret-change-me"
DEFAULT_SESSION_COOKIE_NAME = "booker_auth_cookie"
DEFAULT_SESSION_MAX_AGE = 14 * 24 * 60 * 60
DEFAULT_SIGNUP_REDIRECT_URL = "/search"
DEFAULT_CATALOG_API_URL = "https://www.googleapis.com/books/v1/volumes"
DEFAULT_CATALOG_MAX_RESULTS = 16


def _normalize_origin(origin: str) -> str:
    """Return the origin stripped of whitespace and trailing slashes."""

    return origin.strip().rstrip("/")


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    The class encapsulates the environment variables consumed by the API, the
    session transport, and the catalog search client, and exposes helpers such
    as the normalized database URL so downstream modules never repeat parsing
    logic.
    """

    _explicit_redis_url: bool = PrivateAttr(default=False)
    _explicit_cors_allow_origins: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:
        """Capture explicit overrides prior to delegating to ``BaseSettings``."""

        normalized_keys = {str(key).lower() for key in values}
        super().__init__(**values)
        self._explicit_redis_url = "redis_url" in normalized_keys
        self._explicit_cors_allow_origins = (
            "cors_allow_origins_raw" in normalized_keys
            or "cors_allow_origins" in normalized_keys
        )
        redis_env = os.getenv("REDIS_URL")
        if redis_env is not None and redis_env.strip():
            self._explicit_redis_url = True
        cors_env = os.getenv("CORS_ALLOW_ORIGINS")
        if cors_env is not None and cors_env.strip():
            self._explicit_cors_allow_origins = True

    database_url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description=(
            "Full SQLAlchemy-compatible database URL. Postgres URLs supplied in"
            " sync format (postgres:// or postgresql://) are coerced into the"
            " async psycopg driver string at runtime."
        ),
    )
    use_sqlite: bool = Field(
        default=False,
        alias="USE_SQLITE",
        description="Force SQLite usage regardless of DATABASE_URL.",
    )
    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        alias="REDIS_URL",
        description="Redis connection string consumed by the favorites cache.",
    )
    session_secret: str = Field(
        default=DEFAULT_SESSION_SECRET,
        alias="SESSION_SECRET",
        description="Key used to sign the session cookie.",
    )
    session_cookie_name: str = Field(
        default=DEFAULT_SESSION_COOKIE_NAME,
        alias="SESSION_COOKIE_NAME",
    )
    session_cookie_secure: bool = Field(
        default=False,
        alias="SESSION_COOKIE_SECURE",
        description="Only send the session cookie over HTTPS. Enable in production.",
    )
    session_max_age: int = Field(
        default=DEFAULT_SESSION_MAX_AGE,
        alias="SESSION_MAX_AGE",
        description="Session cookie lifetime in seconds.",
    )
    signup_redirect_url: str = Field(
        default=DEFAULT_SIGNUP_REDIRECT_URL,
        alias="SIGNUP_REDIRECT_URL",
        description="Location the client is redirected to after a successful signup.",
    )
    bcrypt_rounds: int = Field(
        default=12,
        alias="BCRYPT_ROUNDS",
        ge=4,
        le=31,
        description="Work factor handed to bcrypt.gensalt.",
    )
    catalog_api_url: str = Field(
        default=DEFAULT_CATALOG_API_URL,
        alias="CATALOG_API_URL",
    )
    catalog_max_results: int = Field(
        default=DEFAULT_CATALOG_MAX_RESULTS,
        alias="CATALOG_MAX_RESULTS",
        ge=1,
        le=40,
    )
    catalog_lang: str = Field(default="en", alias="CATALOG_LANG")
    catalog_timeout_seconds: float = Field(
        default=10.0,
        alias="CATALOG_TIMEOUT_SECONDS",
        gt=0,
        description="Upper bound on a single catalog request before it counts as failed.",
    )
    cors_allow_origins_raw: str | None = Field(
        default=None,
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of additional CORS origins.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )
    slow_query_threshold: float = Field(
        default=0.1,
        alias="SLOW_QUERY_THRESHOLD",
        description="Seconds after which a query is logged as slow.",
    )

    @property
    def resolved_database_url(self) -> str:
        """Return the async-compatible database URL after applying fallbacks."""

        if self.use_sqlite or not self.database_url:
            return DEFAULT_SQLITE_DATABASE_URL

        url = self.database_url.strip()

        for prefix in POSTGRES_SYNC_PREFIXES:
            if url.startswith(prefix):
                return url.replace(prefix, POSTGRES_ASYNC_PREFIX, 1)

        if url.startswith(POSTGRES_ASYNC_PREFIX) or url.startswith("sqlite+aiosqlite://"):
            return url

        raise RuntimeError(
            f"Expected a PostgreSQL connection string or SQLite fallback, received: {url}"
        )

    @property
    def database_type(self) -> str:
        """Return ``sqlite`` when using SQLite otherwise ``postgresql``."""

        if self.resolved_database_url.startswith("sqlite"):
            return "sqlite"
        return "postgresql"

    @property
    def cors_allow_origins(self) -> list[str]:
        """Return normalised CORS origins supplied via environment variables."""

        if not self.cors_allow_origins_raw:
            return []

        origins = [
            _normalize_origin(origin)
            for origin in self.cors_allow_origins_raw.split(",")
            if origin.strip()
        ]
        return [origin for origin in origins if origin]

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if not self._explicit_redis_url and self.redis_url == DEFAULT_REDIS_URL:
            warnings.append(
                "REDIS_URL is not set - favorites listings will not be cached"
            )

        if not self._explicit_cors_allow_origins and not self.cors_allow_origins:
            warnings.append(
                "CORS_ALLOW_ORIGINS is not set - using default localhost origins only"
            )

        if self.session_secret == DEFAULT_SESSION_SECRET:
            warnings.append(
                "SESSION_SECRET is not set - session cookies are signed with a "
                "development key and must not be used in production"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


settings = get_settings()

__all__ = [
    "AppSettings",
    "DEFAULT_CATALOG_API_URL",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_REDIS_URL",
    "DEFAULT_SESSION_SECRET",
    "DEFAULT_SQLITE_DATABASE_URL",
    "POSTGRES_ASYNC_PREFIX",
    "POSTGRES_SYNC_PREFIXES",
    "get_settings",
    "settings",
]
