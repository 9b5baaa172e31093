import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from sqlalchemy.exc import (
    DatabaseError,
    DBAPIError,
    IntegrityError,
    OperationalError,
)
from sqlalchemy.exc import (
    TimeoutError as SQLAlchemyTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.middleware.sessions import SessionMiddleware

from booker.db.connection import (
    get_database_type as _connection_get_database_type,
)
from booker.db.connection import (
    get_database_url as _connection_get_database_url,
)
from booker.db.connection import (
    get_engine as _connection_get_engine,
)
from booker.settings import AppSettings, get_settings

from .api import auth, favorites
from .schemas.error import ErrorType, ValidationErrorDetail
from .utils.error_responses import error_json_response
from .utils.request_context import REQUEST_ID_HEADER, bind_request_id, current_request_id

settings = get_settings()

logging.basicConfig(
    level=settings.log_level_numeric,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def validate_environment(active_settings: AppSettings | None = None) -> list[str]:
    """Log warnings for unset optional configuration and return them."""

    warnings = (active_settings or get_settings()).optional_config_warnings()
    if warnings:
        logger.warning("=" * 60)
        logger.warning("Environment Configuration Warnings:")
        for warning in warnings:
            logger.warning(f"  • {warning}")
        logger.warning("=" * 60)
    return warnings


def _sanitize_database_url(url: str) -> str:
    """Sanitize database URL to hide password in logs."""
    if "://" not in url:
        return url

    scheme, rest = url.split("://", 1)
    if "@" in rest:
        auth_part, host_db = rest.split("@", 1)
        if ":" in auth_part:
            user, _ = auth_part.split(":", 1)
            return f"{scheme}://{user}:***@{host_db}"
        return f"{scheme}://{auth_part}@{host_db}"

    return url


# Module-level indirections so tests can patch ``booker.main.get_*`` directly.
def get_database_type() -> str:
    return _connection_get_database_type()


def get_database_url() -> str:
    return _connection_get_database_url()


def get_engine() -> AsyncEngine:
    return _connection_get_engine()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    validate_environment()

    db_type = get_database_type()
    sanitized_url = _sanitize_database_url(get_database_url())

    logger.info("=" * 60)
    logger.info("Booker API - Database Preflight Check")
    logger.info("=" * 60)
    logger.info(f"Database Type: {db_type.upper()}")
    logger.info(f"Database URL: {sanitized_url}")
    if db_type == "sqlite":
        logger.info("SQLite mode - create tables with: booker init-db")
    logger.info("=" * 60)

    from booker.warmup import warmup_all

    await warmup_all(resolve_engine=get_engine)

    yield

    from booker.cache import close_redis
    from booker.db.connection import dispose_engine

    logger.info("Shutting down Booker API")
    await close_redis()
    await dispose_engine()


app = FastAPI(
    title="Booker API",
    version="0.1.0",
    description="Session-authenticated favorites for books found in the Google Books catalog.",
    lifespan=lifespan,
    redirect_slashes=False,
)


def _default_origins() -> list[str]:
    ports = list(range(3000, 3011)) + [5173]
    origins = []
    for host in ("localhost", "127.0.0.1"):
        origins.extend([f"http://{host}:{port}" for port in ports])
    return origins


def _combine_origins(*origin_groups: list[str]) -> list[str]:
    """Merge origins preserving order and removing duplicates."""
    seen: set[str] = set()
    combined: list[str] = []
    for group in origin_groups:
        for origin in group:
            normalized = origin.rstrip("/")
            if normalized and normalized not in seen:
                seen.add(normalized)
                combined.append(normalized)
    return combined


allow_origins = _combine_origins(_default_origins(), settings.cors_allow_origins)
logger.debug("Configured CORS allow_origins: %s", ", ".join(allow_origins))

# Starlette wraps middleware in reverse order of registration, so CORS ends up
# outermost and answers preflight requests before the session is decoded.
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    session_cookie=settings.session_cookie_name,
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.session_cookie_secure,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Tag each request with a correlation id and echo it on the response."""
    request_id = bind_request_id(request)
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def _validation_details(exc: RequestValidationError | ValidationError) -> list[ValidationErrorDetail]:
    return [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            value=error.get("input"),
        )
        for error in exc.errors()
    ]


def _log_failure(level: int, kind: str, request: Request, reason: object) -> None:
    logger.log(
        level,
        "%s for request %s to %s: %s",
        kind,
        current_request_id(request),
        request.url.path,
        reason,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors."""
    errors = _validation_details(exc)
    _log_failure(logging.WARNING, "Validation error", request, f"{len(errors)} errors")
    return error_json_response(
        request,
        error_type=ErrorType.VALIDATION_ERROR,
        message="Request validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        errors=errors,
    )


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors raised outside request parsing."""
    errors = _validation_details(exc)
    _log_failure(
        logging.WARNING, "Pydantic validation error", request, f"{len(errors)} errors"
    )
    return error_json_response(
        request,
        error_type=ErrorType.VALIDATION_ERROR,
        message="Data validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        errors=errors,
    )


@app.exception_handler(OperationalError)
@app.exception_handler(DBAPIError)
async def database_connection_exception_handler(request: Request, exc: Exception):
    """Handle database connection errors that escaped the store adapter."""
    _log_failure(logging.ERROR, "Database connection error", request, exc)
    return error_json_response(
        request,
        error_type=ErrorType.DATABASE_ERROR,
        message="Database connection failed",
        detail="Unable to connect to the database. Please try again later.",
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        retry_after=5,
    )


@app.exception_handler(SQLAlchemyTimeoutError)
async def database_timeout_exception_handler(
    request: Request, exc: SQLAlchemyTimeoutError
):
    """Handle connection pool checkout timeouts."""
    _log_failure(logging.ERROR, "Database timeout", request, exc)
    return error_json_response(
        request,
        error_type=ErrorType.TIMEOUT_ERROR,
        message="Database query timeout",
        detail="The database query took too long to complete. Please try again.",
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        retry_after=3,
    )


@app.exception_handler(IntegrityError)
async def database_integrity_exception_handler(request: Request, exc: IntegrityError):
    _log_failure(logging.ERROR, "Database integrity error", request, exc)
    return error_json_response(
        request,
        error_type=ErrorType.DATABASE_ERROR,
        message="Data integrity constraint violation",
        detail="The operation would violate a database constraint.",
        status_code=status.HTTP_409_CONFLICT,
    )


@app.exception_handler(DatabaseError)
async def database_generic_exception_handler(request: Request, exc: DatabaseError):
    _log_failure(logging.ERROR, "Database error", request, exc)
    return error_json_response(
        request,
        error_type=ErrorType.DATABASE_ERROR,
        message="Database operation failed",
        detail="An error occurred while accessing the database. Please try again.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        retry_after=3,
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle all other unhandled exceptions."""
    logger.exception(
        "Unhandled exception for request %s to %s: %s",
        current_request_id(request),
        request.url.path,
        type(exc).__name__,
    )
    return error_json_response(
        request,
        error_type=ErrorType.INTERNAL_ERROR,
        message="Internal server error",
        detail=f"An unexpected error occurred: {type(exc).__name__}",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        retry_after=5,
    )


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    """Simple health endpoint for readiness checks."""
    return {"status": "ok"}


app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(favorites.router, prefix="/api", tags=["favorites"])
