"""Error response schemas for consistent error handling."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorType(str, Enum):
    """Types of errors that can occur."""

    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    DATABASE_ERROR = "database_error"
    INTERNAL_ERROR = "internal_error"
    TIMEOUT_ERROR = "timeout_error"
    AUTHENTICATION_ERROR = "authentication_error"


class ErrorBody(BaseModel):
    """Reason payload returned by the auth and favorites endpoints."""

    error: str = Field(..., description="Literal message of the failure")


class ErrorResponse(BaseModel):
    """Standardized error response produced by the application-wide handlers."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error_type": "database_error",
                "message": "Database connection failed",
                "detail": "Unable to connect to the database. Please try again later.",
                "status_code": 503,
                "timestamp": "2026-01-12T10:30:00Z",
                "request_id": "0b6f3c2e-8d0a-4c59-9a55-3f8a1c2d9e11",
                "path": "/api/favorites",
                "retry_after": 5,
            }
        }
    )

    error_type: ErrorType = Field(..., description="Category of error")
    message: str = Field(..., description="Human-readable error message")
    detail: str | None = Field(None, description="Additional error details or context")
    status_code: int = Field(..., description="HTTP status code")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When error occurred",
    )
    request_id: str | None = Field(None, description="Unique request identifier for tracking")
    path: str | None = Field(None, description="Request path that caused the error")
    retry_after: int | None = Field(
        None, description="Seconds to wait before retrying (for timeout errors)"
    )


class ValidationErrorDetail(BaseModel):
    """Details for validation errors."""

    field: str = Field(..., description="Field that failed validation")
    message: str = Field(..., description="Validation error message")
    value: Any = Field(None, description="Value that failed validation")


class ValidationErrorResponse(ErrorResponse):
    """Extended error response for validation errors."""

    error_type: ErrorType = Field(default=ErrorType.VALIDATION_ERROR)
    errors: list[ValidationErrorDetail] = Field(
        default_factory=list, description="List of validation errors"
    )
