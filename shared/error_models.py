"""
Standard error models for the portfolio analytics engine.
Engine exceptions carry an ErrorCode and render to the shared ErrorResponse.
"""
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for analytics responses."""
    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"

    # Resource
    NOT_FOUND = "NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Server
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"

    # Business Logic
    PRICE_UNAVAILABLE = "PRICE_UNAVAILABLE"
    LEDGER_INCONSISTENCY = "LEDGER_INCONSISTENCY"


class ErrorResponse(BaseModel):
    """
    Standard error response model.
    Every error raised by the engine can be rendered into this structure.
    """
    error: bool = Field(default=True, description="Always true for error responses")
    error_code: ErrorCode = Field(..., description="Standard error code")
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    field: Optional[str] = Field(None, description="Field name if validation error")
    timestamp: Optional[str] = Field(None, description="Error timestamp (ISO format)")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Additional error metadata")

    class Config:
        json_schema_extra = {
            "example": {
                "error": True,
                "error_code": "INVALID_DATE_RANGE",
                "message": "start_date must not be after end_date",
                "detail": None,
                "field": "start_date",
                "timestamp": "2026-01-22T10:30:00Z",
                "metadata": {}
            }
        }


def create_error_response(
    error_code: ErrorCode,
    message: str,
    detail: Optional[str] = None,
    field: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> ErrorResponse:
    """
    Helper function to create standardized error responses.

    Args:
        error_code: Standard error code
        message: Human-readable error message
        detail: Additional error details
        field: Field name if validation error
        metadata: Additional error metadata

    Returns:
        ErrorResponse
    """
    return ErrorResponse(
        error=True,
        error_code=error_code,
        message=message,
        detail=detail,
        field=field,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        metadata=metadata or {}
    )


class PortfolioAnalyticsError(Exception):
    """Base class for errors raised by the analytics engine."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        detail: Optional[str] = None,
        field: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.field = field
        self.metadata = metadata or {}

    def to_error_response(self) -> ErrorResponse:
        """Render this error as a standard ErrorResponse."""
        return create_error_response(
            error_code=self.error_code,
            message=self.message,
            detail=self.detail,
            field=self.field,
            metadata=self.metadata
        )


class ValidationFailedError(PortfolioAnalyticsError):
    """Request rejected before any computation."""
    error_code = ErrorCode.VALIDATION_ERROR


class InvalidDateRangeError(ValidationFailedError):
    """start_date/end_date are malformed or out of order."""
    error_code = ErrorCode.INVALID_DATE_RANGE


class UserNotFoundError(PortfolioAnalyticsError):
    """Raised by readers when the user is unknown."""
    error_code = ErrorCode.USER_NOT_FOUND


class UpstreamUnavailableError(PortfolioAnalyticsError):
    """Balance or trade reader failed; no partial portfolio is returned."""
    error_code = ErrorCode.UPSTREAM_UNAVAILABLE


class PriceSourceError(PortfolioAnalyticsError):
    """A price source could not produce a quote. Absorbed by the price cache."""
    error_code = ErrorCode.PRICE_UNAVAILABLE
