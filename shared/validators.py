"""
Shared validation utilities.
Provides reusable validators used by DTOs and by the analytics service
before any computation starts.
"""
import re
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from .error_models import InvalidDateRangeError, ValidationFailedError


# Common regex patterns
COIN_SYMBOL_PATTERN = re.compile(r'^[A-Z0-9]{1,10}$')
UUID_PATTERN = re.compile(
    r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$'
)
NUMERIC_ID_PATTERN = re.compile(r'^[1-9]\d*$')


def validate_coin_symbol(symbol: str) -> str:
    """
    Validate cryptocurrency symbol format.
    Requirements:
    - 1-10 characters
    - Letters and numbers only (normalized to uppercase)
    - No special characters or spaces
    """
    normalized = (symbol or "").strip().upper()
    if not COIN_SYMBOL_PATTERN.match(normalized):
        raise ValueError(
            "Coin symbol must be 1-10 letters and numbers only (e.g., BTC, ETH)"
        )
    return normalized


def validate_user_id(user_id: Any) -> str:
    """
    Validate a user identifier.

    Accepts UUIDs (string or uuid.UUID) and positive integers, in either
    numeric or string form. Returns the canonical string form.
    """
    if isinstance(user_id, bool) or user_id is None:
        raise ValidationFailedError("User ID is required", field="user_id")
    if isinstance(user_id, int):
        if user_id <= 0:
            raise ValidationFailedError("User ID must be a positive integer", field="user_id")
        return str(user_id)

    value = str(user_id).strip()
    if UUID_PATTERN.match(value):
        return value.lower()
    if NUMERIC_ID_PATTERN.match(value):
        return value
    raise ValidationFailedError(
        "User ID must be a UUID or a positive integer",
        detail=f"Got {value!r}",
        field="user_id"
    )


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return value as an aware UTC datetime. Naive datetimes are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Any, field: str) -> Optional[datetime]:
    """Parse an ISO-8601 string (or datetime) into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            raise InvalidDateRangeError(
                f"{field} must be an ISO-8601 datetime (e.g., 2026-01-01T00:00:00Z)",
                detail=f"Got {value!r}",
                field=field
            )
    raise InvalidDateRangeError(f"{field} must be a datetime or ISO-8601 string", field=field)


def validate_date_range(
    start_date: Any = None, end_date: Any = None
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Validate and normalize an optional [start_date, end_date] window.

    Returns:
        Tuple of (start_date, end_date) as aware UTC datetimes or None
    """
    start = parse_datetime(start_date, "start_date")
    end = parse_datetime(end_date, "end_date")
    if start is not None and end is not None and start > end:
        raise InvalidDateRangeError(
            "start_date must not be after end_date",
            detail=f"start_date={start.isoformat()} end_date={end.isoformat()}",
            field="start_date"
        )
    return start, end
