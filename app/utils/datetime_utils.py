"""
Common date/time utility functions for consistent date/time handling across the application

Storage: All timestamps are stored in UTC in the backend
Display: Dates can be converted to local timezone for display if needed

This ensures consistency across frontend and backend:
- Frontend sends ISO strings to backend (form fields are plain strings)
- Backend stores timestamps in UTC
- Backend returns UTC ISO strings to frontend
"""

from datetime import date, datetime, timezone


def as_utc(dt: datetime) -> datetime:
    """
    Convert dt to tz-aware UTC.
    If dt is naive, we treat it as UTC (SQLite hands back naive values).

    Args:
        dt: datetime object (naive or timezone-aware)

    Returns:
        datetime object in UTC timezone
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    """
    Get current UTC datetime.

    Returns:
        Current datetime in UTC timezone
    """
    return datetime.now(timezone.utc)


def parse_iso_string(iso_string: str) -> datetime:
    """
    Parse an ISO 8601 string to UTC datetime.
    Handles both with and without 'Z' suffix.

    Args:
        iso_string: ISO 8601 string (e.g., "2024-12-28T10:30:00.000Z" or "2024-12-28T10:30:00+00:00")

    Returns:
        datetime object in UTC timezone
    """
    # Replace 'Z' with '+00:00' for consistent parsing
    if iso_string.endswith("Z"):
        iso_string = iso_string[:-1] + "+00:00"

    dt = datetime.fromisoformat(iso_string)
    return as_utc(dt)


def parse_form_date(value: str) -> date | None:
    """
    Parse a date form field ("YYYY-MM-DD", or a full ISO timestamp).

    Returns None for a blank field; raises ValueError for anything else
    that is not a date.
    """
    value = (value or "").strip()
    if not value:
        return None
    if "T" in value:
        return parse_iso_string(value).date()
    return date.fromisoformat(value)


def format_form_date(value: date | None) -> str:
    """Render a stored date back into a form field value."""
    return value.isoformat() if value else ""
