# app/utils/formatting.py
"""
Helpers that turn split form fields into the single display strings stored on
prescription and practitioner rows.
"""
from typing import Iterable


def _clean(parts: Iterable[str | None]) -> list[str]:
    return [p.strip() for p in parts if p and p.strip()]


def join_name(first_name: str | None, last_name: str | None) -> str:
    """"Jane" + "Doe" -> "Jane Doe"; blank parts are omitted."""
    return " ".join(_clean([first_name, last_name]))


def split_name(full_name: str | None) -> tuple[str, str]:
    """
    Inverse of join_name for auto-fill: first token is the first name,
    the rest is the last name.
    """
    parts = (full_name or "").strip().split(None, 1)
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[1]


def format_address(
    street: str | None = None,
    city: str | None = None,
    state: str | None = None,
    postal_code: str | None = None,
    country: str | None = None,
) -> str:
    """
    Comma-join address components in street, city, state, postal code,
    country order, omitting absent components.
    """
    return ", ".join(_clean([street, city, state, postal_code, country]))


def normalize_email(email: str | None) -> str | None:
    """Lower-case and trim an email; blank becomes None."""
    if not email or not email.strip():
        return None
    return email.strip().lower()


def blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None
