"""Datetime utilities for timezone-aware operations."""

from datetime import date, datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a datetime value from the formats records carry.

    Handles:
    - ISO format strings, with "Z" suffix or an explicit offset
    - date-only ISO strings ("2025-03-01")
    - datetime / date objects (pass-through)
    - None and empty strings

    Naive values are assumed to be UTC so that every returned datetime
    is comparable with every other.

    Raises:
        ValueError: If a non-empty string is not ISO formatted.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported datetime value: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_datetime_or_none(value: Any) -> Optional[datetime]:
    """Lenient variant of parse_datetime: unparseable values become None."""
    try:
        return parse_datetime(value)
    except ValueError:
        return None
