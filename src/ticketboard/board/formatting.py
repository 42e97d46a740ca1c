"""Display helpers for ticket fields."""

from __future__ import annotations

from datetime import date, datetime

INVALID_DATE = "Invalid Date"

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: int) -> str:
    """Human-readable byte count, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    exponent = 0
    while exponent < len(_SIZE_UNITS) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(size / 1024**exponent, 2)
    return f"{value:g} {_SIZE_UNITS[exponent]}"


def _coerce(value: datetime | date | str | None) -> datetime | date | None:
    if isinstance(value, datetime | date):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def format_date(value: datetime | date | str | None) -> str:
    """Date and time, e.g. ``Jan 5, 2025, 02:30 PM``; INVALID_DATE if unparseable."""
    parsed = _coerce(value)
    if parsed is None:
        return INVALID_DATE
    if not isinstance(parsed, datetime):
        parsed = datetime(parsed.year, parsed.month, parsed.day)
    return f"{parsed:%b} {parsed.day}, {parsed.year}, {parsed:%I:%M %p}"


def format_date_only(value: datetime | date | str | None) -> str:
    """Date without time, e.g. ``Jan 5, 2025``; INVALID_DATE if unparseable."""
    parsed = _coerce(value)
    if parsed is None:
        return INVALID_DATE
    return f"{parsed:%b} {parsed.day}, {parsed.year}"
