"""Date/time helpers.

All datetimes in the package are timezone-aware UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def format_duration(seconds: int | None) -> str:
    """Render seconds as ``M:SS`` or ``H:MM:SS``."""
    if seconds is None:
        return "Unknown"
    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
