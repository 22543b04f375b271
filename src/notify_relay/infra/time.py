"""Time utilities for consistent timestamp handling."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def watermark_timestamp(now: datetime | None = None) -> str:
    """Format a timestamp the way posters are stamped (UTC, minute precision)."""
    return (now or utc_now()).strftime("%Y-%m-%d %H:%M UTC")
