import logging
from datetime import datetime, timezone
from typing import Any, Optional

import dateparser

logger = logging.getLogger("services.common")


def to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to aware UTC (naive values are assumed to already be UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_dt(maybe: Any, tz_name: str = "UTC") -> Optional[datetime]:
    """Parse various datetime formats and return a timezone-aware datetime in UTC.

    Free-form strings ("tomorrow 5pm", "next friday") are resolved with dateparser
    relative to the configured wall-clock zone.
    """
    if not maybe:
        return None

    if isinstance(maybe, datetime):
        return to_utc(maybe)

    if isinstance(maybe, (int, float)):
        try:
            return datetime.fromtimestamp(maybe, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(maybe, str):
        text = maybe.strip()
        try:
            return to_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            pass
        dt = dateparser.parse(
            text,
            settings={
                "TIMEZONE": tz_name,
                "RETURN_AS_TIMEZONE_AWARE": True,
                "PREFER_DATES_FROM": "future",
            },
        )
        if dt is None:
            logger.debug("Could not parse datetime from %r", maybe)
        return to_utc(dt)

    return None


def truncate(text: Optional[str], max_len: int) -> str:
    """Hard cut at max_len characters (push services limit body size)."""
    s = str(text or "")
    return s[:max_len]


def plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"
