"""
Small parsing and formatting helpers shared by the parser and the views.
"""

import math
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

# Positional weights for "H:MM:SS", "MM:SS" and "SS"
_DURATION_WEIGHTS = (3600, 60, 1)


def parse_duration_to_seconds(duration: Any) -> int:
    """Parse an itunes:duration value into whole seconds.

    Accepts "H:MM:SS", "MM:SS" or plain seconds. Every colon separated
    component is multiplied by its positional weight. Anything that cannot
    be read (empty, non-numeric, negative, too many components) yields 0.
    """
    if duration is None or isinstance(duration, bool):
        return 0

    if isinstance(duration, (int, float)):
        if not math.isfinite(duration) or duration < 0:
            return 0
        return int(duration)

    text = str(duration).strip()
    if not text:
        return 0

    parts = text.split(":")
    if len(parts) > len(_DURATION_WEIGHTS):
        return 0

    total = 0.0
    weights = _DURATION_WEIGHTS[-len(parts):]
    for part, weight in zip(parts, weights):
        try:
            value = float(part)
        except ValueError:
            return 0
        if not math.isfinite(value) or value < 0:
            return 0
        total += value * weight

    return int(total)


def parse_published_date(
    value: Any, now: Optional[datetime] = None
) -> datetime:
    """Parse a publish date, falling back to ``now`` when unreadable.

    Handles datetimes, ``time.struct_time`` (feedparser's ``*_parsed``
    fields), RFC 822 strings and ISO-8601 strings. Naive values are
    taken to be UTC.
    """
    fallback = now or datetime.now(timezone.utc)
    parsed: Optional[datetime] = None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, time.struct_time):
        try:
            parsed = datetime(*value[:6], tzinfo=timezone.utc)
        except (TypeError, ValueError):
            parsed = None
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            parsed = None
        if parsed is None:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                parsed = None

    if parsed is None:
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def make_episode_id(
    feed_title: str,
    index: int,
    guid: Optional[str] = None,
    link: Optional[str] = None,
    title: Optional[str] = None,
) -> str:
    """Build the stable episode id used to key progress across fetches."""
    content_key = guid or link or title or ""
    return f"{feed_title}-{index}-{content_key}"


def format_duration(seconds: float) -> str:
    """Format seconds as H:MM:SS or M:SS."""
    if not isinstance(seconds, (int, float)) or not math.isfinite(seconds):
        seconds = 0
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def truncate(text: str, max_length: int) -> str:
    """Shorten text to max_length characters, ending with an ellipsis."""
    text = " ".join((text or "").split())
    if len(text) <= max_length:
        return text
    return text[: max(0, max_length - 3)].rstrip() + "..."
