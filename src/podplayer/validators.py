"""
Pure predicates guarding session mutations and episode navigation.

None of these functions raise; bad input simply fails the check.
"""

import math
from typing import Any, Optional

from .config import DEFAULT_VOLUME, MAX_VOLUME, MIN_VOLUME
from .models import Episode


def _is_real_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_playable(episode: Optional[Episode]) -> bool:
    """Check the episode has an id, a title and a non-blank audio URL."""
    if episode is None:
        return False
    audio_url = getattr(episode, "audio_url", None)
    return bool(
        getattr(episode, "id", None)
        and getattr(episode, "title", None)
        and isinstance(audio_url, str)
        and audio_url.strip()
    )


def is_valid_time(value: Any) -> bool:
    """Check value is a finite, non-negative number of seconds."""
    return _is_real_number(value) and math.isfinite(value) and value >= 0


def is_valid_volume(value: Any) -> bool:
    """Check value is a finite number within [0, 1]."""
    return (
        _is_real_number(value)
        and math.isfinite(value)
        and MIN_VOLUME <= value <= MAX_VOLUME
    )


def is_valid_episode_id(episode_id: Any) -> bool:
    """Check episode_id is a non-blank string."""
    return isinstance(episode_id, str) and bool(episode_id.strip())


def is_valid_progress_data(episode_id: Any, value: Any) -> bool:
    """Check a (episode id, time) pair may be stored as resume progress."""
    return is_valid_episode_id(episode_id) and is_valid_time(value)


def clamp_volume(value: Any) -> float:
    """Clamp value into [0, 1]. Unusable input maps to the default volume."""
    if not _is_real_number(value) or math.isnan(value):
        return DEFAULT_VOLUME
    return float(max(MIN_VOLUME, min(MAX_VOLUME, value)))
