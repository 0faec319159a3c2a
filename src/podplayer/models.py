"""
Data models for feeds, episodes and the persisted session snapshot.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .utils import parse_duration_to_seconds, parse_published_date

UNKNOWN_FEED_TITLE = "Unknown Feed"
UNTITLED_EPISODE = "Untitled"


def _text(value: Any, default: str = "") -> str:
    """Coerce an optional wire value to a string."""
    if value is None:
        return default
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


class TransportState(Enum):
    """Playback lifecycle of the currently selected episode."""

    IDLE = "idle"
    LOADING = "loading"
    READY_PAUSED = "ready-paused"
    READY_PLAYING = "ready-playing"
    ENDED = "ended"
    ERRORED = "errored"

    @property
    def is_ready(self) -> bool:
        """Audio metadata is known and the transport accepts commands."""
        return self in (TransportState.READY_PAUSED, TransportState.READY_PLAYING)


@dataclass(frozen=True)
class FeedSource:
    """One configured podcast feed."""

    name: str
    url: str
    description: str = ""


@dataclass
class Episode:  # pylint: disable=too-many-instance-attributes
    """A single playable item from a feed.

    Instances are rebuilt on every fetch, so anything that has to survive
    a refetch is keyed by ``id`` rather than by object.
    """

    id: str
    title: str
    description: str
    audio_url: str
    duration_seconds: int
    published_at: datetime
    feed_title: str
    feed_url: str
    image_url: Optional[str] = None
    is_played: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Episode":
        """Create Episode from a feed JSON body entry.

        Accepts both the camelCase wire names and the attribute names.
        Malformed values degrade to defaults instead of raising.
        """
        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return None

        return cls(
            id=_text(pick("id")),
            title=_text(pick("title"), UNTITLED_EPISODE),
            description=_text(pick("description")),
            audio_url=_text(pick("audioUrl", "audio_url")),
            duration_seconds=parse_duration_to_seconds(
                pick("duration", "duration_seconds")
            ),
            published_at=parse_published_date(
                pick("pubDate", "published_at")
            ),
            feed_title=_text(
                pick("feedTitle", "feed_title"), UNKNOWN_FEED_TITLE
            ),
            feed_url=_text(pick("feedUrl", "feed_url")),
            image_url=_optional_text(pick("imageUrl", "image_url")),
            is_played=bool(pick("isPlayed", "is_played")),
        )

    def to_json(self) -> dict[str, Any]:
        """Convert episode to the JSON wire shape."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "audioUrl": self.audio_url,
            "duration": self.duration_seconds,
            "pubDate": self.published_at.isoformat(),
            "feedTitle": self.feed_title,
            "feedUrl": self.feed_url,
            "imageUrl": self.image_url,
            "isPlayed": self.is_played,
        }


@dataclass
class Feed:
    """An ordered collection of episodes from one source.

    ``error`` is only set on placeholder feeds standing in for a source
    that could not be fetched or parsed.
    """

    title: str
    url: str
    description: str = ""
    image_url: Optional[str] = None
    episodes: list[Episode] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        """True when this feed stands in for a failed load."""
        return self.error is not None

    @classmethod
    def placeholder(cls, url: str, error: str, description: str) -> "Feed":
        """Create the empty feed shown for a source that failed to load."""
        return cls(
            title=f"Failed to load: {url}",
            url=url,
            description=description,
            episodes=[],
            error=error,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], source_url: str = "") -> "Feed":
        """Create Feed from a feed JSON body."""
        data = data.copy()
        episodes_data = data.pop("episodes", None) or []
        url = _text(data.get("url"), source_url) or source_url
        title = _text(data.get("title"), UNKNOWN_FEED_TITLE) or UNKNOWN_FEED_TITLE

        episodes: list[Episode] = []
        for episode_data in episodes_data:
            if not isinstance(episode_data, dict):
                continue
            episode = Episode.from_dict(episode_data)
            if not episode.feed_url:
                episode.feed_url = url
            episodes.append(episode)

        return cls(
            title=title,
            url=url,
            description=_text(data.get("description")),
            image_url=_optional_text(data.get("imageUrl", data.get("image_url"))),
            episodes=episodes,
        )

    def to_json(self) -> dict[str, Any]:
        """Convert feed to the JSON wire shape."""
        return {
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "imageUrl": self.image_url,
            "episodes": [episode.to_json() for episode in self.episodes],
        }


@dataclass
class Snapshot:
    """The minimal durable state needed to resume a session.

    Feeds and episodes are never part of it; they are always re-fetched.
    """

    current_episode_id: Optional[str] = None
    current_time: float = 0.0
    episode_progress: dict[str, float] = field(default_factory=dict)
    hidden_episode_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        """Create Snapshot from its stored JSON shape.

        Raises TypeError or ValueError when the top-level shape is wrong;
        individual bad progress entries are dropped.
        """
        if not isinstance(data, dict):
            raise TypeError("snapshot must be a JSON object")

        current_episode_id = data.get("currentEpisodeId")
        if current_episode_id is not None and not isinstance(
            current_episode_id, str
        ):
            raise ValueError("currentEpisodeId must be a string or null")

        current_time = data.get("currentTimeSeconds", 0)
        if not _is_stored_time(current_time):
            current_time = 0.0

        raw_progress = data.get("episodeProgress") or {}
        if not isinstance(raw_progress, dict):
            raise ValueError("episodeProgress must be an object")
        progress = {
            str(episode_id): float(seconds)
            for episode_id, seconds in raw_progress.items()
            if episode_id and _is_stored_time(seconds)
        }

        raw_hidden = data.get("hiddenEpisodeIds") or []
        hidden = [
            episode_id
            for episode_id in raw_hidden
            if isinstance(episode_id, str) and episode_id
        ] if isinstance(raw_hidden, list) else []

        return cls(
            current_episode_id=current_episode_id or None,
            current_time=float(current_time),
            episode_progress=progress,
            hidden_episode_ids=hidden,
        )

    def to_json(self) -> dict[str, Any]:
        """Convert snapshot to its stored JSON shape."""
        return {
            "currentEpisodeId": self.current_episode_id,
            "currentTimeSeconds": self.current_time,
            "episodeProgress": dict(self.episode_progress),
            "hiddenEpisodeIds": sorted(self.hidden_episode_ids),
        }


def _is_stored_time(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value >= 0
    )
