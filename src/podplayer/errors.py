"""
Error taxonomy for feed loading, playback and persistence.

None of these are fatal: feed errors become placeholder feeds, playback
errors put the session into an errored state, persistence errors are
logged and swallowed.
"""

from typing import Optional


class PodcastPlayerError(Exception):
    """Base class for all podplayer errors."""


class FeedError(PodcastPlayerError):
    """A single feed could not be turned into a Feed."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.message = message


class FeedFetchError(FeedError):
    """Network or HTTP failure while fetching a feed."""


class FeedParseError(FeedError):
    """Feed body could not be parsed as RSS or as a feed JSON document."""


class InvalidInputError(PodcastPlayerError, ValueError):
    """A command argument could not be converted to a usable value."""


class PersistenceError(PodcastPlayerError):
    """Stored session data could not be read or written."""


class PlaybackError(PodcastPlayerError):
    """Audio could not be loaded or played."""

    LOAD = "load"
    PLAY = "play"
    NETWORK = "network"
    UNKNOWN = "unknown"

    def __init__(
        self,
        message: str,
        kind: str = UNKNOWN,
        episode_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.episode_id = episode_id

    @classmethod
    def from_exception(
        cls, error: BaseException, episode_id: Optional[str] = None
    ) -> "PlaybackError":
        """Classify an arbitrary exception raised by the audio output."""
        if isinstance(error, PlaybackError):
            if episode_id and not error.episode_id:
                error.episode_id = episode_id
            return error

        text = str(error).lower()
        if isinstance(error, (ConnectionError, TimeoutError)) or (
            "network" in text or "connection" in text
        ):
            return cls("Network error occurred", cls.NETWORK, episode_id)
        if isinstance(error, (FileNotFoundError, PermissionError)):
            return cls("Failed to start audio player", cls.PLAY, episode_id)
        if "load" in text:
            return cls("Failed to load audio", cls.LOAD, episode_id)
        return cls("An unexpected error occurred", cls.UNKNOWN, episode_id)
