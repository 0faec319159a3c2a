"""
Test helpers: episode/feed builders and fakes for the clock and output.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional

from podplayer.audio import NullOutput, OutputStatus
from podplayer.errors import FeedFetchError, PlaybackError
from podplayer.models import Episode, Feed

BASE_DATE = datetime(2024, 1, 31, 12, 0, tzinfo=timezone.utc)


def create_test_episode(**kwargs: Any) -> Episode:
    """Create an Episode with sensible defaults, overridable by keyword."""
    defaults = {
        "id": "ep1",
        "title": "Test Episode",
        "description": "A test episode",
        "audio_url": "http://test.com/ep1.mp3",
        "duration_seconds": 1800,
        "published_at": BASE_DATE,
        "feed_title": "Test Podcast",
        "feed_url": "http://test.com/rss",
        "image_url": None,
    }
    defaults.update(kwargs)
    return Episode(**defaults)


def create_test_feed(
    title: str = "Test Podcast",
    url: str = "http://test.com/rss",
    count: int = 3,
    start: Optional[datetime] = None,
    prefix: str = "ep",
) -> Feed:
    """Create a feed of count episodes, one day apart, newest first."""
    start = start or BASE_DATE
    episodes: List[Episode] = [
        create_test_episode(
            id=f"{prefix}{i}",
            title=f"{title} #{i}",
            audio_url=f"{url}/{prefix}{i}.mp3",
            published_at=start - timedelta(days=i),
            feed_title=title,
            feed_url=url,
        )
        for i in range(1, count + 1)
    ]
    return Feed(title=title, url=url, description="", episodes=episodes)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingOutput(NullOutput):
    """NullOutput that records calls and counts concurrently loaded sources."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: List[str] = []
        self.loaded_urls: List[str] = []
        self.max_active_sources = 0
        self.fail_on_play: Optional[PlaybackError] = None
        self.status_override: Optional[OutputStatus] = None
        self.reported_duration: Optional[float] = None

    @property
    def active_sources(self) -> int:
        return 1 if self.url else 0

    def load(self, url: str, start_at: float = 0.0) -> None:
        self.calls.append("load")
        self.max_active_sources = max(
            self.max_active_sources, self.active_sources + 1
        )
        self.loaded_urls.append(url)
        super().load(url, start_at)

    def play(self) -> None:
        self.calls.append("play")
        if self.fail_on_play is not None:
            raise self.fail_on_play
        super().play()

    def pause(self) -> None:
        self.calls.append("pause")
        super().pause()

    def stop(self) -> None:
        self.calls.append("stop")
        super().stop()

    def duration(self) -> Optional[float]:
        if self.url and self.reported_duration is not None:
            return self.reported_duration
        return super().duration()

    def poll(self) -> OutputStatus:
        if self.status_override is not None:
            return self.status_override
        return super().poll()


class StubFetcher:
    """Blocking url -> Feed fetcher returning canned feeds; some URLs fail.

    ``http://one.test/rss`` yields feed "One" with episodes one-1, one-2.
    """

    def __init__(self, failing: Optional[List[str]] = None, count: int = 2):
        self.failing = set(failing or [])
        self.count = count
        self.calls: List[str] = []
        self.on_call: Optional[Callable[[str], None]] = None
        self._lock = threading.Lock()

    def __call__(self, url: str) -> Feed:
        with self._lock:
            self.calls.append(url)
        if self.on_call is not None:
            self.on_call(url)
        if url in self.failing:
            raise FeedFetchError(url, "Failed to fetch RSS feed: HTTP 500")
        name = url.split("//")[1].split(".")[0]
        return create_test_feed(name.title(), url, self.count, prefix=f"{name}-")
