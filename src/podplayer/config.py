"""
Static configuration: the feed list and playback/UI constants.
"""

import os
from typing import List, Optional

from .models import FeedSource

PODCAST_FEEDS: List[FeedSource] = [
    FeedSource(
        name="Blindboy Podcast",
        url="https://feeds.acast.com/public/shows/blindboy",
        description=(
            "An eclectic podcast containing short fiction, interviews "
            "and comedy"
        ),
    ),
    FeedSource(
        name="Here Comes The Guillotine",
        url="https://feeds.captivate.fm/here-comes-the-guillotine/",
        description="A podcast about true crime and dark history",
    ),
    FeedSource(
        name="Elis James and John Robins",
        url="https://podcasts.files.bbci.co.uk/m0005fdz.rss",
        description=(
            "BBC Radio 5 Live comedy podcast with big laughs and top "
            "quality content"
        ),
    ),
]

# Playback
PROGRESS_SAVE_INTERVAL = 5.0  # seconds of active playback between saves
DEFAULT_VOLUME = 1.0
MIN_VOLUME = 0.0
MAX_VOLUME = 1.0
VOLUME_STEP = 0.1
TICK_INTERVAL = 1.0

# Feeds
REQUEST_TIMEOUT = 30
FAILED_FEED_DESCRIPTION = "Failed to load this feed"

# Presentation
EPISODES_PER_PAGE = 10
DESCRIPTION_MAX_LENGTH = 150

# Persistence
DEFAULT_DATA_DIRECTORY = "./data"
SESSION_FILENAME = "session.json"


def get_data_directory() -> str:
    """Data directory from PODCAST_DATA_DIRECTORY, or ./data."""
    return os.getenv("PODCAST_DATA_DIRECTORY") or DEFAULT_DATA_DIRECTORY


def get_parse_endpoint() -> Optional[str]:
    """Optional JSON feed-parse endpoint from PODCAST_PARSE_ENDPOINT."""
    return os.getenv("PODCAST_PARSE_ENDPOINT") or None


def get_ffplay_binary() -> str:
    """Audio player executable from FFPLAY_BINARY, or ffplay."""
    return os.getenv("FFPLAY_BINARY") or "ffplay"
