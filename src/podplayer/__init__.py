"""
Podcast player package - Aggregates a fixed list of RSS feeds, plays their
episodes and remembers where you left off.

The session core owns playback state and resume progress; feed aggregation,
persistence and the terminal front end are thin collaborators around it.
"""

from .aggregator import FeedAggregator
from .factory import create_manager
from .manager import PlayerManager
from .models import Episode, Feed, FeedSource, Snapshot, TransportState
from .session import SessionCore

__all__ = [
    "create_manager",
    "FeedAggregator",
    "PlayerManager",
    "SessionCore",
    "Episode",
    "Feed",
    "FeedSource",
    "Snapshot",
    "TransportState",
]
