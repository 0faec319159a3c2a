"""
Factory functions for creating PlayerManager instances.

This module provides simple factory functions that wire up dependencies
clearly.
"""

import functools
import logging
from typing import Optional, Sequence

from .aggregator import FeedAggregator
from .audio import AudioOutput, FFplayOutput, NullOutput
from .config import (
    PODCAST_FEEDS,
    PROGRESS_SAVE_INTERVAL,
    get_data_directory,
    get_ffplay_binary,
    get_parse_endpoint,
)
from .downloader import fetch_feed
from .manager import PlayerManager
from .models import FeedSource
from .repository import SessionRepository
from .session import SessionCore
from .storage import Storage


def create_session(
    data_dir: str, output: Optional[AudioOutput] = None
) -> SessionCore:
    """Create a SessionCore persisting to data_dir."""
    storage = Storage(data_dir)
    repository = SessionRepository(storage)
    return SessionCore(
        repository=repository,
        output=output,
        progress_interval=PROGRESS_SAVE_INTERVAL,
    )


def create_manager(
    data_dir: Optional[str] = None,
    sources: Optional[Sequence[FeedSource]] = None,
    output: Optional[AudioOutput] = None,
    parse_endpoint: Optional[str] = None,
    show_progress: bool = False,
    audio: bool = True,
) -> PlayerManager:
    """Create a fully wired PlayerManager.

    With audio=False a silent NullOutput is used.
    """
    logger = logging.getLogger(__name__)
    data_dir = data_dir or get_data_directory()
    parse_endpoint = parse_endpoint or get_parse_endpoint()

    if output is None:
        output = FFplayOutput(get_ffplay_binary()) if audio else NullOutput()

    fetcher = functools.partial(fetch_feed, parse_endpoint=parse_endpoint)
    aggregator = FeedAggregator(
        sources=sources if sources is not None else PODCAST_FEEDS,
        fetcher=fetcher,
        show_progress=show_progress,
    )
    session = create_session(data_dir, output)

    logger.info(
        "Created PlayerManager with %d feeds, data directory %s",
        len(aggregator.sources),
        data_dir,
    )
    return PlayerManager(session, aggregator)
